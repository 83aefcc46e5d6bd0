"""HTML digest report generator using Jinja2 templates."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader

from revisions_digest.describer import Describer, format_author_list
from revisions_digest.differ import summarize

if TYPE_CHECKING:
    from revisions_digest.digest import DigestResult
    from revisions_digest.store import UserDirectory

TEMPLATES_DIR = Path(__file__).parent / "templates"

EMPTY_MESSAGE = "There have been no content changes in this period."


class ReportGenerator:
    """Generate HTML digest reports."""

    def __init__(
        self,
        reports_dir: Path,
        templates_dir: Path = TEMPLATES_DIR,
    ) -> None:
        self.reports_dir = reports_dir
        self._env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=True,
        )

    def _get_date_dir(self, report_time: datetime) -> Path:
        """Get the directory path for a specific date."""
        return (
            self.reports_dir
            / f"{report_time.year:04d}"
            / f"{report_time.month:02d}"
            / f"{report_time.day:02d}"
        )

    def render_digest(self, result: DigestResult, users: UserDirectory) -> str:
        """Render a digest as a standalone HTML page."""
        describer = Describer(users)
        groups = []
        for group in result.groups.values():
            changes = []
            for change in group.changes:
                item = change.item
                names = list(describer.resolve_names(change.authors).values())
                changes.append(
                    {
                        "post_id": change.item_id,
                        "title": (item.title if item else "") or f"#{change.item_id}",
                        "url": item.url if item else "",
                        "changed_by": format_author_list(names),
                        "summary": summarize(change.edits),
                        "rendered": change.rendered,
                        "has_changes": change.has_changes,
                    }
                )
            groups.append({"key": group.key, "description": group.description, "changes": changes})

        template = self._env.get_template("digest.html")
        return template.render(
            period=str(result.request.period),
            group_by=str(result.request.group_by),
            cutoff=result.cutoff.strftime("%Y-%m-%d %H:%M UTC"),
            timestamp=result.generated_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
            groups=groups,
            count=result.count,
            empty_message=EMPTY_MESSAGE,
        )

    def generate_digest(self, result: DigestResult, users: UserDirectory) -> Path:
        """Write the digest page for the result's date and record its metadata."""
        date_dir = self._get_date_dir(result.generated_at)
        date_dir.mkdir(parents=True, exist_ok=True)

        output_path = date_dir / f"digest-{result.request.period}-{result.request.group_by}.html"
        output_path.write_text(self.render_digest(result, users))

        meta_path = date_dir / "meta.json"
        if meta_path.exists():
            meta = json.loads(meta_path.read_text())
        else:
            meta = {"digests": []}

        digests = [d for d in meta.get("digests", []) if d.get("file") != output_path.name]
        digests.append(
            {
                "file": output_path.name,
                "period": str(result.request.period),
                "group_by": str(result.request.group_by),
                "count": result.count,
                "timestamp": result.generated_at.strftime("%H:%M UTC"),
            }
        )
        meta_path.write_text(json.dumps({"digests": digests}))

        return output_path

    def update_main_index(self) -> Path:
        """Update the main index with all generated digests."""
        reports: list[dict] = []

        for year_dir in sorted(self.reports_dir.iterdir(), reverse=True):
            if not year_dir.is_dir() or not year_dir.name.isdigit():
                continue
            for month_dir in sorted(year_dir.iterdir(), reverse=True):
                if not month_dir.is_dir() or not month_dir.name.isdigit():
                    continue
                for day_dir in sorted(month_dir.iterdir(), reverse=True):
                    if not day_dir.is_dir() or not day_dir.name.isdigit():
                        continue

                    meta_file = day_dir / "meta.json"
                    if not meta_file.exists():
                        continue

                    report_date = f"{year_dir.name}-{month_dir.name}-{day_dir.name}"
                    relative_path = f"{year_dir.name}/{month_dir.name}/{day_dir.name}/"
                    for digest in json.loads(meta_file.read_text()).get("digests", []):
                        reports.append(
                            {
                                "date": report_date,
                                "path": relative_path + digest["file"],
                                "period": digest.get("period", ""),
                                "group_by": digest.get("group_by", ""),
                                "count": digest.get("count", 0),
                                "timestamp": digest.get("timestamp", ""),
                            }
                        )

        template = self._env.get_template("main_index.html")
        html = template.render(reports=reports)

        output_path = self.reports_dir / "index.html"
        output_path.write_text(html)
        return output_path
