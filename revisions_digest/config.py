"""Configuration loader for the revisions digest."""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import yaml

from revisions_digest.models import DigestRequest, GroupBy, Period

SOURCE_TYPES = ("wordpress", "file")


@dataclass
class SourceConfig:
    """Configuration for the content source."""

    # "wordpress" | "file"
    source_type: str = "wordpress"

    # For type="wordpress"
    base_url: str = ""
    post_type: str = "pages"
    status: str = "publish"
    username: str | None = None
    app_password: str | None = None
    timeout: float = 30.0
    retry_count: int = 3

    # For type="file"
    path: Path | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.username is not None and self.app_password is not None


@dataclass
class DigestSettings:
    """Default digest options."""

    period: Period = Period.WEEK
    group_by: GroupBy = GroupBy.POST
    include_boundary_author: bool = True
    leading_context_lines: int = 1
    trailing_context_lines: int = 1

    def to_request(
        self,
        period: Period | None = None,
        group_by: GroupBy | None = None,
        cutoff: datetime | None = None,
    ) -> DigestRequest:
        """Build a request from these defaults, with optional overrides."""
        return DigestRequest(
            period=period or self.period,
            group_by=group_by or self.group_by,
            cutoff=cutoff,
            include_boundary_author=self.include_boundary_author,
            leading_context=self.leading_context_lines,
            trailing_context=self.trailing_context_lines,
        )


@dataclass
class Config:
    """Main configuration container."""

    source: SourceConfig
    reports_dir: Path = Path("reports")
    digest: DigestSettings = field(default_factory=DigestSettings)


def load_config(config_path: Path) -> Config:
    """Load configuration from config.yaml and environment variables."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    source_data = data.get("source", {})
    digest_data = data.get("digest", {})
    reports_data = data.get("reports", {})

    source_type = source_data.get("type", "wordpress")
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type: {source_type}")

    source = SourceConfig(
        source_type=source_type,
        base_url=source_data.get("base_url", ""),
        post_type=source_data.get("post_type", "pages" if source_type == "wordpress" else "page"),
        status=source_data.get("status", "publish"),
        username=os.environ.get("WP_USERNAME") or None,
        app_password=os.environ.get("WP_APP_PASSWORD") or None,
        timeout=source_data.get("timeout", 30.0),
        retry_count=source_data.get("retry_count", 3),
        path=Path(source_data["path"]) if source_data.get("path") else None,
    )

    if source_type == "wordpress" and not source.base_url:
        raise ValueError("source.base_url is required for the wordpress source")
    if source_type == "file" and source.path is None:
        raise ValueError("source.path is required for the file source")

    digest = DigestSettings(
        period=Period(digest_data.get("period", "week")),
        group_by=GroupBy.parse(digest_data.get("group_by", "post")),
        include_boundary_author=digest_data.get("include_boundary_author", True),
        leading_context_lines=digest_data.get("leading_context_lines", 1),
        trailing_context_lines=digest_data.get("trailing_context_lines", 1),
    )

    return Config(
        source=source,
        reports_dir=Path(reports_data.get("base_dir", "reports")),
        digest=digest,
    )
