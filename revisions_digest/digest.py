"""Digest of recent content changes, grouped and described."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from dateutil.relativedelta import relativedelta

from revisions_digest.collector import ChangeCollector
from revisions_digest.describer import Describer
from revisions_digest.differ import LineDiffer, summarize
from revisions_digest.grouping import group_changes
from revisions_digest.models import Change, DigestRequest, Group, Period
from revisions_digest.store import (
    Clock,
    ContentStore,
    SystemClock,
    TaxonomyStore,
    UserDirectory,
    as_utc,
)

logger = logging.getLogger(__name__)

PERIOD_DELTAS = {
    Period.DAY: relativedelta(days=1),
    Period.WEEK: relativedelta(weeks=1),
    Period.MONTH: relativedelta(months=1),
}


def resolve_cutoff(request: DigestRequest, now: datetime) -> datetime:
    """Get the cutoff for a request: the explicit override or now minus the period."""
    if request.cutoff is not None:
        return as_utc(request.cutoff)
    return now - PERIOD_DELTAS[request.period]


@dataclass
class DigestResult:
    """Grouped changes for one digest computation."""

    request: DigestRequest
    cutoff: datetime
    generated_at: datetime
    groups: dict[str, Group] = field(default_factory=dict)

    @property
    def changes(self) -> list[Change]:
        return [change for group in self.groups.values() for change in group.changes]

    @property
    def count(self) -> int:
        return len(self.changes)

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def to_dict(self, users: UserDirectory | None = None) -> dict[str, Any]:
        """Serialize to the payload shape served by the digest endpoint."""
        describer = Describer(users) if users is not None else None

        def serialize_change(change: Change) -> dict[str, Any]:
            names = describer.resolve_names(change.authors) if describer else {}
            item = change.item
            return {
                "post_id": change.item_id,
                "post_title": item.title if item else "",
                "post_url": item.url if item else "",
                "earliest": change.earliest.modified.isoformat(),
                "latest": change.latest.modified.isoformat(),
                "summary": summarize(change.edits),
                "rendered": change.rendered,
                "authors": [
                    {"id": author_id, "display_name": name} for author_id, name in names.items()
                ],
            }

        return {
            "period": str(self.request.period),
            "group_by": str(self.request.group_by),
            "cutoff": self.cutoff.isoformat(),
            "generated_at": self.generated_at.isoformat(),
            "count": self.count,
            "groups": [
                {
                    "key": group.key,
                    "description": group.description,
                    "changes": [serialize_change(c) for c in group.changes],
                }
                for group in self.groups.values()
            ],
        }


class Digest:
    """Collect, group and describe recent changes to content."""

    def __init__(
        self,
        store: ContentStore,
        users: UserDirectory,
        taxonomy: TaxonomyStore | None = None,
        clock: Clock | None = None,
        differ: LineDiffer | None = None,
    ) -> None:
        self.store = store
        self.users = users
        self.taxonomy = taxonomy
        self.clock = clock or SystemClock()
        self.collector = ChangeCollector(store, differ)
        self.describer = Describer(users, self.clock)

    def collect_changes(self, request: DigestRequest) -> list[Change]:
        cutoff = resolve_cutoff(request, self.clock.now())
        return self.collector.collect_changes(cutoff, request)

    def group(self, changes: Sequence[Change], request: DigestRequest) -> dict[str, list[Change]]:
        return group_changes(changes, request.group_by, self.taxonomy)

    def describe(self, changes: Sequence[Change], period: Period | str) -> str:
        return self.describer.describe(changes, period)

    def get_grouped_changes(self, request: DigestRequest | None = None) -> DigestResult:
        """Collect changes for the request, group them, and describe each group."""
        request = request or DigestRequest()
        now = self.clock.now()
        cutoff = resolve_cutoff(request, now)

        changes = self.collector.collect_changes(cutoff, request)
        grouped = self.group(changes, request)

        result = DigestResult(request=request, cutoff=cutoff, generated_at=now)
        for key, members in grouped.items():
            result.groups[key] = Group(
                key=key,
                changes=members,
                description=self.describe(members, request.period),
            )

        logger.info(
            f"Digest since {cutoff.isoformat()}: {len(changes)} changes in {len(result.groups)} groups"
        )
        return result
