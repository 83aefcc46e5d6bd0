"""Natural-language descriptions of change groups."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from revisions_digest.models import Change, Period
from revisions_digest.store import Clock, StoreError, SystemClock, UserDirectory

logger = logging.getLogger(__name__)

DAY = timedelta(days=1)
WEEK = timedelta(weeks=1)

PERIOD_PHRASES = {
    Period.DAY: "in the last day",
    Period.WEEK: "in the last week",
    Period.MONTH: "in the last month",
}


def format_author_list(names: Sequence[str]) -> str:
    """Join names: "Ann", "Ann and Bo", "Ann, Bo, and Cy"."""
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{', '.join(names[:-1])}, and {names[-1]}"


def size_phrase(magnitude: int) -> str:
    if magnitude < 5:
        return "small changes"
    if magnitude < 20:
        return "several changes"
    if magnitude < 50:
        return "substantial changes"
    return "major changes"


def time_phrase(modified: datetime, now: datetime) -> str:
    elapsed = now - modified
    if elapsed < DAY:
        return "today"
    if elapsed < 2 * DAY:
        return "yesterday"
    if elapsed < WEEK:
        return f"{elapsed // DAY} days ago"
    weeks = elapsed // WEEK
    return f"{weeks} week{'s' if weeks > 1 else ''} ago"


def period_phrase(period: Period | str) -> str:
    return PERIOD_PHRASES[Period(period)]


class Describer:
    """Describe who changed what, how much, and when."""

    def __init__(self, users: UserDirectory, clock: Clock | None = None) -> None:
        self.users = users
        self.clock = clock or SystemClock()

    def resolve_names(self, author_ids: Sequence[str]) -> dict[str, str]:
        """Map author identifiers to display names, skipping unknown authors."""
        names: dict[str, str] = {}
        for author_id in author_ids:
            if author_id in names:
                continue
            try:
                name = self.users.resolve_author(author_id)
            except StoreError as e:
                logger.warning(f"Could not resolve author {author_id}: {e}")
                continue
            if name:
                names[author_id] = name
        return names

    def describe_change(self, change: Change) -> str:
        names = list(self.resolve_names(change.authors).values())
        author_list = format_author_list(names) or "Someone"
        return (
            f"{author_list} made {size_phrase(change.magnitude)} "
            f"{time_phrase(change.latest.modified, self.clock.now())}"
        )

    def describe(self, changes: Sequence[Change], period: Period | str) -> str:
        """Describe a group of changes.

        A group with one change gets the single-change sentence.
        """
        if len(changes) == 1:
            return self.describe_change(changes[0])

        author_ids = [author for change in changes for author in change.authors]
        unique_names = list(dict.fromkeys(self.resolve_names(author_ids).values()))
        count = len(changes)
        when = period_phrase(period)

        if len(unique_names) == 1:
            return f"{unique_names[0]} made {count} changes {when}"
        if not unique_names:
            return f"{count} changes were made {when}"
        return f"{len(unique_names)} authors made {count} changes {when}"
