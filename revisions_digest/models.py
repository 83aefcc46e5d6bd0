"""Domain records shared by the digest engine and its adapters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from revisions_digest.differ import DiffEdit

logger = logging.getLogger(__name__)


class Period(StrEnum):
    """Lookback period for a digest."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class GroupBy(StrEnum):
    """Dimension used to partition changes."""

    POST = "post"
    DATE = "date"
    USER = "user"
    TAXONOMY = "taxonomy"

    @classmethod
    def parse(cls, value: str | GroupBy | None) -> GroupBy:
        """Parse a grouping name, falling back to per-post grouping.

        Unrecognized names are not an error: they get the identity grouping.
        """
        if isinstance(value, GroupBy):
            return value
        if value is None:
            return cls.POST
        name = value.strip().lower()
        if name == "item":
            return cls.POST
        try:
            return cls(name)
        except ValueError:
            logger.warning(f"Unknown grouping '{value}', grouping by post")
            return cls.POST


@dataclass(frozen=True)
class ContentItem:
    """A piece of content as listed by the content store."""

    id: int
    type: str
    status: str
    modified: datetime
    title: str = ""
    url: str = ""


@dataclass(frozen=True)
class Revision:
    """An immutable snapshot of a content item's body."""

    id: int
    item_id: int
    modified: datetime
    author: str
    content: str


@dataclass(frozen=True)
class DigestRequest:
    """Options for a single digest computation."""

    period: Period = Period.WEEK
    group_by: GroupBy = GroupBy.POST
    # Overrides the period-derived cutoff when set
    cutoff: datetime | None = None
    include_boundary_author: bool = True
    leading_context: int = 1
    trailing_context: int = 1


@dataclass
class Change:
    """Difference between the earliest and latest revision of one item."""

    item_id: int
    earliest: Revision
    latest: Revision
    edits: list[DiffEdit]
    rendered: str
    authors: tuple[str, ...]
    revisions: list[Revision] = field(default_factory=list)
    item: ContentItem | None = None

    @property
    def magnitude(self) -> int:
        """Number of lines touched, counting a changed span by its longer side."""
        return sum(edit.size for edit in self.edits if edit.is_change)

    @property
    def has_changes(self) -> bool:
        return any(edit.is_change for edit in self.edits)


@dataclass
class Group:
    """Changes sharing a grouping key, with a generated description."""

    key: str
    changes: list[Change]
    description: str = ""

    def __len__(self) -> int:
        return len(self.changes)
