"""Selection of the revisions that bound a change window."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from revisions_digest.models import Revision


@dataclass(frozen=True)
class RevisionWindow:
    """Revisions collected for one item, newest first."""

    revisions: tuple[Revision, ...]
    cutoff: datetime

    @property
    def latest(self) -> Revision:
        return self.revisions[0]

    @property
    def earliest(self) -> Revision:
        return self.revisions[-1]

    @property
    def crosses_cutoff(self) -> bool:
        """Whether the earliest revision predates the cutoff."""
        return self.earliest.modified < self.cutoff

    def authors(self, include_boundary: bool = True) -> tuple[str, ...]:
        """Unique author identifiers in the window, newest first.

        The earliest revision serves as the diff baseline. When it predates
        the cutoff and ``include_boundary`` is False, its author is only
        counted if they also wrote a revision inside the window.
        """
        revisions = self.revisions
        if not include_boundary and self.crosses_cutoff:
            revisions = revisions[:-1]
        return tuple(dict.fromkeys(r.author for r in revisions))


def select_revision_pair(revisions: Iterable[Revision], cutoff: datetime) -> RevisionWindow | None:
    """Collect revisions newest to oldest up to the first one older than ``cutoff``.

    That first older revision is kept as the baseline. Returns None when
    fewer than two revisions were collected.
    """
    collected: list[Revision] = []
    for revision in revisions:
        collected.append(revision)
        if revision.modified < cutoff:
            break

    if len(collected) < 2:
        return None

    return RevisionWindow(tuple(collected), cutoff)
