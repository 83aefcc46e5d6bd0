"""Collect changes to content items modified since a cutoff."""

import logging
from datetime import datetime

from revisions_digest.differ import LineDiffer
from revisions_digest.models import Change, ContentItem, DigestRequest
from revisions_digest.selector import select_revision_pair
from revisions_digest.store import ContentStore, StoreError

logger = logging.getLogger(__name__)


class ChangeCollector:
    """Build one Change per modified item that has a revision window."""

    def __init__(self, store: ContentStore, differ: LineDiffer | None = None) -> None:
        self.store = store
        self.differ = differ or LineDiffer()

    def collect_changes(
        self,
        cutoff: datetime,
        request: DigestRequest | None = None,
    ) -> list[Change]:
        """Collect changes in the order the store lists modified items.

        Items with fewer than two revisions in the window are skipped, as are
        items whose revisions cannot be fetched.
        """
        request = request or DigestRequest()
        changes: list[Change] = []

        for item in self.store.list_modified_items(cutoff):
            change = self.collect_item(item, cutoff, request)
            if change is not None:
                changes.append(change)

        logger.debug(f"Collected {len(changes)} changes since {cutoff.isoformat()}")
        return changes

    def collect_item(
        self,
        item: ContentItem,
        cutoff: datetime,
        request: DigestRequest,
    ) -> Change | None:
        try:
            revisions = self.store.list_revisions(item.id)
        except StoreError as e:
            logger.warning(f"Skipping item {item.id}: {e}")
            return None

        window = select_revision_pair(revisions, cutoff)
        if window is None:
            logger.debug(f"Skipping item {item.id}: not enough revisions since cutoff")
            return None

        edits = self.differ.compute_text_diff(window.earliest.content, window.latest.content)
        rendered = self.differ.render_diff(
            edits,
            leading_context=request.leading_context,
            trailing_context=request.trailing_context,
        )

        return Change(
            item_id=item.id,
            earliest=window.earliest,
            latest=window.latest,
            edits=edits,
            rendered=rendered,
            authors=window.authors(include_boundary=request.include_boundary_author),
            revisions=list(window.revisions),
            item=item,
        )
