"""Partition changes by post, date, user or taxonomy."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from revisions_digest.models import Change, GroupBy
from revisions_digest.store import StoreError, TaxonomyStore

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"

KeyFunction = Callable[[Change, TaxonomyStore | None], str]


def post_key(change: Change, taxonomy: TaxonomyStore | None = None) -> str:
    return str(change.item_id)


def date_key(change: Change, taxonomy: TaxonomyStore | None = None) -> str:
    return change.latest.modified.date().isoformat()


def user_key(change: Change, taxonomy: TaxonomyStore | None = None) -> str:
    # Primary contributor only; co-authors are not weighted
    return change.authors[0]


def taxonomy_key(change: Change, taxonomy: TaxonomyStore | None = None) -> str:
    if taxonomy is None:
        return UNCATEGORIZED
    try:
        term = taxonomy.primary_term(change.item_id)
    except StoreError as e:
        logger.warning(f"Taxonomy lookup failed for item {change.item_id}: {e}")
        return UNCATEGORIZED
    return term or UNCATEGORIZED


KEY_FUNCTIONS: dict[GroupBy, KeyFunction] = {
    GroupBy.POST: post_key,
    GroupBy.DATE: date_key,
    GroupBy.USER: user_key,
    GroupBy.TAXONOMY: taxonomy_key,
}


def group_changes(
    changes: Iterable[Change],
    group_by: GroupBy | str,
    taxonomy: TaxonomyStore | None = None,
) -> dict[str, list[Change]]:
    """Group changes by key, keeping keys in first-seen order.

    Unrecognized dimensions group by post.
    """
    key_function = KEY_FUNCTIONS[GroupBy.parse(group_by)]

    grouped: dict[str, list[Change]] = {}
    for change in changes:
        key = key_function(change, taxonomy)
        grouped.setdefault(key, []).append(change)

    return grouped
