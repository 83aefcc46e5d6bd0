"""Line diff engine for comparing revision bodies."""

from __future__ import annotations

import html
import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from diff_match_patch import diff_match_patch

_TRAILING_WS = re.compile(r"[ \t\f\v\u00a0]+$", re.MULTILINE)
_BLANK_RUNS = re.compile(r"\n{3,}")


class EditOp(StrEnum):
    UNCHANGED = "unchanged"
    INSERTED = "inserted"
    DELETED = "deleted"
    CHANGED = "changed"


@dataclass(frozen=True)
class DiffEdit:
    """A span of the edit script over the left (earliest) and right (latest) lines."""

    op: EditOp
    left_start: int
    left_end: int
    right_start: int
    right_end: int
    left: tuple[str, ...] = ()
    right: tuple[str, ...] = ()

    @property
    def is_change(self) -> bool:
        return self.op != EditOp.UNCHANGED

    @property
    def size(self) -> int:
        return max(len(self.left), len(self.right))


def normalize_text(text: str) -> str:
    """Normalize whitespace the way stored content is compared.

    Line endings become ``\\n``, trailing whitespace is trimmed from each line,
    runs of blank lines collapse to a single blank line and blank lines at
    either end of the text are dropped.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _TRAILING_WS.sub("", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip("\n")


def split_lines(text: str) -> list[str]:
    """Normalize text and split it into lines. Empty text has no lines."""
    normalized = normalize_text(text)
    if not normalized:
        return []
    return normalized.split("\n")


def diff_stats(edits: Sequence[DiffEdit]) -> tuple[int, int]:
    """Count added and removed lines in an edit script."""
    added = sum(len(e.right) for e in edits if e.is_change)
    removed = sum(len(e.left) for e in edits if e.is_change)
    return added, removed


def summarize(edits: Sequence[DiffEdit]) -> str:
    """Generate a short human-readable summary of an edit script."""
    added, removed = diff_stats(edits)
    if added == 0 and removed == 0:
        return "No changes"

    parts = []
    if added > 0:
        parts.append(f"+{added} lines")
    if removed > 0:
        parts.append(f"-{removed} lines")

    return ", ".join(parts)


class LineDiffer:
    """Compute and render line diffs using diff-match-patch."""

    def __init__(self, timeout: float = 1.0) -> None:
        self._dmp = diff_match_patch()
        # 0 disables the deadline and always yields a minimal script
        self._dmp.Diff_Timeout = timeout

    def compute_diff(self, left_lines: Sequence[str], right_lines: Sequence[str]) -> list[DiffEdit]:
        """Compute an edit script turning ``left_lines`` into ``right_lines``.

        Identical or empty inputs produce no edits at all.
        """
        left = list(left_lines)
        right = list(right_lines)
        if left == right:
            return []

        left_chars, right_chars = self._encode_lines(left, right)
        diffs = self._dmp.diff_main(left_chars, right_chars, False)

        edits: list[DiffEdit] = []
        i = j = 0
        deleted = inserted = 0

        def flush() -> None:
            nonlocal i, j, deleted, inserted
            if not deleted and not inserted:
                return
            if deleted and inserted:
                op = EditOp.CHANGED
            elif deleted:
                op = EditOp.DELETED
            else:
                op = EditOp.INSERTED
            edits.append(
                DiffEdit(
                    op,
                    i,
                    i + deleted,
                    j,
                    j + inserted,
                    tuple(left[i : i + deleted]),
                    tuple(right[j : j + inserted]),
                )
            )
            i += deleted
            j += inserted
            deleted = inserted = 0

        for op, chars in diffs:
            if op == self._dmp.DIFF_DELETE:
                deleted += len(chars)
            elif op == self._dmp.DIFF_INSERT:
                inserted += len(chars)
            else:
                flush()
                count = len(chars)
                edits.append(
                    DiffEdit(
                        EditOp.UNCHANGED,
                        i,
                        i + count,
                        j,
                        j + count,
                        tuple(left[i : i + count]),
                        tuple(right[j : j + count]),
                    )
                )
                i += count
                j += count
        flush()

        return edits

    def compute_text_diff(self, left_text: str, right_text: str) -> list[DiffEdit]:
        """Diff two bodies of text after whitespace normalization."""
        return self.compute_diff(split_lines(left_text), split_lines(right_text))

    def render_diff(
        self,
        edits: Sequence[DiffEdit],
        leading_context: int = 1,
        trailing_context: int = 1,
    ) -> str:
        """Render an edit script as HTML table rows.

        Only changed spans and the requested number of unchanged lines around
        them are rendered; a separator row marks skipped unchanged lines
        between two hunks.
        """
        rows: list[str] = []
        last = len(edits) - 1

        for index, edit in enumerate(edits):
            if edit.is_change:
                rows.extend(self._render_change(edit))
                continue

            lines = edit.right
            has_before = index > 0
            has_after = index < last
            head = lines[:trailing_context] if has_before and trailing_context > 0 else ()
            tail = lines[-leading_context:] if has_after and leading_context > 0 else ()

            if has_before and has_after and len(lines) <= len(head) + len(tail):
                rows.extend(self._context_row(line) for line in lines)
                continue

            rows.extend(self._context_row(line) for line in head)
            if has_before and has_after:
                rows.append('<tr><td class="diff-separator">&hellip;</td></tr>')
            rows.extend(self._context_row(line) for line in tail)

        return "\n".join(rows)

    def _encode_lines(self, left: list[str], right: list[str]) -> tuple[str, str]:
        """Map each distinct line to one character so the diff runs per line."""
        codes: dict[str, str] = {}

        def encode(lines: list[str]) -> str:
            chars = []
            for line in lines:
                if line not in codes:
                    codes[line] = chr(len(codes) + 1)
                chars.append(codes[line])
            return "".join(chars)

        return encode(left), encode(right)

    def _render_change(self, edit: DiffEdit) -> list[str]:
        rows: list[str] = []
        paired = min(len(edit.left), len(edit.right))

        for old, new in zip(edit.left[:paired], edit.right[:paired], strict=True):
            if self._dmp.diff_commonPrefix(old, new) or self._dmp.diff_commonSuffix(old, new):
                old_html, new_html = self._inline_diff(old, new)
            else:
                old_html, new_html = html.escape(old), html.escape(new)
            rows.append(self._deleted_row(old_html))
            rows.append(self._added_row(new_html))

        rows.extend(self._deleted_row(html.escape(line)) for line in edit.left[paired:])
        rows.extend(self._added_row(html.escape(line)) for line in edit.right[paired:])
        return rows

    def _inline_diff(self, old: str, new: str) -> tuple[str, str]:
        """Wrap the changed substrings of a line pair in del/ins tags."""
        diffs = self._dmp.diff_main(old, new, False)
        self._dmp.diff_cleanupSemantic(diffs)

        old_parts: list[str] = []
        new_parts: list[str] = []
        for op, text in diffs:
            escaped = html.escape(text)
            if op == self._dmp.DIFF_DELETE:
                old_parts.append(f"<del>{escaped}</del>")
            elif op == self._dmp.DIFF_INSERT:
                new_parts.append(f"<ins>{escaped}</ins>")
            else:
                old_parts.append(escaped)
                new_parts.append(escaped)

        return "".join(old_parts), "".join(new_parts)

    @staticmethod
    def _context_row(line: str) -> str:
        return f'<tr><td class="diff-context">{html.escape(line)}</td></tr>'

    @staticmethod
    def _deleted_row(content: str) -> str:
        return f'<tr><td class="diff-deletedline"><span class="diff-marker">-</span>{content}</td></tr>'

    @staticmethod
    def _added_row(content: str) -> str:
        return f'<tr><td class="diff-addedline"><span class="diff-marker">+</span>{content}</td></tr>'


_default_differ = LineDiffer()


def compute_diff(left_lines: Sequence[str], right_lines: Sequence[str]) -> list[DiffEdit]:
    """Compute an edit script with the shared default differ."""
    return _default_differ.compute_diff(left_lines, right_lines)


def render_diff(
    edits: Sequence[DiffEdit],
    leading_context: int = 1,
    trailing_context: int = 1,
) -> str:
    """Render an edit script with the shared default differ."""
    return _default_differ.render_diff(edits, leading_context, trailing_context)
