"""
Line differ — computes a flat, line-level difference between two texts.

The algorithm is a bounded-lookahead greedy match, not an optimal
(LCS / Myers) diff.  On inputs with many repeated lines it can produce
larger hunks than strictly necessary; hunk boundaries and line numbers
are what reviewers see, so the heuristic must stay stable.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# How far ahead either side is scanned for a resynchronisation line.
LOOKAHEAD_WINDOW = 50

_LINE_BREAK = re.compile(r"\r?\n")


class LineKind(str, enum.Enum):
    EQUAL = "equal"
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class DiffLine:
    """One line of a flat diff.  Line numbers are 1-based."""
    kind: LineKind
    content: str
    line_num_original: Optional[int] = None
    line_num_new: Optional[int] = None


def split_lines(text: str | None) -> list[str]:
    """Split *text* on ``\\n`` / ``\\r\\n``.  Empty or missing text has no lines."""
    if not text:
        return []
    return _LINE_BREAK.split(text)


def join_lines(lines: list[str]) -> str:
    return "\n".join(lines)


def diff_stats(lines: list[DiffLine]) -> tuple[int, int]:
    """Return ``(added, removed)`` line counts."""
    added = sum(1 for l in lines if l.kind is LineKind.ADD)
    removed = sum(1 for l in lines if l.kind is LineKind.REMOVE)
    return added, removed


class LineDiffer:
    """Bounded-lookahead line differ."""

    def __init__(self, lookahead_window: int = LOOKAHEAD_WINDOW) -> None:
        self._window = max(1, lookahead_window)

    def diff(self, original: str | None, modified: str | None) -> list[DiffLine]:
        """Diff *original* against *modified*.

        Parameters
        ----------
        original:
            The text before the edit.
        modified:
            The text after the edit.

        Returns
        -------
        list[DiffLine]
            Equal / Add / Remove lines in document order.
        """
        old = split_lines(original)
        new = split_lines(modified)

        if not old and new:
            return [
                DiffLine(LineKind.ADD, line, line_num_new=n + 1)
                for n, line in enumerate(new)
            ]
        if not new and old:
            return [
                DiffLine(LineKind.REMOVE, line, line_num_original=n + 1)
                for n, line in enumerate(old)
            ]

        result: list[DiffLine] = []
        i = 0
        j = 0

        while i < len(old) or j < len(new):
            if i < len(old) and j < len(new) and old[i] == new[j]:
                result.append(DiffLine(
                    LineKind.EQUAL, old[i],
                    line_num_original=i + 1, line_num_new=j + 1,
                ))
                i += 1
                j += 1
                continue

            # Insertion sync first: does old[i] reappear further down in new?
            k = self._find_sync(old, i, new, j)
            if k:
                for m in range(k):
                    result.append(DiffLine(
                        LineKind.ADD, new[j + m], line_num_new=j + m + 1,
                    ))
                j += k
                continue

            # Then deletion sync: does new[j] reappear further down in old?
            k = self._find_sync(new, j, old, i)
            if k:
                for m in range(k):
                    result.append(DiffLine(
                        LineKind.REMOVE, old[i + m], line_num_original=i + m + 1,
                    ))
                i += k
                continue

            # No sync point within the window: paired replacement.
            if i < len(old):
                result.append(DiffLine(
                    LineKind.REMOVE, old[i], line_num_original=i + 1,
                ))
                i += 1
            if j < len(new):
                result.append(DiffLine(
                    LineKind.ADD, new[j], line_num_new=j + 1,
                ))
                j += 1

        logger.debug(
            "[Diff] %d -> %d lines, %d diff entries",
            len(old), len(new), len(result),
        )
        return result

    def _find_sync(
        self,
        anchor_lines: list[str],
        anchor: int,
        scan_lines: list[str],
        start: int,
    ) -> int:
        """Smallest ``k`` in ``1 .. window-1`` with ``scan[start+k] == anchor_lines[anchor]``.

        Returns 0 when the anchor side is exhausted or nothing matches.
        """
        if anchor >= len(anchor_lines):
            return 0
        target = anchor_lines[anchor]
        limit = min(self._window, len(scan_lines) - start)
        for k in range(1, limit):
            if scan_lines[start + k] == target:
                return k
        return 0


_default_differ = LineDiffer()


def diff(original: str | None, modified: str | None) -> list[DiffLine]:
    """Diff two texts with the default lookahead window."""
    return _default_differ.diff(original, modified)
