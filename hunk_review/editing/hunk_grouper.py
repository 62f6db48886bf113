"""
Hunk grouper — partitions a flat line diff into contiguous hunks.

``Change`` hunks hold the differing lines plus surrounding context and are
what a reviewer accepts or rejects; ``Unchanged`` hunks hold the rest of the
document so that the full hunk sequence renders the whole file.
"""

from __future__ import annotations

import enum
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Iterable

from .line_differ import DiffLine, LineKind

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES = 3


class HunkKind(str, enum.Enum):
    CHANGE = "change"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DiffHunk:
    """A contiguous run of diff lines.  ``0`` in a range field means no such line.

    ``anchor_line_original`` / ``anchor_line_new`` are the last line number
    on each side before the hunk (``0`` at the top), which places hunks that
    have no lines on one side.
    """
    id: str
    kind: HunkKind
    lines: tuple[DiffLine, ...] = field(default_factory=tuple)
    start_line_original: int = 0
    end_line_original: int = 0
    start_line_new: int = 0
    end_line_new: int = 0
    anchor_line_original: int = 0
    anchor_line_new: int = 0

    @property
    def is_change(self) -> bool:
        return self.kind is HunkKind.CHANGE

    @property
    def has_original_lines(self) -> bool:
        return self.start_line_original > 0

    @property
    def original_range(self) -> tuple[int, int]:
        """Original-side range to splice; ``end < start`` inserts before ``start``."""
        if self.has_original_lines:
            return self.start_line_original, self.end_line_original
        if self.anchor_line_original == 0:
            return 0, 0
        return self.anchor_line_original + 1, self.anchor_line_original


def hunk_id(kind: HunkKind, lines: Iterable[DiffLine], anchor_new: int) -> str:
    """Deterministic id from the target-side anchor and the hunk's lines.

    The target text is fixed for a review, so the id survives re-diffing
    after other hunks were accepted; original-side numbers are left out
    because they move.  Neighbouring hunks of one diff are separated by
    target-side lines, so no two hunks share an anchor.
    """
    h = hashlib.sha1()
    h.update(f"{kind.value}:{anchor_new}".encode("utf-8"))
    for line in lines:
        h.update(b"\x00")
        h.update(line.kind.value.encode("utf-8"))
        h.update(b"\x01")
        h.update(line.content.encode("utf-8"))
    return h.hexdigest()[:12]


class HunkGrouper:
    """Group flat diff lines into reviewable hunks."""

    def __init__(self, context_lines: int = DEFAULT_CONTEXT_LINES) -> None:
        self._context = max(0, context_lines)

    def group(self, lines: list[DiffLine]) -> list[DiffHunk]:
        if not lines:
            return []

        active = self._active_indices(lines)
        hunks: list[DiffHunk] = []
        anchors = (0, 0)

        current: list[DiffLine] = []
        current_active = 0 in active

        for index, line in enumerate(lines):
            is_active = index in active
            if is_active != current_active:
                hunk = self._build(current, current_active, anchors)
                hunks.append(hunk)
                anchors = self._next_anchors(hunk, anchors)
                current = []
                current_active = is_active
            current.append(line)

        if current:
            hunks.append(self._build(current, current_active, anchors))

        return hunks

    def _active_indices(self, lines: list[DiffLine]) -> set[int]:
        """Indices of changed lines plus ``context_lines`` either side."""
        active: set[int] = set()
        last = len(lines) - 1
        for index, line in enumerate(lines):
            if line.kind is LineKind.EQUAL:
                continue
            low = max(0, index - self._context)
            high = min(last, index + self._context)
            active.update(range(low, high + 1))
        return active

    @staticmethod
    def _next_anchors(hunk: DiffHunk, anchors: tuple[int, int]) -> tuple[int, int]:
        return (
            hunk.end_line_original or anchors[0],
            hunk.end_line_new or anchors[1],
        )

    @staticmethod
    def _build(
        lines: list[DiffLine],
        active: bool,
        anchors: tuple[int, int],
    ) -> DiffHunk:
        originals = [l.line_num_original for l in lines if l.line_num_original is not None]
        news = [l.line_num_new for l in lines if l.line_num_new is not None]

        kind = HunkKind.CHANGE if active else HunkKind.UNCHANGED
        anchor_original, anchor_new = anchors

        return DiffHunk(
            id=hunk_id(kind, lines, anchor_new),
            kind=kind,
            lines=tuple(lines),
            start_line_original=originals[0] if originals else 0,
            end_line_original=originals[-1] if originals else 0,
            start_line_new=news[0] if news else 0,
            end_line_new=news[-1] if news else 0,
            anchor_line_original=anchor_original,
            anchor_line_new=anchor_new,
        )


def group(lines: list[DiffLine], context_lines: int = DEFAULT_CONTEXT_LINES) -> list[DiffHunk]:
    """Group *lines* into hunks with *context_lines* of context."""
    return HunkGrouper(context_lines).group(lines)


def change_hunks(hunks: list[DiffHunk]) -> list[DiffHunk]:
    """Only the actionable hunks."""
    return [h for h in hunks if h.is_change]


def flatten(hunks: list[DiffHunk]) -> list[DiffLine]:
    """Concatenate hunk lines back into the flat diff."""
    return [line for hunk in hunks for line in hunk.lines]
