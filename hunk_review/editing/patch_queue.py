"""
Patch queue — the per-session log of hunk decisions and its replay.

A session never edits its baseline.  Each accept/reject decision is appended
to the queue as a :class:`Patch`; the content a reviewer sees is always
recomputed by replaying the queue over the baseline in timestamp order.
Every function here is pure: sessions are frozen and reducers return new
values.
"""

from __future__ import annotations

import dataclasses
import enum
import functools
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .hunk_grouper import (
    DEFAULT_CONTEXT_LINES, DiffHunk, HunkGrouper, change_hunks, hunk_id,
)
from .line_differ import LineDiffer, LineKind, join_lines, split_lines

if TYPE_CHECKING:
    from ..review.session import ReviewSession

logger = logging.getLogger(__name__)


class PatchKind(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class Patch:
    """One reviewer decision about one hunk.

    ``start_line_original`` / ``end_line_original`` address the computed
    content the hunk was diffed against (1-based, inclusive).  ``end <
    start`` is a pure insertion before ``start``; ``0, 0`` inserts at the
    very top.
    """
    id: str
    kind: PatchKind
    hunk_id: str
    start_line_original: int
    end_line_original: int
    new_lines: tuple[str, ...] = field(default_factory=tuple)
    timestamp: int = 0

    @property
    def new_content(self) -> str:
        return join_lines(list(self.new_lines))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "hunkId": self.hunk_id,
            "startLineOriginal": self.start_line_original,
            "endLineOriginal": self.end_line_original,
            "newContent": self.new_content,
            "newLines": list(self.new_lines),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Patch":
        """Rebuild a patch from its JSON form.

        ``newLines`` wins over ``newContent`` because a bare string cannot
        tell "no lines" from "one empty line".
        """
        if isinstance(data.get("newLines"), list):
            new_lines = tuple(str(l) for l in data["newLines"])
        else:
            new_lines = tuple(split_lines(data.get("newContent") or ""))
        return cls(
            id=str(data.get("id") or _new_patch_id()),
            kind=PatchKind(data.get("type", PatchKind.REJECT.value)),
            hunk_id=str(data.get("hunkId", "")),
            start_line_original=int(data.get("startLineOriginal", 0)),
            end_line_original=int(data.get("endLineOriginal", 0)),
            new_lines=new_lines,
            timestamp=int(data.get("timestamp", 0)),
        )


def _new_patch_id() -> str:
    return f"patch_{uuid.uuid4().hex[:12]}"


def _next_timestamp(queue: tuple[Patch, ...]) -> int:
    """Millisecond clock, forced strictly past the newest queued patch."""
    now = time.time_ns() // 1_000_000
    last = max((p.timestamp for p in queue), default=0)
    return now if now > last else last + 1


# ------------------------------------------------------------------
# Replay
# ------------------------------------------------------------------

def splice_lines(
    lines: list[str],
    start_line: int,
    end_line: int,
    new_lines: list[str] | tuple[str, ...],
) -> list[str]:
    """Replace the 1-based inclusive range ``[start_line, end_line]``.

    Out-of-range positions are clamped; ``end_line < start_line`` deletes
    nothing and inserts before ``start_line``.
    """
    total = len(lines)
    start = max(1, start_line)
    start_idx = min(start - 1, total)
    if end_line < start:
        delete = 0
    else:
        delete = max(0, min(end_line, total) - start_idx)
    return lines[:start_idx] + list(new_lines) + lines[start_idx + delete:]


@functools.lru_cache(maxsize=256)
def _replay(baseline: str, queue: tuple[Patch, ...]) -> str:
    lines = split_lines(baseline)
    # sorted() is stable, so equal timestamps keep append order.
    for patch in sorted(queue, key=lambda p: p.timestamp):
        if patch.kind is PatchKind.ACCEPT:
            lines = splice_lines(
                lines,
                patch.start_line_original,
                patch.end_line_original,
                patch.new_lines,
            )
    return join_lines(lines)


def apply_queue(session: "ReviewSession") -> str:
    """The content the editor should show while *session* is under review."""
    return _replay(session.baseline_snapshot, tuple(session.patch_queue))


# ------------------------------------------------------------------
# Hunk resolution against the current diff
# ------------------------------------------------------------------

def current_hunks(
    session: "ReviewSession",
    target_content: str | None,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    differ: Optional[LineDiffer] = None,
) -> list[DiffHunk]:
    """Hunks between the computed content and *target_content*."""
    differ = differ or LineDiffer()
    lines = differ.diff(apply_queue(session), target_content or "")
    return HunkGrouper(context_lines).group(lines)


def processed_hunk_ids(session: "ReviewSession") -> set[str]:
    """Ids of hunks with any decision in the queue."""
    return {p.hunk_id for p in session.patch_queue}


def pending_hunks(
    session: "ReviewSession",
    target_content: str | None,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    differ: Optional[LineDiffer] = None,
) -> list[DiffHunk]:
    """Change hunks of the current diff that have no decision yet."""
    done = processed_hunk_ids(session)
    return [
        h for h in current_hunks(session, target_content, context_lines, differ)
        if h.is_change and h.id not in done
    ]


def is_complete(session: "ReviewSession", target_content: str | None) -> bool:
    """True once at least one decision exists and replay reaches the target."""
    return bool(session.patch_queue) and apply_queue(session) == (target_content or "")


def _accepted_hunk_ids(session: "ReviewSession") -> set[str]:
    return {p.hunk_id for p in session.patch_queue if p.kind is PatchKind.ACCEPT}


def _matches_baseline(session: "ReviewSession", hunk: DiffHunk) -> bool:
    """True if *hunk* is intact and was diffed against the session's baseline."""
    if hunk_id(hunk.kind, hunk.lines, hunk.anchor_line_new) != hunk.id:
        return False
    baseline = split_lines(session.baseline_snapshot)
    for line in hunk.lines:
        num = line.line_num_original
        if num is None:
            continue
        if num > len(baseline) or baseline[num - 1] != line.content:
            return False
    return True


def rebase_range(
    queue: tuple[Patch, ...],
    start_line: int,
    end_line: int,
) -> tuple[int, int] | None:
    """Carry a baseline range through the accepted patches of *queue*.

    Each accepted patch addresses the content left by the ones before it,
    so the range is shifted patch by patch in replay order.  Returns
    ``None`` if an accepted patch overlaps the range.
    """
    start = max(1, start_line)
    end = end_line if end_line >= start_line else start - 1
    for patch in sorted(queue, key=lambda p: p.timestamp):
        if patch.kind is not PatchKind.ACCEPT:
            continue
        p_start = max(1, patch.start_line_original)
        p_end = patch.end_line_original
        added = len(patch.new_lines)
        if p_end < p_start:
            # Insertion before p_start.
            if p_start <= start:
                start += added
                end += added
            elif p_start <= end:
                return None
            continue
        if p_end < start:
            shift = added - (p_end - p_start + 1)
            start += shift
            end += shift
        elif p_start <= end:
            return None
    if end < start and start == 1:
        return 0, 0
    return start, end


def _resolve(
    session: "ReviewSession",
    hunk: DiffHunk,
    target_content: str | None,
    context_lines: int,
    differ: Optional[LineDiffer],
) -> tuple[DiffHunk, tuple[int, int]] | None:
    """Find the range to patch for *hunk*, or ``None`` if it cannot be applied.

    With a target the hunk is looked up by id in the current diff.  Without
    one it must come from a diff of the baseline; its range is rebased over
    the patches accepted since.
    """
    if target_content is None:
        if not hunk.is_change or hunk.id in _accepted_hunk_ids(session):
            return None
        if not _matches_baseline(session, hunk):
            return None
        rebased = rebase_range(session.patch_queue, *hunk.original_range)
        if rebased is None:
            return None
        return hunk, rebased

    for candidate in current_hunks(session, target_content, context_lines, differ):
        if candidate.id != hunk.id:
            continue
        if not candidate.is_change:
            return None
        return candidate, candidate.original_range
    return None


# ------------------------------------------------------------------
# Reducers
# ------------------------------------------------------------------

def append_patch(session: "ReviewSession", patch: Patch) -> "ReviewSession":
    return dataclasses.replace(session, patch_queue=session.patch_queue + (patch,))


def accept_hunk(
    session: "ReviewSession",
    hunk: DiffHunk,
    target_content: str | None = None,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    differ: Optional[LineDiffer] = None,
) -> "ReviewSession":
    """Append an Accept patch for *hunk*.

    With *target_content* the hunk is looked up by id in the current diff
    and its up-to-date range is used; an id that is no longer there is a
    no-op.  Without it the hunk must come from a diff of the baseline and
    its range is rebased over the patches accepted since.
    """
    if not session.is_active:
        return session
    resolved = _resolve(session, hunk, target_content, context_lines, differ)
    if resolved is None:
        logger.debug("[Review] accept ignored, hunk %s not in current diff", hunk.id)
        return session

    current, (start, end) = resolved
    patch = Patch(
        id=_new_patch_id(),
        kind=PatchKind.ACCEPT,
        hunk_id=current.id,
        start_line_original=start,
        end_line_original=end,
        new_lines=tuple(l.content for l in current.lines if l.kind is not LineKind.REMOVE),
        timestamp=_next_timestamp(session.patch_queue),
    )
    return append_patch(session, patch)


def reject_hunk(
    session: "ReviewSession",
    hunk: DiffHunk,
    target_content: str | None = None,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    differ: Optional[LineDiffer] = None,
) -> "ReviewSession":
    """Append a Reject patch for *hunk*; content is left untouched.

    Rejecting a hunk that already has a decision is a no-op.
    """
    if not session.is_active:
        return session
    if hunk.id in processed_hunk_ids(session):
        return session
    resolved = _resolve(session, hunk, target_content, context_lines, differ)
    if resolved is None:
        logger.debug("[Review] reject ignored, hunk %s not in current diff", hunk.id)
        return session

    current, (start, end) = resolved
    patch = Patch(
        id=_new_patch_id(),
        kind=PatchKind.REJECT,
        hunk_id=current.id,
        start_line_original=start,
        end_line_original=end,
        timestamp=_next_timestamp(session.patch_queue),
    )
    return append_patch(session, patch)


def undo(session: "ReviewSession") -> "ReviewSession":
    """Drop the most recently appended patch, whatever its kind."""
    if not session.is_active or not session.patch_queue:
        return session
    return dataclasses.replace(session, patch_queue=session.patch_queue[:-1])


def accept_all_patches(
    session: "ReviewSession",
    target_content: str | None,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    differ: Optional[LineDiffer] = None,
) -> "ReviewSession":
    """Append one Accept per remaining Change hunk so replay reaches the target.

    Patches are appended bottom-up so that every range still addresses the
    text it was computed on when replayed in order.
    """
    if not session.is_active:
        return session
    planned = change_hunks(current_hunks(session, target_content, context_lines, differ))
    for hunk in reversed(planned):
        start, end = hunk.original_range
        session = append_patch(session, Patch(
            id=_new_patch_id(),
            kind=PatchKind.ACCEPT,
            hunk_id=hunk.id,
            start_line_original=start,
            end_line_original=end,
            new_lines=tuple(l.content for l in hunk.lines if l.kind is not LineKind.REMOVE),
            timestamp=_next_timestamp(session.patch_queue),
        ))
    return session
