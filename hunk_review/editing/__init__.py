"""Diff/patch engine — line diffs, hunks, the patch queue and proposal merging."""

from .line_differ import (
    LOOKAHEAD_WINDOW, DiffLine, LineDiffer, LineKind, diff, diff_stats,
    join_lines, split_lines,
)
from .hunk_grouper import (
    DEFAULT_CONTEXT_LINES, DiffHunk, HunkGrouper, HunkKind, change_hunks,
    flatten, group,
)
from .patch_queue import (
    Patch, PatchKind, accept_all_patches, accept_hunk, apply_queue,
    current_hunks, is_complete, pending_hunks, processed_hunk_ids,
    rebase_range, reject_hunk, splice_lines, undo,
)
from .change_merger import (
    ChangeMerger, LineEdit, OperationKind, ProposedChange, apply_line_edits,
    merge,
)
from .metrics import log_review_metric, read_review_stats

__all__ = [
    "LOOKAHEAD_WINDOW", "DiffLine", "LineDiffer", "LineKind", "diff",
    "diff_stats", "join_lines", "split_lines",
    "DEFAULT_CONTEXT_LINES", "DiffHunk", "HunkGrouper", "HunkKind",
    "change_hunks", "flatten", "group",
    "Patch", "PatchKind", "accept_all_patches", "accept_hunk", "apply_queue",
    "current_hunks", "is_complete", "pending_hunks", "processed_hunk_ids",
    "rebase_range", "reject_hunk", "splice_lines", "undo",
    "ChangeMerger", "LineEdit", "OperationKind", "ProposedChange",
    "apply_line_edits", "merge",
    "log_review_metric", "read_review_stats",
]
