"""
hunk_review — hunk-by-hunk review of proposed edits to text documents.

Public API for library usage::

    from hunk_review import diff, group, ReviewCoordinator, InMemoryDocumentStore

    hunks = group(diff(original, proposed))

    coordinator = ReviewCoordinator(InMemoryDocumentStore())
    coordinator.submit(change)
    session = coordinator.enter_review(document)
"""

from .editing import (
    ChangeMerger, DiffHunk, DiffLine, HunkKind, LineEdit, LineKind,
    OperationKind, Patch, PatchKind, ProposedChange, accept_hunk,
    apply_queue, diff, group, merge, reject_hunk, undo,
)
from .review import (
    Document, DocumentStore, FileDocumentStore, InMemoryDocumentStore,
    ReviewCoordinator, ReviewOutcome, ReviewSession, SessionState,
    SessionStore,
)

__all__ = [
    "diff", "group", "accept_hunk", "reject_hunk", "undo", "apply_queue", "merge",
    "DiffLine", "DiffHunk", "LineKind", "HunkKind", "Patch", "PatchKind",
    "ProposedChange", "OperationKind", "LineEdit", "ChangeMerger",
    "Document", "DocumentStore", "FileDocumentStore", "InMemoryDocumentStore",
    "ReviewCoordinator", "ReviewOutcome", "ReviewSession", "SessionState",
    "SessionStore",
]
