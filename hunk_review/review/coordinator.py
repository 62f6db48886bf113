"""
Review coordinator — the lifecycle of review sessions (NONE → ACTIVE →
CLOSED) and the only object a host editor or agent talks to.

Every call carries the :class:`Document` the host is showing right now, so
each operation re-checks that the session it touches was opened for that
exact document.  Sessions never travel between documents: a mismatch or a
document switch discards the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..editing import patch_queue
from ..editing.change_merger import ChangeMerger, OperationKind, ProposedChange
from ..editing.hunk_grouper import DEFAULT_CONTEXT_LINES, DiffHunk
from ..editing.line_differ import LOOKAHEAD_WINDOW, LineDiffer
from ..editing.metrics import log_review_metric
from .documents import Document, DocumentStore
from .pending import PendingChanges
from .session import ReviewSession, close_session, new_session
from .session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """What happened when a session closed."""
    document_id: str
    identity: str
    outcome: str            # completed | accepted_all | rejected_all | dismissed | closed
    content: Optional[str]  # content written to the document, None if untouched/deleted
    hunks_accepted: int = 0
    hunks_rejected: int = 0


class ReviewCoordinator:
    """Drive review sessions over a host :class:`DocumentStore`."""

    def __init__(
        self,
        documents: DocumentStore,
        sessions: SessionStore | None = None,
        pending: PendingChanges | None = None,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        lookahead_window: int = LOOKAHEAD_WINDOW,
        metrics_enabled: bool = False,
        metrics_dir: str | None = None,
        on_closed: Callable[[ReviewOutcome], None] | None = None,
    ) -> None:
        self._documents = documents
        self._sessions = sessions or SessionStore()
        self._merger = ChangeMerger()
        self._pending = pending or PendingChanges(self._merger)
        self._context = context_lines
        self._differ = LineDiffer(lookahead_window)
        self._metrics_enabled = metrics_enabled
        self._metrics_dir = metrics_dir
        self._on_closed = on_closed
        self._active: Document | None = None
        # Ids of documents this coordinator created for a pending Create.
        self._created: set[str] = set()

    @classmethod
    def from_config(cls, cfg, documents: DocumentStore, **kwargs) -> "ReviewCoordinator":
        """Build a coordinator from a :class:`~hunk_review.config.Config`."""
        store = SessionStore(cfg.SESSION_STORE_FILE if cfg.PERSIST_SESSIONS else None)
        return cls(
            documents,
            sessions=store,
            context_lines=cfg.CONTEXT_LINES,
            lookahead_window=cfg.LOOKAHEAD_WINDOW,
            metrics_enabled=cfg.METRICS_ENABLED,
            metrics_dir=cfg.METRICS_DIR,
            **kwargs,
        )

    @property
    def pending(self) -> PendingChanges:
        return self._pending

    @property
    def active_document(self) -> Document | None:
        return self._active

    # ------------------------------------------------------------------
    # Agent side
    # ------------------------------------------------------------------

    def submit(self, change: ProposedChange) -> None:
        """Queue a proposal from the agent for later review."""
        self._pending.add(change)

    def ensure_document(self, identity: str) -> Document | None:
        """Look up *identity*, creating an empty document for a pending Create."""
        doc = self._documents.find(identity)
        if doc is not None:
            return doc
        pending = self._pending.for_document(identity)
        if pending and pending[0].operation is OperationKind.CREATE:
            logger.info("[Review] Creating %s for pending create", identity)
            doc = self._documents.create(identity, "")
            self._created.add(doc.id)
            return doc
        return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def enter_review(self, document: Document) -> ReviewSession:
        """Open (or restore) the session for *document*.

        A persisted session is reused only if it was recorded for the same
        document identity; anything else is discarded and replaced by a
        fresh session whose baseline is the document's current content.
        """
        self._bind(document)
        stored = self._sessions.get(document.id)
        if stored is not None and stored.is_active and stored.belongs_to(document.id, document.identity):
            logger.info(
                "[Review] Restored session for %s (%d decisions)",
                document.identity, len(stored.patch_queue),
            )
            return stored

        if stored is not None:
            logger.warning(
                "[Review] Discarding stale session for %s: recorded for %r, document is %r",
                document.id, stored.source_identity, document.identity,
            )
            self._sessions.clear(document.id)

        session = new_session(document.id, document.identity, document.content)
        self._sessions.save(session)
        logger.info("[Review] Entered review for %s", document.identity)
        return session

    def switch_document(self, document: Document | None) -> ReviewSession | None:
        """The host now shows *document*.

        Closes the previous document's session unconditionally and drops its
        pending proposals, then enters review for *document* if anything is
        pending for it.
        """
        self._leave_previous(document)
        self._active = document
        if document is None:
            return None
        if self._pending.has_pending(document.identity):
            return self.enter_review(document)
        return None

    def close_review(self, session: ReviewSession) -> ReviewSession:
        """Leave review without writing anything back."""
        if self._active is not None and self._active.id == session.document_id:
            self._active = None
        stored = self._sessions.get(session.document_id)
        if stored is None:
            return close_session(session)
        return self._close(
            stored.document_id, stored.source_identity, stored, "closed", None,
        )

    # ------------------------------------------------------------------
    # Hunk decisions
    # ------------------------------------------------------------------

    def accept_hunk(self, document: Document, hunk: DiffHunk) -> ReviewSession | None:
        return self._decide(document, hunk, patch_queue.accept_hunk)

    def reject_hunk(self, document: Document, hunk: DiffHunk) -> ReviewSession | None:
        return self._decide(document, hunk, patch_queue.reject_hunk)

    def undo(self, document: Document) -> ReviewSession | None:
        session = self._session_for(document, recover=False)
        if session is None:
            return None
        updated = patch_queue.undo(session)
        if updated is session:
            return session
        return self._commit(document, updated)

    def _decide(self, document, hunk, reducer) -> ReviewSession | None:
        session = self._session_for(document, recover=True)
        if session is None:
            return None
        proposal = self.proposal_for(document, session)
        if proposal is None:
            logger.debug("[Review] Decision for %s ignored, nothing proposed", document.identity)
            return session
        updated = reducer(
            session, hunk, proposal.target_content, self._context, self._differ,
        )
        if updated is session:
            return session
        return self._commit(document, updated, proposal)

    def _commit(
        self,
        document: Document,
        session: ReviewSession,
        proposal: ProposedChange | None = None,
    ) -> ReviewSession:
        """Store *session*, then close it if replay has reached the target."""
        self._sessions.save(session)
        proposal = proposal or self.proposal_for(document, session)
        if proposal is None:
            return session
        if patch_queue.is_complete(session, proposal.target_content):
            content = patch_queue.apply_queue(session)
            logger.info("[Review] All hunks resolved for %s", document.identity)
            written = self._write_result(document, proposal, content)
            return self._close(document.id, document.identity, session, "completed", written)
        return session

    # ------------------------------------------------------------------
    # Bulk decisions
    # ------------------------------------------------------------------

    def accept_all(self, document: Document) -> ReviewSession | None:
        """Accept every remaining hunk, write the result and close."""
        session = self._session_for(document, recover=True)
        if session is None:
            return None
        proposal = self.proposal_for(document, session)
        if proposal is None:
            return self._close(document.id, document.identity, session, "closed", None)

        session = patch_queue.accept_all_patches(
            session, proposal.target_content, self._context, self._differ,
        )
        content = patch_queue.apply_queue(session)
        written = self._write_result(document, proposal, content)
        return self._close(document.id, document.identity, session, "accepted_all", written)

    def reject_all(self, document: Document) -> ReviewSession | None:
        """Restore the baseline (or delete a created document) and close."""
        session = self._session_for(document, recover=True)
        if session is None:
            return None
        proposal = self.proposal_for(document, session)

        written: Optional[str]
        if proposal is not None and proposal.operation is OperationKind.CREATE:
            logger.info("[Review] Rejected create, deleting %s", document.identity)
            self._documents.delete(document.id)
            written = None
        else:
            self._documents.write(document.id, session.baseline_snapshot)
            written = session.baseline_snapshot
        return self._close(document.id, document.identity, session, "rejected_all", written)

    def dismiss(self, document: Document) -> ReviewSession | None:
        """Keep whatever has been decided so far, write it and close."""
        session = self._session_for(document, recover=False)
        if session is None:
            return None
        content = patch_queue.apply_queue(session)
        self._documents.write(document.id, content)
        return self._close(document.id, document.identity, session, "dismissed", content)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def session_for(self, document: Document) -> ReviewSession | None:
        """The valid session for *document*, without recovery."""
        return self._session_for(document, recover=False)

    def proposal_for(
        self,
        document: Document,
        session: ReviewSession | None = None,
    ) -> ProposedChange | None:
        """The single combined proposal under review for *document*."""
        session = session or self._sessions.get(document.id)
        base = session.baseline_snapshot if session is not None else document.content
        return self._pending.combined(
            document.identity, base, document.id not in self._created,
        )

    def visible_content(self, document: Document) -> str:
        """Computed content while a session is active, else the stored content."""
        session = self._session_for(document, recover=False)
        if session is None:
            return document.content
        return patch_queue.apply_queue(session)

    def hunks(self, document: Document) -> list[DiffHunk]:
        """Every hunk (change and context) between visible content and the target."""
        session = self._session_for(document, recover=False)
        if session is None:
            return []
        proposal = self.proposal_for(document, session)
        if proposal is None:
            return []
        return patch_queue.current_hunks(
            session, proposal.target_content, self._context, self._differ,
        )

    def pending_hunks(self, document: Document) -> list[DiffHunk]:
        session = self._session_for(document, recover=False)
        if session is None:
            return []
        proposal = self.proposal_for(document, session)
        if proposal is None:
            return []
        return patch_queue.pending_hunks(
            session, proposal.target_content, self._context, self._differ,
        )

    def save_buffer(self, document: Document, content: str) -> bool:
        """Write typed content, refused while a review owns the document."""
        if self._session_for(document, recover=False) is not None:
            logger.warning(
                "[Review] Ignoring buffer write for %s while under review",
                document.identity,
            )
            return False
        return self._documents.write(document.id, content) is not None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _bind(self, document: Document) -> None:
        """Treat a call for a different document as a document switch."""
        self._leave_previous(document)
        self._active = document

    def _leave_previous(self, document: Document | None) -> None:
        previous = self._active
        if previous is None or (document is not None and previous.id == document.id):
            return
        dropped = self._pending.drop(previous.identity)
        if dropped:
            logger.info(
                "[Review] Dropped %d pending change(s) for %s on switch",
                dropped, previous.identity,
            )
        session = self._sessions.get(previous.id)
        if session is not None:
            self._close(previous.id, session.source_identity or previous.identity,
                        session, "closed", None)

    def _session_for(self, document: Document, recover: bool) -> ReviewSession | None:
        self._bind(document)
        session = self._sessions.get(document.id)
        if session is not None and not (
            session.is_active and session.belongs_to(document.id, document.identity)
        ):
            logger.warning(
                "[Review] Session for %s was opened for %r, discarding",
                document.id, session.source_identity,
            )
            self._sessions.clear(document.id)
            session = None

        if session is None and recover:
            session = self._recover(document)
        return session

    def _recover(self, document: Document) -> ReviewSession | None:
        """Rebuild a minimal session from the proposal's recorded original."""
        pending = self._pending.for_document(document.identity)
        if not pending:
            return None
        baseline = pending[0].original_content or ""
        logger.warning(
            "[Review] No active session for %s, recovering from proposal baseline",
            document.identity,
        )
        session = new_session(document.id, document.identity, baseline)
        self._sessions.save(session)
        return session

    def _write_result(
        self,
        document: Document,
        proposal: ProposedChange,
        content: str,
    ) -> Optional[str]:
        """Persist the accepted outcome of *proposal*; None when nothing remains."""
        if proposal.operation is OperationKind.DELETE:
            logger.info("[Review] Accepted delete of %s", document.identity)
            self._documents.delete(document.id)
            return None
        self._documents.write(document.id, content)
        if proposal.new_identity and proposal.new_identity != document.identity:
            logger.info(
                "[Review] Renaming %s to %s", document.identity, proposal.new_identity,
            )
            renamed = self._documents.rename(document.id, proposal.new_identity)
            if renamed is not None and self._active is not None and self._active.id == document.id:
                self._active = renamed
        return content

    def _close(
        self,
        document_id: str,
        identity: str,
        session: ReviewSession,
        outcome: str,
        content: Optional[str],
    ) -> ReviewSession:
        self._sessions.clear(document_id)
        self._pending.drop(identity)
        self._created.discard(document_id)

        accepted = sum(1 for p in session.patch_queue if p.kind is patch_queue.PatchKind.ACCEPT)
        rejected = len(session.patch_queue) - accepted
        result = ReviewOutcome(
            document_id=document_id,
            identity=identity,
            outcome=outcome,
            content=content,
            hunks_accepted=accepted,
            hunks_rejected=rejected,
        )
        logger.info(
            "[Review] Closed %s (%s, %d accepted, %d rejected)",
            identity, outcome, accepted, rejected,
        )
        if self._metrics_enabled:
            log_review_metric({
                "document": identity,
                "outcome": outcome,
                "hunks_accepted": accepted,
                "hunks_rejected": rejected,
            }, metrics_dir=self._metrics_dir)
        if self._on_closed is not None:
            self._on_closed(result)
        return close_session(session)
