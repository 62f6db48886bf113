"""Review sessions — lifecycle, persistence and pending proposals."""

from .documents import Document, DocumentStore, FileDocumentStore, InMemoryDocumentStore
from .session import ReviewSession, SessionState, close_session, new_session
from .session_store import SessionStore, load_sessions, save_sessions
from .pending import PendingChanges
from .coordinator import ReviewCoordinator, ReviewOutcome

__all__ = [
    "Document", "DocumentStore", "FileDocumentStore", "InMemoryDocumentStore",
    "ReviewSession", "SessionState", "close_session", "new_session",
    "SessionStore", "load_sessions", "save_sessions",
    "PendingChanges",
    "ReviewCoordinator", "ReviewOutcome",
]
