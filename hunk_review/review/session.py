"""
Review session — binds one document's immutable baseline to its patch queue.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace

from ..editing.patch_queue import Patch

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


_REQUIRED_KEYS = {"baselineSnapshot", "sourceFileIdentity", "patchQueue"}


@dataclass(frozen=True)
class ReviewSession:
    """Review state for a single document.

    ``baseline_snapshot`` is the document content at the moment review
    began and is never modified; ``source_identity`` must match the
    identity of the document the host currently shows.
    """
    document_id: str
    source_identity: str
    baseline_snapshot: str
    patch_queue: tuple[Patch, ...] = field(default_factory=tuple)
    state: SessionState = SessionState.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def belongs_to(self, document_id: str, identity: str) -> bool:
        return (
            self.document_id == document_id
            and bool(self.source_identity)
            and self.source_identity == identity
        )

    def to_dict(self) -> dict:
        """Persisted layout: plain JSON, no state, keyed externally by document id."""
        return {
            "baselineSnapshot": self.baseline_snapshot,
            "sourceFileIdentity": self.source_identity,
            "patchQueue": [p.to_dict() for p in self.patch_queue],
        }

    @classmethod
    def from_dict(cls, document_id: str, data: dict) -> "ReviewSession | None":
        """Rebuild a persisted session, or ``None`` if the entry is unusable."""
        if not isinstance(data, dict) or not _REQUIRED_KEYS.issubset(data.keys()):
            return None
        try:
            patches = tuple(Patch.from_dict(p) for p in data["patchQueue"] or [])
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning(
                "[Review] Dropping persisted session for %s: bad patch queue (%s)",
                document_id, exc,
            )
            return None
        return cls(
            document_id=document_id,
            source_identity=str(data["sourceFileIdentity"] or ""),
            baseline_snapshot=str(data["baselineSnapshot"] or ""),
            patch_queue=patches,
        )


def new_session(document_id: str, identity: str, content: str | None) -> ReviewSession:
    return ReviewSession(
        document_id=document_id,
        source_identity=identity,
        baseline_snapshot=content or "",
    )


def close_session(session: ReviewSession) -> ReviewSession:
    """Mark *session* closed; closed sessions ignore further decisions."""
    if not session.is_active:
        return session
    return replace(session, state=SessionState.CLOSED)
