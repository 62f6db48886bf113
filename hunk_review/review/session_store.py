"""
Session store — keeps review sessions so a reload can pick up where the
reviewer left off.

The in-memory map is authoritative.  When a file path is configured, every
change is mirrored to JSON on a best-effort basis: write failures are logged
and never surface to the caller.
"""

from __future__ import annotations

import json
import logging
import os

from .session import ReviewSession

logger = logging.getLogger(__name__)

DEFAULT_SESSION_FILE = ".hunkreview/sessions.json"


class SessionStore:
    """Document id → :class:`ReviewSession`, optionally mirrored to disk."""

    def __init__(self, filepath: str | None = None) -> None:
        self._filepath = filepath
        self._sessions: dict[str, ReviewSession] = {}
        self._loaded = False

    @property
    def filepath(self) -> str | None:
        return self._filepath

    def get(self, document_id: str) -> ReviewSession | None:
        """Return the session for *document_id*, loading the file on first use."""
        self._ensure_loaded()
        return self._sessions.get(document_id)

    def save(self, session: ReviewSession) -> None:
        self._ensure_loaded()
        self._sessions[session.document_id] = session
        self._flush()

    def clear(self, document_id: str) -> None:
        self._ensure_loaded()
        if self._sessions.pop(document_id, None) is not None:
            self._flush()

    def document_ids(self) -> list[str]:
        self._ensure_loaded()
        return list(self._sessions)

    def __contains__(self, document_id: str) -> bool:
        return self.get(document_id) is not None

    # ------------------------------------------------------------------
    # Disk mirror
    # ------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if self._filepath:
            for doc_id, session in load_sessions(self._filepath).items():
                self._sessions.setdefault(doc_id, session)

    def _flush(self) -> None:
        if not self._filepath:
            return
        try:
            save_sessions(self._filepath, self._sessions)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning(
                "[Store] Failed to persist sessions to %s: %s", self._filepath, exc,
            )


def save_sessions(filepath: str, sessions: dict[str, ReviewSession]) -> None:
    """Persist *sessions* to *filepath* as JSON."""
    state = {doc_id: s.to_dict() for doc_id, s in sessions.items()}
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp = filepath + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2)
    os.replace(tmp, filepath)


def load_sessions(filepath: str) -> dict[str, ReviewSession]:
    """Load sessions from *filepath*.

    Returns an empty mapping if the file is missing or invalid; entries
    missing required keys are dropped.
    """
    if not os.path.isfile(filepath):
        return {}
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            state = json.load(f)
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        logger.warning("[Store] Ignoring unreadable session file %s: %s", filepath, exc)
        return {}
    if not isinstance(state, dict):
        return {}

    sessions: dict[str, ReviewSession] = {}
    for doc_id, data in state.items():
        session = ReviewSession.from_dict(doc_id, data)
        if session is None:
            logger.warning("[Store] Dropping malformed session entry for %s", doc_id)
            continue
        sessions[doc_id] = session
    return sessions
