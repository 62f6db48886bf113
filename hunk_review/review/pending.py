"""
Pending changes — proposals from the agent that are waiting for review,
grouped by the identity of the document they target.
"""

from __future__ import annotations

import logging

from ..editing.change_merger import ChangeMerger, ProposedChange

logger = logging.getLogger(__name__)


class PendingChanges:
    """Registry of unreviewed :class:`ProposedChange` objects."""

    def __init__(self, merger: ChangeMerger | None = None) -> None:
        self._merger = merger or ChangeMerger()
        self._by_identity: dict[str, list[ProposedChange]] = {}

    def add(self, change: ProposedChange) -> None:
        self._by_identity.setdefault(change.document_identity, []).append(change)
        logger.debug(
            "[Review] Pending %s for %s (%d queued)",
            change.operation.value, change.document_identity,
            len(self._by_identity[change.document_identity]),
        )

    def for_document(self, identity: str) -> list[ProposedChange]:
        return sorted(self._by_identity.get(identity, []), key=lambda c: c.timestamp)

    def has_pending(self, identity: str) -> bool:
        return bool(self._by_identity.get(identity))

    def drop(self, identity: str) -> int:
        """Forget every proposal for *identity*; returns how many were dropped."""
        dropped = len(self._by_identity.pop(identity, []))
        if dropped:
            logger.debug("[Review] Dropped %d pending change(s) for %s", dropped, identity)
        return dropped

    def combined(
        self,
        identity: str,
        base_content: str | None,
        document_exists: bool = True,
    ) -> ProposedChange | None:
        """One proposal standing for everything pending on *identity*."""
        return self._merger.combine(
            base_content, self.for_document(identity), document_exists,
        )

    def identities(self) -> list[str]:
        return [k for k, v in self._by_identity.items() if v]

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_identity.values())
