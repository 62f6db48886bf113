"""
Change merger — folds several proposed edits to one document into a single
target text, so the reviewer sees one coherent diff instead of one diff per
proposal.
"""

from __future__ import annotations

import enum
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Optional

from .line_differ import join_lines, split_lines

logger = logging.getLogger(__name__)

_TRAILING_BREAK = re.compile(r"\r?\n$")


class OperationKind(str, enum.Enum):
    CREATE = "create"
    OVERWRITE = "overwrite"
    STRUCTURED_PATCH = "structured_patch"
    DELETE = "delete"
    RENAME = "rename"


@dataclass(frozen=True)
class LineEdit:
    """Replace lines ``start_line..end_line`` (1-based, inclusive) with *new_content*."""
    start_line: int
    end_line: int
    new_content: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "LineEdit":
        return cls(
            start_line=int(data.get("startLine", data.get("start_line", 1))),
            end_line=int(data.get("endLine", data.get("end_line", 0))),
            new_content=data.get("newContent", data.get("new_content")) or "",
        )


@dataclass
class ProposedChange:
    """A candidate edit produced by the agent, awaiting review."""
    operation: OperationKind
    document_identity: str
    original_content: Optional[str] = ""
    target_content: Optional[str] = ""
    timestamp: int = 0
    edits: list[LineEdit] = field(default_factory=list)
    new_identity: Optional[str] = None
    id: str = field(default_factory=lambda: f"change_{uuid.uuid4().hex[:12]}")

    def __post_init__(self) -> None:
        # Collaborators may hand over None for absent content.
        if self.original_content is None:
            self.original_content = ""
        if self.target_content is None:
            self.target_content = ""


def apply_line_edits(content: str, edits: list[LineEdit]) -> str:
    """Apply *edits* bottom-up so earlier splices don't shift later ones."""
    lines = split_lines(content)
    for edit in sorted(edits, key=lambda e: e.start_line, reverse=True):
        start_idx = min(max(0, edit.start_line - 1), len(lines))
        delete = max(0, edit.end_line - edit.start_line + 1)
        new_lines = split_lines(_TRAILING_BREAK.sub("", edit.new_content, count=1)) \
            if edit.new_content else []
        lines[start_idx:start_idx + delete] = new_lines
    return join_lines(lines)


class ChangeMerger:
    """Merge proposals that target the same document."""

    def merge(self, base_content: str | None, changes: list[ProposedChange]) -> str:
        """Fold *changes* over *base_content* in timestamp order.

        Parameters
        ----------
        base_content:
            Current content of the document.
        changes:
            Proposals for that document, in any order.

        Returns
        -------
        str
            The content the document would have after all proposals.
        """
        result = base_content or ""
        for change in sorted(changes, key=lambda c: c.timestamp):
            result = self._fold(result, change)
        return result

    def combine(
        self,
        base_content: str | None,
        changes: list[ProposedChange],
        document_exists: bool = True,
    ) -> ProposedChange | None:
        """Collapse *changes* into one proposal carrying the merged target.

        When the document did not exist before, a leading Create starts the
        fold from its own content and keeps the combined proposal a Create,
        since there is nothing to revert to.  Against an existing document
        the Create is skipped like any other.  A trailing Delete makes the
        whole proposal a Delete.
        """
        if not changes:
            return None
        ordered = sorted(changes, key=lambda c: c.timestamp)
        first = ordered[0]

        if first.operation is OperationKind.CREATE and not document_exists:
            operation = OperationKind.CREATE
            original = ""
            target = self.merge(first.target_content, ordered[1:])
        else:
            original = base_content or ""
            target = self.merge(base_content, ordered)
            if ordered[-1].operation is OperationKind.DELETE:
                operation = OperationKind.DELETE
                target = ""
            elif all(c.operation is OperationKind.RENAME for c in ordered):
                operation = OperationKind.RENAME
            else:
                operation = OperationKind.OVERWRITE

        last_rename = next(
            (c.new_identity for c in reversed(ordered)
             if c.operation is OperationKind.RENAME and c.new_identity),
            None,
        )
        if len(ordered) > 1:
            logger.info(
                "[Merge] Combined %d proposals for %s into one %s",
                len(ordered), first.document_identity, operation.value,
            )
        return ProposedChange(
            operation=operation,
            document_identity=first.document_identity,
            original_content=original,
            target_content=target,
            timestamp=ordered[-1].timestamp,
            new_identity=last_rename,
            id=first.id if len(ordered) == 1 else f"merged_{first.id}",
        )

    @staticmethod
    def _fold(result: str, change: ProposedChange) -> str:
        op = change.operation
        if op is OperationKind.OVERWRITE:
            return change.target_content or ""
        if op is OperationKind.STRUCTURED_PATCH:
            if not change.edits:
                # Some tools ship the patched text instead of the edit list.
                return change.target_content or result
            return apply_line_edits(result, change.edits)
        if op is OperationKind.CREATE:
            logger.warning(
                "[Merge] Skipping create %s for existing document %s",
                change.id, change.document_identity,
            )
            return result
        logger.debug(
            "[Merge] %s %s has no content effect", op.value, change.id,
        )
        return result


_default_merger = ChangeMerger()


def merge(base_content: str | None, changes: list[ProposedChange]) -> str:
    return _default_merger.merge(base_content, changes)
