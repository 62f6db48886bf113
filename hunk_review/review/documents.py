"""
Document stores — the host's document storage, seen through the few calls a
review needs (read, write, create, delete, rename).
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """A document as the host currently shows it.

    ``id`` is the stable storage key; ``identity`` is the path or name
    and changes on rename.
    """
    id: str
    identity: str
    content: str = ""


class DocumentStore(ABC):
    """Storage interface the review coordinator writes through."""

    @abstractmethod
    def get(self, document_id: str) -> Document | None: ...

    @abstractmethod
    def find(self, identity: str) -> Document | None: ...

    @abstractmethod
    def write(self, document_id: str, content: str) -> Document | None: ...

    @abstractmethod
    def create(self, identity: str, content: str = "") -> Document: ...

    @abstractmethod
    def delete(self, document_id: str) -> bool: ...

    @abstractmethod
    def rename(self, document_id: str, new_identity: str) -> Document | None: ...


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store, used by tests and embedding hosts."""

    def __init__(self) -> None:
        self._docs: dict[str, Document] = {}

    def get(self, document_id: str) -> Document | None:
        return self._docs.get(document_id)

    def find(self, identity: str) -> Document | None:
        for doc in self._docs.values():
            if doc.identity == identity:
                return doc
        return None

    def write(self, document_id: str, content: str) -> Document | None:
        doc = self._docs.get(document_id)
        if doc is None:
            logger.warning("[Store] write to unknown document %s", document_id)
            return None
        doc = Document(doc.id, doc.identity, content)
        self._docs[doc.id] = doc
        return doc

    def create(self, identity: str, content: str = "") -> Document:
        existing = self.find(identity)
        if existing is not None:
            return existing
        doc = Document(uuid.uuid4().hex[:12], identity, content)
        self._docs[doc.id] = doc
        return doc

    def delete(self, document_id: str) -> bool:
        return self._docs.pop(document_id, None) is not None

    def rename(self, document_id: str, new_identity: str) -> Document | None:
        doc = self._docs.get(document_id)
        if doc is None:
            return None
        doc = Document(doc.id, new_identity, doc.content)
        self._docs[doc.id] = doc
        return doc

    def __len__(self) -> int:
        return len(self._docs)


class FileDocumentStore(DocumentStore):
    """Documents are files under *base_dir*; the relative path is both id and identity."""

    def __init__(self, base_dir: str = ".") -> None:
        self._base_dir = os.path.abspath(base_dir)

    def _path(self, rel_path: str) -> str:
        return os.path.join(self._base_dir, rel_path)

    def get(self, document_id: str) -> Document | None:
        path = self._path(document_id)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
                content = f.read()
        except OSError as exc:
            logger.warning("[Store] Failed to read %s: %s", path, exc)
            return None
        return Document(document_id, document_id, content)

    def find(self, identity: str) -> Document | None:
        return self.get(identity)

    def write(self, document_id: str, content: str) -> Document | None:
        try:
            self._safe_write(self._path(document_id), content)
        except OSError as exc:
            logger.error("[Store] Failed to write %s: %s", document_id, exc)
            return None
        return Document(document_id, document_id, content)

    def create(self, identity: str, content: str = "") -> Document:
        existing = self.get(identity)
        if existing is not None:
            return existing
        path = self._path(identity)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self._safe_write(path, content)
        return Document(identity, identity, content)

    def delete(self, document_id: str) -> bool:
        try:
            os.remove(self._path(document_id))
            return True
        except OSError as exc:
            logger.warning("[Store] Failed to delete %s: %s", document_id, exc)
            return False

    def rename(self, document_id: str, new_identity: str) -> Document | None:
        src = self._path(document_id)
        dst = self._path(new_identity)
        try:
            os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
            shutil.move(src, dst)
        except OSError as exc:
            logger.warning(
                "[Store] Failed to rename %s to %s: %s", document_id, new_identity, exc,
            )
            return None
        return self.get(new_identity)

    @staticmethod
    def _safe_write(path: str, content: str) -> None:
        """Write via temp file + rename."""
        tmp_path = path + ".hunkreview_tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except OSError:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
