"""
Document store contract used for per-user lists and watch history.

A document is a JSON-like dict addressed by (collection, doc_id). Partial
updates take a mapping of dotted field paths to values, where a value may be
one of the sentinels below:

    ArrayUnion(*items)   append items not already present in the array
    ArrayRemove(*items)  drop every element equal to one of the items
    SERVER_TIMESTAMP     replaced by the store's clock at write time
"""

import copy
from datetime import datetime, timezone
from typing import Any, Optional


class DocumentStoreError(Exception):
    """Base error raised by document store implementations."""


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a partial update targets a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document {collection}/{doc_id} does not exist")
        self.collection = collection
        self.doc_id = doc_id


class ArrayUnion:
    """Field-update sentinel adding elements to an array with set semantics."""

    def __init__(self, *values: Any):
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayUnion({self.values!r})"


class ArrayRemove:
    """Field-update sentinel removing every matching element from an array."""

    def __init__(self, *values: Any):
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayRemove({self.values!r})"


class _ServerTimestamp:
    def __repr__(self) -> str:
        return 'SERVER_TIMESTAMP'


SERVER_TIMESTAMP = _ServerTimestamp()


def resolve_server_timestamps(value: Any, now: str) -> Any:
    """Return a copy of value with every SERVER_TIMESTAMP replaced by now."""
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {key: resolve_server_timestamps(item, now) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_server_timestamps(item, now) for item in value]
    return copy.deepcopy(value)


def apply_field_updates(data: dict[str, Any], updates: dict[str, Any], now: str) -> dict[str, Any]:
    """
    Apply a partial update to a document and return the new document.

    Args:
        data: Current document contents (left untouched)
        updates: Mapping of dotted field path to value or sentinel
        now: Timestamp substituted for SERVER_TIMESTAMP

    Returns:
        Updated deep copy of the document
    """
    result = copy.deepcopy(data)

    for path, value in updates.items():
        parts = path.split('.')
        parent = result
        for part in parts[:-1]:
            child = parent.get(part)
            if not isinstance(child, dict):
                child = {}
                parent[part] = child
            parent = child

        leaf = parts[-1]
        if isinstance(value, ArrayUnion):
            current = parent.get(leaf)
            items = list(current) if isinstance(current, list) else []
            for item in resolve_server_timestamps(value.values, now):
                if item not in items:
                    items.append(item)
            parent[leaf] = items
        elif isinstance(value, ArrayRemove):
            current = parent.get(leaf)
            items = list(current) if isinstance(current, list) else []
            removed = resolve_server_timestamps(value.values, now)
            parent[leaf] = [item for item in items if item not in removed]
        else:
            parent[leaf] = resolve_server_timestamps(value, now)

    return result


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentStore:
    """Interface implemented by the remote document stores."""

    def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Return a copy of the document, or None when it does not exist."""
        raise NotImplementedError

    def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or fully replace a document."""
        raise NotImplementedError

    def update_fields(self, collection: str, doc_id: str, updates: dict[str, Any]) -> None:
        """
        Apply a partial update to an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        raise NotImplementedError

    def ping(self) -> bool:
        """Return True when the store can currently be reached."""
        raise NotImplementedError


class MemoryDocumentStore(DocumentStore):
    """Document store kept in process memory."""

    def __init__(self):
        self._documents: dict[tuple[str, str], dict[str, Any]] = {}

    def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        document = self._documents.get((collection, doc_id))
        return copy.deepcopy(document) if document is not None else None

    def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._documents[(collection, doc_id)] = resolve_server_timestamps(data, utc_timestamp())

    def update_fields(self, collection: str, doc_id: str, updates: dict[str, Any]) -> None:
        document = self._documents.get((collection, doc_id))
        if document is None:
            raise DocumentNotFoundError(collection, doc_id)
        self._documents[(collection, doc_id)] = apply_field_updates(document, updates, utc_timestamp())

    def ping(self) -> bool:
        return True
