"""
Document store.

A small collection/document store with the operations the scoring
pipeline needs: get, query (where / order by / limit), set, update,
delete and atomic write batches with array-union / array-remove field
transforms. ``DocumentStore`` keeps everything in memory;
``JsonDocumentStore`` additionally persists each collection to a JSON
file under a data directory.

Collection names are slash-separated paths, e.g.
``users/u1/product_scores``.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote, unquote
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time in the ISO format used for every stored timestamp."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored ISO timestamp; naive values are treated as UTC."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str) and value:
        try:
            ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# ---------------------------------------------------------------------------
# Field transforms
# ---------------------------------------------------------------------------


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class ArrayUnion:
    """Append values to an array field, skipping ones already present."""

    def __init__(self, *values: Any):
        self.values = tuple(values)

    def __repr__(self) -> str:
        return f"ArrayUnion{self.values!r}"


class ArrayRemove:
    """Remove every occurrence of the values from an array field."""

    def __init__(self, *values: Any):
        self.values = tuple(values)

    def __repr__(self) -> str:
        return f"ArrayRemove{self.values!r}"


def _apply_transform(current: Any, value: Any, now: str) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, ArrayUnion):
        items = list(current) if isinstance(current, list) else []
        for item in value.values:
            if item not in items:
                items.append(item)
        return items
    if isinstance(value, ArrayRemove):
        items = list(current) if isinstance(current, list) else []
        return [item for item in items if item not in value.values]
    return copy.deepcopy(value)


def _resolve_fields(existing: Dict[str, Any], fields: Dict[str, Any], now: str) -> Dict[str, Any]:
    result = dict(existing)
    for key, value in fields.items():
        result[key] = _apply_transform(existing.get(key), value, now)
    return result


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@dataclass
class Document:
    """A document snapshot returned by reads."""

    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


Filter = Tuple[str, str, Any]

_MISSING = object()

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not _MISSING and a is not None and a < b,
    "<=": lambda a, b: a is not _MISSING and a is not None and a <= b,
    ">": lambda a, b: a is not _MISSING and a is not None and a > b,
    ">=": lambda a, b: a is not _MISSING and a is not None and a >= b,
    "in": lambda a, b: a in b,
    "not-in": lambda a, b: a not in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
}


def _matches(data: Dict[str, Any], filters: Sequence[Filter]) -> bool:
    for field_name, op, expected in filters:
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported query operator: {op}")
        actual = data.get(field_name, _MISSING)
        if actual is _MISSING and op in ("==", "in", "array_contains"):
            return False
        if not _OPERATORS[op](actual, expected):
            return False
    return True


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class DocumentStore:
    """In-memory document store with atomic batches."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    # Reads -----------------------------------------------------------------

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return Document(id=doc_id, data=copy.deepcopy(data))

    def query(
        self,
        collection: str,
        where: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """Filter, sort and limit a collection.

        Documents missing the ``order_by`` field are excluded, as in most
        hosted document databases.
        """
        filters = list(where or [])
        with self._lock:
            items = [
                (doc_id, data)
                for doc_id, data in self._collections.get(collection, {}).items()
                if _matches(data, filters)
            ]
            if order_by:
                items = [item for item in items if item[1].get(order_by) is not None]
                items.sort(key=lambda item: item[1][order_by], reverse=descending)
            if limit is not None:
                items = items[: max(0, limit)]
            return [Document(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in items]

    def count(self, collection: str, where: Optional[Sequence[Filter]] = None) -> int:
        filters = list(where or [])
        with self._lock:
            return sum(1 for data in self._collections.get(collection, {}).values() if _matches(data, filters))

    def list_collections(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(name for name in self._collections if name.startswith(prefix))

    # Writes ----------------------------------------------------------------

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        batch = self.batch()
        batch.set(collection, doc_id, data, merge=merge)
        batch.commit()

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Update fields of an existing document; raises KeyError when absent."""
        batch = self.batch()
        batch.update(collection, doc_id, fields)
        batch.commit()

    def delete(self, collection: str, doc_id: str) -> None:
        batch = self.batch()
        batch.delete(collection, doc_id)
        batch.commit()

    def batch(self) -> "WriteBatch":
        return WriteBatch(self)

    # Internals -------------------------------------------------------------

    def _commit(self, operations: List[Tuple[str, str, str, Any, bool]]) -> None:
        """Apply all operations or none of them."""
        now = utc_now_iso()
        with self._lock:
            staged: Dict[str, Dict[str, Dict[str, Any]]] = {}

            def current(collection: str) -> Dict[str, Dict[str, Any]]:
                if collection not in staged:
                    staged[collection] = dict(self._collections.get(collection, {}))
                return staged[collection]

            for op, collection, doc_id, payload, merge in operations:
                docs = current(collection)
                if op == "set":
                    base = docs.get(doc_id, {}) if merge else {}
                    docs[doc_id] = _resolve_fields(base, payload, now)
                elif op == "update":
                    if doc_id not in docs:
                        raise KeyError(f"No document to update: {collection}/{doc_id}")
                    docs[doc_id] = _resolve_fields(docs[doc_id], payload, now)
                elif op == "delete":
                    docs.pop(doc_id, None)

            for collection, docs in staged.items():
                if docs:
                    self._collections[collection] = docs
                else:
                    self._collections.pop(collection, None)
            self._persist(staged.keys())

    def _persist(self, collections: Iterable[str]) -> None:
        """Hook for durable subclasses."""


class WriteBatch:
    """Operations applied atomically on commit."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self._operations: List[Tuple[str, str, str, Any, bool]] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._operations)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> "WriteBatch":
        self._operations.append(("set", collection, doc_id, dict(data), merge))
        return self

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> "WriteBatch":
        self._operations.append(("update", collection, doc_id, dict(fields), False))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._operations.append(("delete", collection, doc_id, None, False))
        return self

    def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Write batch already committed")
        self._committed = True
        if self._operations:
            self._store._commit(self._operations)


class JsonDocumentStore(DocumentStore):
    """DocumentStore persisted as one JSON file per collection."""

    def __init__(self, data_dir: Path):
        super().__init__()
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._load_all()

    def _collection_file(self, collection: str) -> Path:
        return self.data_dir / (quote(collection, safe="") + ".json")

    def _load_all(self) -> None:
        for path in sorted(self.data_dir.glob("*.json")):
            collection = unquote(path.stem)
            try:
                self._collections[collection] = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning(f"Skipping unreadable collection file {path}: {exc}")

    def _persist(self, collections: Iterable[str]) -> None:
        for collection in collections:
            path = self._collection_file(collection)
            docs = self._collections.get(collection)
            if not docs:
                path.unlink(missing_ok=True)
                continue
            path.write_text(json.dumps(docs, ensure_ascii=False, indent=2), encoding="utf-8")
