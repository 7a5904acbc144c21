"""
In-memory document store for local development and tests.

Implements the subset of the Firestore client API that the services use:
collection/document references, set/update/get/delete, where/order_by/
limit/offset queries, stream() and the Increment transform. Selected with
USE_MOCK_DB=true.
"""

import copy
import threading
import uuid
from typing import Any, Dict, Iterator, List, Optional, Tuple

from firebase_admin import firestore

DESCENDING = "DESCENDING"
ASCENDING = "ASCENDING"

_MISSING = object()


def _get_path(data: Dict, field_path: str) -> Any:
    value: Any = data
    for part in field_path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _set_path(data: Dict, field_path: str, value: Any) -> None:
    parts = field_path.split(".")
    target = data
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = value


def _compare(left: Any, op: str, right: Any) -> bool:
    if left is _MISSING:
        return False
    try:
        if op == "==":
            return left == right
        if op == "!=":
            return left != right
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        if op == ">=":
            return left >= right
        if op == "in":
            return left in right
        if op == "not-in":
            return left not in right
        if op == "array_contains":
            return isinstance(left, list) and right in left
    except TypeError:
        # Firestore never matches values of different types
        return False
    raise ValueError(f"Unsupported operator: {op}")


class MockDocumentSnapshot:
    def __init__(self, reference: "MockDocumentReference", data: Optional[Dict]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field_path: str) -> Any:
        value = _get_path(self._data or {}, field_path)
        return None if value is _MISSING else copy.deepcopy(value)


class MockDocumentReference:
    def __init__(self, collection: "MockCollectionReference", doc_id: str):
        self._collection = collection
        self.id = doc_id

    @property
    def path(self) -> str:
        return f"{self._collection.id}/{self.id}"

    def get(self) -> MockDocumentSnapshot:
        with self._collection._lock:
            return MockDocumentSnapshot(self, self._collection._docs.get(self.id))

    def set(self, data: Dict, merge: bool = False) -> None:
        with self._collection._lock:
            if merge and self.id in self._collection._docs:
                current = self._collection._docs[self.id]
                for key, value in copy.deepcopy(data).items():
                    current[key] = value
            else:
                self._collection._docs[self.id] = copy.deepcopy(data)

    def update(self, data: Dict) -> None:
        with self._collection._lock:
            current = self._collection._docs.get(self.id)
            if current is None:
                raise KeyError(f"No document to update: {self.path}")
            for field_path, value in data.items():
                if isinstance(value, firestore.Increment):
                    existing = _get_path(current, field_path)
                    base = existing if isinstance(existing, (int, float)) else 0
                    value = base + value.value
                _set_path(current, field_path, copy.deepcopy(value))

    def delete(self) -> None:
        with self._collection._lock:
            self._collection._docs.pop(self.id, None)


class MockQuery:
    def __init__(
        self,
        collection: "MockCollectionReference",
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        orders: Optional[List[Tuple[str, str]]] = None,
        limit_count: Optional[int] = None,
        offset_count: int = 0,
    ):
        self._collection = collection
        self._filters = filters or []
        self._orders = orders or []
        self._limit = limit_count
        self._offset = offset_count

    def _copy(self, **overrides) -> "MockQuery":
        params = {
            "filters": list(self._filters),
            "orders": list(self._orders),
            "limit_count": self._limit,
            "offset_count": self._offset,
        }
        params.update(overrides)
        return MockQuery(self._collection, **params)

    def where(self, field_path: str, op_string: str, value: Any) -> "MockQuery":
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path: str, direction: str = ASCENDING) -> "MockQuery":
        return self._copy(orders=self._orders + [(field_path, direction)])

    def limit(self, count: int) -> "MockQuery":
        return self._copy(limit_count=count)

    def offset(self, count: int) -> "MockQuery":
        return self._copy(offset_count=count)

    def stream(self) -> Iterator[MockDocumentSnapshot]:
        with self._collection._lock:
            items = [(doc_id, copy.deepcopy(data)) for doc_id, data in self._collection._docs.items()]

        matched = [
            (doc_id, data) for doc_id, data in items
            if all(_compare(_get_path(data, f), op, v) for f, op, v in self._filters)
        ]

        # Firestore drops documents that lack an ordered field
        for field_path, direction in reversed(self._orders):
            matched = [item for item in matched if _get_path(item[1], field_path) is not _MISSING]
            matched.sort(key=lambda item: _get_path(item[1], field_path), reverse=direction == DESCENDING)

        matched = matched[self._offset:]
        if self._limit is not None:
            matched = matched[:self._limit]

        for doc_id, data in matched:
            yield MockDocumentSnapshot(self._collection.document(doc_id), data)

    def get(self) -> List[MockDocumentSnapshot]:
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, name: str):
        self.id = name
        self._docs: Dict[str, Dict] = {}
        self._lock = threading.RLock()
        super().__init__(self)

    def document(self, document_id: Optional[str] = None) -> MockDocumentReference:
        return MockDocumentReference(self, document_id or uuid.uuid4().hex[:20])

    def add(self, data: Dict) -> Tuple[None, MockDocumentReference]:
        ref = self.document()
        ref.set(data)
        return None, ref


class MockFirestore:
    """Drop-in stand-in for firestore.Client in mock mode."""

    def __init__(self):
        self._collections: Dict[str, MockCollectionReference] = {}
        self._lock = threading.Lock()

    def collection(self, name: str) -> MockCollectionReference:
        with self._lock:
            if name not in self._collections:
                self._collections[name] = MockCollectionReference(name)
            return self._collections[name]

    def collections(self) -> List[MockCollectionReference]:
        with self._lock:
            return [c for c in self._collections.values() if c._docs]

    def clear(self) -> None:
        with self._lock:
            self._collections.clear()


def get_mock_db() -> MockFirestore:
    return MockFirestore()
