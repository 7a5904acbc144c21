"""
Firestore query and document helpers shared by the services.

NOTE: For firebase_admin SDK, we use positional arguments for where() which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""

from contextlib import contextmanager
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterator, Optional
import logging

from app.core.errors import CleanupAppError, StorageError

logger = logging.getLogger(__name__)


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "status", "==", "pending")
        query = where_filter(query, "created_at", ">=", date_from)
    """
    return query.where(field_path, op_string, value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize a stored timestamp to an aware UTC datetime.

    Firestore returns DatetimeWithNanoseconds (a datetime subclass); older
    documents may hold ISO strings. Naive values are treated as UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif hasattr(value, "to_datetime"):
        dt = value.to_datetime()
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        logger.warning(f"Unknown timestamp type: {type(value)}")
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def snapshot_to_dict(doc) -> Optional[Dict]:
    """Convert a document snapshot to a dict with its id, or None if missing."""
    if not doc.exists:
        return None
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


@contextmanager
def storage_guard(action: str) -> Iterator[None]:
    """
    Turn unexpected document store failures into an opaque StorageError.

    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except CleanupAppError:
        raise
    except Exception as e:
        logger.error(f"Firestore failure while trying to {action}: {e}", exc_info=True)
        raise StorageError() from e
