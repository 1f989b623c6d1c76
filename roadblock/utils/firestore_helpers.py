"""
Firestore document helpers: query filters and timestamp normalization.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from firebase_admin import firestore


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply a field filter using the keyword ``filter=`` API.

    Usage:
        query = where_filter(collection, "active", "==", True)
        query = where_filter(query, "user_id", "==", uid)
    """
    return query.where(filter=firestore.FieldFilter(field_path, op_string, value))


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize Firestore timestamps and ISO strings to timezone-aware UTC datetimes.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    if hasattr(value, "to_datetime"):
        return to_datetime(value.to_datetime())
    if hasattr(value, "timestamp"):
        return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
    return None
