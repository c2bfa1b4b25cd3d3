"""
Classes Service - CRUD operations for a user's weekly classes.
Rows live in the Supabase `classes` table and are always scoped by user_id.
Callers re-fetch the full list after every mutation; nothing is cached here.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from classalign.models.schedule_types import WEEKDAYS, ClassEntry, normalize_day
from classalign.services.supabase_client import CLASSES_TABLE, supabase_request, table_path

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("subject", "day", "time", "room", "professor", "color")
OPTIONAL_FIELDS = ("room", "professor", "color")

# Colors end up inside an inline style attribute of the exported grid.
_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
NAMED_COLORS = frozenset({
    "black", "white", "gray", "grey", "silver", "red", "maroon", "orange",
    "yellow", "olive", "lime", "green", "teal", "cyan", "aqua", "blue",
    "navy", "purple", "fuchsia", "magenta", "pink", "brown", "gold",
    "indigo", "violet", "coral", "salmon", "khaki", "lavender", "beige",
    "tan", "turquoise", "skyblue", "lightblue", "lightgreen", "lightgray",
    "lightgrey", "lightpink", "lightyellow",
})


def is_valid_color(value: Optional[str]) -> bool:
    """A hex color like '#a3a3a3' or a plain CSS color name."""
    if not value:
        return False
    text = value.strip()
    return bool(_HEX_COLOR_RE.match(text)) or text.lower() in NAMED_COLORS


class ClassesError(Exception):
    """Base exception for class operations."""
    pass


class ClassValidationError(ClassesError, ValueError):
    """Raised when submitted class fields are missing or invalid."""
    pass


class ClassNotFoundError(ClassesError):
    """Raised when a class does not exist or belongs to another user."""
    pass


def _clean_fields(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate and normalize submitted class fields.

    The time text is only checked for presence; free-form entries like
    '9am' are stored as typed and simply may not land on the calendar grid.
    With `partial`, only the fields present in `data` are validated.
    """
    cleaned: Dict[str, Any] = {}

    for key in ("subject", "day", "time"):
        if partial and key not in data:
            continue
        value = str(data.get(key) or "").strip()
        if not value:
            raise ClassValidationError(f"{key.capitalize()} is required.")
        cleaned[key] = value

    if "day" in cleaned:
        day = normalize_day(cleaned["day"])
        if day is None:
            raise ClassValidationError(f"Day must be one of: {', '.join(WEEKDAYS)}.")
        cleaned["day"] = day

    for key in OPTIONAL_FIELDS:
        if partial and key not in data:
            continue
        value = data.get(key)
        cleaned[key] = str(value).strip() if value not in (None, "") else None

    color = cleaned.get("color")
    if color is not None and not is_valid_color(color):
        raise ClassValidationError("Color must be a hex value like #a3a3a3 or a CSS color name.")

    return cleaned


def _rows(resp) -> List[Dict[str, Any]]:
    try:
        return resp.json() or []
    except ValueError:
        return []


def list_classes(user_id: str) -> List[ClassEntry]:
    """
    Fetch all of a user's classes in creation order.

    Raises:
        ClassesError: if Supabase does not return the list
    """
    resp = supabase_request(
        "GET",
        table_path(CLASSES_TABLE, select="*", order="created_at.asc", user_id=user_id),
    )
    if resp.status_code != 200:
        logger.error(f"Failed to load classes for user {user_id}: {resp.status_code} {resp.text}")
        raise ClassesError("Failed to load classes.")
    return [ClassEntry.from_db_row(row) for row in _rows(resp)]


def get_class(user_id: str, class_id: str) -> Optional[ClassEntry]:
    resp = supabase_request("GET", table_path(CLASSES_TABLE, select="*", id=class_id, user_id=user_id))
    if resp.status_code != 200:
        return None
    rows = _rows(resp)
    return ClassEntry.from_db_row(rows[0]) if rows else None


def find_classes_by_subject(user_id: str, subject: str) -> List[ClassEntry]:
    """Case-insensitive subject match over the user's classes."""
    wanted = (subject or "").strip().lower()
    if not wanted:
        return []
    return [c for c in list_classes(user_id) if c.subject.strip().lower() == wanted]


def add_class(user_id: str, data: Dict[str, Any]) -> ClassEntry:
    """
    Insert a class for the user.

    Raises:
        ClassValidationError: if subject, day or time is missing or the day is unknown
        ClassesError: if Supabase rejects the insert
    """
    payload = {"user_id": user_id, **_clean_fields(data)}

    resp = supabase_request(
        "POST",
        table_path(CLASSES_TABLE),
        json=[payload],
        headers={"Prefer": "return=representation"},
    )
    if resp.status_code not in (200, 201):
        logger.error(f"Failed to add class for user {user_id}: {resp.status_code} {resp.text}")
        raise ClassesError("Failed to add class.")

    rows = _rows(resp)
    if not rows:
        raise ClassesError("Failed to add class.")
    return ClassEntry.from_db_row(rows[0])


def update_class(user_id: str, class_id: str, data: Dict[str, Any]) -> ClassEntry:
    """
    Update the given fields of one of the user's classes.

    Raises:
        ClassValidationError: if a provided field is invalid or nothing is provided
        ClassNotFoundError: if the class is not the user's
        ClassesError: if Supabase rejects the update
    """
    payload = _clean_fields({k: v for k, v in data.items() if k in EDITABLE_FIELDS}, partial=True)
    if not payload:
        raise ClassValidationError("No class fields to update.")

    resp = supabase_request(
        "PATCH",
        table_path(CLASSES_TABLE, id=class_id, user_id=user_id),
        json=payload,
        headers={"Prefer": "return=representation"},
    )
    if resp.status_code not in (200, 204):
        logger.error(f"Failed to update class {class_id}: {resp.status_code} {resp.text}")
        raise ClassesError("Failed to update class.")

    rows = _rows(resp)
    if not rows:
        raise ClassNotFoundError("Class not found")
    return ClassEntry.from_db_row(rows[0])


def _delete(path: str, failure_message: str) -> int:
    resp = supabase_request("DELETE", path, headers={"Prefer": "return=representation"})
    if resp.status_code not in (200, 204):
        logger.error(f"Delete failed: {resp.status_code} {resp.text}")
        raise ClassesError(failure_message)
    return len(_rows(resp)) if resp.status_code == 200 else 0


def delete_class(user_id: str, class_id: str) -> None:
    """
    Raises:
        ClassNotFoundError: if nothing was deleted
        ClassesError: if Supabase rejects the delete
    """
    deleted = _delete(table_path(CLASSES_TABLE, id=class_id, user_id=user_id), "Failed to delete class.")
    if not deleted:
        raise ClassNotFoundError("Class not found")


def delete_classes_by_subject(user_id: str, subject: str) -> int:
    """Delete every class of the user with this subject (case-insensitive). Returns the count."""
    matches = find_classes_by_subject(user_id, subject)
    if not matches:
        return 0
    ids = ",".join(c.id for c in matches)
    path = f"{table_path(CLASSES_TABLE, user_id=user_id)}&id=in.({ids})"
    return _delete(path, "Failed to delete class.")


def delete_all_classes(user_id: str) -> int:
    """Delete all of the user's classes. Returns the number removed."""
    return _delete(table_path(CLASSES_TABLE, user_id=user_id), "Failed to delete all classes.")
