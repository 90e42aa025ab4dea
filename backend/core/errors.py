"""Error kinds raised by the inventory core.

Each error carries a ``kind`` (stable identifier surfaced to clients) and the
HTTP status the request boundary answers with.
"""

from fastapi import status
from sqlalchemy.exc import IntegrityError


class InventoryError(Exception):
    kind = "InventoryError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class NotFound(InventoryError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateName(InventoryError):
    kind = "DuplicateName"
    status_code = status.HTTP_409_CONFLICT


class InvalidArgument(InventoryError):
    kind = "InvalidArgument"
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(InventoryError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class Unavailable(InventoryError):
    """Persistence layer unreachable. The only kind worth retrying."""

    kind = "Unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


SQLSTATE_VIOLATIONS = {
    "23505": "unique",
    "23503": "foreign_key",
    "23514": "check",
}


def integrity_violation(exc: IntegrityError) -> str:
    """Classify a database integrity error as 'unique', 'foreign_key' or 'check'.

    PostgreSQL drivers expose the SQLSTATE code; SQLite only has the message text.
    """
    orig = getattr(exc, "orig", exc)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in SQLSTATE_VIOLATIONS:
        return SQLSTATE_VIOLATIONS[sqlstate]

    text = str(orig).lower()
    if "foreign key" in text:
        return "foreign_key"
    if "check constraint" in text:
        return "check"
    if "unique" in text or "duplicate key" in text:
        return "unique"
    return "unknown"
