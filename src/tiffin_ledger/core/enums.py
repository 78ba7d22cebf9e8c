from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles used for authorization."""

    ADMIN = "admin"
    MEMBER = "member"


class Meal(str, Enum):
    """Meals tracked on an attendance record."""

    LUNCH = "lunch"
    DINNER = "dinner"


class EntryStatus(str, Enum):
    """Outcome of one entry of a bulk attendance import."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    ERROR = "error"
