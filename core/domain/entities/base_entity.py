# core/domain/entities/base_entity.py
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

E = TypeVar("E", bound="MongoEntity")

_DATETIME = TypeAdapter(datetime)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Return an aware UTC datetime.

    Motor hands back naive datetimes unless the client is tz_aware, and those are UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def as_counter(value: Any) -> int:
    """
    Read an eventually-consistent counter.

    Missing, malformed or negative values (e.g. an unlike racing a like) read as 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, n)


def as_datetime(value: Any) -> Optional[datetime]:
    """
    Read a stored timestamp as aware UTC. Empty or unparseable values read as missing.
    """
    if value is None or value == "":
        return None
    try:
        return as_utc(_DATETIME.validate_python(value))
    except ValidationError:
        return None


def as_coordinate(value: Any) -> float:
    """
    Read a stored coordinate. Missing or malformed values read as NaN, which
    never falls inside a bounding box.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


class MongoEntity(BaseModel):
    """
    Base entity for Mongo-backed documents.

    - Maps Mongo's `_id` to `id` (string).
    - Accepts extra fields to avoid breaking on forward-compatible schema changes.
    """

    id: Optional[str] = None  # maps _id

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="allow",
        use_enum_values=True,
    )

    @classmethod
    def from_mongo(cls: Type[E], doc: Optional[dict[str, Any]]) -> Optional[E]:
        """
        Convert a MongoDB document into a strongly-typed entity.

        Args:
            doc: Raw MongoDB dict (may include `_id`).

        Returns:
            An entity instance or None if doc is falsy.
        """
        if not doc:
            return None
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)
