from __future__ import annotations

import datetime as _dt
from typing import List, Optional
from uuid import uuid4

from dateutil.parser import parse
from pydantic import BaseModel, Field, field_serializer, field_validator

__all__ = [
    "Exercise",
    "ExerciseCreate",
    "LogQuery",
    "User",
    "UserCreate",
    "format_calendar_date",
    "parse_calendar_date",
]


DATE_FORMAT = "%a %b %d %Y"
# Missing parts of a partial date resolve to the start of the period.
_PERIOD_START = _dt.datetime(1, 1, 1)
INVALID_DATE = "Invalid Date"


def parse_calendar_date(value: _dt.date | _dt.datetime | str | None) -> Optional[_dt.date]:
    """Return the calendar day for ``value``, or ``None`` when it can't be read.

    Strings go through dateutil, so both ISO dates (``2024-01-05``) and the
    rendered form (``Fri Jan 05 2024``) are accepted.
    """
    if value is None:
        return None
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return parse(value.strip(), default=_PERIOD_START).date()
    except (ValueError, OverflowError):
        return None


def format_calendar_date(value: Optional[_dt.date]) -> str:
    """Render a day like ``Mon Jan 01 2024``."""
    if value is None:
        return INVALID_DATE
    return value.strftime(DATE_FORMAT)


def _coerce_duration(v: int | float | str) -> int:
    bad = ValueError("duration must be an integer number of minutes")
    if isinstance(v, bool):
        raise bad
    if isinstance(v, str):
        v = v.strip()
        try:
            return int(v)
        except ValueError:
            pass
        try:
            v = float(v)
        except ValueError:
            raise bad
    if isinstance(v, float):
        try:
            return int(v)
        except (ValueError, OverflowError):
            raise bad
    return v


class Exercise(BaseModel):
    """One entry of a user's log, as stored inside the user document."""

    description: str
    duration: int
    date: Optional[_dt.date] = None

    @field_validator("date", mode="before")
    def _parse_date(cls, v):
        # Stored documents may carry anything; keep unreadable dates as None.
        return parse_calendar_date(v)

    @field_serializer("date")
    def _render_date(self, v: Optional[_dt.date]) -> str:
        return format_calendar_date(v)


class User(BaseModel):
    """A user document with its embedded exercise log."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    username: str
    count: int = Field(default=0, ge=0)
    log: List[Exercise] = Field(default_factory=list)

    def add_exercise(self, exercise: Exercise) -> None:
        self.log.append(exercise)
        self.count += 1


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)

    @field_validator("username", mode="before")
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ExerciseCreate(BaseModel):
    """Body of ``POST /api/users/{id}/exercises``."""

    description: str = Field(..., min_length=1)
    duration: int = Field(..., gt=0)
    date: Optional[_dt.date] = None

    @field_validator("description", mode="before")
    def _strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("duration", mode="before")
    def _parse_duration(cls, v):
        return _coerce_duration(v)

    @field_validator("date", mode="before")
    def _parse_date(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        parsed = parse_calendar_date(v)
        if parsed is None:
            raise ValueError(f"Unrecognised date: {v!r}")
        return parsed

    def to_exercise(self, today: Optional[_dt.date] = None) -> Exercise:
        """Build the stored entry, defaulting the date to ``today``."""
        day = self.date or today or _dt.date.today()
        return Exercise(description=self.description, duration=self.duration, date=day)


class LogQuery(BaseModel):
    """Query parameters accepted by the log endpoint.

    ``date_from`` and ``date_to`` stay as raw strings so the filter decides how
    to treat values it cannot parse.
    """

    date_from: Optional[str] = None
    date_to: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)

    @field_validator("date_from", "date_to", "limit", mode="before")
    def _blank_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
