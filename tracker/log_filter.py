from __future__ import annotations

import datetime as _dt
from typing import List, Optional, Sequence, Union

from tracker.exercise_schema import Exercise, parse_calendar_date

Bound = Union[_dt.date, _dt.datetime, str, None]


def _is_given(bound: Bound) -> bool:
    if isinstance(bound, str):
        return bool(bound.strip())
    return bound is not None


def _on_or_after(day: Optional[_dt.date], bound: Optional[_dt.date]) -> bool:
    return day is not None and bound is not None and day >= bound


def _on_or_before(day: Optional[_dt.date], bound: Optional[_dt.date]) -> bool:
    return day is not None and bound is not None and day <= bound


def filter_log(
    log: Sequence[Exercise],
    date_from: Bound = None,
    date_to: Bound = None,
    limit: Optional[int] = None,
) -> List[Exercise]:
    """Return the part of ``log`` that falls in ``[date_from, date_to]``, capped at ``limit``.

    Bounds are inclusive and independent of each other. A bound that is given
    but can't be parsed matches nothing, and so does an entry without a
    readable date. ``limit`` keeps the first entries in log order; the log is
    never re-sorted.
    """
    entries = list(log)

    if _is_given(date_from):
        lower = parse_calendar_date(date_from)
        entries = [e for e in entries if _on_or_after(e.date, lower)]

    if _is_given(date_to):
        upper = parse_calendar_date(date_to)
        entries = [e for e in entries if _on_or_before(e.date, upper)]

    if limit is not None:
        entries = entries[:limit]

    return entries
