from __future__ import annotations

from typing import Any, Dict, Optional

from db.repository import UserRepository
from tracker.exercise_schema import LogQuery, User
from tracker.log_filter import filter_log
from tracker.users import find_user


def user_document(user: User) -> Dict[str, Any]:
    """The full user document, dates rendered."""
    return user.model_dump(mode="json")


def log_envelope(user: User, query: LogQuery) -> Dict[str, Any]:
    """The filtered view of a user's log; ``count`` stays the user's total."""
    entries = filter_log(
        user.log,
        date_from=query.date_from,
        date_to=query.date_to,
        limit=query.limit,
    )
    return {
        "username": user.username,
        "id": user.id,
        "count": user.count,
        "log": [e.model_dump(mode="json") for e in entries],
    }


def get_user_log(
    repo: UserRepository, user_id: str, query: Optional[LogQuery] = None
) -> Dict[str, Any]:
    """Return the user document, or the filtered envelope when ``query`` is given.

    A ``None`` query means the request carried no query string at all. Any
    query string, even one with no recognised key, selects the envelope.
    """
    user = find_user(repo, user_id)
    if query is None:
        return user_document(user)
    return log_envelope(user, query)
