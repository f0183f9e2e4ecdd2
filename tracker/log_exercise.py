from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Tuple

from db.repository import UserRepository
from tracker.exercise_schema import Exercise, ExerciseCreate, User
from tracker.users import find_user

logger = logging.getLogger(__name__)


def append_exercise(
    repo: UserRepository,
    user_id: str,
    payload: ExerciseCreate,
    today: Optional[date] = None,
) -> Tuple[User, Exercise]:
    """
    Append an exercise to the tail of a user's log and persist the document.

    The entry date defaults to ``today`` (the current local date when not
    given). The count is incremented together with the append, so
    ``count == len(log)`` holds after the save.

    Returns:
        The saved user and the exercise that was added.

    Raises:
        UserNotFound: if ``user_id`` does not resolve.
        PersistenceError: if the store rejects the write.
    """
    user = find_user(repo, user_id)
    exercise = payload.to_exercise(today=today)
    user.add_exercise(exercise)
    repo.save(user)
    logger.info("Logged %s min of %r for user %s", exercise.duration, exercise.description, user_id)
    return user, exercise


def exercise_response(user: User, exercise: Exercise) -> dict:
    """Shape returned by the exercise endpoint: the new entry plus the owner."""
    return {
        "username": user.username,
        "description": exercise.description,
        "duration": exercise.duration,
        "date": exercise.model_dump()["date"],
        "id": user.id,
    }
