from __future__ import annotations

import logging
from typing import List

from db.repository import UserRepository
from tracker.errors import UserNotFound
from tracker.exercise_schema import User, UserCreate

logger = logging.getLogger(__name__)


def register_user(repo: UserRepository, payload: UserCreate) -> User:
    """Create a user with an empty log."""
    user = repo.create(payload.username)
    logger.info("Registered user %s (%s)", user.username, user.id)
    return user


def list_users(repo: UserRepository) -> List[User]:
    return repo.find()


def find_user(repo: UserRepository, user_id: str) -> User:
    """Return the user for ``user_id`` or raise ``UserNotFound``."""
    user = repo.find_by_id(user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user
