"""Exceptions raised by the tracker operations and the user repository."""


class TrackerError(Exception):
    """Base class for exercise tracker errors."""


class UserNotFound(TrackerError):
    def __init__(self, user_id: str):
        super().__init__(f"could not find a user with id {user_id!r}")
        self.user_id = user_id


class PersistenceError(TrackerError):
    """The document store could not be read or written."""
