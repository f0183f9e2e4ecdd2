"""
User document store on top of SQLAlchemy sessions.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db.engine import get_engine, init_db
from db.models import UserDocumentORM
from tracker.errors import PersistenceError
from tracker.exercise_schema import User

logger = logging.getLogger(__name__)


def _to_user(row: UserDocumentORM) -> User:
    return User.model_validate(
        {"id": row.id, "username": row.username, "count": row.count, "log": row.log or []}
    )


class UserRepository:
    """Stores each ``User`` as a single document with its log embedded.

    The repository owns its engine: build it with :meth:`from_url`, hand it to
    the application, and call :meth:`close` on shutdown.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str | None = None) -> "UserRepository":
        """Connect to ``url`` and create missing tables."""
        engine = init_db(get_engine(url))
        return cls(engine)

    @property
    def url(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional session.

        Commits on successful exit, rolls back on error and always closes the
        session. SQLAlchemy failures are re-raised as ``PersistenceError``.
        """
        db = self._SessionLocal()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Document store operation failed: %s", exc)
            raise PersistenceError(str(exc)) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ---------- CRUD -----------------------------------------------------

    def create(self, username: str) -> User:
        """Insert a new user with an empty log."""
        user = User(username=username)
        with self.session_scope() as db:
            db.add(UserDocumentORM(id=user.id, username=user.username, count=0, log=[]))
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self.session_scope() as db:
            row = db.get(UserDocumentORM, user_id)
            return _to_user(row) if row else None

    def find(self, username: Optional[str] = None) -> List[User]:
        """
        List users in creation order.

        Args:
            username: If provided, only return users with exactly this name.
        """
        with self.session_scope() as db:
            q = db.query(UserDocumentORM)
            if username is not None:
                q = q.filter(UserDocumentORM.username == username)
            rows = q.order_by(UserDocumentORM.created_at, UserDocumentORM.id).all()
            return [_to_user(row) for row in rows]

    def save(self, user: User) -> User:
        """
        Replace the stored document for ``user``, nested log included.

        Inserts the document when the id is unknown.
        """
        doc = user.model_dump(mode="json")
        with self.session_scope() as db:
            row = db.get(UserDocumentORM, user.id)
            if row is None:
                row = UserDocumentORM(id=user.id)
                db.add(row)
            row.username = doc["username"]
            row.count = doc["count"]
            # Assign a fresh list so the JSON column is flagged dirty.
            row.log = list(doc["log"])
        return user

    def close(self) -> None:
        self._engine.dispose()
