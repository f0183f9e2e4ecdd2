"""
SQLAlchemy table holding one JSON document per user.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from db.engine import Base


class UserDocumentORM(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    username = Column(String, nullable=False, index=True)
    count = Column(Integer, nullable=False, default=0)
    # Embedded exercises, in insertion order.
    log = Column(JSON, nullable=False, default=list)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
