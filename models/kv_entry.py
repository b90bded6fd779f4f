"""SQLAlchemy model holding one serialized collection per key."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import Session

from core.database import Base


class KeyValueEntry(Base):
    """A durable key whose value is a JSON document."""

    __tablename__ = "kv_entries"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False, default="[]")
    updated_time = Column(String(64), nullable=True)

    @classmethod
    def get(cls, session: Session, key: str) -> Optional["KeyValueEntry"]:
        return session.get(cls, key)

    @classmethod
    def put(cls, session: Session, key: str, value: str) -> "KeyValueEntry":
        """Insert or overwrite the value stored under ``key``."""
        entry = cls.get(session, key)
        if entry is None:
            entry = cls(key=key)
            session.add(entry)
        entry.value = value
        entry.updated_time = datetime.now(timezone.utc).isoformat()
        session.commit()
        return entry
