from datetime import datetime, timezone

from sqlalchemy import Column, DateTime

from ..db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimeStampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


__all__ = ["Base", "TimeStampMixin", "utcnow"]
