"""Stored Project aggregate — one JSON document per owner."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String

from architekt.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class AggregateDocument(db.Model):
    """Whole-document storage for one owner's Projects.

    ``owner_id`` is the opaque user identifier supplied by the auth layer;
    ``payload`` is ``DomainAggregate.to_dict()``.
    """

    __tablename__ = "aggregate_documents"

    owner_id = Column(String(200), primary_key=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "owner_id": self.owner_id,
            "payload": self.payload or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
