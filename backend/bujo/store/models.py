"""SQLAlchemy ORM models."""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index, UniqueConstraint

from bujo.store.database import Base


class Document(Base):
    """One schema-less object of a class; the fields live in ``data``."""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    object_id = Column(String(10), nullable=False, index=True)
    class_name = Column(String(200), nullable=False, index=True)
    data = Column(JSON, default=dict, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("class_name", "object_id", name="uq_documents_class_object"),
        Index("ix_documents_class_created", "class_name", "created_at"),
    )

    def __repr__(self):
        return f"<Document {self.class_name}/{self.object_id}>"
