"""Audit trail of report lifecycle actions. Rows are only ever inserted."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import relationship

from luct_reporting.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type = Column(String(30), nullable=False, default="report")
    entity_id = Column(String(36), nullable=False)
    # created | approved | forwarded | rejected | edited | rated
    action = Column(String(30), nullable=False)
    actor_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    old_data = Column(Text, nullable=True)   # JSON snapshot before the change
    new_data = Column(Text, nullable=True)   # JSON snapshot after the change
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_audit_entity", "entity_type", "entity_id"),
    )

    actor = relationship("User")
