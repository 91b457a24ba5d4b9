"""Student rating of a report. Immutable once written."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from luct_reporting.database import Base


class ReportRating(Base):
    __tablename__ = "report_ratings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    report_id = Column(String(36), ForeignKey("reports.id"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    feedback = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("report_id", "student_id", name="uq_rating_report_student"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_rating_value"),
    )

    # Relationships
    report = relationship("Report", back_populates="ratings")
    student = relationship("User", back_populates="ratings")
