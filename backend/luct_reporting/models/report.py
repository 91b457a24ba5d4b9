"""Report model: one lecturer's record of a single class session."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Date, DateTime, Float, ForeignKey, Integer, Text, CheckConstraint
from sqlalchemy.orm import relationship

from luct_reporting.database import Base


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Descriptive fields, as submitted by the lecturer
    faculty_name = Column(String(255), nullable=False)
    class_name = Column(String(255), nullable=False)
    week_of_reporting = Column(String(50), nullable=False)
    date_of_lecture = Column(Date, nullable=False)
    course_name = Column(String(255), nullable=False)
    course_code = Column(String(30), nullable=False)
    lecturer_name = Column(String(255), nullable=False)
    actual_students_present = Column(Integer, nullable=False)
    total_registered_students = Column(Integer, nullable=False)
    venue = Column(String(255), nullable=False)
    scheduled_time = Column(String(50), nullable=False)
    topic_taught = Column(Text, nullable=False)
    learning_outcomes = Column(Text, nullable=False)
    recommendations = Column(Text, nullable=False)
    lecturer_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    # Lifecycle
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending | approved | forwarded | rejected
    principal_feedback = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    average_rating = Column(Float, nullable=False, default=0.0)  # denormalized mean of report_ratings
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("actual_students_present >= 0", name="check_present_non_negative"),
        CheckConstraint("total_registered_students >= 0", name="check_registered_non_negative"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="check_principal_rating"),
    )

    # Relationships
    lecturer = relationship("User", back_populates="reports", foreign_keys=[lecturer_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    ratings = relationship("ReportRating", back_populates="report")
