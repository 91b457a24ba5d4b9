"""User model."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from luct_reporting.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(30), nullable=False)  # lecturer | principal_lecturer | program_leader | student
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    reports = relationship("Report", back_populates="lecturer", foreign_keys="[Report.lecturer_id]")
    taught_classes = relationship("Class", back_populates="lecturer")
    enrollments = relationship("Enrollment", back_populates="student")
    course_assignments = relationship("CourseAssignment", back_populates="lecturer")
    ratings = relationship("ReportRating", back_populates="student")
