"""Course and CourseAssignment models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from luct_reporting.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_code = Column(String(30), unique=True, nullable=False, index=True)
    course_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    credits = Column(Integer, nullable=False, default=3)
    faculty = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    classes = relationship("Class", back_populates="course")
    assignments = relationship("CourseAssignment", back_populates="course", cascade="all, delete-orphan")


class CourseAssignment(Base):
    """A lecturer teaching one named module of a course."""

    __tablename__ = "course_assignments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    lecturer_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    module_name = Column(String(255), nullable=False)
    assigned_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("course_id", "lecturer_id", "module_name", name="uq_assignment_course_lecturer_module"),
    )

    # Relationships
    course = relationship("Course", back_populates="assignments")
    lecturer = relationship("User", back_populates="course_assignments")
