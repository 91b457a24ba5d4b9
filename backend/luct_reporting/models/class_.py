"""Class and Enrollment models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from luct_reporting.database import Base


class Class(Base):
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_code = Column(String(30), unique=True, nullable=False, index=True)
    class_name = Column(String(255), nullable=False)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    lecturer_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    semester = Column(String(20), nullable=False)
    academic_year = Column(Integer, nullable=False)
    max_students = Column(Integer, nullable=False, default=30)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    course = relationship("Course", back_populates="classes")
    lecturer = relationship("User", back_populates="taught_classes")
    enrollments = relationship("Enrollment", back_populates="class_")


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    enrolled_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("class_id", "student_id", name="uq_enrollment_class_student"),
    )

    # Relationships
    class_ = relationship("Class", back_populates="enrollments")
    student = relationship("User", back_populates="enrollments")
