"""Enrollment service: enrolling students into classes with capacity checks."""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from luct_reporting.errors import Conflict, NotFound, ValidationError
from luct_reporting.lifecycle import Role
from luct_reporting.models.class_ import Class, Enrollment
from luct_reporting.models.user import User

logger = logging.getLogger(__name__)


def enrolled_count(db: Session, class_id: str) -> int:
    return db.query(func.count(Enrollment.id)).filter(Enrollment.class_id == class_id).scalar()


def enroll_student(db: Session, class_id: str, student_id: str) -> Enrollment:
    """Enroll a student, refusing unknown students, duplicates and full classes."""
    student = db.query(User).filter(User.id == student_id, User.role == Role.STUDENT.value).first()
    if not student:
        raise ValidationError("Student not found or invalid role")

    cls = db.query(Class).filter(Class.id == class_id).first()
    if not cls:
        raise NotFound("Class not found")

    existing = db.query(Enrollment).filter(
        Enrollment.class_id == class_id,
        Enrollment.student_id == student_id,
    ).first()
    if existing:
        raise Conflict("Student is already enrolled in this class")

    if enrolled_count(db, class_id) >= cls.max_students:
        raise ValidationError(
            f'Class "{cls.class_name}" has reached maximum capacity ({cls.max_students} students)'
        )

    enrollment = Enrollment(
        id=str(uuid.uuid4()),
        class_id=class_id,
        student_id=student_id,
    )
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Student is already enrolled in this class")
    db.refresh(enrollment)

    logger.info("Student %s enrolled in class %s", student_id, class_id)
    return enrollment


def remove_enrollment(db: Session, enrollment_id: str) -> None:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFound("Enrollment not found")
    db.delete(enrollment)
    db.commit()
    logger.info("Enrollment %s removed", enrollment_id)


def enrollment_to_dict(enrollment: Enrollment) -> dict:
    cls = enrollment.class_
    course = cls.course if cls else None
    return {
        "id": enrollment.id,
        "class_id": enrollment.class_id,
        "student_id": enrollment.student_id,
        "student_name": enrollment.student.name if enrollment.student else None,
        "student_email": enrollment.student.email if enrollment.student else None,
        "class_code": cls.class_code if cls else None,
        "class_name": cls.class_name if cls else None,
        "course_code": course.course_code if course else None,
        "course_name": course.course_name if course else None,
        "lecturer_name": cls.lecturer.name if cls and cls.lecturer else None,
        "enrolled_at": enrollment.enrolled_at.isoformat(),
    }


def enrollment_counts(db: Session) -> dict[str, int]:
    """Map of class id to number of enrolled students."""
    return dict(
        db.query(Enrollment.class_id, func.count(Enrollment.id))
        .group_by(Enrollment.class_id)
        .all()
    )


def available_students(db: Session, class_id: Optional[str] = None) -> list[dict]:
    """Students with their enrollment totals, excluding those already in ``class_id``."""
    per_student = dict(
        db.query(Enrollment.student_id, func.count(Enrollment.id))
        .group_by(Enrollment.student_id)
        .all()
    )
    query = db.query(User).filter(User.role == Role.STUDENT.value)
    if class_id is not None:
        enrolled = select(Enrollment.student_id).where(Enrollment.class_id == class_id)
        query = query.filter(User.id.notin_(enrolled))
    return [
        {
            "id": s.id,
            "name": s.name,
            "email": s.email,
            "current_enrollments": per_student.get(s.id, 0),
        }
        for s in query.order_by(User.name).all()
    ]


def enrollment_stats(db: Session, popular_limit: int = 5) -> dict:
    total, unique_students, active_classes = db.query(
        func.count(Enrollment.id),
        func.count(Enrollment.student_id.distinct()),
        func.count(Enrollment.class_id.distinct()),
    ).one()

    enrollment_count = func.count(Enrollment.id).label("enrollment_count")
    popular = (
        db.query(Class.class_name, Class.class_code, enrollment_count)
        .outerjoin(Enrollment, Enrollment.class_id == Class.id)
        .group_by(Class.id, Class.class_name, Class.class_code)
        .order_by(enrollment_count.desc(), Class.class_code)
        .limit(popular_limit)
        .all()
    )
    return {
        "total_enrollments": total,
        "unique_students": unique_students,
        "active_classes": active_classes,
        "popular_classes": [
            {"class_name": name, "class_code": code, "enrollment_count": count}
            for name, code, count in popular
        ],
    }
