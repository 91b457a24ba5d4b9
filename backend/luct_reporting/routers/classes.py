"""Classes router: class sections, lecturer assignment and enrollments."""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from luct_reporting.database import get_db
from luct_reporting.lifecycle import TEACHING_ROLES
from luct_reporting.middleware.auth import (
    require_lecturer,
    require_management,
    require_program_leader,
)
from luct_reporting.models.class_ import Class, Enrollment
from luct_reporting.models.course import Course
from luct_reporting.models.user import User
from luct_reporting.schemas.class_ import (
    ClassCreate,
    ClassCreatedResponse,
    ClassEnvelope,
    ClassListResponse,
    ClassResponse,
    ClassUpdate,
    EnrollmentCreatedResponse,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollRequest,
    StudentListResponse,
    StudentSummary,
)
from luct_reporting.schemas.common import MessageResponse
from luct_reporting.services import enrollment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/classes", tags=["classes"])


def class_to_response(cls: Class, enrolled_students: int = 0) -> ClassResponse:
    """Convert a Class ORM model to a response schema."""
    return ClassResponse(
        id=cls.id,
        class_code=cls.class_code,
        class_name=cls.class_name,
        course_id=cls.course_id,
        course_code=cls.course.course_code if cls.course else None,
        course_name=cls.course.course_name if cls.course else None,
        lecturer_id=cls.lecturer_id,
        lecturer_name=cls.lecturer.name if cls.lecturer else None,
        semester=cls.semester,
        academic_year=cls.academic_year,
        max_students=cls.max_students,
        enrolled_students=enrolled_students,
        created_at=cls.created_at.isoformat(),
    )


def _ordered_classes(db: Session, lecturer_id: Optional[str] = None) -> list[Class]:
    query = db.query(Class)
    if lecturer_id is not None:
        query = query.filter(Class.lecturer_id == lecturer_id)
    return query.order_by(Class.academic_year.desc(), Class.semester, Class.class_code).all()


def _get_class_or_404(db: Session, class_id: str) -> Class:
    cls = db.query(Class).filter(Class.id == class_id).first()
    if not cls:
        raise HTTPException(status_code=404, detail="Class not found")
    return cls


def check_lecturer(db: Session, lecturer_id: str) -> User:
    """Return the teaching-staff user or raise 400."""
    roles = [r.value for r in TEACHING_ROLES]
    lecturer = db.query(User).filter(User.id == lecturer_id, User.role.in_(roles)).first()
    if not lecturer:
        raise HTTPException(status_code=400, detail="Lecturer not found or invalid role")
    return lecturer


@router.get("", response_model=ClassListResponse)
def list_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    counts = enrollment_service.enrollment_counts(db)
    classes = _ordered_classes(db)
    return ClassListResponse(
        data=[class_to_response(c, counts.get(c.id, 0)) for c in classes],
        count=len(classes),
    )


@router.get("/my-classes", response_model=ClassListResponse)
def my_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_lecturer),
):
    """Classes assigned to the calling lecturer."""
    counts = enrollment_service.enrollment_counts(db)
    classes = _ordered_classes(db, lecturer_id=current_user.id)
    return ClassListResponse(
        data=[class_to_response(c, counts.get(c.id, 0)) for c in classes],
        count=len(classes),
    )


@router.get("/{class_id}", response_model=ClassEnvelope)
def get_class(
    class_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    cls = _get_class_or_404(db, class_id)
    return ClassEnvelope(data=class_to_response(cls, enrollment_service.enrolled_count(db, class_id)))


@router.post("", response_model=ClassCreatedResponse, status_code=201)
def create_class(
    req: ClassCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    """Create a class section of an existing course (program leader only)."""
    if db.query(Class.id).filter(Class.class_code == req.class_code).first():
        raise HTTPException(status_code=409, detail="Class code already exists")

    if not db.query(Course.id).filter(Course.id == req.course_id).first():
        raise HTTPException(status_code=400, detail="Course not found")

    if req.lecturer_id:
        check_lecturer(db, req.lecturer_id)

    max_students = req.max_students or request.app.state.settings.DEFAULT_MAX_STUDENTS
    cls = Class(
        id=str(uuid.uuid4()),
        class_code=req.class_code,
        class_name=req.class_name,
        course_id=req.course_id,
        lecturer_id=req.lecturer_id or None,
        semester=req.semester,
        academic_year=req.academic_year,
        max_students=max_students,
    )
    db.add(cls)
    db.commit()

    logger.info("Class %s created by %s", cls.class_code, current_user.username)
    return ClassCreatedResponse(message="Class created successfully", class_id=cls.id)


@router.put("/{class_id}", response_model=MessageResponse)
def update_class(
    class_id: str,
    req: ClassUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    cls = _get_class_or_404(db, class_id)

    changes = req.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if changes.get("lecturer_id"):
        check_lecturer(db, changes["lecturer_id"])
    if "max_students" in changes:
        enrolled = enrollment_service.enrolled_count(db, class_id)
        if changes["max_students"] < enrolled:
            raise HTTPException(
                status_code=400,
                detail=f"Class already has {enrolled} students enrolled",
            )

    for name, value in changes.items():
        setattr(cls, name, value)
    db.commit()

    return MessageResponse(message="Class updated successfully")


@router.delete("/{class_id}", response_model=MessageResponse)
def delete_class(
    class_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    """Delete a class with no enrolled students."""
    cls = _get_class_or_404(db, class_id)

    if enrollment_service.enrolled_count(db, class_id) > 0:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete class with enrolled students. Please remove students first.",
        )

    db.delete(cls)
    db.commit()

    logger.info("Class %s deleted by %s", cls.class_code, current_user.username)
    return MessageResponse(message="Class deleted successfully")


@router.get("/{class_id}/enrollments", response_model=EnrollmentListResponse)
def class_enrollments(
    class_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    _get_class_or_404(db, class_id)
    enrollments = (
        db.query(Enrollment)
        .join(User, Enrollment.student_id == User.id)
        .filter(Enrollment.class_id == class_id)
        .order_by(User.name)
        .all()
    )
    return EnrollmentListResponse(
        data=[EnrollmentResponse(**enrollment_service.enrollment_to_dict(e)) for e in enrollments],
        count=len(enrollments),
    )


@router.post("/{class_id}/enroll", response_model=EnrollmentCreatedResponse, status_code=201)
def enroll_in_class(
    class_id: str,
    req: EnrollRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    enrollment = enrollment_service.enroll_student(db, class_id, req.student_id)
    return EnrollmentCreatedResponse(
        message="Student enrolled successfully",
        enrollment_id=enrollment.id,
        class_name=enrollment.class_.class_name,
    )


@router.delete("/enrollments/{enrollment_id}", response_model=MessageResponse)
def remove_enrollment(
    enrollment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    enrollment_service.remove_enrollment(db, enrollment_id)
    return MessageResponse(message="Student removed from class successfully")


@router.get("/{class_id}/available-students", response_model=StudentListResponse)
def available_students(
    class_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    """Students not yet enrolled in this class."""
    _get_class_or_404(db, class_id)
    students = enrollment_service.available_students(db, class_id)
    return StudentListResponse(
        data=[StudentSummary(**s) for s in students],
        count=len(students),
    )
