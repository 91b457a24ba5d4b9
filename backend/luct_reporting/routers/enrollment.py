"""Enrollment router: the enrollment management screen's API."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from luct_reporting.database import get_db
from luct_reporting.middleware.auth import get_current_user, require_management
from luct_reporting.models.class_ import Class, Enrollment
from luct_reporting.models.course import Course
from luct_reporting.models.user import User
from luct_reporting.routers.classes import class_to_response
from luct_reporting.routers.courses import course_to_response
from luct_reporting.schemas.class_ import (
    ClassListResponse,
    EnrollmentCreatedResponse,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentStatsResponse,
    EnrollRequest,
    StudentListResponse,
    StudentSummary,
)
from luct_reporting.schemas.common import MessageResponse
from luct_reporting.schemas.course import CourseListResponse
from luct_reporting.services import enrollment_service

router = APIRouter(prefix="/api/enrollment", tags=["enrollment"])


@router.get("/courses", response_model=CourseListResponse)
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    courses = db.query(Course).order_by(Course.course_code).all()
    return CourseListResponse(
        data=[course_to_response(c, len(c.classes)) for c in courses],
        count=len(courses),
    )


@router.get("/classes", response_model=ClassListResponse)
def list_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    counts = enrollment_service.enrollment_counts(db)
    classes = db.query(Class).order_by(Class.class_name).all()
    return ClassListResponse(
        data=[class_to_response(c, counts.get(c.id, 0)) for c in classes],
        count=len(classes),
    )


@router.post("/enroll", response_model=EnrollmentCreatedResponse, status_code=201)
def enroll(
    req: EnrollRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    """Enroll a student into a class (program leader / principal lecturer)."""
    if not req.class_id:
        raise HTTPException(status_code=400, detail="Missing required fields: student_id and class_id")

    enrollment = enrollment_service.enroll_student(db, req.class_id, req.student_id)
    cls = enrollment.class_
    return EnrollmentCreatedResponse(
        message=f"Student enrolled successfully in {cls.class_name}!",
        enrollment_id=enrollment.id,
        class_name=cls.class_name,
        course_name=cls.course.course_name if cls.course else None,
    )


@router.get("/enrollments", response_model=EnrollmentListResponse)
def list_enrollments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Every enrollment with student, class and course details, newest first."""
    enrollments = db.query(Enrollment).order_by(Enrollment.enrolled_at.desc()).all()
    return EnrollmentListResponse(
        data=[EnrollmentResponse(**enrollment_service.enrollment_to_dict(e)) for e in enrollments],
        count=len(enrollments),
    )


@router.get("/available-students", response_model=StudentListResponse)
def available_students(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    students = enrollment_service.available_students(db)
    return StudentListResponse(
        data=[StudentSummary(**s) for s in students],
        count=len(students),
    )


@router.get("/stats", response_model=EnrollmentStatsResponse)
def enrollment_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return EnrollmentStatsResponse(data=enrollment_service.enrollment_stats(db))


@router.delete("/{enrollment_id}", response_model=MessageResponse)
def delete_enrollment(
    enrollment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    enrollment_service.remove_enrollment(db, enrollment_id)
    return MessageResponse(message="Student removed from class successfully")
