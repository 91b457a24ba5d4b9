"""Courses router: course catalogue and lecturer module assignments."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from luct_reporting.database import get_db
from luct_reporting.middleware.auth import require_management, require_program_leader
from luct_reporting.lifecycle import TEACHING_ROLES
from luct_reporting.models.class_ import Class
from luct_reporting.models.course import Course, CourseAssignment
from luct_reporting.models.user import User
from luct_reporting.routers.classes import check_lecturer
from luct_reporting.schemas.common import MessageResponse
from luct_reporting.schemas.course import (
    AssignmentCreatedResponse,
    AssignmentListResponse,
    AssignmentResponse,
    AssignRequest,
    CourseCreate,
    CourseCreatedResponse,
    CourseEnvelope,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
    LecturerListResponse,
    LecturerSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])


def course_to_response(course: Course, active_classes: int = 0) -> CourseResponse:
    return CourseResponse(
        id=course.id,
        course_code=course.course_code,
        course_name=course.course_name,
        description=course.description,
        credits=course.credits,
        faculty=course.faculty,
        created_at=course.created_at.isoformat(),
        active_classes=active_classes,
    )


def _get_course_or_404(db: Session, course_id: str) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.get("", response_model=CourseListResponse)
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    """List courses with their class counts, ordered by course code."""
    class_counts = dict(
        db.query(Class.course_id, func.count(Class.id)).group_by(Class.course_id).all()
    )
    courses = db.query(Course).order_by(Course.course_code).all()
    return CourseListResponse(
        data=[course_to_response(c, class_counts.get(c.id, 0)) for c in courses],
        count=len(courses),
    )


@router.get("/{course_id}", response_model=CourseEnvelope)
def get_course(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    course = _get_course_or_404(db, course_id)
    return CourseEnvelope(data=course_to_response(course, len(course.classes)))


@router.post("", response_model=CourseCreatedResponse, status_code=201)
def create_course(
    req: CourseCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    """Create a course (program leader only). Course codes are unique."""
    if not req.course_code.strip() or not req.course_name.strip() or not req.faculty.strip():
        raise HTTPException(status_code=400, detail="Course code, course name, and faculty are required")

    existing = db.query(Course).filter(Course.course_code == req.course_code).first()
    if existing:
        raise HTTPException(status_code=409, detail="Course code already exists")

    course = Course(
        id=str(uuid.uuid4()),
        course_code=req.course_code,
        course_name=req.course_name,
        description=req.description or "",
        credits=req.credits if req.credits is not None else request.app.state.settings.DEFAULT_COURSE_CREDITS,
        faculty=req.faculty,
    )
    db.add(course)
    db.commit()

    logger.info("Course %s created by %s", course.course_code, current_user.username)
    return CourseCreatedResponse(message="Course created successfully", course_id=course.id)


@router.put("/{course_id}", response_model=MessageResponse)
def update_course(
    course_id: str,
    req: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    course = _get_course_or_404(db, course_id)

    changes = req.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    for name, value in changes.items():
        setattr(course, name, value)
    db.commit()

    return MessageResponse(message="Course updated successfully")


@router.delete("/{course_id}", response_model=MessageResponse)
def delete_course(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    """Delete a course that no class references."""
    course = _get_course_or_404(db, course_id)

    if db.query(Class.id).filter(Class.course_id == course_id).first():
        raise HTTPException(
            status_code=400,
            detail="Cannot delete course with active classes. Please delete the classes first.",
        )

    db.delete(course)
    db.commit()

    logger.info("Course %s deleted by %s", course.course_code, current_user.username)
    return MessageResponse(message="Course deleted successfully")


# ── Lecturer module assignments ───────────────────────────────────────────────

def _assignment_to_response(assignment: CourseAssignment) -> AssignmentResponse:
    return AssignmentResponse(
        id=assignment.id,
        course_id=assignment.course_id,
        lecturer_id=assignment.lecturer_id,
        lecturer_name=assignment.lecturer.name if assignment.lecturer else None,
        lecturer_email=assignment.lecturer.email if assignment.lecturer else None,
        module_name=assignment.module_name,
        assigned_at=assignment.assigned_at.isoformat(),
    )


@router.get("/{course_id}/assignments", response_model=AssignmentListResponse)
def course_assignments(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    """Lecturers assigned to the course's modules, ordered by module name."""
    _get_course_or_404(db, course_id)
    assignments = (
        db.query(CourseAssignment)
        .filter(CourseAssignment.course_id == course_id)
        .order_by(CourseAssignment.module_name)
        .all()
    )
    return AssignmentListResponse(
        data=[_assignment_to_response(a) for a in assignments],
        count=len(assignments),
    )


@router.post("/{course_id}/assign", response_model=AssignmentCreatedResponse, status_code=201)
def assign_lecturer(
    course_id: str,
    req: AssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    """Assign a lecturer to a named module of the course (program leader only)."""
    module_name = (req.module_name or "").strip()
    if not req.lecturer_id or not module_name:
        raise HTTPException(status_code=400, detail="Lecturer ID and module name are required")

    _get_course_or_404(db, course_id)
    check_lecturer(db, req.lecturer_id)

    existing = db.query(CourseAssignment.id).filter(
        CourseAssignment.course_id == course_id,
        CourseAssignment.lecturer_id == req.lecturer_id,
        CourseAssignment.module_name == module_name,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Lecturer is already assigned to this module")

    assignment = CourseAssignment(
        id=str(uuid.uuid4()),
        course_id=course_id,
        lecturer_id=req.lecturer_id,
        module_name=module_name,
    )
    db.add(assignment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Lecturer is already assigned to this module")

    logger.info("Lecturer %s assigned to module '%s' of course %s", req.lecturer_id, module_name, course_id)
    return AssignmentCreatedResponse(message="Lecturer assigned successfully", assignment_id=assignment.id)


@router.delete("/assignments/{assignment_id}", response_model=MessageResponse)
def remove_assignment(
    assignment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    assignment = db.query(CourseAssignment).filter(CourseAssignment.id == assignment_id).first()
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    db.delete(assignment)
    db.commit()
    return MessageResponse(message="Assignment removed successfully")


@router.get("/{course_id}/available-lecturers", response_model=LecturerListResponse)
def available_lecturers(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_management),
):
    """Teaching staff with their total number of module assignments."""
    _get_course_or_404(db, course_id)
    counts = dict(
        db.query(CourseAssignment.lecturer_id, func.count(CourseAssignment.id))
        .group_by(CourseAssignment.lecturer_id)
        .all()
    )
    roles = [r.value for r in TEACHING_ROLES]
    lecturers = db.query(User).filter(User.role.in_(roles)).order_by(User.name).all()
    return LecturerListResponse(
        data=[
            LecturerSummary(
                id=u.id,
                name=u.name,
                email=u.email,
                role=u.role,
                current_assignments=counts.get(u.id, 0),
            )
            for u in lecturers
        ],
        count=len(lecturers),
    )
