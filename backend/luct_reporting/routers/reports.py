"""Reports router: submission, review workflow, ratings and export."""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from luct_reporting.database import get_db
from luct_reporting.lifecycle import ReportStatus, ReviewAction
from luct_reporting.middleware.auth import current_role, get_current_user
from luct_reporting.models.report import Report
from luct_reporting.models.user import User
from luct_reporting.schemas.common import MessageResponse
from luct_reporting.schemas.report import (
    RatingCreate,
    RatingListResponse,
    RatingResponse,
    RatingSubmittedResponse,
    ReportCreate,
    ReportCreatedResponse,
    ReportEnvelope,
    ReportHealthResponse,
    ReportListResponse,
    ReportResponse,
    ReportUpdate,
    ReportUpdatedResponse,
    ReviewRequest,
)
from luct_reporting.services import export_service, report_service

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _report_to_response(report: Report, my_rating: Optional[int] = None) -> ReportResponse:
    """Convert a Report ORM model to a response schema."""
    return ReportResponse(
        id=report.id,
        faculty_name=report.faculty_name,
        class_name=report.class_name,
        week_of_reporting=report.week_of_reporting,
        date_of_lecture=report.date_of_lecture.isoformat(),
        course_name=report.course_name,
        course_code=report.course_code,
        lecturer_name=report.lecturer_name,
        actual_students_present=report.actual_students_present,
        total_registered_students=report.total_registered_students,
        venue=report.venue,
        scheduled_time=report.scheduled_time,
        topic_taught=report.topic_taught,
        learning_outcomes=report.learning_outcomes,
        recommendations=report.recommendations,
        lecturer_id=report.lecturer_id,
        lecturer_full_name=report.lecturer.name if report.lecturer else None,
        status=report.status,
        principal_feedback=report.principal_feedback,
        rating=report.rating,
        average_rating=report.average_rating or 0.0,
        reviewed_by=report.reviewed_by,
        reviewed_at=report.reviewed_at.isoformat() if report.reviewed_at else None,
        created_at=report.created_at.isoformat() if report.created_at else "",
        my_rating=my_rating,
    )


def _list_response(reports: list[Report]) -> ReportListResponse:
    return ReportListResponse(
        data=[_report_to_response(r) for r in reports],
        count=len(reports),
    )


@router.get("", response_model=ReportListResponse)
def list_reports(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List reports visible to the caller (students: approved/forwarded only)."""
    rows = report_service.list_reports(db, current_role(current_user), current_user.id)
    return ReportListResponse(
        data=[_report_to_response(r, my_rating) for r, my_rating in rows],
        count=len(rows),
    )


@router.post("", response_model=ReportCreatedResponse, status_code=201)
def create_report(
    req: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Submit a new lecture report (lecturer only)."""
    report = report_service.create_report(
        db, current_role(current_user), current_user.id, req.model_dump()
    )
    return ReportCreatedResponse(message="Report created successfully", report_id=report.id)


@router.get("/my-reports", response_model=ReportListResponse)
def my_reports(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _list_response(report_service.my_reports(db, current_role(current_user), current_user.id))


@router.get("/for-review", response_model=ReportListResponse)
def reports_for_review(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Pending reports awaiting a principal lecturer's decision."""
    return _list_response(report_service.reports_for_review(db, current_role(current_user)))


@router.get("/forwarded", response_model=ReportListResponse)
def forwarded_reports(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _list_response(report_service.forwarded_reports(db, current_role(current_user)))


@router.get("/my-ratings", response_model=RatingListResponse)
def my_ratings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Student ratings left on the calling lecturer's reports."""
    ratings = report_service.my_ratings(db, current_role(current_user), current_user.id)
    return RatingListResponse(data=[RatingResponse(**r) for r in ratings], count=len(ratings))


@router.get("/export/excel")
def export_excel(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Download forwarded reports as an .xlsx spreadsheet (program leader only)."""
    reports = report_service.reports_for_export(db, current_role(current_user))
    content = export_service.build_forwarded_workbook(reports)
    filename = export_service.export_filename()
    return Response(
        content=content,
        media_type=export_service.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/health/check", response_model=ReportHealthResponse)
def reports_health(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ReportHealthResponse(data=report_service.health(db))


@router.get("/{report_id}", response_model=ReportEnvelope)
def get_report(
    report_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ReportEnvelope(data=_report_to_response(report_service.get_report(db, report_id)))


@router.get("/{report_id}/ratings", response_model=RatingListResponse)
def report_ratings(
    report_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ratings = report_service.report_ratings(db, report_id)
    return RatingListResponse(data=[RatingResponse(**r) for r in ratings], count=len(ratings))


@router.put("/{report_id}", response_model=ReportUpdatedResponse)
def update_report(
    report_id: str,
    req: ReportUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Override any report field (principal lecturer / program leader)."""
    changes = req.model_dump(exclude_none=True)
    report_service.edit_report(
        db, current_role(current_user), current_user.id, report_id, changes
    )
    return ReportUpdatedResponse(
        message="Report updated successfully",
        forwarded=changes.get("status") == ReportStatus.FORWARDED,
    )


def _apply_review(
    db: Session,
    current_user: User,
    report_id: str,
    action: ReviewAction,
    req: Optional[ReviewRequest],
) -> None:
    req = req or ReviewRequest()
    report_service.review_report(
        db,
        current_role(current_user),
        current_user.id,
        report_id,
        action,
        feedback=req.principal_feedback,
        rating=req.rating,
    )


@router.post("/{report_id}/approve", response_model=MessageResponse)
def approve_report(
    report_id: str,
    req: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Approve a pending report (principal lecturer only)."""
    _apply_review(db, current_user, report_id, ReviewAction.APPROVE, req)
    return MessageResponse(message="Report approved successfully")


@router.post("/{report_id}/forward", response_model=MessageResponse)
def forward_report(
    report_id: str,
    req: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Forward a pending report to the program leader (principal lecturer only)."""
    _apply_review(db, current_user, report_id, ReviewAction.FORWARD, req)
    return MessageResponse(message="Report forwarded to program leader successfully")


@router.post("/{report_id}/reject", response_model=MessageResponse)
def reject_report(
    report_id: str,
    req: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Reject a pending report; feedback is mandatory (principal lecturer only)."""
    _apply_review(db, current_user, report_id, ReviewAction.REJECT, req)
    return MessageResponse(message="Report rejected successfully")


@router.post("/{report_id}/rate", response_model=RatingSubmittedResponse)
def rate_report(
    report_id: str,
    req: RatingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rate an approved or forwarded report (student only, once per report)."""
    result = report_service.rate_report(
        db,
        current_role(current_user),
        current_user.id,
        report_id,
        req.rating,
        req.feedback,
    )
    return RatingSubmittedResponse(message="Rating submitted successfully", **result)
