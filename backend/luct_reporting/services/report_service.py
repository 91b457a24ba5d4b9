"""Report service: business logic for the report lifecycle.

Every write happens in a single commit together with its audit row. Role
checks and transition rules come from ``luct_reporting.lifecycle``.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from luct_reporting import lifecycle
from luct_reporting.errors import Conflict, NotEligible, NotFound, ValidationError
from luct_reporting.lifecycle import Operation, ReportStatus, ReviewAction, Role
from luct_reporting.models.audit_log import AuditLog
from luct_reporting.models.report import Report
from luct_reporting.models.report_rating import ReportRating
from luct_reporting.models.user import User

logger = logging.getLogger(__name__)


def _audit(
    db: Session,
    entity_id: str,
    action: str,
    actor_id: str,
    old_data: Optional[dict] = None,
    new_data: Optional[dict] = None,
    entity_type: str = "report",
) -> None:
    db.add(AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        old_data=json.dumps(old_data, default=str) if old_data is not None else None,
        new_data=json.dumps(new_data, default=str) if new_data is not None else None,
    ))


# ── Create ────────────────────────────────────────────────────────────────────

def create_report(db: Session, role: Role, lecturer_id: str, fields: dict) -> Report:
    """Insert a new pending report authored by ``lecturer_id``.

    Identical reports may be submitted more than once.
    """
    lifecycle.authorize(role, Operation.CREATE)
    lifecycle.validate_new_report(fields)

    report = Report(
        id=str(uuid.uuid4()),
        lecturer_id=lecturer_id,
        status=ReportStatus.PENDING.value,
        average_rating=0.0,
        **{name: fields[name] for name in lifecycle.REQUIRED_REPORT_FIELDS},
    )
    db.add(report)
    _audit(db, report.id, "created", lecturer_id, new_data={
        "status": ReportStatus.PENDING.value,
        "course_code": report.course_code,
        "date_of_lecture": report.date_of_lecture,
    })
    db.commit()
    db.refresh(report)

    logger.info("Report %s created by lecturer %s", report.id, lecturer_id)
    return report


# ── Queries ───────────────────────────────────────────────────────────────────

def get_report(db: Session, report_id: str) -> Report:
    report = db.query(Report).filter(Report.id == report_id).first()
    if not report:
        raise NotFound("Report not found")
    return report


def list_reports(db: Session, role: Role, user_id: str) -> list[tuple[Report, Optional[int]]]:
    """Reports visible to the caller, paired with the caller's own rating.

    Students only see approved/forwarded reports; every other role sees all.
    """
    if role == Role.STUDENT:
        visible = [s.value for s in lifecycle.STUDENT_VISIBLE_STATUSES]
        reports = (
            db.query(Report)
            .filter(Report.status.in_(visible))
            .order_by(Report.date_of_lecture.desc(), Report.scheduled_time.desc())
            .all()
        )
        mine = dict(
            db.query(ReportRating.report_id, ReportRating.rating)
            .filter(ReportRating.student_id == user_id)
            .all()
        )
        return [(r, mine.get(r.id)) for r in reports]

    reports = db.query(Report).order_by(Report.created_at.desc()).all()
    return [(r, None) for r in reports]


def my_reports(db: Session, role: Role, lecturer_id: str) -> list[Report]:
    lifecycle.authorize(role, Operation.VIEW_OWN)
    return (
        db.query(Report)
        .filter(Report.lecturer_id == lecturer_id)
        .order_by(Report.created_at.desc())
        .all()
    )


def reports_for_review(db: Session, role: Role) -> list[Report]:
    lifecycle.authorize(role, Operation.VIEW_REVIEW_QUEUE)
    return (
        db.query(Report)
        .filter(Report.status == ReportStatus.PENDING.value)
        .order_by(Report.created_at.desc())
        .all()
    )


def forwarded_reports(db: Session, role: Role, oldest_lecture_last: bool = False) -> list[Report]:
    lifecycle.authorize(role, Operation.VIEW_FORWARDED)
    order = Report.date_of_lecture.desc() if oldest_lecture_last else Report.created_at.desc()
    return (
        db.query(Report)
        .filter(Report.status == ReportStatus.FORWARDED.value)
        .order_by(order)
        .all()
    )


def reports_for_export(db: Session, role: Role) -> list[Report]:
    lifecycle.authorize(role, Operation.EXPORT)
    return forwarded_reports(db, Role.PROGRAM_LEADER, oldest_lecture_last=True)


def _rating_to_dict(rating: ReportRating, student_name: Optional[str], report: Optional[Report] = None) -> dict:
    data = {
        "id": rating.id,
        "report_id": rating.report_id,
        "student_id": rating.student_id,
        "student_name": student_name,
        "rating": rating.rating,
        "feedback": rating.feedback,
        "created_at": rating.created_at.isoformat(),
    }
    if report is not None:
        data.update({
            "course_name": report.course_name,
            "class_name": report.class_name,
            "date_of_lecture": report.date_of_lecture.isoformat(),
        })
    return data


def report_ratings(db: Session, report_id: str) -> list[dict]:
    """All student ratings for one report, newest first."""
    rows = (
        db.query(ReportRating, User.name)
        .join(User, ReportRating.student_id == User.id)
        .filter(ReportRating.report_id == report_id)
        .order_by(ReportRating.created_at.desc())
        .all()
    )
    return [_rating_to_dict(rating, name) for rating, name in rows]


def my_ratings(db: Session, role: Role, lecturer_id: str) -> list[dict]:
    """Ratings students left on the lecturer's own reports."""
    lifecycle.authorize(role, Operation.VIEW_OWN_RATINGS)
    rows = (
        db.query(ReportRating, Report, User.name)
        .join(Report, ReportRating.report_id == Report.id)
        .join(User, ReportRating.student_id == User.id)
        .filter(Report.lecturer_id == lecturer_id)
        .order_by(ReportRating.created_at.desc())
        .all()
    )
    return [_rating_to_dict(rating, name, report) for rating, report, name in rows]


def health(db: Session) -> dict:
    return {
        "total_reports": db.query(func.count(Report.id)).scalar(),
        "total_ratings": db.query(func.count(ReportRating.id)).scalar(),
        "database": "Connected",
    }


# ── Review (principal lecturer) ───────────────────────────────────────────────

def review_report(
    db: Session,
    role: Role,
    actor_id: str,
    report_id: str,
    action: ReviewAction,
    feedback: Optional[str] = None,
    rating: Optional[int] = None,
) -> ReportStatus:
    """Approve, forward or reject a pending report.

    The status guard is part of the UPDATE itself, so of two reviewers racing
    on the same report only one matches a row. A missing report and an
    already-reviewed one both surface as NotFound.
    """
    lifecycle.authorize(role, Operation.REVIEW)
    lifecycle.validate_review(action, feedback, rating)

    target = lifecycle.review_target(action)
    sources = [s.value for s in lifecycle.review_sources(action)]
    now = datetime.now(timezone.utc)

    values = {
        Report.status: target.value,
        Report.principal_feedback: feedback if action == ReviewAction.REJECT else (feedback or ""),
        Report.reviewed_by: actor_id,
        Report.reviewed_at: now,
        Report.updated_at: now,
    }
    if action != ReviewAction.REJECT:
        values[Report.rating] = rating

    updated = (
        db.query(Report)
        .filter(Report.id == report_id, Report.status.in_(sources))
        .update(values, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        logger.warning("Review '%s' on report %s by %s matched no pending report", action.value, report_id, actor_id)
        raise NotFound("Report not found or already processed")

    _audit(db, report_id, target.value, actor_id,
           old_data={"status": ReportStatus.PENDING.value},
           new_data={"status": target.value, "rating": rating, "principal_feedback": feedback})
    db.commit()

    logger.info("Report %s %s by principal lecturer %s", report_id, target.value, actor_id)
    return target


# ── Edit (management override) ────────────────────────────────────────────────

def edit_report(db: Session, role: Role, actor_id: str, report_id: str, changes: dict) -> Report:
    """Apply a sparse patch to any report regardless of its status.

    Only keys present with a non-None value are written; all of them land in
    one commit or none do.
    """
    lifecycle.authorize(role, Operation.EDIT)

    changes = {k: v for k, v in changes.items() if v is not None and k in lifecycle.EDITABLE_REPORT_FIELDS}
    if not changes:
        raise ValidationError("No fields to update")

    if "rating" in changes:
        lifecycle.validate_rating(changes["rating"])
    if "status" in changes:
        try:
            changes["status"] = ReportStatus(changes["status"]).value
        except ValueError:
            raise ValidationError(
                f"Invalid status '{changes['status']}'",
                valid_statuses=[s.value for s in ReportStatus],
            )

    report = get_report(db, report_id)

    lifecycle.validate_attendance(
        changes.get("actual_students_present", report.actual_students_present),
        changes.get("total_registered_students", report.total_registered_students),
    )

    old_data = {name: getattr(report, name) for name in changes}
    if "status" in changes:
        new_status = lifecycle.check_override(ReportStatus(report.status), ReportStatus(changes["status"]))
        changes["status"] = new_status.value

    for name, value in changes.items():
        setattr(report, name, value)

    _audit(db, report.id, "edited", actor_id, old_data=old_data, new_data=changes)
    db.commit()
    db.refresh(report)

    if "status" in changes and old_data["status"] != changes["status"]:
        logger.info(
            "Report %s status overridden %s -> %s by %s %s",
            report.id, old_data["status"], changes["status"], role.value, actor_id,
        )
    else:
        logger.info("Report %s edited by %s %s", report.id, role.value, actor_id)
    return report


# ── Rate (student) ────────────────────────────────────────────────────────────

def _has_rated(db: Session, report_id: str, student_id: str) -> bool:
    return (
        db.query(ReportRating.id)
        .filter(ReportRating.report_id == report_id, ReportRating.student_id == student_id)
        .first()
        is not None
    )


def rate_report(
    db: Session,
    role: Role,
    student_id: str,
    report_id: str,
    rating,
    feedback: Optional[str] = None,
) -> dict:
    """Record a student's rating and refresh the report's average.

    The insert and the average update share one transaction; the unique
    (report_id, student_id) constraint rejects concurrent duplicates.
    """
    lifecycle.authorize(role, Operation.RATE)
    rating = lifecycle.validate_rating(rating)

    report = db.query(Report).filter(Report.id == report_id).with_for_update().first()
    if not report:
        raise NotFound("Report not found")
    if not lifecycle.is_ratable(ReportStatus(report.status)):
        raise NotEligible(f"Report cannot be rated while '{report.status}'")

    if _has_rated(db, report_id, student_id):
        raise Conflict("You have already rated this report")

    db.add(ReportRating(
        id=str(uuid.uuid4()),
        report_id=report_id,
        student_id=student_id,
        rating=rating,
        feedback=feedback or "",
    ))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise Conflict("You have already rated this report")

    values = [v for (v,) in db.query(ReportRating.rating).filter(ReportRating.report_id == report_id).all()]
    report.average_rating = lifecycle.average_rating(values)

    _audit(db, report_id, "rated", student_id, new_data={
        "rating": rating,
        "average_rating": report.average_rating,
        "rating_count": len(values),
    })
    db.commit()

    logger.info("Rating %s/5 by student %s for report %s", rating, student_id, report_id)
    return {"average_rating": report.average_rating, "rating_count": len(values)}
