"""SQLAlchemy ORM models."""

from luct_reporting.models.user import User
from luct_reporting.models.course import Course, CourseAssignment
from luct_reporting.models.class_ import Class, Enrollment
from luct_reporting.models.report import Report
from luct_reporting.models.report_rating import ReportRating
from luct_reporting.models.audit_log import AuditLog

__all__ = [
    "User",
    "Course",
    "CourseAssignment",
    "Class",
    "Enrollment",
    "Report",
    "ReportRating",
    "AuditLog",
]
