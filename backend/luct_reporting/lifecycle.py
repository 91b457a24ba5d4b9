"""Report lifecycle rules: roles, statuses, permissions and transitions.

Pure functions only, no database access. The report service applies these
rules inside a single unit of work per request.

State machine:

    (none)  --create-->   pending
    pending --approve-->  approved
    pending --forward-->  forwarded
    pending --reject-->   rejected
    any     --edit-->     any        (principal lecturer / program leader override)
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Mapping, Optional

from luct_reporting.errors import InvalidRating, Unauthorized, ValidationError


class Role(str, Enum):
    LECTURER = "lecturer"
    PRINCIPAL_LECTURER = "principal_lecturer"
    PROGRAM_LEADER = "program_leader"
    STUDENT = "student"

    @classmethod
    def parse(cls, value: str) -> "Role":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Unknown role '{value}'",
                valid_roles=[r.value for r in cls],
            )


class ReportStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    FORWARDED = "forwarded"
    REJECTED = "rejected"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    FORWARD = "forward"
    REJECT = "reject"


class Operation(str, Enum):
    CREATE = "create"
    REVIEW = "review"
    EDIT = "edit"
    RATE = "rate"
    EXPORT = "export"
    VIEW_OWN = "view_own"
    VIEW_OWN_RATINGS = "view_own_ratings"
    VIEW_REVIEW_QUEUE = "view_review_queue"
    VIEW_FORWARDED = "view_forwarded"


PERMISSIONS: dict[Operation, frozenset[Role]] = {
    Operation.CREATE: frozenset({Role.LECTURER}),
    Operation.REVIEW: frozenset({Role.PRINCIPAL_LECTURER}),
    Operation.EDIT: frozenset({Role.PRINCIPAL_LECTURER, Role.PROGRAM_LEADER}),
    Operation.RATE: frozenset({Role.STUDENT}),
    Operation.EXPORT: frozenset({Role.PROGRAM_LEADER}),
    Operation.VIEW_OWN: frozenset({Role.LECTURER}),
    Operation.VIEW_OWN_RATINGS: frozenset({Role.LECTURER}),
    Operation.VIEW_REVIEW_QUEUE: frozenset({Role.PRINCIPAL_LECTURER}),
    Operation.VIEW_FORWARDED: frozenset({Role.PRINCIPAL_LECTURER, Role.PROGRAM_LEADER}),
}

TRANSITIONS: dict[tuple[ReportStatus, ReviewAction], ReportStatus] = {
    (ReportStatus.PENDING, ReviewAction.APPROVE): ReportStatus.APPROVED,
    (ReportStatus.PENDING, ReviewAction.FORWARD): ReportStatus.FORWARDED,
    (ReportStatus.PENDING, ReviewAction.REJECT): ReportStatus.REJECTED,
}

# Management override: every status may be set from every status.
OVERRIDE_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    status: frozenset(ReportStatus) for status in ReportStatus
}

RATABLE_STATUSES = frozenset({ReportStatus.APPROVED, ReportStatus.FORWARDED})
STUDENT_VISIBLE_STATUSES = RATABLE_STATUSES

# Roles that may be assigned to teach a class or course module.
TEACHING_ROLES = frozenset({Role.LECTURER, Role.PRINCIPAL_LECTURER})

MIN_RATING = 1
MAX_RATING = 5
AVERAGE_PRECISION = Decimal("0.01")

# Order matters: missing fields are reported in this order.
REQUIRED_REPORT_FIELDS = (
    "faculty_name",
    "class_name",
    "week_of_reporting",
    "date_of_lecture",
    "course_name",
    "course_code",
    "lecturer_name",
    "actual_students_present",
    "total_registered_students",
    "venue",
    "scheduled_time",
    "topic_taught",
    "learning_outcomes",
    "recommendations",
)

# Fields the override edit may touch, on top of the descriptive ones.
EDITABLE_REPORT_FIELDS = REQUIRED_REPORT_FIELDS + ("principal_feedback", "rating", "status")


def is_permitted(role: Role, operation: Operation) -> bool:
    return role in PERMISSIONS[operation]


def authorize(role: Role, operation: Operation) -> None:
    """Raise Unauthorized unless ``role`` may perform ``operation``."""
    if not is_permitted(role, operation):
        allowed = sorted(r.value for r in PERMISSIONS[operation])
        raise Unauthorized(
            f"Access denied. Role '{role.value}' cannot {operation.value.replace('_', ' ')} reports.",
            allowed_roles=allowed,
        )


def review_sources(action: ReviewAction) -> frozenset[ReportStatus]:
    """Statuses a review action may start from (the conditional-update guard)."""
    return frozenset(src for (src, act) in TRANSITIONS if act == action)


def review_target(action: ReviewAction) -> ReportStatus:
    targets = {dst for (src, act), dst in TRANSITIONS.items() if act == action}
    # Every review action has exactly one destination.
    (target,) = targets
    return target


def check_override(current: ReportStatus, requested: ReportStatus) -> ReportStatus:
    """Raise ValidationError unless the override table allows ``current -> requested``."""
    if requested not in OVERRIDE_TRANSITIONS[current]:
        raise ValidationError(
            f"Cannot change a '{current.value}' report to '{requested.value}'"
        )
    return requested


def is_ratable(status: ReportStatus) -> bool:
    return status in RATABLE_STATUSES


def validate_rating(rating, field: str = "rating") -> int:
    """Return ``rating`` as an int in [MIN_RATING, MAX_RATING] or raise InvalidRating."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRating(f"{field.capitalize()} must be a whole number between {MIN_RATING} and {MAX_RATING}")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidRating(f"{field.capitalize()} must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def validate_review(action: ReviewAction, feedback: Optional[str], rating: Optional[int]) -> None:
    if action == ReviewAction.REJECT and not (feedback or "").strip():
        raise ValidationError("Feedback is required when rejecting a report")
    if rating is not None:
        validate_rating(rating)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def missing_fields(fields: Mapping) -> list[str]:
    """Every required report field that is absent or blank, in declaration order."""
    return [name for name in REQUIRED_REPORT_FIELDS if _is_blank(fields.get(name))]


def validate_attendance(present: Optional[int], registered: Optional[int]) -> None:
    if present is None or registered is None:
        return
    if present < 0 or registered < 0:
        raise ValidationError("Attendance counts cannot be negative")
    if present > registered:
        raise ValidationError(
            f"Students present ({present}) cannot exceed registered students ({registered})"
        )


def validate_new_report(fields: Mapping) -> None:
    missing = missing_fields(fields)
    if missing:
        raise ValidationError(
            "Missing required fields",
            missing_fields=[name.replace("_", " ") for name in missing],
        )
    validate_attendance(fields.get("actual_students_present"), fields.get("total_registered_students"))


def average_rating(ratings: Iterable[int]) -> float:
    """Arithmetic mean rounded half-up to two decimals; 0.0 when there are none."""
    values = list(ratings)
    if not values:
        return 0.0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(AVERAGE_PRECISION, rounding=ROUND_HALF_UP))


def attendance_percentage(present: Optional[int], registered: Optional[int]) -> int:
    if not registered or present is None:
        return 0
    pct = Decimal(present * 100) / Decimal(registered)
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
