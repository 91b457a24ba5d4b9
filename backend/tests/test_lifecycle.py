"""Tests for the report lifecycle rules (pure functions, no DB dependency)."""

import sys
import os
from datetime import date

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from luct_reporting import lifecycle
from luct_reporting.errors import InvalidRating, Unauthorized, ValidationError
from luct_reporting.lifecycle import Operation, ReportStatus, ReviewAction, Role


class TestPermissions:
    """Who may do what."""

    def test_only_lecturers_create(self):
        """Lecturers are the only role allowed to submit reports."""
        assert lifecycle.is_permitted(Role.LECTURER, Operation.CREATE)
        for role in (Role.PRINCIPAL_LECTURER, Role.PROGRAM_LEADER, Role.STUDENT):
            assert not lifecycle.is_permitted(role, Operation.CREATE)

    def test_only_principal_lecturers_review(self):
        """Program leaders cannot approve, forward or reject."""
        assert lifecycle.is_permitted(Role.PRINCIPAL_LECTURER, Operation.REVIEW)
        assert not lifecycle.is_permitted(Role.PROGRAM_LEADER, Operation.REVIEW)

    def test_management_edits(self):
        """Both management roles may edit; lecturers may not."""
        assert lifecycle.is_permitted(Role.PRINCIPAL_LECTURER, Operation.EDIT)
        assert lifecycle.is_permitted(Role.PROGRAM_LEADER, Operation.EDIT)
        assert not lifecycle.is_permitted(Role.LECTURER, Operation.EDIT)

    def test_only_students_rate(self):
        """Rating a report is a student-only operation."""
        assert lifecycle.is_permitted(Role.STUDENT, Operation.RATE)
        assert not lifecycle.is_permitted(Role.LECTURER, Operation.RATE)

    def test_only_program_leaders_export(self):
        """The forwarded-reports workbook is for program leaders."""
        assert lifecycle.is_permitted(Role.PROGRAM_LEADER, Operation.EXPORT)
        assert not lifecycle.is_permitted(Role.PRINCIPAL_LECTURER, Operation.EXPORT)

    def test_authorize_raises_with_allowed_roles(self):
        """A denied operation is a 403 listing the roles that would be allowed."""
        with pytest.raises(Unauthorized) as exc:
            lifecycle.authorize(Role.STUDENT, Operation.CREATE)
        assert exc.value.status_code == 403
        assert exc.value.extra["allowed_roles"] == ["lecturer"]

    def test_every_operation_has_permissions(self):
        """No operation is left without at least one permitted role."""
        for op in Operation:
            assert lifecycle.PERMISSIONS[op]

    def test_parse_unknown_role(self):
        """Parsing an unknown role lists the valid ones."""
        with pytest.raises(ValidationError) as exc:
            Role.parse("dean")
        assert "student" in exc.value.extra["valid_roles"]
        assert Role.parse("program_leader") is Role.PROGRAM_LEADER


class TestTransitions:
    """The review state machine."""

    def test_review_targets(self):
        """Each review action moves a pending report to its own status."""
        assert lifecycle.TRANSITIONS[(ReportStatus.PENDING, ReviewAction.APPROVE)] == ReportStatus.APPROVED
        assert lifecycle.TRANSITIONS[(ReportStatus.PENDING, ReviewAction.FORWARD)] == ReportStatus.FORWARDED
        assert lifecycle.TRANSITIONS[(ReportStatus.PENDING, ReviewAction.REJECT)] == ReportStatus.REJECTED

    @pytest.mark.parametrize("status", [ReportStatus.APPROVED, ReportStatus.FORWARDED, ReportStatus.REJECTED])
    def test_reviewed_reports_cannot_be_reviewed_again(self, status):
        """No review transition starts from an already-reviewed status."""
        for action in ReviewAction:
            assert (status, action) not in lifecycle.TRANSITIONS
            assert status not in lifecycle.review_sources(action)

    def test_review_guard_is_pending_only(self):
        """The conditional-update guard only matches pending reports."""
        for action in ReviewAction:
            assert lifecycle.review_sources(action) == frozenset({ReportStatus.PENDING})

    def test_review_target_matches_table(self):
        """review_target agrees with the transition table."""
        for (_, action), target in lifecycle.TRANSITIONS.items():
            assert lifecycle.review_target(action) == target

    def test_override_table_covers_every_status(self):
        """The management override lists every status as reachable from every status."""
        assert set(lifecycle.OVERRIDE_TRANSITIONS) == set(ReportStatus)
        for targets in lifecycle.OVERRIDE_TRANSITIONS.values():
            assert targets == frozenset(ReportStatus)

    def test_override_allows_any_status(self):
        """check_override returns the requested status when the table allows it."""
        assert lifecycle.check_override(ReportStatus.REJECTED, ReportStatus.PENDING) == ReportStatus.PENDING
        assert lifecycle.check_override(ReportStatus.PENDING, ReportStatus.FORWARDED) == ReportStatus.FORWARDED

    def test_override_outside_table_is_rejected(self, monkeypatch):
        """A target missing from the override table raises ValidationError."""
        restricted = dict(lifecycle.OVERRIDE_TRANSITIONS)
        restricted[ReportStatus.FORWARDED] = frozenset({ReportStatus.FORWARDED})
        monkeypatch.setattr(lifecycle, "OVERRIDE_TRANSITIONS", restricted)
        with pytest.raises(ValidationError) as exc:
            lifecycle.check_override(ReportStatus.FORWARDED, ReportStatus.PENDING)
        assert "forwarded" in exc.value.message

    def test_ratable_statuses(self):
        """Only approved and forwarded reports accept ratings."""
        assert lifecycle.is_ratable(ReportStatus.APPROVED)
        assert lifecycle.is_ratable(ReportStatus.FORWARDED)
        assert not lifecycle.is_ratable(ReportStatus.PENDING)
        assert not lifecycle.is_ratable(ReportStatus.REJECTED)

    def test_teaching_roles(self):
        """Lecturers and principal lecturers can be assigned to teach."""
        assert lifecycle.TEACHING_ROLES == frozenset({Role.LECTURER, Role.PRINCIPAL_LECTURER})


class TestValidation:
    """Input rules for reviews, ratings and new reports."""

    @pytest.mark.parametrize("value", [1, 3, 5])
    def test_valid_ratings(self, value):
        """Whole numbers from 1 to 5 are returned unchanged."""
        assert lifecycle.validate_rating(value) == value

    @pytest.mark.parametrize("value", [0, 6, -1, 2.5, "4", True, None])
    def test_invalid_ratings(self, value):
        """Out-of-range, fractional, string, bool and missing ratings are rejected."""
        with pytest.raises(InvalidRating):
            lifecycle.validate_rating(value)

    def test_reject_needs_feedback(self):
        """Rejecting requires non-blank feedback."""
        with pytest.raises(ValidationError):
            lifecycle.validate_review(ReviewAction.REJECT, None, None)
        with pytest.raises(ValidationError):
            lifecycle.validate_review(ReviewAction.REJECT, "   ", None)
        lifecycle.validate_review(ReviewAction.REJECT, "Attendance figures missing", None)

    def test_approve_without_feedback_or_rating(self):
        """Approval needs neither feedback nor a rating."""
        lifecycle.validate_review(ReviewAction.APPROVE, None, None)

    def test_review_rating_out_of_range(self):
        """A review rating outside 1-5 is an InvalidRating."""
        with pytest.raises(InvalidRating):
            lifecycle.validate_review(ReviewAction.APPROVE, None, 7)

    def test_missing_fields_in_declaration_order(self):
        """Missing fields come back in declaration order, blanks included."""
        fields = {"faculty_name": "FICT", "class_name": " ", "venue": "Hall 6"}
        missing = lifecycle.missing_fields(fields)
        assert missing[0] == "class_name"
        assert "faculty_name" not in missing
        assert "venue" not in missing
        assert len(missing) == len(lifecycle.REQUIRED_REPORT_FIELDS) - 2

    def test_zero_attendance_is_not_missing(self):
        """Zero is a legitimate attendance count, not a missing value."""
        fields = {name: "x" for name in lifecycle.REQUIRED_REPORT_FIELDS}
        fields["actual_students_present"] = 0
        fields["total_registered_students"] = 0
        assert lifecycle.missing_fields(fields) == []

    def test_new_report_lists_missing_fields(self):
        """An incomplete report names its missing fields in readable form."""
        with pytest.raises(ValidationError) as exc:
            lifecycle.validate_new_report({"faculty_name": "FICT"})
        assert exc.value.message == "Missing required fields"
        assert "class name" in exc.value.extra["missing_fields"]

    def test_attendance_cannot_exceed_registered(self):
        """Attendance must be non-negative and at most the registered count."""
        with pytest.raises(ValidationError):
            lifecycle.validate_attendance(31, 30)
        with pytest.raises(ValidationError):
            lifecycle.validate_attendance(-1, 30)
        lifecycle.validate_attendance(30, 30)

    def test_complete_report_passes(self):
        """A fully populated report validates without error."""
        fields = {name: "x" for name in lifecycle.REQUIRED_REPORT_FIELDS}
        fields.update(date_of_lecture=date(2025, 3, 10), actual_students_present=25, total_registered_students=30)
        lifecycle.validate_new_report(fields)


class TestAverages:
    """Rating average and attendance percentage."""

    def test_empty_average_is_zero(self):
        """A report with no ratings averages 0.0."""
        assert lifecycle.average_rating([]) == 0.0

    def test_single_rating(self):
        """One rating is its own average."""
        assert lifecycle.average_rating([5]) == 5.0

    def test_rounds_half_up_to_two_decimals(self):
        """Averages round half-up to two decimal places."""
        assert lifecycle.average_rating([2, 3, 3]) == 2.67
        assert lifecycle.average_rating([3, 5]) == 4.0
        assert lifecycle.average_rating([1, 2, 2]) == 1.67
        assert lifecycle.average_rating([1, 1, 1, 2, 2, 2, 2, 2]) == 1.63  # 1.625

    def test_accepts_generators(self):
        """Any iterable of ratings can be averaged."""
        assert lifecycle.average_rating(r for r in (4, 5)) == 4.5

    def test_attendance_percentage(self):
        """Attendance percentage rounds half-up and is 0 with nobody registered."""
        assert lifecycle.attendance_percentage(25, 30) == 83
        assert lifecycle.attendance_percentage(1, 8) == 13  # 12.5
        assert lifecycle.attendance_percentage(10, 0) == 0
