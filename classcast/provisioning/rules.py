"""
Business rules per role (semantic checks that need the directory or the clock).

Behavior:
    - Dispatch is on the validated request class, i.e. on the role tag.
    - Checks run in a fixed order and stop at the first violation.
    - Any fault while evaluating (e.g. a failed lookup) is itself a violation
      under the rule name `businessRules`; it is never silently passed.
"""
from __future__ import annotations

from datetime import date, time
import logging

from classcast.identity_access.directory import AccountFilter
from .errors import RuleViolation
from .ports import IdentityProvider
from .schemas import InstructorSignupRequest, StudentSignupRequest

_log = logging.getLogger("classcast.provisioning")

RULE_FAULT = "businessRules"


def _today() -> date:
    return date.today()


def _clock(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class BusinessRuleValidator:
    def __init__(self, identity: IdentityProvider) -> None:
        self._identity = identity

    def check(self, request: StudentSignupRequest | InstructorSignupRequest) -> RuleViolation | None:
        """Return the first violated rule, or None when every rule passes."""
        try:
            if isinstance(request, StudentSignupRequest):
                return self._check_student(request)
            if isinstance(request, InstructorSignupRequest):
                return self._check_instructor(request)
        except Exception as exc:
            _log.warning("business rule evaluation failed: %s", type(exc).__name__)
            return RuleViolation(RULE_FAULT, "Failed to validate business rules")
        raise TypeError(f"unsupported signup request: {type(request).__name__}")

    def _exists(self, **attributes: str) -> bool:
        return bool(self._identity.list_accounts(AccountFilter.by_attributes(**attributes)))

    def _check_student(self, req: StudentSignupRequest) -> RuleViolation | None:
        if self._exists(studentId=req.student_id):
            return RuleViolation("studentId", "Student ID is already in use", conflict=True)
        if req.enrollment_year > _today().year + 1:
            return RuleViolation(
                "enrollmentYear", "Enrollment year cannot be more than one year in the future"
            )
        if req.advisor_id and not self._exists(instructorId=req.advisor_id, role="instructor"):
            return RuleViolation("advisorId", "Specified advisor does not exist")
        return None

    def _check_instructor(self, req: InstructorSignupRequest) -> RuleViolation | None:
        if self._exists(instructorId=req.instructor_id):
            return RuleViolation("instructorId", "Instructor ID is already in use", conflict=True)
        if req.hire_date_value > _today():
            return RuleViolation("hireDate", "Hire date cannot be in the future")
        if not req.qualifications:
            return RuleViolation("qualifications", "At least one qualification is required")
        for slot in req.office_hours or ():
            if _clock(slot.start_time) >= _clock(slot.end_time):
                return RuleViolation("officeHours", "Office hours end time must be after start time")
        return None


__all__ = ["BusinessRuleValidator", "RULE_FAULT"]
