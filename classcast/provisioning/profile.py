"""
Profile Persister: writes the extended, role-shaped record keyed by account id.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from .attributes import merge_preferences
from .errors import AuxiliaryStepError
from .ports import ProfileStore
from .schemas import InstructorSignupRequest, StudentSignupRequest

PENDING_STATUS = "pending"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(ts: datetime) -> str:
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_profile_record(
    request: StudentSignupRequest | InstructorSignupRequest,
    account_id: str,
    *,
    now: Optional[datetime] = None,
) -> dict:
    """Return the profile record; keys with absent values are omitted."""
    stamp = _iso(now or _now())
    record: dict = {
        "userId": account_id,
        "email": request.email,
        "firstName": request.first_name,
        "lastName": request.last_name,
        "role": request.role,
        "department": request.department,
        "bio": request.bio,
        "phoneNumber": request.phone_number,
        "status": PENDING_STATUS,
        "enabled": False,
        "createdAt": stamp,
        "updatedAt": stamp,
        "preferences": merge_preferences(request),
    }
    if isinstance(request, StudentSignupRequest):
        record.update(
            studentId=request.student_id,
            enrollmentYear=request.enrollment_year,
            major=request.major,
            academicLevel=request.academic_level,
            gpa=request.gpa,
            advisorId=request.advisor_id,
            type="student",
        )
    elif isinstance(request, InstructorSignupRequest):
        record.update(
            instructorId=request.instructor_id,
            title=request.title,
            hireDate=request.hire_date,
            qualifications=list(request.qualifications),
            researchAreas=list(request.research_areas) if request.research_areas is not None else None,
            officeLocation=request.office_location,
            officeHours=(
                [slot.model_dump(by_alias=True) for slot in request.office_hours]
                if request.office_hours is not None
                else None
            ),
            maxStudents=request.max_students,
            type="instructor",
        )
    else:
        raise TypeError(f"unsupported signup request: {type(request).__name__}")
    return {k: v for k, v in record.items() if v is not None}


class ProfilePersister:
    def __init__(self, store: ProfileStore) -> None:
        self._store = store

    def persist(self, request: StudentSignupRequest | InstructorSignupRequest, account_id: str) -> dict:
        record = build_profile_record(request, account_id)
        try:
            self._store.put(account_id, record)
        except Exception as exc:
            raise AuxiliaryStepError("profile", exc) from exc
        return record


__all__ = ["ProfilePersister", "build_profile_record", "PENDING_STATUS"]
