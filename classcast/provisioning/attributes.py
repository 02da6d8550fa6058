"""
Flat identity-provider attributes for a validated signup request.

Nested structures (preferences, qualifications, office hours, research areas)
stay structured in-process and are JSON-encoded only here, at the boundary.
"""
from __future__ import annotations

from typing import Dict
import json

from .schemas import (
    AcademicPreferences,
    InstructorNotificationPreferences,
    InstructorPreferences,
    InstructorSignupRequest,
    StudentNotificationPreferences,
    StudentPreferences,
    StudentSignupRequest,
    TeachingPreferences,
)


def _json(value) -> str:
    return json.dumps(value, separators=(",", ":"))


def _number(value) -> str:
    # 4.0 -> "4", matching the wire format the attributes have always used
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def merge_preferences(request: StudentSignupRequest | InstructorSignupRequest) -> dict:
    """Merge caller overrides over the role defaults.

    A missing nested object falls back to its defaults as a whole; present
    objects already carry per-field defaults from the schema.
    """
    if isinstance(request, StudentSignupRequest):
        prefs = request.preferences or StudentPreferences()
        return {
            "notifications": (prefs.notifications or StudentNotificationPreferences()).model_dump(by_alias=True),
            "theme": prefs.theme,
            "language": prefs.language,
            "academic": (prefs.academic or AcademicPreferences()).model_dump(by_alias=True),
        }
    if isinstance(request, InstructorSignupRequest):
        prefs = request.preferences or InstructorPreferences()
        return {
            "notifications": (prefs.notifications or InstructorNotificationPreferences()).model_dump(by_alias=True),
            "theme": prefs.theme,
            "language": prefs.language,
            "teaching": (prefs.teaching or TeachingPreferences()).model_dump(by_alias=True),
        }
    raise TypeError(f"unsupported signup request: {type(request).__name__}")


def build_account_attributes(request: StudentSignupRequest | InstructorSignupRequest) -> Dict[str, str]:
    """Return the flat, string-valued attribute set for account creation."""
    attrs: Dict[str, str] = {
        "email": request.email,
        "given_name": request.first_name,
        "family_name": request.last_name,
        "role": request.role,
        "department": request.department,
    }
    if isinstance(request, StudentSignupRequest):
        attrs["studentId"] = request.student_id
        attrs["enrollmentYear"] = str(request.enrollment_year)
        attrs["major"] = request.major
        attrs["academicLevel"] = request.academic_level
        if request.gpa is not None:
            attrs["gpa"] = _number(request.gpa)
        if request.advisor_id:
            attrs["advisorId"] = request.advisor_id
    elif isinstance(request, InstructorSignupRequest):
        attrs["instructorId"] = request.instructor_id
        attrs["title"] = request.title
        attrs["hireDate"] = request.hire_date
        attrs["qualifications"] = _json(list(request.qualifications))
        if request.research_areas is not None:
            attrs["researchAreas"] = _json(list(request.research_areas))
        if request.office_location:
            attrs["officeLocation"] = request.office_location
        if request.office_hours:
            attrs["officeHours"] = _json([slot.model_dump(by_alias=True) for slot in request.office_hours])
        if request.max_students is not None:
            attrs["maxStudents"] = str(request.max_students)
    else:
        raise TypeError(f"unsupported signup request: {type(request).__name__}")

    if request.bio:
        attrs["bio"] = request.bio
    if request.phone_number:
        attrs["phoneNumber"] = request.phone_number
    attrs["preferences"] = _json(merge_preferences(request))
    return attrs


__all__ = ["merge_preferences", "build_account_attributes"]
