"""
Role-tagged signup schemas (structural validation).

Why:
    The signup payload is a closed, tag-discriminated union over `role`
    (student | instructor). Modelling it as a pydantic discriminated union keeps
    every later step honest: structure is decided by the model class the tag
    selected, never by probing optional fields.

Behavior:
    - Validation is exhaustive; pydantic collects all violations before we
      translate them into `FieldError(field, message)` with dotted camelCase
      paths (`preferences.theme`, `officeHours.0.startTime`).
    - Validated requests are frozen. `to_payload()` renders the normalized
      request back to its wire shape; validating that payload again yields no
      errors.
    - No network calls happen here.
"""
from __future__ import annotations

from datetime import date
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from classcast.identity_access.domain import SIGNUP_ROLES
from .errors import FieldError, SignupValidationError


USERNAME_PATTERN = r"^[a-zA-Z0-9._-]+$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PERSON_NAME_PATTERN = r"^[a-zA-Z\s'-]+$"
PHONE_PATTERN = r"^\+?[1-9][0-9]{1,14}$"
ROLE_ID_PATTERN = r"^[A-Z0-9]+$"
DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"
CLOCK_PATTERN = r"^[0-9]{2}:[0-9]{2}$"
PASSWORD_SYMBOLS = "@$!%*?&"
MIN_ENROLLMENT_YEAR = 2000

Theme = Literal["light", "dark", "auto"]
Language = Literal["en", "es", "fr", "de"]
AcademicLevel = Literal["freshman", "sophomore", "junior", "senior", "graduate", "phd"]
InstructorTitle = Literal[
    "professor", "associate_professor", "assistant_professor", "lecturer", "adjunct", "emeritus"
]
Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

StrictBool = Annotated[bool, Field(strict=True)]


def _today() -> date:
    return date.today()


def _integral_float(v: Any) -> Any:
    # 2024.0 -> 2024; fractional values fall through to the strict int check
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return v


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")


# --- Preferences ------------------------------------------------------------------


class NotificationPreferences(_Model):
    email: StrictBool = True
    push: StrictBool = False
    sms: StrictBool = False


class StudentNotificationPreferences(NotificationPreferences):
    assignment_reminders: StrictBool = True
    grade_notifications: StrictBool = True
    course_updates: StrictBool = True


class InstructorNotificationPreferences(NotificationPreferences):
    student_submissions: StrictBool = True
    grade_reminders: StrictBool = True
    course_enrollments: StrictBool = True


class AcademicPreferences(_Model):
    show_gpa: StrictBool = Field(default=True, alias="showGPA")
    show_progress: StrictBool = True
    enable_tutoring: StrictBool = False


class TeachingPreferences(_Model):
    auto_grade: StrictBool = False
    plagiarism_detection: StrictBool = True
    student_feedback: StrictBool = True


class Preferences(_Model):
    notifications: Optional[NotificationPreferences] = None
    theme: Theme = "light"
    language: Language = "en"


class StudentPreferences(Preferences):
    notifications: Optional[StudentNotificationPreferences] = None
    academic: Optional[AcademicPreferences] = None


class InstructorPreferences(Preferences):
    notifications: Optional[InstructorNotificationPreferences] = None
    teaching: Optional[TeachingPreferences] = None


# --- Requests ---------------------------------------------------------------------


class OfficeHours(_Model):
    day: Weekday
    start_time: str = Field(pattern=CLOCK_PATTERN)
    end_time: str = Field(pattern=CLOCK_PATTERN)

    @field_validator("start_time", "end_time")
    @classmethod
    def _clock_time(cls, v: str, info: ValidationInfo) -> str:
        hours, minutes = (int(part) for part in v.split(":"))
        if hours > 23 or minutes > 59:
            label = _label(to_camel(info.field_name or ""))
            raise PydanticCustomError("invalid_time", f"{label} must be a valid time of day")
        return v


class SignupRequestBase(_Model):
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: str = Field(max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=50, pattern=PERSON_NAME_PATTERN)
    last_name: str = Field(min_length=1, max_length=50, pattern=PERSON_NAME_PATTERN)
    department: str = Field(min_length=1, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)

    @field_validator("username", "first_name", "last_name", "department", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("bio", "phone_number", mode="before")
    @classmethod
    def _empty_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        if not (
            any(c.islower() for c in v)
            and any(c.isupper() for c in v)
            and any(c.isdigit() for c in v)
            and any(c in PASSWORD_SYMBOLS for c in v)
        ):
            raise PydanticCustomError(
                "password_strength",
                "Password must contain at least one lowercase letter, one uppercase letter, "
                "one number, and one special character",
            )
        return v

    def to_payload(self) -> dict:
        """Render the normalized request in its wire (camelCase) shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class StudentSignupRequest(SignupRequestBase):
    role: Literal["student"]
    student_id: str = Field(min_length=1, max_length=20, pattern=ROLE_ID_PATTERN)
    enrollment_year: int = Field(strict=True, ge=MIN_ENROLLMENT_YEAR)
    major: str = Field(min_length=1, max_length=100)
    academic_level: AcademicLevel
    gpa: Optional[float] = Field(default=None, strict=True, ge=0.0, le=4.0)
    advisor_id: Optional[str] = Field(default=None, pattern=ROLE_ID_PATTERN)
    preferences: Optional[StudentPreferences] = None

    @field_validator("major", mode="before")
    @classmethod
    def _strip_major(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("enrollment_year", mode="before")
    @classmethod
    def _whole_year(cls, v: Any) -> Any:
        return _integral_float(v)

    @field_validator("advisor_id", mode="before")
    @classmethod
    def _empty_advisor(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("enrollment_year")
    @classmethod
    def _not_far_future(cls, v: int) -> int:
        if v > _today().year + 1:
            raise PydanticCustomError(
                "enrollment_year_future", "Enrollment year cannot be more than one year in the future"
            )
        return v


class InstructorSignupRequest(SignupRequestBase):
    role: Literal["instructor"]
    instructor_id: str = Field(min_length=1, max_length=20, pattern=ROLE_ID_PATTERN)
    title: InstructorTitle
    hire_date: str = Field(pattern=DATE_PATTERN)
    qualifications: List[str] = Field(min_length=1, max_length=10)
    research_areas: Optional[List[str]] = Field(default=None, max_length=10)
    office_location: Optional[str] = Field(default=None, max_length=100)
    office_hours: Optional[List[OfficeHours]] = None
    max_students: Optional[int] = Field(default=None, strict=True, ge=1, le=500)
    preferences: Optional[InstructorPreferences] = None

    @field_validator("office_location", mode="before")
    @classmethod
    def _empty_location(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("max_students", mode="before")
    @classmethod
    def _whole_max_students(cls, v: Any) -> Any:
        return _integral_float(v)

    @field_validator("hire_date")
    @classmethod
    def _calendar_date(cls, v: str) -> str:
        try:
            date.fromisoformat(v)
        except ValueError:
            raise PydanticCustomError("invalid_date", "Invalid date. Hire date must be a real calendar date")
        return v

    @property
    def hire_date_value(self) -> date:
        return date.fromisoformat(self.hire_date)


SignupRequest = Annotated[Union[StudentSignupRequest, InstructorSignupRequest], Field(discriminator="role")]

_SIGNUP_ADAPTER: TypeAdapter = TypeAdapter(SignupRequest)


# --- Error translation ---------------------------------------------------------------

_LABELS = {
    "username": "Username",
    "email": "Email",
    "password": "Password",
    "firstName": "First name",
    "lastName": "Last name",
    "department": "Department",
    "bio": "Bio",
    "phoneNumber": "Phone number",
    "role": "Role",
    "studentId": "Student ID",
    "enrollmentYear": "Enrollment year",
    "major": "Major",
    "academicLevel": "Academic level",
    "gpa": "GPA",
    "advisorId": "Advisor ID",
    "instructorId": "Instructor ID",
    "title": "Title",
    "hireDate": "Hire date",
    "qualifications": "Qualifications",
    "researchAreas": "Research areas",
    "officeLocation": "Office location",
    "officeHours": "Office hours",
    "maxStudents": "Max students",
    "startTime": "Start time",
    "endTime": "End time",
    "showGPA": "Show GPA",
}

_PATTERN_MESSAGES = {
    "username": "Username can only contain letters, numbers, dots, underscores, and hyphens",
    "email": "Invalid email format",
    "firstName": "First name can only contain letters, spaces, hyphens, and apostrophes",
    "lastName": "Last name can only contain letters, spaces, hyphens, and apostrophes",
    "phoneNumber": "Phone number must be in international format (e.g., +1234567890)",
    "studentId": "Student ID must contain only uppercase letters and numbers",
    "instructorId": "Instructor ID must contain only uppercase letters and numbers",
    "advisorId": "Advisor ID must contain only uppercase letters and numbers",
    "hireDate": "Invalid date format. Hire date must be in YYYY-MM-DD format",
    "startTime": "Start time must be in HH:MM format",
    "endTime": "End time must be in HH:MM format",
}

# Wording that differs from the generic templates below
_OVERRIDES = {
    ("enrollmentYear", "greater_than_equal"): "Enrollment year must be 2000 or later",
    ("gpa", "greater_than_equal"): "GPA must be 0.0 or higher",
    ("gpa", "less_than_equal"): "GPA cannot exceed 4.0",
    ("maxStudents", "greater_than_equal"): "Max students must be at least 1",
    ("maxStudents", "less_than_equal"): "Max students cannot exceed 500",
    ("qualifications", "too_short"): "At least one qualification is required",
    ("qualifications", "too_long"): "Maximum 10 qualifications allowed",
    ("researchAreas", "too_long"): "Maximum 10 research areas allowed",
}

_ROLE_CHOICES = " | ".join(f"'{r}'" for r in sorted(SIGNUP_ROLES, reverse=True))


def _label(name: str) -> str:
    if name in _LABELS:
        return _LABELS[name]
    # camelCase -> "Camel case"
    words: List[str] = []
    current = ""
    for ch in name:
        if ch.isupper() and current:
            words.append(current)
            current = ch.lower()
        else:
            current += ch
    if current:
        words.append(current)
    text = " ".join(words)
    return text[:1].upper() + text[1:]


def _field_path(loc: tuple) -> str:
    parts = list(loc)
    if parts and parts[0] in SIGNUP_ROLES:
        parts = parts[1:]  # drop the union tag pydantic prepends
    return ".".join(str(p) for p in parts)


def _leaf(loc: tuple) -> str:
    for part in reversed(loc):
        if isinstance(part, str) and part not in SIGNUP_ROLES:
            return part
    return ""


def _message(err: dict) -> str:
    kind = err.get("type", "")
    leaf = _leaf(tuple(err.get("loc", ())))
    ctx = err.get("ctx") or {}
    label = _label(leaf) if leaf else "Value"

    if (leaf, kind) in _OVERRIDES:
        return _OVERRIDES[(leaf, kind)]
    if kind in ("password_strength", "enrollment_year_future", "invalid_date", "invalid_time"):
        return str(err.get("msg", ""))
    if kind == "missing":
        return f"{label} is required"
    if kind == "string_too_short":
        if ctx.get("min_length") == 1:
            return f"{label} is required"
        return f"{label} must be at least {ctx.get('min_length')} characters"
    if kind == "string_too_long":
        return f"{label} must be less than {ctx.get('max_length')} characters"
    if kind == "string_pattern_mismatch":
        return _PATTERN_MESSAGES.get(leaf, f"{label} has an invalid format")
    if kind == "string_type":
        return f"{label} must be a string"
    if kind in ("int_type", "int_from_float", "int_parsing"):
        return f"{label} must be a whole number"
    if kind in ("float_type", "float_parsing"):
        return f"{label} must be a number"
    if kind == "bool_type":
        return f"{label} must be a boolean"
    if kind == "list_type":
        return f"{label} must be a list"
    if kind in ("model_type", "model_attributes_type", "dict_type"):
        return f"{label} must be an object"
    if kind == "greater_than_equal":
        return f"{label} must be at least {ctx.get('ge')}"
    if kind == "less_than_equal":
        return f"{label} cannot exceed {ctx.get('le')}"
    if kind == "too_short":
        return f"{label} must contain at least {ctx.get('min_length')} item(s)"
    if kind == "too_long":
        return f"{label} must contain at most {ctx.get('max_length')} items"
    if kind == "literal_error":
        return f"Invalid enum value. Expected {ctx.get('expected')}, received '{err.get('input')}'"
    return str(err.get("msg", "Invalid value"))


def _translate(exc: ValidationError) -> List[FieldError]:
    out: List[FieldError] = []
    for err in exc.errors(include_url=False):
        kind = err.get("type", "")
        if kind == "union_tag_not_found":
            out.append(FieldError("role", "Role is required"))
        elif kind == "union_tag_invalid":
            received = (err.get("ctx") or {}).get("tag", "")
            out.append(
                FieldError("role", f"Invalid enum value. Expected {_ROLE_CHOICES}, received '{received}'")
            )
        else:
            out.append(FieldError(_field_path(tuple(err.get("loc", ()))), _message(err)))
    return out


def collect_errors(payload: Any) -> List[FieldError]:
    """Return every structural violation of `payload` (empty when valid)."""
    try:
        validate_signup(payload)
    except SignupValidationError as exc:
        return exc.errors
    return []


def validate_signup(payload: Any) -> Union[StudentSignupRequest, InstructorSignupRequest]:
    """Validate a raw payload into a normalized, role-tagged request.

    Raises
    ------
    SignupValidationError:
        With the complete, ordered list of field errors.
    """
    if not isinstance(payload, dict):
        raise SignupValidationError(
            [FieldError("", f"Expected object, received {type(payload).__name__}")]
        )
    try:
        return _SIGNUP_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise SignupValidationError(_translate(exc)) from exc


__all__ = [
    "NotificationPreferences",
    "StudentNotificationPreferences",
    "InstructorNotificationPreferences",
    "AcademicPreferences",
    "TeachingPreferences",
    "Preferences",
    "StudentPreferences",
    "InstructorPreferences",
    "OfficeHours",
    "SignupRequestBase",
    "StudentSignupRequest",
    "InstructorSignupRequest",
    "SignupRequest",
    "validate_signup",
    "collect_errors",
]
