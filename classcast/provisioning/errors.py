"""
Error taxonomy of the signup workflow.

Each class maps to exactly one outward-facing outcome:
- SignupValidationError  -> 400, many field errors at once
- BusinessRuleError      -> 400 (or 409 for duplicate role identifiers), first failure wins
- ConflictError          -> 409, account with the same email/username exists
- ProvisioningError      -> 500, classified identity-provider failure (fatal)
- AuxiliaryStepError     -> logged only, never changes the response status
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence


@dataclass(frozen=True)
class FieldError:
    field: str  # dotted path, e.g. "preferences.theme"
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class SignupValidationError(Exception):
    """Raised when a payload violates the structural schema."""

    def __init__(self, errors: Sequence[FieldError]):
        super().__init__(f"{len(errors)} validation error(s)")
        self.errors: List[FieldError] = list(errors)


@dataclass(frozen=True)
class RuleViolation:
    rule: str
    details: str
    conflict: bool = False  # duplicate role-scoped identifier


class BusinessRuleError(Exception):
    def __init__(self, violation: RuleViolation):
        super().__init__(violation.details)
        self.violation = violation

    @property
    def status_code(self) -> int:
        return 409 if self.violation.conflict else 400


class ConflictError(Exception):
    """An account with the requested email or username already exists."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class ProvisioningFailure(str, Enum):
    USERNAME_EXISTS = "username-exists"
    WEAK_CREDENTIAL = "weak-credential"
    INVALID_ATTRIBUTES = "invalid-attributes"
    UNKNOWN = "unknown"

    @property
    def description(self) -> str:
        return _FAILURE_DESCRIPTIONS[self]


_FAILURE_DESCRIPTIONS = {
    ProvisioningFailure.USERNAME_EXISTS: "Username already exists",
    ProvisioningFailure.WEAK_CREDENTIAL: "Password does not meet requirements",
    ProvisioningFailure.INVALID_ATTRIBUTES: "Invalid user attributes",
    ProvisioningFailure.UNKNOWN: "Failed to create user",
}


class ProvisioningError(Exception):
    def __init__(self, reason: ProvisioningFailure):
        super().__init__(reason.description)
        self.reason = reason


class AuxiliaryStepError(Exception):
    """A post-creation step (profile, group, confirmation) failed."""

    def __init__(self, step: str, cause: BaseException):
        super().__init__(f"{step}: {cause}")
        self.step = step
        self.cause = cause


__all__ = [
    "FieldError",
    "SignupValidationError",
    "RuleViolation",
    "BusinessRuleError",
    "ConflictError",
    "ProvisioningFailure",
    "ProvisioningError",
    "AuxiliaryStepError",
]
