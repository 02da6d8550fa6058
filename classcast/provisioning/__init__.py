"""Role-based account provisioning (student / instructor signup)."""
from .errors import (
    AuxiliaryStepError,
    BusinessRuleError,
    ConflictError,
    FieldError,
    ProvisioningError,
    ProvisioningFailure,
    RuleViolation,
    SignupValidationError,
)
from .responses import CORS_HEADERS, SignupResponse
from .schemas import InstructorSignupRequest, StudentSignupRequest, validate_signup
from .workflow import ProvisionedAccount, SignupWorkflow, build_default_workflow, handle_signup

__all__ = [
    "AuxiliaryStepError",
    "BusinessRuleError",
    "ConflictError",
    "FieldError",
    "ProvisioningError",
    "ProvisioningFailure",
    "RuleViolation",
    "SignupValidationError",
    "CORS_HEADERS",
    "SignupResponse",
    "InstructorSignupRequest",
    "StudentSignupRequest",
    "validate_signup",
    "ProvisionedAccount",
    "SignupWorkflow",
    "build_default_workflow",
    "handle_signup",
]
