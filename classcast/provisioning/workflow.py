"""
Signup orchestration.

Order (fixed):
    schema -> duplicates -> business rules -> identity provisioner
    -> profile -> group -> confirmation

Failure policy:
    - Validation, duplicate and business-rule failures abort before any
      external write.
    - Identity-provisioner failure aborts the request (500, classified reason).
    - Profile, group and confirmation steps are isolated from each other and
      from the outcome: failures are logged and reflected only in
      `profileCreated` / `groupAssigned`.
    - Anything unexpected is caught at `handle_payload` and reported as 500.

Known limitation: duplicate and uniqueness checks are read-then-write against
the identity provider; two concurrent signups for the same email, username or
role identifier can both pass the reads. No locking is attempted here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional
import json
import logging

from classcast.config import ProvisioningConfig, load_provisioning_config
from classcast.identity_access.directory import mask_email
from classcast.identity_access.domain import Role
from .confirmation import ConfirmationDispatcher
from .duplicates import DuplicateChecker
from .errors import (
    AuxiliaryStepError,
    BusinessRuleError,
    ConflictError,
    ProvisioningError,
    SignupValidationError,
)
from .groups import GroupAssigner
from .ports import IdentityProvider, ProfileStore
from .profile import ProfilePersister
from .provisioner import IdentityProvisioner
from .responses import SignupResponse, error_response, success_response
from .rules import BusinessRuleValidator
from .schemas import validate_signup

_log = logging.getLogger("classcast.provisioning")

CHECK_INPUT_MESSAGE = "Please check your input and try again"


@dataclass(frozen=True)
class ProvisionedAccount:
    account_id: str
    email: str
    role: Role
    profile_created: bool
    group_assigned: bool


class SignupWorkflow:
    """Role-based signup use case bound to one identity provider and profile store."""

    def __init__(self, config: ProvisioningConfig, identity: IdentityProvider, profiles: ProfileStore) -> None:
        self.config = config
        self.duplicates = DuplicateChecker(identity)
        self.rules = BusinessRuleValidator(identity)
        self.provisioner = IdentityProvisioner(identity)
        self.profiles = ProfilePersister(profiles)
        self.groups = GroupAssigner(
            identity, student_group=config.student_group, instructor_group=config.instructor_group
        )
        self.confirmation = ConfirmationDispatcher(identity)

    def run(self, payload: Any) -> ProvisionedAccount:
        """Execute the workflow; raise the taxonomy errors on abort."""
        request = validate_signup(payload)
        self.duplicates.ensure_unique(email=request.email, username=request.username)
        violation = self.rules.check(request)
        if violation is not None:
            raise BusinessRuleError(violation)

        account_id = self.provisioner.provision(request)

        profile_created = self._auxiliary(account_id, lambda: self.profiles.persist(request, account_id))
        group_assigned = self._auxiliary(account_id, lambda: self.groups.assign(account_id, request.role))
        self._auxiliary(account_id, lambda: self.confirmation.dispatch(account_id))

        return ProvisionedAccount(
            account_id=account_id,
            email=request.email,
            role=request.role,
            profile_created=profile_created,
            group_assigned=group_assigned,
        )

    def _auxiliary(self, account_id: str, step: Callable[[], Any]) -> bool:
        try:
            step()
        except AuxiliaryStepError as exc:
            _log.warning(
                "auxiliary step '%s' failed for account %s: %s",
                exc.step,
                account_id,
                type(exc.cause).__name__,
            )
            return False
        return True

    def handle_payload(self, payload: Any) -> SignupResponse:
        """Run the workflow and map every outcome onto the response envelope."""
        try:
            account = self.run(payload)
        except SignupValidationError as exc:
            return error_response(
                400,
                "Validation failed",
                {"errors": [e.to_dict() for e in exc.errors], "message": CHECK_INPUT_MESSAGE},
            )
        except ConflictError as exc:
            return error_response(409, "User already exists", {"field": exc.field, "message": exc.message})
        except BusinessRuleError as exc:
            return error_response(
                exc.status_code,
                "Business rule validation failed",
                {"rule": exc.violation.rule, "details": exc.violation.details},
            )
        except ProvisioningError as exc:
            return error_response(
                500, "Failed to create user in identity provider", {"error": exc.reason.description}
            )
        except Exception as exc:
            _log.exception("signup failed unexpectedly")
            return error_response(500, "Internal server error", {"error": str(exc) or type(exc).__name__})

        _log.info(
            "signup completed: %s role=%s profile=%s group=%s",
            mask_email(account.email),
            account.role,
            account.profile_created,
            account.group_assigned,
        )
        return success_response(
            {
                "message": f"{account.role.capitalize()} created successfully",
                "userId": account.account_id,
                "email": account.email,
                "role": account.role,
                "requiresConfirmation": True,
                "profileCreated": account.profile_created,
                "groupAssigned": account.group_assigned,
            },
            f"Your {account.role} account has been created. Please check your email to confirm your account.",
        )

    def handle(self, raw_body: str | bytes | None) -> SignupResponse:
        """Entry point for a raw JSON request body (an empty body counts as `{}`)."""
        try:
            payload = json.loads(raw_body or "{}")
        except (ValueError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow
            return error_response(400, "Invalid JSON in request body")
        return self.handle_payload(payload)


def build_default_workflow(cfg: Optional[ProvisioningConfig] = None) -> SignupWorkflow:
    """Wire the Keycloak adapter and the configured profile store."""
    from classcast.identity_access.admin_client import AdminClient
    from classcast.profiles.bootstrap import ensure_profiles_table_from_config
    from classcast.profiles.stores import InMemoryProfileStore

    cfg = cfg or load_provisioning_config()
    if cfg.profiles_backend == "db":
        from classcast.profiles.stores_db import DBProfileStore

        ensure_profiles_table_from_config(cfg)
        store: ProfileStore = DBProfileStore(cfg.database_url, table=cfg.profiles_table)
    else:
        store = InMemoryProfileStore()
    return SignupWorkflow(cfg, AdminClient(cfg.keycloak), store)


def handle_signup(raw_body: str | bytes | None, workflow: Optional[SignupWorkflow] = None) -> SignupResponse:
    """Handle one signup request body with the given (or default) workflow."""
    return (workflow or build_default_workflow()).handle(raw_body)


__all__ = [
    "ProvisionedAccount",
    "SignupWorkflow",
    "build_default_workflow",
    "handle_signup",
]
