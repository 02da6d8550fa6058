"""
Identity Provisioner: the only step whose failure is fatal.

The provider's raw error never leaves this module; callers only see a
`ProvisioningError` carrying a `ProvisioningFailure` classification.
"""
from __future__ import annotations

import logging

from classcast.identity_access.directory import mask_email
from classcast.identity_access.domain import EMAIL_MEDIUM
from .attributes import build_account_attributes
from .errors import ProvisioningError, ProvisioningFailure
from .ports import IdentityProvider
from .schemas import InstructorSignupRequest, StudentSignupRequest

_log = logging.getLogger("classcast.provisioning")

_BY_CODE = {
    "user_exists": ProvisioningFailure.USERNAME_EXISTS,
    "invalid_password": ProvisioningFailure.WEAK_CREDENTIAL,
    "invalid_parameter": ProvisioningFailure.INVALID_ATTRIBUTES,
}

# Fallback for adapters that only report a message
_BY_MESSAGE = (
    ("UsernameExists", ProvisioningFailure.USERNAME_EXISTS),
    ("User exists", ProvisioningFailure.USERNAME_EXISTS),
    ("InvalidPassword", ProvisioningFailure.WEAK_CREDENTIAL),
    ("InvalidParameter", ProvisioningFailure.INVALID_ATTRIBUTES),
)


def classify_provider_error(exc: BaseException) -> ProvisioningFailure:
    """Map a raw identity-provider error to a domain failure reason."""
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code in _BY_CODE:
        return _BY_CODE[code]
    text = str(exc)
    for needle, reason in _BY_MESSAGE:
        if needle in text:
            return reason
    return ProvisioningFailure.UNKNOWN


class IdentityProvisioner:
    def __init__(self, identity: IdentityProvider) -> None:
        self._identity = identity

    def provision(self, request: StudentSignupRequest | InstructorSignupRequest) -> str:
        """Create the account and return the provider-issued id.

        Raises
        ------
        ProvisioningError:
            With the classified reason when the provider rejects the call.
        """
        attributes = build_account_attributes(request)
        try:
            account_id = self._identity.create_account(
                username=request.username,
                attributes=attributes,
                suppress_message=True,
                delivery_mediums=(EMAIL_MEDIUM,),
            )
        except Exception as exc:
            reason = classify_provider_error(exc)
            _log.warning(
                "account creation failed for %s: %s (%s)",
                mask_email(request.email),
                reason.value,
                type(exc).__name__,
            )
            raise ProvisioningError(reason) from exc
        _log.info("account created: id=%s role=%s", account_id, request.role)
        return account_id


__all__ = ["IdentityProvisioner", "classify_provider_error"]
