"""
Confirmation Dispatcher.

Sets a temporary, non-permanent credential and marks the email unverified;
the identity provider then drives its own verification flow. The temporary
credential is random per account and never logged.
"""
from __future__ import annotations

import secrets
import string

from .errors import AuxiliaryStepError
from .ports import IdentityProvider

_SYMBOLS = "@$!%*?&"
_ALPHABET = string.ascii_letters + string.digits + _SYMBOLS


def generate_temporary_password(length: int = 20) -> str:
    """Return a random password that contains every required character class."""
    if length < 8:
        raise ValueError("length must be >= 8")
    required = [
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.digits),
        secrets.choice(_SYMBOLS),
    ]
    rest = [secrets.choice(_ALPHABET) for _ in range(length - len(required))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


class ConfirmationDispatcher:
    def __init__(self, identity: IdentityProvider) -> None:
        self._identity = identity

    def dispatch(self, account_id: str) -> None:
        try:
            self._identity.set_temporary_password(account_id=account_id, password=generate_temporary_password())
            self._identity.set_email_verified(account_id=account_id, verified=False)
        except Exception as exc:
            raise AuxiliaryStepError("confirmation", exc) from exc


__all__ = ["ConfirmationDispatcher", "generate_temporary_password"]
