"""
Duplicate account detection against the identity provider.

Pure read: two independent existence lookups (email first, then username).
Lookup faults propagate; a failing directory is never read as "no match".
"""
from __future__ import annotations

import logging

from classcast.identity_access.directory import AccountFilter
from .errors import ConflictError
from .ports import IdentityProvider

_log = logging.getLogger("classcast.provisioning")

EMAIL_EXISTS_MESSAGE = "An account with this email already exists"
USERNAME_EXISTS_MESSAGE = "This username is already taken"


class DuplicateChecker:
    def __init__(self, identity: IdentityProvider) -> None:
        self._identity = identity

    def find_conflict(self, *, email: str, username: str) -> ConflictError | None:
        """Return the first collision (email before username) or None."""
        checks = (
            (AccountFilter.by_email(email), "email", EMAIL_EXISTS_MESSAGE),
            (AccountFilter.by_username(username), "username", USERNAME_EXISTS_MESSAGE),
        )
        for account_filter, field, message in checks:
            if self._identity.list_accounts(account_filter):
                _log.info("signup duplicate: %s", account_filter.describe())
                return ConflictError(field, message)
        return None

    def ensure_unique(self, *, email: str, username: str) -> None:
        conflict = self.find_conflict(email=email, username=username)
        if conflict is not None:
            raise conflict


__all__ = ["DuplicateChecker", "EMAIL_EXISTS_MESSAGE", "USERNAME_EXISTS_MESSAGE"]
