"""
Directory filter expressions for account lookups (Keycloak Admin API).

Why:
    Duplicate detection and business rules need "does an account with X
    exist?" lookups by email, username or a custom attribute such as
    `studentId`. This module keeps the filter expression independent of the
    HTTP adapter so callers and tests can reason about it without a network.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping
import re


# Keycloak's `q` search syntax is `key:value key2:value2`; values must not
# contain separators or the search widens silently.
_Q_VALUE = re.compile(r"^[^\s:]+$")


@dataclass(frozen=True)
class AccountFilter:
    """Exact-match filter over accounts.

    Exactly one of `email`, `username` or `attributes` is expected. Attribute
    filters are conjunctive (every key must match).
    """

    email: str | None = None
    username: str | None = None
    attributes: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def by_email(cls, email: str) -> "AccountFilter":
        return cls(email=email)

    @classmethod
    def by_username(cls, username: str) -> "AccountFilter":
        return cls(username=username)

    @classmethod
    def by_attributes(cls, **attributes: str) -> "AccountFilter":
        return cls(attributes=dict(attributes))

    def describe(self) -> str:
        """Return a human-readable filter expression (for logs)."""
        if self.email is not None:
            return 'email = "***"'
        if self.username is not None:
            return f'username = "{self.username}"'
        return " AND ".join(f'{k} = "{v}"' for k, v in self.attributes.items())

    def to_params(self) -> Dict[str, str]:
        """Translate the filter into Keycloak `GET /users` query parameters."""
        if self.email is not None:
            return {"email": self.email, "exact": "true"}
        if self.username is not None:
            return {"username": self.username, "exact": "true"}
        if not self.attributes:
            raise ValueError("empty_filter")
        for key, value in self.attributes.items():
            if not _Q_VALUE.match(str(key)) or not _Q_VALUE.match(str(value)):
                raise ValueError("invalid_filter_value")
        return {"q": " ".join(f"{k}:{v}" for k, v in self.attributes.items())}

    def matches(self, user: dict) -> bool:
        """Re-check a returned user representation against the filter.

        Keycloak's email/username search is case-insensitive; attribute search
        may be prefix-based depending on the server version. We only count a
        hit when the values match exactly (case-insensitive for email/username).
        """
        if self.email is not None:
            return str(user.get("email") or "").lower() == self.email.lower()
        if self.username is not None:
            return str(user.get("username") or "").lower() == self.username.lower()
        return all(get_attr(user, k) == str(v) for k, v in self.attributes.items())


def get_attr(u: dict, key: str) -> str:
    """Fetch a single-valued Keycloak user attribute from `attributes`.

    Keycloak exposes attributes as { key: [values...] }. We return the first string.
    """
    attrs = u.get("attributes") or {}
    vals = attrs.get(key)
    if isinstance(vals, list) and vals:
        return str(vals[0] or "").strip()
    if isinstance(vals, str):
        return vals.strip()
    return ""


def to_keycloak_attributes(flat: Mapping[str, str]) -> Dict[str, List[str]]:
    """Wrap flat string attributes into Keycloak's multi-valued shape."""
    return {str(k): [str(v)] for k, v in flat.items()}


def mask_email(email: str) -> str:
    """Mask email for logs to reduce PII exposure."""
    local, sep, domain = (email or "").partition("@")
    if not sep:
        return "***"
    return f"{local[:2]}***@{domain}"


__all__ = ["AccountFilter", "get_attr", "to_keycloak_attributes", "mask_email"]
