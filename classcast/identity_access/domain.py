"""
Identity domain constants and simple helpers.

Why:
- Centralize the signup roles so the schema, business rules, attribute
  mapping and group assignment cannot drift apart.
"""

from __future__ import annotations

from typing import Literal

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
SIGNUP_ROLES = frozenset({"student", "instructor"})

Role = Literal["student", "instructor"]

# Delivery medium for provider-side notifications (verification, invitations)
EMAIL_MEDIUM = "EMAIL"


def group_for_role(role: str, *, student_group: str = "students", instructor_group: str = "instructors") -> str:
    """Return the role-scoped group name for an account."""
    if role == "student":
        return student_group
    if role == "instructor":
        return instructor_group
    raise ValueError("invalid role")


__all__ = ["SIGNUP_ROLES", "Role", "EMAIL_MEDIUM", "group_for_role"]
