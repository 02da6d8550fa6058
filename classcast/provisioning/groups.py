"""Group Assigner: attach a new account to its role-scoped group."""
from __future__ import annotations

from classcast.identity_access.domain import group_for_role
from .errors import AuxiliaryStepError
from .ports import IdentityProvider


class GroupAssigner:
    def __init__(self, identity: IdentityProvider, *, student_group: str = "students", instructor_group: str = "instructors") -> None:
        self._identity = identity
        self._student_group = student_group
        self._instructor_group = instructor_group

    def group_for(self, role: str) -> str:
        return group_for_role(role, student_group=self._student_group, instructor_group=self._instructor_group)

    def assign(self, account_id: str, role: str) -> str:
        group = self.group_for(role)
        try:
            self._identity.add_to_group(account_id=account_id, group=group)
        except Exception as exc:
            raise AuxiliaryStepError("group", exc) from exc
        return group


__all__ = ["GroupAssigner"]
