"""
Collaborator ports used by the signup workflow.

Keep these small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from typing import List, Mapping, Protocol, Sequence

from classcast.identity_access.directory import AccountFilter


class IdentityProvider(Protocol):
    """Service of record for accounts, credentials and group membership.

    Implemented by `classcast.identity_access.admin_client.AdminClient`.
    Every call is a synchronous, single operation; there is no transactional
    coupling between calls.
    """

    def create_account(
        self,
        *,
        username: str,
        attributes: Mapping[str, str],
        suppress_message: bool = True,
        delivery_mediums: Sequence[str] = ("EMAIL",),
    ) -> str: ...

    def list_accounts(self, account_filter: AccountFilter) -> List[dict]: ...

    def add_to_group(self, *, account_id: str, group: str) -> None: ...

    def set_temporary_password(self, *, account_id: str, password: str) -> None: ...

    def set_email_verified(self, *, account_id: str, verified: bool) -> None: ...


class ProfileStore(Protocol):
    """Document store for extended, role-shaped account metadata."""

    def put(self, key: str, record: dict) -> None: ...


__all__ = ["IdentityProvider", "ProfileStore"]
