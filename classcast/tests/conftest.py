"""
Pytest configuration for ClassCast tests.

Why: Force AnyIO to use the asyncio backend, and provide in-memory stand-ins
for the identity provider (Keycloak) and the profile store (Postgres) so the
provisioning workflow runs without network access.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence
import copy

import pytest

from classcast.config import load_provisioning_config
from classcast.identity_access.directory import AccountFilter, to_keycloak_attributes
from classcast.profiles.stores import InMemoryProfileStore
from classcast.provisioning.workflow import SignupWorkflow


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeIdentityProvider:
    """Records every admin call; individual calls can be made to fail."""

    def __init__(self) -> None:
        self.accounts: List[dict] = []
        self.created: List[dict] = []
        self.groups: List[tuple[str, str]] = []
        self.temporary_passwords: Dict[str, str] = {}
        self.verified: Dict[str, bool] = {}
        self.lookups: List[AccountFilter] = []
        self.failures: Dict[str, BaseException] = {}

    def add_account(self, *, username: str, email: str, **attributes: str) -> dict:
        user = {
            "id": f"existing-{len(self.accounts) + 1}",
            "username": username,
            "email": email,
            "attributes": to_keycloak_attributes(attributes),
        }
        self.accounts.append(user)
        return user

    def fail(self, method: str, exc: BaseException) -> None:
        self.failures[method] = exc

    def _maybe_fail(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    def create_account(
        self,
        *,
        username: str,
        attributes: Mapping[str, str],
        suppress_message: bool = True,
        delivery_mediums: Sequence[str] = ("EMAIL",),
    ) -> str:
        self._maybe_fail("create_account")
        account_id = f"acc-{len(self.created) + 1}"
        self.created.append(
            {
                "id": account_id,
                "username": username,
                "attributes": dict(attributes),
                "suppress_message": suppress_message,
                "delivery_mediums": tuple(delivery_mediums),
            }
        )
        custom = {k: v for k, v in attributes.items() if k not in ("email", "given_name", "family_name")}
        self.accounts.append(
            {
                "id": account_id,
                "username": username,
                "email": attributes.get("email"),
                "attributes": to_keycloak_attributes(custom),
            }
        )
        return account_id

    def list_accounts(self, account_filter: AccountFilter) -> List[dict]:
        self._maybe_fail("list_accounts")
        account_filter.to_params()  # same validation as the Keycloak adapter
        self.lookups.append(account_filter)
        return [copy.deepcopy(u) for u in self.accounts if account_filter.matches(u)]

    def add_to_group(self, *, account_id: str, group: str) -> None:
        self._maybe_fail("add_to_group")
        self.groups.append((account_id, group))

    def set_temporary_password(self, *, account_id: str, password: str) -> None:
        self._maybe_fail("set_temporary_password")
        self.temporary_passwords[account_id] = password

    def set_email_verified(self, *, account_id: str, verified: bool) -> None:
        self._maybe_fail("set_email_verified")
        self.verified[account_id] = verified


class FailingProfileStore:
    def __init__(self, exc: Optional[BaseException] = None) -> None:
        self.exc = exc or RuntimeError("profile store unavailable")
        self.attempts = 0

    def put(self, key: str, record: dict) -> None:
        self.attempts += 1
        raise self.exc


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def profiles() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def failing_profiles() -> FailingProfileStore:
    return FailingProfileStore()


@pytest.fixture
def config():
    return load_provisioning_config({})


@pytest.fixture
def workflow(config, identity, profiles) -> SignupWorkflow:
    return SignupWorkflow(config, identity, profiles)


@pytest.fixture
def student_payload() -> dict:
    return {
        "username": "student123",
        "email": "student@example.com",
        "password": "Password123!",
        "firstName": "John",
        "lastName": "Doe",
        "role": "student",
        "department": "Computer Science",
        "studentId": "STU123456",
        "enrollmentYear": 2024,
        "major": "Computer Science",
        "academicLevel": "junior",
        "gpa": 3.8,
    }


@pytest.fixture
def instructor_payload() -> dict:
    return {
        "username": "prof.smith",
        "email": "smith@example.com",
        "password": "Teach1ng!Pass",
        "firstName": "Jane",
        "lastName": "Smith",
        "role": "instructor",
        "department": "Mathematics",
        "instructorId": "INS123456",
        "title": "professor",
        "hireDate": "2020-08-15",
        "qualifications": ["PhD in Mathematics"],
        "officeHours": [{"day": "monday", "startTime": "10:00", "endTime": "12:00"}],
        "maxStudents": 40,
    }
