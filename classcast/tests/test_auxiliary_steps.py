"""
Post-creation steps: profile record, group assignment, confirmation.

Each step wraps its failure in `AuxiliaryStepError` so the orchestrator can
log it without changing the outcome.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from classcast.provisioning.confirmation import ConfirmationDispatcher, generate_temporary_password
from classcast.provisioning.errors import AuxiliaryStepError
from classcast.provisioning.groups import GroupAssigner
from classcast.provisioning.profile import ProfilePersister, build_profile_record
from classcast.provisioning.schemas import PASSWORD_SYMBOLS, validate_signup


def test_student_profile_record_shape(student_payload):
    now = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)
    rec = build_profile_record(validate_signup(student_payload), "acc-1", now=now)
    assert rec["userId"] == "acc-1"
    assert rec["type"] == "student"
    assert rec["status"] == "pending"
    assert rec["enabled"] is False
    assert rec["createdAt"] == rec["updatedAt"] == "2024-09-01T12:00:00.000Z"
    assert rec["enrollmentYear"] == 2024
    assert rec["gpa"] == 3.8
    assert rec["preferences"]["academic"]["showGPA"] is True
    # Absent optional values are omitted, not stored as null
    assert "advisorId" not in rec and "bio" not in rec and "phoneNumber" not in rec


def test_instructor_profile_record_shape(instructor_payload):
    rec = build_profile_record(validate_signup(instructor_payload), "acc-2")
    assert rec["type"] == "instructor"
    assert rec["qualifications"] == ["PhD in Mathematics"]
    assert rec["officeHours"] == [{"day": "monday", "startTime": "10:00", "endTime": "12:00"}]
    assert "researchAreas" not in rec
    assert "studentId" not in rec
    assert "teaching" in rec["preferences"]


def test_profile_persister_writes_by_account_id(profiles, student_payload):
    ProfilePersister(profiles).persist(validate_signup(student_payload), "acc-1")
    assert profiles.get("acc-1")["email"] == "student@example.com"


def test_profile_persister_wraps_store_failure(failing_profiles, student_payload):
    with pytest.raises(AuxiliaryStepError) as ei:
        ProfilePersister(failing_profiles).persist(validate_signup(student_payload), "acc-1")
    assert ei.value.step == "profile"
    assert isinstance(ei.value.cause, RuntimeError)


def test_group_assigner_uses_role_group(identity):
    assigner = GroupAssigner(identity, instructor_group="faculty")
    assert assigner.assign("acc-1", "student") == "students"
    assert assigner.assign("acc-2", "instructor") == "faculty"
    assert identity.groups == [("acc-1", "students"), ("acc-2", "faculty")]


def test_group_assigner_wraps_failure(identity):
    identity.fail("add_to_group", RuntimeError("group missing"))
    with pytest.raises(AuxiliaryStepError) as ei:
        GroupAssigner(identity).assign("acc-1", "student")
    assert ei.value.step == "group"


def test_confirmation_sets_temporary_password_and_unverifies(identity):
    ConfirmationDispatcher(identity).dispatch("acc-1")
    assert identity.verified == {"acc-1": False}
    assert len(identity.temporary_passwords["acc-1"]) == 20


def test_confirmation_wraps_failure(identity):
    identity.fail("set_temporary_password", RuntimeError("policy"))
    with pytest.raises(AuxiliaryStepError) as ei:
        ConfirmationDispatcher(identity).dispatch("acc-1")
    assert ei.value.step == "confirmation"
    assert identity.verified == {}


def test_temporary_password_has_every_character_class():
    for _ in range(20):
        pw = generate_temporary_password()
        assert any(c.islower() for c in pw)
        assert any(c.isupper() for c in pw)
        assert any(c.isdigit() for c in pw)
        assert any(c in PASSWORD_SYMBOLS for c in pw)
    assert generate_temporary_password() != generate_temporary_password()
