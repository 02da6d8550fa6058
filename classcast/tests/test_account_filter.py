"""
Account filter expressions and Keycloak attribute helpers.
"""
from __future__ import annotations

import pytest

from classcast.identity_access.directory import AccountFilter, get_attr, mask_email, to_keycloak_attributes
from classcast.identity_access.domain import group_for_role


def test_attribute_filter_params_are_conjunctive():
    f = AccountFilter.by_attributes(instructorId="INS1", role="instructor")
    assert f.to_params() == {"q": "instructorId:INS1 role:instructor"}
    assert f.describe() == 'instructorId = "INS1" AND role = "instructor"'


@pytest.mark.parametrize("value", ["a b", "a:b", ""])
def test_attribute_values_with_separators_are_rejected(value):
    with pytest.raises(ValueError):
        AccountFilter.by_attributes(studentId=value).to_params()


def test_empty_filter_is_rejected():
    with pytest.raises(ValueError):
        AccountFilter().to_params()


def test_matches_is_exact():
    user = {"username": "Student123", "email": "S@Example.com", "attributes": {"studentId": ["STU12"]}}
    assert AccountFilter.by_username("student123").matches(user)
    assert AccountFilter.by_email("s@example.com").matches(user)
    assert not AccountFilter.by_attributes(studentId="STU1").matches(user)


def test_attribute_helpers():
    assert to_keycloak_attributes({"role": "student"}) == {"role": ["student"]}
    assert get_attr({"attributes": {"role": ["student"]}}, "role") == "student"
    assert get_attr({}, "role") == ""
    assert mask_email("student@example.com") == "st***@example.com"
    assert mask_email("not-an-email") == "***"


def test_group_for_role():
    assert group_for_role("student") == "students"
    assert group_for_role("instructor", instructor_group="faculty") == "faculty"
    with pytest.raises(ValueError):
        group_for_role("admin")
