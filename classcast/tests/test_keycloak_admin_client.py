"""
Keycloak Admin adapter (no network; `requests` is replaced by fakes).

Validates:
- token acquisition prefers client_credentials; password grant is refused in prod,
- account creation maps flat attributes onto the user representation,
- provider HTTP errors surface as coded `IdentityProviderError`,
- lookups, group assignment and confirmation calls hit the documented endpoints.
"""
from __future__ import annotations

import types

import pytest

from classcast.config import KeycloakConfig
from classcast.identity_access import admin_client
from classcast.identity_access.admin_client import AdminClient, IdentityProviderError
from classcast.identity_access.directory import AccountFilter


BASE = "https://id.example.test"


class _Resp:
    def __init__(self, status_code: int = 200, payload=None, headers: dict | None = None):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = ""

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _cfg(**overrides) -> KeycloakConfig:
    params = dict(base_url=BASE, realm="classcast", admin_client_secret="s3cret")
    params.update(overrides)
    return KeycloakConfig(**params)


def _install(monkeypatch, *, post=None, get=None, put=None) -> list:
    calls: list = []

    def _token_or(handler):
        def _post(url, **kwargs):
            calls.append(("POST", url, kwargs))
            if url.endswith("/protocol/openid-connect/token"):
                return _Resp(200, {"access_token": "TOKEN"})
            return handler(url, **kwargs)

        return _post

    def _record(method, handler):
        def _call(url, **kwargs):
            calls.append((method, url, kwargs))
            return handler(url, **kwargs)

        return _call

    fake = types.SimpleNamespace(
        post=_token_or(post or (lambda url, **kw: _Resp(201))),
        get=_record("GET", get or (lambda url, **kw: _Resp(200, []))),
        put=_record("PUT", put or (lambda url, **kw: _Resp(204))),
    )
    monkeypatch.setattr(admin_client, "requests", fake)
    return calls


def test_client_credentials_token_request(monkeypatch):
    calls = _install(monkeypatch)
    AdminClient(_cfg()).list_accounts(AccountFilter.by_email("a@example.com"))
    method, url, kwargs = calls[0]
    assert url == f"{BASE}/realms/master/protocol/openid-connect/token"
    assert kwargs["data"]["grant_type"] == "client_credentials"
    assert kwargs["data"]["client_secret"] == "s3cret"
    assert kwargs["verify"] is True


def test_password_grant_forbidden_in_prod(monkeypatch):
    def _deny(*args, **kwargs):  # pragma: no cover - should not be reached
        raise AssertionError("HTTP call should not be performed in forbidden password grant path")

    monkeypatch.setattr(admin_client, "requests", types.SimpleNamespace(post=_deny, get=_deny, put=_deny))
    client = AdminClient(
        _cfg(admin_client_secret=None, admin_username="admin", admin_password="admin", environment="prod")
    )
    with pytest.raises(RuntimeError) as ei:
        client.list_accounts(AccountFilter.by_username("abc"))
    assert "password_grant_disabled_in_prod" in str(ei.value)


def test_password_grant_allowed_in_dev(monkeypatch):
    calls = _install(monkeypatch)
    client = AdminClient(_cfg(admin_client_secret=None, admin_username="admin", admin_password="pw"))
    client.list_accounts(AccountFilter.by_username("abc"))
    assert calls[0][2]["data"]["grant_type"] == "password"


def test_create_account_maps_attributes_and_reads_location(monkeypatch):
    def _post(url, **kwargs):
        return _Resp(201, headers={"Location": f"{BASE}/admin/realms/classcast/users/uuid-1"})

    calls = _install(monkeypatch, post=_post)
    account_id = AdminClient(_cfg()).create_account(
        username="student123",
        attributes={
            "email": "student@example.com",
            "given_name": "John",
            "family_name": "Doe",
            "role": "student",
            "studentId": "STU1",
        },
    )
    assert account_id == "uuid-1"
    _, url, kwargs = calls[1]
    assert url == f"{BASE}/admin/realms/classcast/users"
    rep = kwargs["json"]
    assert rep["username"] == "student123"
    assert rep["email"] == "student@example.com"
    assert rep["firstName"] == "John" and rep["lastName"] == "Doe"
    assert rep["emailVerified"] is False
    assert rep["attributes"] == {"role": ["student"], "studentId": ["STU1"]}
    assert kwargs["headers"]["Authorization"] == "Bearer TOKEN"
    # Suppressed: no execute-actions-email call
    assert not [c for c in calls if c[1].endswith("execute-actions-email")]


def test_create_account_without_suppression_sends_verify_email(monkeypatch):
    calls = _install(monkeypatch, post=lambda url, **kw: _Resp(201, headers={"Location": "/users/uuid-2"}))
    AdminClient(_cfg()).create_account(username="u1x", attributes={"email": "u@example.com"}, suppress_message=False)
    method, url, kwargs = calls[-1]
    assert method == "PUT" and url.endswith("/users/uuid-2/execute-actions-email")
    assert kwargs["json"] == ["VERIFY_EMAIL"]


def test_create_account_rejects_non_email_medium(monkeypatch):
    _install(monkeypatch)
    with pytest.raises(IdentityProviderError) as ei:
        AdminClient(_cfg()).create_account(username="u1x", attributes={}, delivery_mediums=("SMS",))
    assert ei.value.code == "invalid_parameter"


@pytest.mark.parametrize(
    "status, payload, code",
    [
        (409, {"errorMessage": "User exists with same username"}, "user_exists"),
        (400, {"error": "invalidPasswordMinLengthMessage: password too short"}, "invalid_password"),
        (400, {"errorMessage": "Invalid attribute"}, "invalid_parameter"),
        (503, None, "unknown"),
    ],
)
def test_create_account_error_codes(monkeypatch, status, payload, code):
    _install(monkeypatch, post=lambda url, **kw: _Resp(status, payload))
    with pytest.raises(IdentityProviderError) as ei:
        AdminClient(_cfg()).create_account(username="u1x", attributes={"email": "u@example.com"})
    assert ei.value.code == code
    assert ei.value.status_code == status


def test_list_accounts_by_attributes_uses_q_and_exact_match(monkeypatch):
    users = [
        {"id": "1", "attributes": {"studentId": ["STU1"]}},
        {"id": "2", "attributes": {"studentId": ["STU12"]}},  # prefix hit from server
    ]
    calls = _install(monkeypatch, get=lambda url, **kw: _Resp(200, users))
    found = AdminClient(_cfg()).list_accounts(AccountFilter.by_attributes(studentId="STU1"))
    assert [u["id"] for u in found] == ["1"]
    _, url, kwargs = calls[1]
    assert url == f"{BASE}/admin/realms/classcast/users"
    assert kwargs["params"]["q"] == "studentId:STU1"
    assert kwargs["params"]["briefRepresentation"] == "false"


def test_list_accounts_by_email_is_exact(monkeypatch):
    calls = _install(monkeypatch, get=lambda url, **kw: _Resp(200, [{"id": "1", "email": "A@example.com"}]))
    found = AdminClient(_cfg()).list_accounts(AccountFilter.by_email("a@example.com"))
    assert len(found) == 1
    assert calls[1][2]["params"]["exact"] == "true"


def test_add_to_group_resolves_group_id(monkeypatch):
    calls = _install(monkeypatch, get=lambda url, **kw: _Resp(200, [{"id": "g-1", "name": "students"}]))
    AdminClient(_cfg()).add_to_group(account_id="uuid-1", group="students")
    method, url, _ = calls[-1]
    assert method == "PUT"
    assert url == f"{BASE}/admin/realms/classcast/users/uuid-1/groups/g-1"


def test_add_to_group_missing_group(monkeypatch):
    _install(monkeypatch, get=lambda url, **kw: _Resp(200, [{"id": "g-9", "name": "students-old"}]))
    with pytest.raises(IdentityProviderError) as ei:
        AdminClient(_cfg()).add_to_group(account_id="uuid-1", group="students")
    assert ei.value.code == "not_found"


def test_set_temporary_password_is_temporary(monkeypatch):
    calls = _install(monkeypatch)
    AdminClient(_cfg()).set_temporary_password(account_id="uuid-1", password="Tmp!1234abcd")
    method, url, kwargs = calls[-1]
    assert url.endswith("/users/uuid-1/reset-password")
    assert kwargs["json"] == {"type": "password", "value": "Tmp!1234abcd", "temporary": True}


def test_set_email_verified_false_requires_verification(monkeypatch):
    calls = _install(monkeypatch)
    AdminClient(_cfg()).set_email_verified(account_id="uuid-1", verified=False)
    _, url, kwargs = calls[-1]
    assert url == f"{BASE}/admin/realms/classcast/users/uuid-1"
    assert kwargs["json"] == {"emailVerified": False, "requiredActions": ["VERIFY_EMAIL"]}


def test_ca_bundle_is_passed_as_verify(monkeypatch):
    calls = _install(monkeypatch)
    AdminClient(_cfg(ca_bundle="/etc/ssl/kc.pem")).list_accounts(AccountFilter.by_username("abc"))
    assert all(c[2]["verify"] == "/etc/ssl/kc.pem" for c in calls)
