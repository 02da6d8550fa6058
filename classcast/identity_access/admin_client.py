"""
Keycloak Admin client for account provisioning.

Design:
- Framework-agnostic, callable from the provisioning workflow and tools.
- Implements the identity-provider contract the signup workflow expects:
  create account with attributes, list accounts matching a filter, add an
  account to a group, set a temporary credential and update the verification
  flag.
- Uses requests under the hood; failures surface as `IdentityProviderError`
  (HTTP status errors) or `requests.RequestException` (transport errors).
  Callers are responsible for exception handling.

Security:
- Do not log credentials or tokens.
- Prefer client_credentials with a confidential client. The password grant is
  a dev-only fallback and is refused in prod-like environments.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence
import logging

import requests

from classcast.config import KeycloakConfig, PROD_LIKE_ENVS
from .directory import AccountFilter, to_keycloak_attributes
from .domain import EMAIL_MEDIUM


logger = logging.getLogger("classcast.identity_access")

# Standard identity attributes live on the Keycloak user representation itself.
_STANDARD_FIELDS = {"email": "email", "given_name": "firstName", "family_name": "lastName"}


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects an admin call.

    `code` is one of: user_exists, invalid_password, invalid_parameter,
    not_found, unknown.
    """

    def __init__(self, code: str, message: str = "", status_code: int | None = None):
        super().__init__(message or code)
        self.code = code
        self.status_code = status_code


def _error_text(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return str(getattr(resp, "text", "") or "")
    if isinstance(body, dict):
        return str(body.get("errorMessage") or body.get("error") or body.get("error_description") or "")
    return ""


def _raise_for_create(resp) -> None:
    status = resp.status_code
    text = _error_text(resp)
    if status == 409:
        raise IdentityProviderError("user_exists", text or "User exists with same username", status)
    if status == 400:
        if "password" in text.lower():
            raise IdentityProviderError("invalid_password", text, status)
        raise IdentityProviderError("invalid_parameter", text or "Invalid user representation", status)
    raise IdentityProviderError("unknown", text or f"HTTP {status}", status)


def _raise_for_status(resp, action: str) -> None:
    status = resp.status_code
    if status < 300:
        return
    code = "not_found" if status == 404 else "invalid_parameter" if status == 400 else "unknown"
    raise IdentityProviderError(code, f"{action} failed: {_error_text(resp) or status}", status)


class AdminClient:
    """Keycloak Admin REST adapter bound to one realm."""

    def __init__(self, cfg: KeycloakConfig) -> None:
        self.cfg = cfg

    # --- auth -----------------------------------------------------------------

    def _token(self) -> str:
        """Obtain an admin bearer token.

        Prefers OAuth2 client_credentials using a confidential client. Falls
        back to the legacy password grant only when username/password are set
        and no client secret is configured.
        """
        cfg = self.cfg
        if cfg.admin_client_secret:
            data = {
                "grant_type": "client_credentials",
                "client_id": cfg.admin_client_id,
                "client_secret": cfg.admin_client_secret,
            }
        else:
            if (cfg.environment or "").lower() in PROD_LIKE_ENVS:
                raise RuntimeError("password_grant_disabled_in_prod")
            if not cfg.admin_username or not cfg.admin_password:
                raise RuntimeError(
                    "Keycloak admin credentials missing: set KC_ADMIN_CLIENT_SECRET or KC_ADMIN_USERNAME/PASSWORD"
                )
            data = {
                "grant_type": "password",
                "client_id": cfg.admin_client_id,
                "username": cfg.admin_username,
                "password": cfg.admin_password,
            }
        r = requests.post(cfg.token_endpoint, data=data, timeout=cfg.timeout_seconds, verify=cfg.verify)
        r.raise_for_status()
        tok = (r.json() or {}).get("access_token")
        if not tok:
            raise RuntimeError("Keycloak admin token missing")
        return str(tok)

    def _hdr(self, token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def _kw(self) -> dict:
        return {"timeout": self.cfg.timeout_seconds, "verify": self.cfg.verify}

    # --- identity-provider contract ---------------------------------------------

    def create_account(
        self,
        *,
        username: str,
        attributes: Mapping[str, str],
        suppress_message: bool = True,
        delivery_mediums: Sequence[str] = (EMAIL_MEDIUM,),
    ) -> str:
        """Create an account with a flat attribute set and return its id.

        Standard attributes (`email`, `given_name`, `family_name`) map to the
        user representation; everything else becomes a single-valued custom
        attribute. When `suppress_message` is False, Keycloak is asked to send
        its own verification mail right away.
        """
        unsupported = [m for m in delivery_mediums if m != EMAIL_MEDIUM]
        if unsupported:
            raise IdentityProviderError("invalid_parameter", f"Unsupported delivery medium: {unsupported[0]}")

        rep: dict = {"username": username, "enabled": True, "emailVerified": False}
        custom: Dict[str, str] = {}
        for name, value in attributes.items():
            if name in _STANDARD_FIELDS:
                rep[_STANDARD_FIELDS[name]] = value
            else:
                custom[name] = value
        rep["attributes"] = to_keycloak_attributes(custom)

        token = self._token()
        url = f"{self.cfg.admin_base}/users"
        r = requests.post(url, headers=self._hdr(token), json=rep, **self._kw())
        if r.status_code not in (201, 204):
            _raise_for_create(r)
        account_id = (r.headers.get("Location") or "").rstrip("/").split("/")[-1]
        if not account_id:
            # Older servers omit Location; resolve by exact username instead
            found = self._search(token, AccountFilter.by_username(username))
            if not found or not found[0].get("id"):
                raise IdentityProviderError("unknown", "user_id_missing")
            account_id = str(found[0]["id"])

        if not suppress_message:
            self._execute_actions(token, account_id, ["VERIFY_EMAIL"])
        return account_id

    def list_accounts(self, account_filter: AccountFilter) -> List[dict]:
        """Return user representations matching the filter exactly."""
        token = self._token()
        return self._search(token, account_filter)

    def add_to_group(self, *, account_id: str, group: str) -> None:
        token = self._token()
        base = self.cfg.admin_base
        g = requests.get(
            f"{base}/groups", headers=self._hdr(token), params={"search": group, "exact": "true"}, **self._kw()
        )
        _raise_for_status(g, "group lookup")
        match = next((it for it in (g.json() or []) if it.get("name") == group), None)
        if not match or not match.get("id"):
            raise IdentityProviderError("not_found", f"group_not_found: {group}", 404)
        put = requests.put(f"{base}/users/{account_id}/groups/{match['id']}", headers=self._hdr(token), **self._kw())
        _raise_for_status(put, "group assignment")
        logger.info("Account %s assigned to group: %s", account_id, group)

    def set_temporary_password(self, *, account_id: str, password: str) -> None:
        token = self._token()
        url = f"{self.cfg.admin_base}/users/{account_id}/reset-password"
        body = {"type": "password", "value": password, "temporary": True}
        r = requests.put(url, headers=self._hdr(token), json=body, **self._kw())
        if r.status_code == 400:
            raise IdentityProviderError("invalid_password", _error_text(r) or "password_set_failed", 400)
        _raise_for_status(r, "password reset")

    def set_email_verified(self, *, account_id: str, verified: bool) -> None:
        """Update the verification flag; unverified accounts must verify on login."""
        token = self._token()
        url = f"{self.cfg.admin_base}/users/{account_id}"
        rep: dict = {"emailVerified": bool(verified)}
        if not verified:
            rep["requiredActions"] = ["VERIFY_EMAIL"]
        r = requests.put(url, headers=self._hdr(token), json=rep, **self._kw())
        _raise_for_status(r, "verification update")

    # --- helpers ------------------------------------------------------------------

    def _search(self, token: str, account_filter: AccountFilter) -> List[dict]:
        url = f"{self.cfg.admin_base}/users"
        params = {**account_filter.to_params(), "briefRepresentation": "false"}
        r = requests.get(url, headers=self._hdr(token), params=params, **self._kw())
        _raise_for_status(r, "account lookup")
        arr = r.json() or []
        return [u for u in arr if isinstance(u, dict) and account_filter.matches(u)]

    def _execute_actions(self, token: str, account_id: str, actions: List[str]) -> None:
        url = f"{self.cfg.admin_base}/users/{account_id}/execute-actions-email"
        r = requests.put(url, headers=self._hdr(token), json=actions, **self._kw())
        _raise_for_status(r, "execute actions email")


__all__ = ["AdminClient", "IdentityProviderError"]
