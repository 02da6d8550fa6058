"""
Configuration and startup security checks for ClassCast provisioning.

Why:
    The signup workflow talks to two external systems (Keycloak and the
    Postgres profile store). Their coordinates are read from the environment
    exactly once and handed to the workflow as an explicit, immutable struct so
    tests can build the workflow with swapped collaborators.

Permissions: The caller needs no special privileges. `ensure_secure_config_on_startup`
simply reads environment variables and raises `SystemExit` on fatal
misconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping
import os


PROD_LIKE_ENVS = frozenset({"prod", "production", "stage", "staging"})


def _is_prod_like(env: str) -> bool:
    return (env or "").lower() in PROD_LIKE_ENVS


def _env_flag(env: Mapping[str, str], name: str, default: str = "false") -> bool:
    return (env.get(name, default) or "").strip().lower() == "true"


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class KeycloakConfig:
    base_url: str  # internal base URL (server-to-server), e.g., http://keycloak:8080
    realm: str  # realm that holds the accounts, e.g., classcast
    admin_realm: str = "master"  # token realm for the admin client
    admin_client_id: str = "classcast-admin-cli"
    admin_client_secret: str | None = None
    admin_username: str | None = None  # dev-only password grant fallback
    admin_password: str | None = None
    ca_bundle: str | None = None
    timeout_seconds: float = 10.0
    environment: str = "dev"

    @property
    def admin_base(self) -> str:
        return f"{self.base_url}/admin/realms/{self.realm}"

    @property
    def token_endpoint(self) -> str:
        return f"{self.base_url}/realms/{self.admin_realm}/protocol/openid-connect/token"

    @property
    def verify(self) -> str | bool:
        # Honor CA bundle in production environments; default to system CAs
        return self.ca_bundle if self.ca_bundle else True


@dataclass(frozen=True)
class ProvisioningConfig:
    keycloak: KeycloakConfig
    profiles_backend: str = "memory"  # "memory" | "db"
    database_url: str | None = None
    profiles_table: str = "public.user_profiles"
    student_group: str = "students"
    instructor_group: str = "instructors"
    auto_create_profile_table: bool = False
    environment: str = "dev"

    @property
    def is_prod_like(self) -> bool:
        return _is_prod_like(self.environment)


def load_provisioning_config(env: Mapping[str, str] | None = None) -> ProvisioningConfig:
    """Build the provisioning configuration from environment variables.

    Parameters
    ----------
    env:
        Optional mapping used instead of `os.environ` (tests pass a dict).
    """
    env = os.environ if env is None else env
    environment = (env.get("CLASSCAST_ENV", "dev") or "dev").strip().lower()
    keycloak = KeycloakConfig(
        base_url=(env.get("KC_BASE_URL") or "http://localhost:8080").rstrip("/"),
        realm=env.get("KC_REALM") or "classcast",
        admin_realm=env.get("KC_ADMIN_REALM") or "master",
        admin_client_id=env.get("KC_ADMIN_CLIENT_ID") or "classcast-admin-cli",
        admin_client_secret=env.get("KC_ADMIN_CLIENT_SECRET") or None,
        admin_username=env.get("KC_ADMIN_USERNAME") or None,
        admin_password=env.get("KC_ADMIN_PASSWORD") or None,
        ca_bundle=env.get("KEYCLOAK_CA_BUNDLE") or None,
        timeout_seconds=_env_float(env, "KC_TIMEOUT_SECONDS", 10.0),
        environment=environment,
    )
    return ProvisioningConfig(
        keycloak=keycloak,
        profiles_backend=(env.get("PROFILES_BACKEND") or "memory").strip().lower(),
        database_url=env.get("DATABASE_URL") or None,
        profiles_table=env.get("PROFILES_TABLE") or "public.user_profiles",
        student_group=env.get("STUDENT_GROUP") or "students",
        instructor_group=env.get("INSTRUCTOR_GROUP") or "instructors",
        auto_create_profile_table=_env_flag(env, "AUTO_CREATE_PROFILE_TABLE"),
        environment=environment,
    )


def ensure_secure_config_on_startup(cfg: ProvisioningConfig | None = None) -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - Keycloak admin client secret must be configured (no password grant in prod).
    - KC_BASE_URL must use HTTPS.
    - Profiles must be persisted in Postgres, not the in-memory dev store.
    - DATABASE_URL must not explicitly disable TLS.
    """
    cfg = cfg or load_provisioning_config()
    if not cfg.is_prod_like:
        return  # dev/test remain permissive

    secret = (cfg.keycloak.admin_client_secret or "").strip()
    if not secret or secret.upper().startswith("CHANGE_ME"):
        raise SystemExit(
            "Refusing to start: KC_ADMIN_CLIENT_SECRET is unset or a placeholder in production."
        )

    if cfg.keycloak.base_url.strip().lower().startswith("http://"):
        raise SystemExit("Refusing to start: KC_BASE_URL must use https in production (got http).")

    if cfg.profiles_backend != "db":
        raise SystemExit(
            "Refusing to start: PROFILES_BACKEND=db is mandatory in production/staging."
        )

    if "sslmode=disable" in (cfg.database_url or ""):
        raise SystemExit(
            "Refusing to start: DATABASE_URL contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )


__all__ = [
    "KeycloakConfig",
    "ProvisioningConfig",
    "load_provisioning_config",
    "ensure_secure_config_on_startup",
]
