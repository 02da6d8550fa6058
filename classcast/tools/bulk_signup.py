"""Batch provisioning of student and instructor accounts from a JSON file.

The file holds a JSON array of signup payloads (the same shape the signup API
accepts). Each entry runs through the full workflow, one after another; an
entry's failure does not stop the batch.

Usage example:

    python -m classcast.tools.bulk_signup --file users.json
    python -m classcast.tools.bulk_signup --file users.json --dry-run

`--dry-run` stops after schema validation and contacts neither Keycloak nor
Postgres. Configuration comes from the same environment variables as the API
(KC_BASE_URL, KC_REALM, KC_ADMIN_CLIENT_SECRET, PROFILES_BACKEND, ...).

Exit status is 1 when any entry failed, 0 otherwise.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from classcast.identity_access.directory import mask_email
from classcast.provisioning.schemas import collect_errors
from classcast.provisioning.workflow import SignupWorkflow, build_default_workflow


logger = logging.getLogger("classcast.tools.bulk_signup")


@dataclass(frozen=True)
class EntryOutcome:
    index: int
    email: str
    status_code: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code < 300


def load_entries(path: Path) -> list:
    """Read the batch file; it must contain a JSON array."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Cannot read {path}: {exc}")
    if not isinstance(data, list):
        raise SystemExit(f"{path} must contain a JSON array of signup payloads")
    return data


def _email_of(entry) -> str:
    if isinstance(entry, dict) and isinstance(entry.get("email"), str):
        return entry["email"]
    return ""


def validate_entries(entries: Sequence) -> List[EntryOutcome]:
    out: List[EntryOutcome] = []
    for idx, entry in enumerate(entries):
        errors = collect_errors(entry)
        if errors:
            first = errors[0]
            out.append(EntryOutcome(idx, _email_of(entry), 400, f"{first.field}: {first.message}"))
        else:
            out.append(EntryOutcome(idx, _email_of(entry), 200))
    return out


def provision_entries(entries: Sequence, *, workflow: SignupWorkflow) -> List[EntryOutcome]:
    out: List[EntryOutcome] = []
    for idx, entry in enumerate(entries):
        result = workflow.handle_payload(entry)
        error = None if result.status_code < 300 else str(result.body.get("error") or "")
        out.append(EntryOutcome(idx, _email_of(entry), result.status_code, error))
    return out


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Provision student/instructor accounts from a JSON file")
    parser.add_argument("--file", required=True, type=Path, help="JSON array of signup payloads")
    parser.add_argument("--dry-run", action="store_true", help="Validate entries only; do not contact Keycloak")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None, *, workflow: Optional[SignupWorkflow] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    args = _parse_args(argv)

    entries = load_entries(args.file)
    logger.info("Loaded %d signup entries from %s", len(entries), args.file)

    if args.dry_run:
        outcomes = validate_entries(entries)
    else:
        outcomes = provision_entries(entries, workflow=workflow or build_default_workflow())

    for o in outcomes:
        prefix = "[dry-run] " if args.dry_run else ""
        if o.ok:
            logger.info("%s#%d %s -> %d", prefix, o.index, mask_email(o.email), o.status_code)
        else:
            logger.warning("%s#%d %s -> %d (%s)", prefix, o.index, mask_email(o.email), o.status_code, o.error)

    failed = sum(1 for o in outcomes if not o.ok)
    logger.info("Completed: %d ok, %d failed", len(outcomes) - failed, failed)
    return 1 if failed else 0


if __name__ == "__main__":  # pragma: no cover - manual entry point
    raise SystemExit(main())
