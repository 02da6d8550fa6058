"""
Signup API routes: role-based account provisioning.

Why:
    Public entry point for student and instructor self-registration. The
    request body is handed to the provisioning workflow unparsed so invalid
    JSON and schema violations are reported in the same envelope as every
    other outcome.

Behavior:
    - `POST /api/auth/signup/role-based` runs the workflow in a worker thread
      (the identity provider and profile store clients are blocking).
    - `OPTIONS` answers CORS preflight with 204.
    - Every response carries the fixed CORS header set.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from classcast.provisioning.responses import CORS_HEADERS
from classcast.provisioning.workflow import SignupWorkflow, build_default_workflow


logger = logging.getLogger("classcast.web")

signup_router = APIRouter(tags=["Signup"])

SIGNUP_PATH = "/api/auth/signup/role-based"

_WORKFLOW: SignupWorkflow | None = None


def get_workflow() -> SignupWorkflow:
    """Return the active workflow, building the default one lazily."""
    global _WORKFLOW
    if _WORKFLOW is None:
        _WORKFLOW = build_default_workflow()
    return _WORKFLOW


def set_workflow(workflow: SignupWorkflow | None) -> None:
    """Allow tests to swap the workflow (or reset it with None)."""
    global _WORKFLOW
    _WORKFLOW = workflow


@signup_router.post(SIGNUP_PATH)
async def role_based_signup(request: Request):
    """Create a student or instructor account.

    Status codes:
        201 created; 400 invalid JSON, schema or business-rule failure;
        409 duplicate account or role identifier; 500 provisioning failure.
    """
    body = await request.body()
    workflow = get_workflow()
    result = await asyncio.to_thread(workflow.handle, body)
    if result.status_code >= 500:
        logger.warning("signup returned %s: %s", result.status_code, result.body.get("error"))
    return JSONResponse(result.body, status_code=result.status_code, headers=result.headers)


@signup_router.options(SIGNUP_PATH)
async def role_based_signup_preflight():
    return Response(status_code=204, headers=dict(CORS_HEADERS))
