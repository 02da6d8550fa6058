"""
ClassCast provisioning API (FastAPI application).

Startup:
    - Loads a local `.env` outside of pytest (`CLASSCAST_ENABLE_DOTENV`).
    - Fails fast on insecure production configuration.
    - Mounts the signup routes and a liveness endpoint.
"""
from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from classcast.config import ensure_secure_config_on_startup
from classcast.web.routes.signup import signup_router


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via CLASSCAST_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("CLASSCAST_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

ensure_secure_config_on_startup()

logger = logging.getLogger("classcast.web")

app = FastAPI(title="ClassCast", description="Role-based account provisioning", version="0.1.0")
app.include_router(signup_router)


@app.get("/health")
async def health_check():
    # Minimal health endpoint used by orchestrators and tests.
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": "private, no-store"})


if __name__ == "__main__":  # pragma: no cover - local dev server
    import uvicorn

    uvicorn.run("classcast.web.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
