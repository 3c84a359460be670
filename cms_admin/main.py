from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException

from cms_admin.api.routers import ui
from cms_admin.infra.api_client import check_api_ready

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="cms-admin",
    description="Content-management admin panel for the company website.",
    version="0.1.0",
)

app.include_router(ui.router, tags=["admin-ui"])


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
async def readyz() -> dict[str, object]:
    api_ok = await check_api_ready()
    checks = {"website_api": "ok" if api_ok else "fail"}
    if not api_ok:
        raise HTTPException(
            status_code=503,
            detail={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
