from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from newsdesk.db import init_db
from newsdesk.errors import Conflict, NotFound, PhaseFailure
from newsdesk.web.routers import profiles, runs, settings

logging.basicConfig(
    level=os.getenv("NEWSDESK_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "newsdesk"
app = FastAPI(title=f"{APP_NAME} API")

app.include_router(runs.router)
app.include_router(profiles.router)
app.include_router(settings.router)

@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse({"error": str(exc)}, status_code=404)

@app.exception_handler(Conflict)
async def conflict_handler(request: Request, exc: Conflict):
    return JSONResponse({"error": str(exc)}, status_code=409)

@app.exception_handler(PhaseFailure)
async def phase_failure_handler(request: Request, exc: PhaseFailure):
    return JSONResponse({"error": exc.message, "phase": exc.phase, "logs": exc.logs}, status_code=500)

@app.exception_handler(ValueError)
async def bad_request_handler(request: Request, exc: ValueError):
    return JSONResponse({"error": str(exc)}, status_code=400)

@app.on_event("startup")
async def startup_event():
    await init_db()
    logger.info("%s started", APP_NAME)

@app.get("/health")
async def health():
    return {"ok": True}
