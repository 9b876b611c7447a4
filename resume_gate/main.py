"""
Resume Gate - FastAPI backend.

Run locally:
    APPROVAL_SIGNING_SECRET=changeme RESUME_EMAIL_DRY_RUN=1 uvicorn resume_gate.main:app --reload

Endpoints:
    POST    /api/resume-request
    GET     /api/resume-decision?token=TOKEN
    OPTIONS /{any}
    GET     /health

Unknown paths and wrong methods get a plain-text 404 "Not found".
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from resume_gate.config import Settings
from resume_gate.routes.resume import router as resume_router
from resume_gate.services import Services

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_app(services: Services | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            app.state.services = Services.from_settings(Settings.from_env())
        yield

    app = FastAPI(title="Resume Gate", version="0.1.0", lifespan=lifespan)
    app.state.services = services
    app.include_router(resume_router)

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request, exc):
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
