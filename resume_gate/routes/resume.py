"""
Resume request endpoints.

POST    /api/resume-request            - form submission → approver email
GET     /api/resume-decision?token=T   - approver clicks approve/deny link
OPTIONS /{any path}                    - CORS preflight

Every ResumeGateError is caught here and turned into a response: JSON for
the intake endpoint (the browser form reads {"error"}), an HTML page for the
decision endpoint (the approver reads it in a browser tab). Unexpected
exceptions are logged with traceback and rendered as a generic 500.
"""
import logging
from html import escape

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from resume_gate.cors import cors_headers
from resume_gate.errors import ResumeGateError, ValidationError
from resume_gate.services import Services, get_services
from resume_gate.templates import result_page

logger = logging.getLogger(__name__)

router = APIRouter()

INTAKE_ENV = ("APPROVAL_SIGNING_SECRET", "HUNTER_EMAIL", "RESEND_API_KEY", "RESEND_FROM", "SITE_URL")
DECISION_ENV = ("APPROVAL_SIGNING_SECRET", "RESEND_API_KEY", "RESEND_FROM")


def _json(payload: dict, status_code: int, request: Request, services: Services) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=cors_headers(request, services.settings))


def _page(message: str, status_code: int) -> HTMLResponse:
    return HTMLResponse(result_page(escape(message)), status_code=status_code)


@router.options("/{path:path}")
def preflight(request: Request, services: Services = Depends(get_services)):
    return Response(status_code=204, headers=cors_headers(request, services.settings))


@router.post("/api/resume-request")
async def create_resume_request(request: Request, services: Services = Depends(get_services)):
    try:
        services.settings.require(*INTAKE_ENV)
        try:
            form = await request.json()
        except ValueError as e:
            raise ValidationError("Invalid JSON body.") from e
        origin = f"{request.url.scheme}://{request.url.netloc}"
        # Intake blocks on the email transport; keep it off the event loop.
        await run_in_threadpool(services.intake.submit, form, origin)
    except ResumeGateError as e:
        if e.status_code >= 500:
            logger.error("Resume request failed: %s", e.message)
        return _json({"error": e.message}, e.status_code, request, services)
    except Exception:
        logger.exception("Unexpected error handling resume request")
        return _json({"error": "Unable to process request."}, 500, request, services)
    return _json({"ok": True}, 200, request, services)


@router.get("/api/resume-decision", response_class=HTMLResponse)
def resume_decision(token: str | None = Query(None), services: Services = Depends(get_services)):
    try:
        services.settings.require(*DECISION_ENV)
        result = services.decisions.handle(token)
    except ResumeGateError as e:
        if e.status_code >= 500:
            logger.error("Resume decision failed: %s", e.message)
            return _page(f"Error: {e.message}", e.status_code)
        return _page(e.message, e.status_code)
    except Exception:
        logger.exception("Unexpected error handling resume decision")
        return _page("Error: Unable to process decision", 500)
    return _page(result.message, result.status_code)
