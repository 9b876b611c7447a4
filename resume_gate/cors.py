"""
CORS headers for the intake endpoint.

The site that hosts the request form is the only allowed origin. With no
SITE_URL configured the request's own Origin is reflected, and "*" is used
when neither is available (e.g. curl).
"""
from starlette.requests import Request

from resume_gate.config import Settings

ALLOW_METHODS = "POST,GET,OPTIONS"
ALLOW_HEADERS = "content-type"


def cors_headers(request: Request, settings: Settings) -> dict[str, str]:
    origin = request.headers.get("origin", "")
    allow = settings.site_url.rstrip("/")
    return {
        "access-control-allow-origin": allow or origin or "*",
        "access-control-allow-methods": ALLOW_METHODS,
        "access-control-allow-headers": ALLOW_HEADERS,
    }
