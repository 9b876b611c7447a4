"""
Error taxonomy for the resume request service.

Every failure a handler can report belongs to exactly one ErrorKind. Handlers
raise a ResumeGateError subclass; the routes catch it at the boundary and map
the kind to an HTTP status with STATUS_CODES. Nothing else in the service
decides status codes.

    VALIDATION  → 400  bad or missing form input, reported to the submitter
    AUTH_TOKEN  → 400  malformed, forged or expired link (message stays generic)
    NOT_FOUND   → 404  unknown request id
    DEPENDENCY  → 500  email transport or object storage failure
    CONFIG      → 500  missing environment variable

The decision state machine does not use these for ordinary outcomes. An
expired link or an already-decided record is a Transition, not an exception.
"""
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH_TOKEN = "auth_token"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    CONFIG = "config"


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH_TOKEN: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DEPENDENCY: 500,
    ErrorKind.CONFIG: 500,
}


class ResumeGateError(Exception):
    kind: ErrorKind = ErrorKind.DEPENDENCY

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class ValidationError(ResumeGateError):
    kind = ErrorKind.VALIDATION


class AuthTokenError(ResumeGateError):
    kind = ErrorKind.AUTH_TOKEN


class NotFoundError(ResumeGateError):
    kind = ErrorKind.NOT_FOUND


class DependencyError(ResumeGateError):
    kind = ErrorKind.DEPENDENCY


class ConfigError(ResumeGateError):
    kind = ErrorKind.CONFIG
