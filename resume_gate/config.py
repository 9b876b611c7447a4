"""
Process configuration for the resume request service.

Settings is built once at startup (see main.lifespan) and handed to every
component. It is a frozen Pydantic model, so nothing can mutate it after
construction. Values come from environment variables; a local .env file is
loaded first with python-dotenv when present.

The signing secret is excluded from repr() so it cannot leak into logs or
tracebacks.

Required variables are checked per endpoint rather than at startup, so a
deployment that only serves one route can omit the other route's variables:

    settings.require("APPROVAL_SIGNING_SECRET", "RESEND_FROM")
    # raises ConfigError("Missing required environment variable: RESEND_FROM")
"""
import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from resume_gate.errors import ConfigError

DEFAULT_PDF_KEY = "Hunter-Ramp-Resume.pdf"

# Env var name → Settings field. require() reports missing values by env name.
_ENV_FIELDS = {
    "APPROVAL_SIGNING_SECRET": "signing_secret",
    "HUNTER_EMAIL": "approver_email",
    "RESEND_API_KEY": "resend_api_key",
    "RESEND_FROM": "email_from",
    "SITE_URL": "site_url",
    "APPROVAL_BASE_URL": "approval_base_url",
    "RESUME_PDF_KEY": "resume_pdf_key",
}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    signing_secret: str = Field(default="", repr=False)
    approver_email: str = ""
    resend_api_key: str = Field(default="", repr=False)
    email_from: str = ""
    site_url: str = ""
    approval_base_url: str = ""
    resume_pdf_key: str = DEFAULT_PDF_KEY
    resume_files_dir: str = "resume_files"

    store_backend: str = "sqlite"       # "memory" | "sqlite"
    db_path: str = "resume_requests.db"

    email_transport: str = "resend"     # "resend" | "smtp" | "dry_run"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = Field(default="", repr=False)

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        if load_dotenv_file:
            load_dotenv()
        env = os.environ
        transport = env.get("RESUME_EMAIL_TRANSPORT", "resend").strip().lower()
        if env.get("RESUME_EMAIL_DRY_RUN", "0") == "1":
            transport = "dry_run"
        return cls(
            signing_secret=env.get("APPROVAL_SIGNING_SECRET", ""),
            approver_email=env.get("HUNTER_EMAIL", ""),
            resend_api_key=env.get("RESEND_API_KEY", ""),
            email_from=env.get("RESEND_FROM", ""),
            site_url=env.get("SITE_URL", ""),
            approval_base_url=env.get("APPROVAL_BASE_URL", ""),
            resume_pdf_key=env.get("RESUME_PDF_KEY") or DEFAULT_PDF_KEY,
            resume_files_dir=env.get("RESUME_FILES_DIR", "resume_files"),
            store_backend=env.get("RESUME_STORE", "sqlite").strip().lower(),
            db_path=env.get("RESUME_DB_PATH", "resume_requests.db"),
            email_transport=transport,
            smtp_host=env.get("SMTP_HOST", "localhost"),
            smtp_port=int(env.get("SMTP_PORT", "587")),
            smtp_user=env.get("SMTP_USER", ""),
            smtp_pass=env.get("SMTP_PASS", ""),
        )

    @property
    def secret_bytes(self) -> bytes:
        return self.signing_secret.encode("utf-8")

    def require(self, *env_names: str) -> None:
        """
        Raise ConfigError for the first listed env var that has no value.

        RESEND_API_KEY only counts when the Resend transport is active; the
        SMTP and dry-run transports never need it.
        """
        for name in env_names:
            if name == "RESEND_API_KEY" and self.email_transport != "resend":
                continue
            if not getattr(self, _ENV_FIELDS[name]):
                raise ConfigError(f"Missing required environment variable: {name}")
