import pytest
from fastapi.testclient import TestClient

from resume_gate.config import Settings
from resume_gate.email import DryRunTransport
from resume_gate.main import create_app
from resume_gate.models import RequestRecord, Requester
from resume_gate.services import Services
from resume_gate.storage import InMemoryObjectStore
from resume_gate.store import InMemoryRequestStore

SECRET = "test-signing-secret-for-unit-tests-only"
PDF_KEY = "Hunter-Ramp-Resume.pdf"
PDF_BYTES = b"%PDF-1.4 fake resume"
NOW = 1_790_000_000.0


class FakeClock:
    """Callable clock whose time only moves when a test moves it."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        signing_secret=SECRET,
        approver_email="hunter@example.com",
        email_from="Resume Bot <resume@example.com>",
        site_url="https://hunterramp.dev/",
        resume_pdf_key=PDF_KEY,
        store_backend="memory",
        email_transport="dry_run",
    )


@pytest.fixture
def store(clock):
    return InMemoryRequestStore(clock=clock)


@pytest.fixture
def objects():
    return InMemoryObjectStore({PDF_KEY: PDF_BYTES})


@pytest.fixture
def mailer():
    return DryRunTransport()


@pytest.fixture
def services(settings, store, objects, mailer, clock):
    return Services(settings, store, objects, mailer, clock=clock)


@pytest.fixture
def client(services):
    return TestClient(create_app(services))


@pytest.fixture
def pending_record(store, clock):
    record = RequestRecord(
        id="7c1e2f4a-0b9d-4c55-9a0e-3f1d2b6c8e11",
        created_at="2026-10-18T12:00:00+00:00",
        requester=Requester(name="Jo", email="jo@x.com", company="Acme", reason="hiring"),
    )
    store.put(record.id, record)
    return record
