"""
Wiring: one Services object per app, built from Settings at startup.

Routes reach it through the get_services dependency; tests build their own
with in-memory collaborators and hand it to create_app().
"""
import time

from fastapi import Request

from resume_gate.config import Settings
from resume_gate.decision import DecisionHandler
from resume_gate.email import build_transport
from resume_gate.intake import IntakeHandler
from resume_gate.storage import FileSystemObjectStore, ObjectStore
from resume_gate.store import RequestStore, build_store


class Services:
    def __init__(self, settings: Settings, store: RequestStore, objects: ObjectStore, mailer, clock=time.time):
        self.settings = settings
        self.store = store
        self.objects = objects
        self.mailer = mailer
        self.intake = IntakeHandler(settings, store, mailer, clock=clock)
        self.decisions = DecisionHandler(settings, store, objects, mailer, clock=clock)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        return cls(
            settings=settings,
            store=build_store(settings),
            objects=FileSystemObjectStore(settings.resume_files_dir),
            mailer=build_transport(settings),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services
