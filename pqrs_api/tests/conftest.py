import os

# Settings() is built at import time and needs these
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient

from pqrs_api.bootstrap import create_app
from pqrs_api.repositories.memory_repo import (
    MemoryBranchRepository,
    MemoryCompanyRepository,
    MemoryLogoStorage,
    MemoryPqrsRepository,
    MemoryResponseRepository,
    MemoryStore,
)
from pqrs_api.services.mail_service import MailSender
from pqrs_api.utils.query_cache import MemoryQueryCache


class FakeMailer(MailSender):
    """Records messages instead of talking SMTP."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send(self, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(message)
        return message["Message-ID"]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def response_cache():
    return MemoryQueryCache()


@pytest.fixture
def app(store, mailer, response_cache):
    app = create_app()
    app.state.pqrs_repo = MemoryPqrsRepository(store)
    app.state.company_repo = MemoryCompanyRepository(store)
    app.state.branch_repo = MemoryBranchRepository(store)
    app.state.response_repo = MemoryResponseRepository(store)
    app.state.logo_storage = MemoryLogoStorage(store)
    app.state.mailer = mailer
    app.state.response_cache = response_cache
    return app


@pytest.fixture
def client(app):
    # store faults must come back as 500 responses, not raise in the test
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def company(store):
    return MemoryCompanyRepository(store).create_company(
        {"id": "c0000000-0000-4000-8000-000000000001", "name": "Acme SAS", "is_active": True}
    )


@pytest.fixture
def branch(store, company):
    return MemoryBranchRepository(store).create_branch(
        {
            "id": "b0000000-0000-4000-8000-000000000001",
            "name": "Sede Norte",
            "slug": "sede-norte-abc123",
            "company_id": company["id"],
            "is_active": True,
        }
    )


@pytest.fixture
def make_pqrs(store, company, branch):
    repo = MemoryPqrsRepository(store)

    def _make(**fields):
        record = {
            "type": "Queja",
            "message": "El pedido llegó incompleto",
            "first_name": "Ana",
            "last_name": "Pérez",
            "email": "ana@example.com",
            "phone": "3001234567",
            "company_id": company["id"],
            "branch_id": branch["id"],
        }
        record.update(fields)
        return repo.create_pqrs(record)

    return _make
