"""
Shared fixtures for the ControlClin test suite.

Every test gets its own core: a temporary SQLite file for the local tier and
an in-memory document client for the remote tier. Nothing touches the
developer's database or a real Redis.
"""
from typing import Dict, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from controlclin.api.deps import get_analyzer, get_identity, get_store
from controlclin.core.config import settings
from controlclin.db.local_store import LocalStateStore
from controlclin.db.models import User
from controlclin.db.remote_store import RemoteStateStore
from controlclin.db.seed import build_seed_payload
from controlclin.db.store import ClinicStore
from controlclin.main import app
from controlclin.services.ai_service import ExamAnalyzer
from controlclin.services.identity_service import IdentityProvider


class InMemoryDocumentClient:
    """Remote document store double. Set ``fail`` to make every call raise."""

    def __init__(self):
        self.documents: Dict[str, dict] = {}
        self.writes = 0
        self.fail = False

    async def get_document(self, path: str) -> Optional[dict]:
        if self.fail:
            raise ConnectionError("remote unreachable")
        return self.documents.get(path)

    async def set_document(self, path: str, document: dict) -> None:
        if self.fail:
            raise ConnectionError("remote unreachable")
        self.writes += 1
        self.documents[path] = document


class StepClock:
    """Deterministic millisecond clock, one tick per call."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def local_store(tmp_path):
    return LocalStateStore(url=f"sqlite:///{tmp_path / 'local.db'}", key="TEST_STATE")


@pytest.fixture
def document_client():
    return InMemoryDocumentClient()


@pytest.fixture
def remote_store(document_client):
    return RemoteStateStore(document_client, legacy_key="legacy", timeout=1.0)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store(local_store, clock):
    """Local-only core loaded with the default dataset, tenant c1 active."""
    core = ClinicStore(local_store, clock=clock)
    core.state.load_payload(build_seed_payload())
    core.active_tenant_id = "c1"
    return core


@pytest.fixture
def synced_store(local_store, remote_store, clock):
    """Empty core wired to the in-memory remote."""
    return ClinicStore(local_store, remote_store, clock=clock)


@pytest.fixture
def identity(tmp_path):
    return IdentityProvider(f"sqlite:///{tmp_path / 'identity.db'}")


@pytest.fixture
def super_admin(store) -> User:
    return store.state.users.get("u0")


@pytest.fixture
def clinic_admin(store) -> User:
    return store.state.users.get("u1")


@pytest.fixture
def professional(store) -> User:
    """Dra. Camila, professional p2."""
    return store.state.users.get("u2")


@pytest.fixture
def other_professional(store) -> User:
    """Dr. Rangel, professional p3."""
    return store.state.users.get("u3")


@pytest.fixture
async def client(store, identity):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_identity] = lambda: identity
    app.dependency_overrides[get_analyzer] = lambda: ExamAnalyzer(api_key=None)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
