"""Test configuration and fixtures"""

import os

# Settings are read at import time; keep tests off Firestore and off the network
os.environ["USE_MOCK_DB"] = "true"
os.environ["AI_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from urbanfix.main import app
from urbanfix.models.user import ActingUser, Role
from urbanfix.routes import deps
from urbanfix.services.classification.keyword_provider import KeywordClassificationProvider
from urbanfix.services.comment_service import CommentService
from urbanfix.services.issue_service import IssueService
from urbanfix.services.storage.memory_store import MemoryDocumentStore
from urbanfix.services.storage.registry import set_document_store
from urbanfix.services.team_service import TeamService


@pytest.fixture
def store():
    """Fresh in-memory document store"""
    return MemoryDocumentStore()


@pytest.fixture
def classifier():
    return KeywordClassificationProvider()


@pytest.fixture
def team_service(store):
    return TeamService(store)


@pytest.fixture
def issue_service(store, classifier, team_service):
    return IssueService(store, classifier, teams=team_service)


@pytest.fixture
def comment_service(store):
    return CommentService(store)


@pytest.fixture
def citizen():
    return ActingUser(id="citizen-1", role=Role.CITIZEN)


@pytest.fixture
def other_citizen():
    return ActingUser(id="citizen-2", role=Role.CITIZEN)


@pytest.fixture
def authority():
    return ActingUser(id="authority-1", role=Role.AUTHORITY)


@pytest.fixture
def admin():
    return ActingUser(id="admin-1", role=Role.ADMIN)


@pytest.fixture
def client(store, issue_service, comment_service, team_service):
    """Test client wired to the fixture services"""
    set_document_store(store)
    app.dependency_overrides[deps.issue_service] = lambda: issue_service
    app.dependency_overrides[deps.comment_service] = lambda: comment_service
    app.dependency_overrides[deps.team_service] = lambda: team_service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    set_document_store(None)


@pytest.fixture
def headers_for():
    """Identity headers the upstream identity provider would forward"""
    def build(user: ActingUser) -> dict:
        return {"X-User-Id": user.id, "X-User-Role": user.role.value}
    return build
