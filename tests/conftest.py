"""
Shared pytest fixtures for the Architekt test suite.

Provides:
    - app: Flask application (session-scoped, memory persistence)
    - store: Fresh ProjectAggregateStore per test, installed on the app (autouse)
    - client: Flask test client (function-scoped)
    - project: Pre-created Project for the default owner
"""

import pytest

from architekt import create_app
from architekt.services.persistence import DEFAULT_OWNER, MemoryPersistence
from architekt.services.project_store import ProjectAggregateStore

OWNER = DEFAULT_OWNER


# ── App & store fixtures ─────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(autouse=True)
def store(app):
    """Per-test: swap in an empty memory-backed store so tests never share state."""
    fresh = ProjectAggregateStore(MemoryPersistence())
    previous = app.extensions["architekt_store"]
    app.extensions["architekt_store"] = fresh
    with app.app_context():
        yield fresh
    app.extensions["architekt_store"] = previous


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def project(store):
    """A Project with only its root System."""
    return store.create_project(OWNER, {"name": "Payments Platform", "tags": ["core"]})
