"""
Root conftest.py - Shared fixtures for all test types.

This file is automatically loaded by pytest and provides:
- Temporary repository storage
- FastAPI test client bound to that storage
- Settings overrides through the environment
- Marker assignment by test location
"""
import shutil
import sys
import tempfile
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Add backend and tdd to path for imports
backend_path = Path(__file__).parent.parent / "backend"
tdd_path = Path(__file__).parent
sys.path.insert(0, str(backend_path))
sys.path.insert(0, str(tdd_path))

from app.config import get_settings
from app.dependencies import get_store
from app.main import app
from app.services.repo_store import RepoStore
from shared.factories import RepoBuilder


# -----------------------------------------------------------------------------
# Storage Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def temp_repos_dir():
    """Create a temporary directory for test repos.

    Uses resolve() to get the full path and avoid Windows 8.3 short name issues
    that can cause dulwich init_bare to fail.
    """
    temp_dir = Path(tempfile.mkdtemp()).resolve()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def store(temp_repos_dir) -> RepoStore:
    return RepoStore(temp_repos_dir)


@pytest.fixture
def make_repo(temp_repos_dir):
    """Factory fixture: ``make_repo(name, public=..., description=...)`` -> RepoBuilder.

    Builders are closed at teardown.
    """
    builders = []

    def _make(name: str = "demo", **kwargs) -> RepoBuilder:
        builder = RepoBuilder.create(temp_repos_dir, name, **kwargs)
        builders.append(builder)
        return builder

    yield _make
    for builder in builders:
        builder.close()


# -----------------------------------------------------------------------------
# Settings Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def settings_env(monkeypatch):
    """Set REPOVIEW_* variables and rebuild cached settings.

    Usage: ``settings_env(PUBLIC_URL="https://git.example.com")``
    """
    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(f"REPOVIEW_{key}", value)
        get_settings.cache_clear()
        return get_settings()

    yield _apply
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# API Client Fixtures
# -----------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(store: RepoStore) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for API testing.

    Every dependency that reads repositories is bound to the temporary store.
    Requests without proxy headers come from the ASGI transport's default
    peer address, which is outside the tailnet.
    """
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    if hasattr(app.state, "lfs_storage"):
        del app.state.lfs_storage


# -----------------------------------------------------------------------------
# Marker-based fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _mark_test(request):
    """Automatically apply markers based on test location."""
    if "unit" in str(request.fspath):
        request.applymarker(pytest.mark.unit)
    elif "integration" in str(request.fspath):
        request.applymarker(pytest.mark.integration)
