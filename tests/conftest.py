"""
Pytest configuration and shared fixtures.
"""

from contextlib import ExitStack

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text

from api.config import APIConfig
from api.database import BookStore
from api.main import create_app


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def api_config(tmp_path):
    """Configuration pointing at a throwaway SQLite database."""
    return APIConfig(
        _env_file=None,
        database_url=sqlite_url(tmp_path / "books.db"),
        jwt_secret="test-secret",
        auth_users="",
    )


@pytest.fixture
def client(api_config):
    """Test client with the lifespan (schema sync) already run."""
    with TestClient(create_app(api_config)) as client:
        yield client


def drop_books_table(database_url: str) -> None:
    """Remove the books table behind a running app."""
    engine = create_engine(database_url.replace("+aiosqlite", ""))
    try:
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE books"))
    finally:
        engine.dispose()


@pytest.fixture
def make_failing_client(api_config):
    """Build test clients whose books table disappears after startup."""
    with ExitStack() as stack:

        def make(**overrides):
            config = api_config.model_copy(update=overrides)
            client = stack.enter_context(
                TestClient(create_app(config), raise_server_exceptions=False)
            )
            drop_books_table(config.database_url)
            return client

        yield make


@pytest.fixture
def token(client):
    """Token issued by the login endpoint."""
    response = client.post("/api/auth/login", json={"username": "alice", "password": "x"})
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_book_data():
    """Book fields as sent over the wire."""
    return {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "publishedDate": "1925-04-10",
        "numberOfPages": 180,
    }


@pytest_asyncio.fixture
async def book_store(tmp_path):
    """Record store over a fresh SQLite file."""
    store = BookStore(sqlite_url(tmp_path / "store.db"))
    await store.init_schema()
    yield store
    await store.close()
