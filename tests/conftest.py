"""Pytest configuration and shared fixtures for the socialhub tests."""

import os
import sys
import tempfile
from pathlib import Path
from typing import Callable, Generator

# main.py builds a module-level app on import; point it at a scratch
# directory before anything imports it.
_SCRATCH = tempfile.mkdtemp(prefix="socialhub-tests-")
os.environ.setdefault("SOCIALHUB_ENVIRONMENT", "testing")
os.environ.setdefault("SOCIALHUB_DATABASE_PATH", os.path.join(_SCRATCH, "import.db"))
os.environ.setdefault("SOCIALHUB_UPLOAD_DIR", os.path.join(_SCRATCH, "uploads"))
os.environ.setdefault("SOCIALHUB_BCRYPT_ROUNDS", "4")
os.environ.setdefault("SOCIALHUB_LOG_LEVEL", "ERROR")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from loguru import logger

from config import Environment, Settings
from database import Database
from main import create_app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"


@pytest.fixture(scope="function", autouse=True)
def reset_loguru():
    """Only surface errors during tests."""
    logger.remove()
    logger.add(sys.stderr, level="ERROR", format="{time} {level} {message}", catch=True)
    yield
    logger.remove()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    views_dir = tmp_path / "views"
    views_dir.mkdir()
    (views_dir / "index.html").write_text("<h1>feed</h1>")
    (views_dir / "login.html").write_text("<h1>login</h1>")

    return Settings(
        environment=Environment.TESTING,
        database_path=str(tmp_path / "test.db"),
        upload_dir=str(tmp_path / "uploads"),
        views_dir=str(views_dir),
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        bcrypt_rounds=4,
        log_level="ERROR",
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture
def db(app: FastAPI) -> Database:
    return app.state.db


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """An anonymous client with its own cookie jar."""
    with TestClient(app) as c:
        yield c


def register(client: TestClient, username: str, password: str = "pass1234", name: str | None = None, **files):
    return client.post(
        "/register",
        data={"username": username, "password": password, "name": name or username.title()},
        files=files or None,
        follow_redirects=False,
    )


def login(client: TestClient, username: str, password: str = "pass1234"):
    return client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False,
    )


@pytest.fixture
def make_user(app: FastAPI) -> Generator[Callable[..., TestClient], None, None]:
    """Register a user and hand back a client logged in as them."""
    clients = []

    def _make(username: str, password: str = "pass1234", name: str | None = None) -> TestClient:
        c = TestClient(app)
        clients.append(c)
        assert register(c, username, password, name).status_code == 303
        assert login(c, username, password).status_code == 303
        return c

    yield _make
    for c in clients:
        c.close()


@pytest.fixture
def admin_client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        assert login(c, ADMIN_USERNAME, ADMIN_PASSWORD).status_code == 303
        yield c


def user_id_of(client: TestClient) -> int:
    return client.get("/api/user-info").json()["id"]


def create_post(client: TestClient, content: str = "hello", privacy: str = "public", **files):
    return client.post(
        "/create-post",
        data={"content": content, "privacy": privacy},
        files=files or None,
        follow_redirects=False,
    )
