import os

from cryptography.fernet import Fernet

# Must be set before openwrite.config.settings is imported
os.environ.setdefault("ENCRYPTION_KEY", Fernet.generate_key().decode("ascii"))
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from openwrite.core.app_factory import create_app
from openwrite.database import Database

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture()
def db():
    # Shared in-memory DB across connections
    database = Database("sqlite://")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture()
def app(db):
    return create_app(db=db, create_tables=False)


@pytest.fixture()
def make_client(app):
    """Factory for independent clients, each with its own cookie jar."""
    clients = []

    def _make():
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture()
def client(make_client):
    return make_client()


def register(client, name="Ada Writer", email="ada@example.com", password=DEFAULT_PASSWORD):
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()["user"]


def create_workspace(client):
    response = client.post("/api/organization/create-personal")
    assert response.status_code == 201, response.text
    return response.json()["id"]


def create_project(client, title="The Long Night", **fields):
    response = client.post("/api/projects", json={"title": title, **fields})
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture()
def author(client):
    """A signed-in user with a personal workspace."""
    register(client)
    create_workspace(client)
    return client


@pytest.fixture()
def project_id(author):
    return create_project(author)
