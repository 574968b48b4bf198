"""Gemeinsame Fixtures: In-Memory SQLite, TestClient, eingeloggter User"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["METALS_DEV_KEY"] = ""
os.environ["CRON_SECRET"] = ""

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client


def register(client, email: str, password: str = "geheim1234") -> dict:
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return register(client, "anna@example.com")


@pytest.fixture
def other_auth_headers(client):
    return register(client, "ben@example.com")
