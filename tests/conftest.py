# tests/conftest.py
import os
import sys
import asyncio
import json
from urllib.parse import urlencode

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath("."))

from bucketlist.database import Base, get_db
from bucketlist.auth import create_access_token, get_password_hash, login_limiter
from bucketlist import crud, models
from bucketlist.schemas import UserCreate
from main import app


# DB (SQLite in-memory for tests)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# One event loop for the WHOLE pytest session
@pytest.fixture(scope="session")
def session_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


# Simple ASGI response/client
class SimpleResponse:
    def __init__(
        self, status_code: int, body: bytes, headers: list[tuple[bytes, bytes]]
    ):
        self.status_code = status_code
        self.content = body
        self.headers = {k.decode(): v.decode() for k, v in headers}

    @property
    def text(self):
        return self.content.decode()

    def json(self):
        return json.loads(self.content.decode())


class SimpleClient:
    """
    Minimal in-process HTTP client driving the ASGI app.

    - uses ONE shared session loop (passed from fixture)
    - does NOT call asyncio.run()
    - does NOT close the loop
    - mirrors the requests.Session call signatures used by ApiClient
    """

    def __init__(self, app, loop):
        self.app = app
        self.loop = loop

    def close(self):
        # do not close the loop here (session fixture closes it)
        pass

    def request(self, method: str, path: str, json_body=None, params=None, headers=None):
        headers = dict(headers or {})
        body_bytes = b""

        if json_body is not None:
            body_bytes = json.dumps(json_body).encode()
            headers.setdefault("content-type", "application/json")

        query = {k: v for k, v in (params or {}).items() if v is not None}
        raw_headers = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method.upper(),
            "scheme": "http",
            "path": path,
            "root_path": "",
            "headers": raw_headers,
            "query_string": urlencode(query, doseq=True).encode(),
            "client": ("testclient", 5000),
            "server": ("testserver", 80),
        }

        async def receive():
            nonlocal body_bytes
            chunk, body_bytes = body_bytes, b""
            return {"type": "http.request", "body": chunk, "more_body": False}

        response_body = bytearray()
        response_status = 500
        response_headers: list[tuple[bytes, bytes]] = []

        async def send(message):
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = message.get("headers", [])
            elif message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))

        # ensure the loop is the current one
        asyncio.set_event_loop(self.loop)
        self.loop.run_until_complete(self.app(scope, receive, send))
        return SimpleResponse(response_status, bytes(response_body), response_headers)

    def get(self, path: str, params=None, headers=None):
        return self.request("GET", path, params=params, headers=headers)

    def post(self, path: str, json=None, headers=None):
        return self.request("POST", path, json_body=json, headers=headers)

    def put(self, path: str, json=None, headers=None):
        return self.request("PUT", path, json_body=json, headers=headers)

    def patch(self, path: str, json=None, headers=None):
        return self.request("PATCH", path, json_body=json, headers=headers)

    def delete(self, path: str, headers=None):
        return self.request("DELETE", path, headers=headers)


# Client fixture: override DB dependency and the login rate limiter per test
@pytest.fixture()
def client(db_session, session_loop):
    def override_get_db():
        yield db_session

    async def no_rate_limit():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[login_limiter] = no_rate_limit

    c = SimpleClient(app, loop=session_loop)
    try:
        yield c
    finally:
        app.dependency_overrides.clear()
        c.close()


def create_user(db_session, email="user@example.com", role="user", name="Traveller"):
    user_in = UserCreate(email=email, name=name, password="secret123", role=role)
    return crud.create_user(db_session, user_in, get_password_hash("secret123"))


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture()
def user(db_session):
    return create_user(db_session)


@pytest.fixture()
def admin(db_session):
    return create_user(db_session, email="admin@example.com", role="admin", name="Admin")


@pytest.fixture()
def make_destination(db_session):
    """Insert a destination row directly, bypassing the API."""

    def factory(**fields):
        values = {
            "title": "Machu Picchu",
            "country": "Peru",
            "description": "",
            "image_url": "https://img.example.com/x.jpg",
        }
        values.update(fields)
        destination = models.Destination(**values)
        db_session.add(destination)
        db_session.commit()
        db_session.refresh(destination)
        return destination

    return factory
