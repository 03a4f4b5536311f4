"""Shared fixtures: in-memory database, token service, faked provider and API app."""
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from api.app import create_app
from api.dependencies import get_exchange_service, get_token_service
from client.session_store import MemoryBackend, SessionStore
from db.database import create_db_engine, get_db, init_db
from identity.exchange_service import CodeExchangeService
from identity.id_token import IdTokenClaims
from identity.jwt_utils import AppTokenService
from oauth.pkce import PKCEStash

JWT_TEST_SECRET = "test-secret-for-application-tokens"
CLIENT_ID = "test-client.apps.googleusercontent.com"
CLIENT_SECRET = "test-client-secret"
REDIRECT_URI = "http://localhost:3000/auth/callback"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


def make_claims(
    sub: str = "google-sub-1",
    email: str = "alice@example.com",
    email_verified: bool = True,
    name: str = "Alice Example",
    picture: str = "https://lh3.googleusercontent.com/a/alice",
) -> IdTokenClaims:
    return IdTokenClaims(
        subject=sub,
        email=email,
        email_verified=email_verified,
        name=name,
        picture=picture,
        audience=CLIENT_ID,
    )


class FakeIdTokenVerifier:
    """Stands in for Google ID token verification"""

    def __init__(self, claims: IdTokenClaims = None, error: Exception = None):
        self.claims = claims or make_claims()
        self.error = error
        self.calls = []

    async def verify(self, token, audience):
        self.calls.append((token, audience))
        if self.error is not None:
            raise self.error
        return self.claims


def google_token_transport(requests=None, status_code=200, body=None):
    """MockTransport for the Google token endpoint

    Records each request's form fields in ``requests`` when given.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            requests.append(form)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": "invalid_grant"})
        return httpx.Response(200, json=body if body is not None else {
            "id_token": "google-id-token",
            "access_token": "ya29.access",
            "token_type": "Bearer",
        })

    return httpx.MockTransport(handler)


@pytest.fixture
def db_engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def token_service():
    return AppTokenService(secret=JWT_TEST_SECRET)


@pytest.fixture
def id_verifier():
    return FakeIdTokenVerifier()


@pytest.fixture
def token_requests():
    return []


@pytest.fixture
def exchange_service(token_service, id_verifier, token_requests):
    return CodeExchangeService(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        id_token_verifier=id_verifier,
        token_service=token_service,
        http_client=httpx.AsyncClient(transport=google_token_transport(token_requests)),
    )


@pytest.fixture
def app(db_engine, token_service, exchange_service):
    app = create_app(init_database=False)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: token_service
    app.dependency_overrides[get_exchange_service] = lambda: exchange_service
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def store():
    return SessionStore(MemoryBackend())


@pytest.fixture
def stash(tmp_path):
    return PKCEStash(stash_file=tmp_path / "pkce.json")
