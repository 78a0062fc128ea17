# tests/conftest.py

import os

import bcrypt

TEST_PASSWORD = "correct horse battery staple"
TEST_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"
TEST_PASSWORD_HASH = bcrypt.hashpw(TEST_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()

# must be in place before privchat.infra.database / privchat.main are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CHAT_PASSWORD"] = TEST_PASSWORD_HASH
os.environ["JWT_SECRET"] = TEST_SECRET
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PASSWORD_SET_DATE"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from privchat.api.deps import current_key_pair  # noqa: E402
from privchat.core.config import Settings, get_settings  # noqa: E402
from privchat.core.keys import generate_key_pair  # noqa: E402
from privchat.core.rate_limit import limiter  # noqa: E402
from privchat.core.tokens import issue_token  # noqa: E402
from privchat.infra.database import Base, SessionLocal, engine, get_db  # noqa: E402
from privchat.main import app  # noqa: E402
from privchat.models.message import Message  # noqa: E402, F401

get_settings.cache_clear()
limiter.enabled = False


@pytest.fixture(scope="session")
def key_pair():
    return generate_key_pair()


@pytest.fixture(scope="session")
def other_key_pair():
    return generate_key_pair()


@pytest.fixture
def settings():
    return Settings(
        chat_password=TEST_PASSWORD_HASH,
        token_secret=TEST_SECRET,
        token_ttl_seconds=3600,
        hash_rounds=4,
        rate_limit_enabled=False,
    )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db, settings, key_pair):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[current_key_pair] = lambda: key_pair
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(settings):
    token = issue_token(settings.token_secret, settings.token_ttl_seconds)
    return {"Authorization": f"Bearer {token}"}
