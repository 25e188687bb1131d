import asyncio
import os
import tempfile
from pathlib import Path

# Settings are read at import time; configure them before importing the app
USER_SECRET = "test-user-signing-secret-0123456789abcdef"
SERVICE_SECRET = "test-s2s-signing-secret-0123456789abcdef"
os.environ["JWT_SECRET"] = USER_SECRET
os.environ["S2S_SECRET"] = SERVICE_SECRET
os.environ["DB_URL"] = (
    f"sqlite+aiosqlite:///{Path(tempfile.mkdtemp()) / 'draftstore_default.db'}"
)

import jwt
import pytest
from fastapi.testclient import TestClient

from draftstore.core.db.engine import build_engine, build_sessionmaker, get_db_util, init_db
from draftstore.main import app

VALID_SECRET = "s3cr3t-value-long-enough"


def make_user_token(user_id: str = "42", **claims) -> str:
    return jwt.encode({"sub": user_id, **claims}, USER_SECRET, algorithm="HS256")


def make_service_token(service: str = "probate", **claims) -> str:
    return jwt.encode({"sub": service, **claims}, SERVICE_SECRET, algorithm="HS256")


@pytest.fixture()
def engine(tmp_path: Path):
    db_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'drafts.db'}")
    asyncio.run(init_db(db_engine))
    yield db_engine
    asyncio.run(db_engine.dispose())


@pytest.fixture()
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture()
def client(session_factory) -> TestClient:
    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_util] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    """Factory for the credential headers of a caller."""

    def _headers(user_id: str = "42", service: str = "probate", secret: str = VALID_SECRET) -> dict:
        headers = {
            "Authorization": f"Bearer {make_user_token(user_id)}",
            "ServiceAuthorization": make_service_token(service),
        }
        if secret is not None:
            headers["Secret"] = secret
        return headers

    return _headers
