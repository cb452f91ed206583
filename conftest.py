import os
import tempfile

_TEST_DATA_DIR = tempfile.mkdtemp(prefix="movefinder-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DATA_DIR}/bootstrap.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DATA_DIR, "uploads")
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("HUGGINGFACE_API_KEY", None)
os.environ.pop("SMTP_HOST", None)
os.environ.pop("REDIS_URL", None)

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movefinder.main import app
from movefinder.db.session import build_engine, get_db
from movefinder.models.base import Base
from movefinder.core.config import settings
from movefinder.core.rate_limit import reset_rate_limits
from movefinder.services.pricing_rules import seed_default_rules


@pytest.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session_factory(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_default_rules(session)
        await session.commit()
    return factory


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
async def test_client(session_factory, upload_dir):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def valid_quote_data():
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "512-555-0100",
        "move_type": "local",
        "move_date": "2025-11-12",
        "from_address": "123 Oak St, Round Rock, TX",
        "to_address": "456 Elm St, Pflugerville, TX",
        "estimated_size": "2br",
        "special_items": "piano",
        "notes": "Second floor, no elevator",
    }


@pytest.fixture
def create_quote_factory(test_client, valid_quote_data):
    # factory calls are setup, not traffic under test
    async def _create_quote(**kwargs):
        data = dict(valid_quote_data)
        data.update(kwargs)

        reset_rate_limits()
        response = await test_client.post("/api/quotes", json=data)

        return response.json() if response.status_code == 201 else None

    return _create_quote


@pytest.fixture
def app_settings():
    """Return application settings"""
    return settings


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "crud: marks tests related to CRUD operations"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "detection: marks tests related to object detection"
    )
    config.addinivalue_line(
        "markers", "email: marks tests related to notification email"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
    config.addinivalue_line(
        "markers", "history: marks tests related to quote history"
    )
