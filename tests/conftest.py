"""
Shared pytest fixtures and configuration for all tests
"""
import io
import json
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from joyex.core.config import Settings
from joyex.core.database import Database
from joyex.services.job_repository import JobRepository
from joyex.services.quality_monitor import QualityMonitor

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Demo mode on, no key, no simulated latency"""
    return Settings(
        environment="test",
        database_url=TEST_DB_URL,
        fal_key=None,
        fal_demo_mode=True,
        fal_mock_delay_min=0.0,
        fal_mock_delay_max=0.0,
        upload_path=str(tmp_path / "uploads"),
        history_limit=5,
        log_format="console",
        log_level="WARNING",
    )


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database per test"""
    db = Database(TEST_DB_URL)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
async def job_repository(database) -> AsyncGenerator[JobRepository, None]:
    async with database.session() as session:
        yield JobRepository(session, history_limit=5)


@pytest.fixture
def quality_monitor() -> QualityMonitor:
    return QualityMonitor(max_metrics=100)


@pytest.fixture
def client(test_settings):
    """TestClient with the lifespan running, so tables exist before the first request"""
    from joyex.main import create_app

    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


def make_image_bytes(width: int = 640, height: int = 480, fmt: str = "PNG", color: str = "red") -> bytes:
    """Encode a solid-color test image"""
    image = Image.new("RGB", (width, height), color=color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


class FakeResponse:
    """Stands in for an aiohttp response inside `async with session.post(...)`"""

    def __init__(self, status: int, payload: Optional[Dict[str, Any]] = None, text: str = ""):
        self.status = status
        self._payload = payload or {}
        self._text = text or json.dumps(self._payload)

    async def json(self):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records outbound POSTs and replays a canned response"""

    def __init__(self, response: FakeResponse):
        self.response = response
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url, json=None, headers=None):
        self.calls.append({"url": url, "json": json, "headers": headers})
        return self.response

    async def close(self):
        self.closed = True


@pytest.fixture
def fal_success_payload() -> Dict[str, Any]:
    return {
        "images": [{"url": "https://cdn.example.com/out.png", "width": 1024, "height": 1024}],
        "request_id": "req_123",
        "seed": 42,
    }


@pytest.fixture
def fake_fal_session():
    """Factory: fake_fal_session(status, payload=None, text="") -> FakeSession"""

    def _make(status: int = 200, payload: Optional[Dict[str, Any]] = None, text: str = "") -> FakeSession:
        return FakeSession(FakeResponse(status, payload, text))

    return _make


@pytest.fixture
def image_factory():
    return make_image_bytes
