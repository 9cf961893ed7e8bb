# tests/integration/conftest.py

import pytest
import pytest_asyncio
import httpx
from sqlalchemy import select, func

from lead_delivery.config import get_settings
from lead_delivery.database import get_db
from lead_delivery.dependencies import get_delivery_channels, get_file_fetcher
from lead_delivery.main import app
from lead_delivery.services.channels import create_channels
from lead_delivery.services.file_fetcher import FileFetcher


@pytest_asyncio.fixture
async def client(session_factory, test_settings, upstream):
    """API client wired to SQLite and the fake upstream services"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_file_fetcher] = lambda: FileFetcher(transport=upstream.transport)
    app.dependency_overrides[get_delivery_channels] = lambda: create_channels(
        test_settings, transport=upstream.transport
    )

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(test_settings):
    return {"Authorization": f"Bearer {test_settings.LEAD_API_TOKEN}"}


@pytest.fixture
def purchase_payload(test_settings):
    def build(email="ana@example.com", phone=None, product_id="sale-001", event="purchase_approved"):
        return {
            "secret": test_settings.WEBHOOK_SECRET,
            "event": event,
            "data": {
                "customer": {"name": "Ana Silva", "email": email, "phone": phone},
                "product": {"id": product_id},
            },
        }
    return build


@pytest.fixture
def count_rows(session_factory):
    async def count(model):
        async with session_factory() as session:
            return (await session.execute(select(func.count()).select_from(model))).scalar()
    return count


@pytest.fixture
def fetch_all(session_factory):
    async def fetch(model):
        async with session_factory() as session:
            return list((await session.execute(select(model))).scalars().all())
    return fetch
