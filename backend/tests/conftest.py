# tests/conftest.py

import json
import pytest
import pytest_asyncio
import httpx
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from lead_delivery.config import Settings
from lead_delivery.database import Base
from lead_delivery.models import Product

WEBHOOK_SECRET = "test-webhook-secret"
LEAD_API_TOKEN = "test-lead-token"

FILE_HOST = "files.example.com"
RESEND_HOST = "api.resend.com"
ZAPI_HOST = "api.z-api.io"


class FakeUpstream:
    """Blob store, Resend and Z-API behind one httpx.MockTransport."""

    def __init__(self):
        self.file_status = 200
        self.file_content = b"%PDF-1.4 growth guide"
        self.email_status = 200
        self.email_body = {"id": "email-123"}
        self.whatsapp_status = 200
        self.whatsapp_body = {"messageId": "wa-123"}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host == RESEND_HOST:
            return httpx.Response(self.email_status, json=self.email_body)
        if host == ZAPI_HOST:
            return httpx.Response(self.whatsapp_status, json=self.whatsapp_body)
        if self.file_status == 200:
            return httpx.Response(200, content=self.file_content)
        return httpx.Response(self.file_status, content=b"")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, host: str):
        return [r for r in self.requests if r.url.host == host]

    def json_sent_to(self, host: str):
        return [json.loads(r.content) for r in self.requests_to(host)]


@pytest.fixture
def test_settings():
    """Settings with every credential filled in, ignoring any .env file"""
    return Settings(
        _env_file=None,
        WEBHOOK_SECRET=WEBHOOK_SECRET,
        LEAD_API_TOKEN=LEAD_API_TOKEN,
        RESEND_API_KEY="re_test_key",
        EMAIL_SENDER_NAME="Growth Books",
        EMAIL_SENDER_ADDRESS="books@example.com",
        ZAPI_INSTANCE_ID="instance-1",
        ZAPI_TOKEN="token-1",
        ZAPI_CLIENT_TOKEN="client-token-1",
        HTTP_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def product(session_factory):
    """Stored product whose file lives on the fake blob store"""
    async with session_factory() as session:
        product = Product(
            sale_product_id="sale-001",
            name="Growth Guide",
            type="ebook",
            version=1,
            storage_provider="blob",
            provider_path=f"{FILE_HOST}/ebooks/Growth%20Guide.pdf",
        )
        session.add(product)
        await session.commit()
        return product
