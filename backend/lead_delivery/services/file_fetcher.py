"""Download product files from the blob store."""

import re
import httpx
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlsplit

from lead_delivery.config import Settings, settings as default_settings
from lead_delivery.exceptions import FileDownloadError
from lead_delivery.models import Product

logger = logging.getLogger(__name__)

MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass
class FetchedFile:
    content: bytes
    file_name: str


class FileFetcher:
    """Fetch a product's file given its stored provider_path."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def resolve_url(provider_path: str) -> str:
        """Absolute URLs are kept, bare host/paths are served over https."""
        path = provider_path.strip()
        if path.startswith(("http://", "https://")):
            return path
        return f"https://{path.lstrip('/')}"

    @staticmethod
    def decode_segment(segment: str) -> str:
        """Percent-decode a path segment; malformed escapes return it unchanged."""
        if MALFORMED_ESCAPE.search(segment):
            return segment
        try:
            return unquote(segment, errors="strict")
        except UnicodeDecodeError:
            return segment

    @classmethod
    def file_name_from_path(cls, provider_path: str, fallback: str = "file.pdf") -> str:
        path = urlsplit(cls.resolve_url(provider_path)).path
        segment = path.split("/")[-1] if path else ""
        if not segment:
            return fallback
        return cls.decode_segment(segment)

    async def fetch(self, provider_path: str) -> bytes:
        url = self.resolve_url(provider_path)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"File download failed for {url}: {e}")
            raise FileDownloadError(url, reason=str(e)) from e

        if not response.is_success:
            logger.error(f"File download returned {response.status_code} for {url}")
            raise FileDownloadError(url, response.status_code, response.reason_phrase)

        logger.info(f"Downloaded {len(response.content)} bytes from {url}")
        return response.content

    async def fetch_product_file(self, product: Product) -> FetchedFile:
        content = await self.fetch(product.provider_path)
        file_name = self.file_name_from_path(product.provider_path, fallback=f"{product.name}.pdf")
        return FetchedFile(content=content, file_name=file_name)


def create_file_fetcher(config: Settings = None) -> FileFetcher:
    """Create file fetcher instance"""
    config = config or default_settings
    return FileFetcher(timeout=config.HTTP_TIMEOUT_SECONDS)
