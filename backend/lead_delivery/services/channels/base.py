"""
Base delivery channel interface.
"""
import httpx
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from lead_delivery.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class DeliveryMessage:
    """Who receives what; channels build their own subject/caption from it."""
    customer_name: str
    product_name: str


@dataclass
class ChannelResult:
    """Outcome of one send attempt on one channel."""
    channel: str
    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None

    @classmethod
    def ok(cls, channel: str, message_id: Optional[str] = None) -> "ChannelResult":
        return cls(channel=channel, success=True, message_id=message_id)

    @classmethod
    def failed(cls, channel: str, error: str) -> "ChannelResult":
        return cls(channel=channel, success=False, error=error)


class DeliveryChannel(ABC):
    """Abstract base for all delivery channels."""

    # Registry key, e.g. "email"
    name: str = ""
    # DeliveryEvent.type written on success
    event_type: str = ""
    # Lead attribute holding the destination
    contact_field: str = ""
    # Failure reason when the provider gives none
    fallback_error: str = "Delivery failed"

    def __init__(self, config: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            config: Settings holding provider credentials
            transport: Optional httpx transport (tests inject a mock one)
        """
        self.config = config
        self.transport = transport
        self.timeout = config.HTTP_TIMEOUT_SECONDS

    @abstractmethod
    async def send(
        self,
        destination: str,
        content: bytes,
        file_name: str,
        message: DeliveryMessage
    ) -> ChannelResult:
        """
        Send the file to destination.

        Provider and transport failures are returned as a failed
        ChannelResult, never raised.
        """
        pass

    @abstractmethod
    def event_subject(self, message: DeliveryMessage) -> str:
        """Subject recorded on the DeliveryEvent for a successful send."""
        pass

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str]
    ) -> ChannelResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} provider request failed: {e}")
            return ChannelResult.failed(self.name, str(e) or self.fallback_error)

        data = self._json_body(response)

        if response.is_success:
            message_id = data.get("messageId") or data.get("id")
            return ChannelResult.ok(self.name, message_id=str(message_id) if message_id else None)

        error = self._error_message(data)
        logger.error(f"{self.name} provider returned {response.status_code}: {error}")
        return ChannelResult.failed(self.name, error)

    @staticmethod
    def _json_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _error_message(self, data: Dict[str, Any]) -> str:
        for key in ("message", "error"):
            value = data.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if value:
                return str(value)
        return self.fallback_error
