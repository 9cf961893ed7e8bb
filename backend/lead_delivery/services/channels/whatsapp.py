"""WhatsApp document delivery through the Z-API gateway."""

import base64
import re
import logging

from lead_delivery.models import WHATSAPP_DELIVERY
from .base import ChannelResult, DeliveryChannel, DeliveryMessage

logger = logging.getLogger(__name__)


def format_phone_number(phone: str, country_code: str = "55") -> str:
    """Digits only, prefixed with the country code unless already present."""
    digits = re.sub(r"\D", "", phone or "")
    return digits if digits.startswith(country_code) else f"{country_code}{digits}"


def mime_type_for(file_name: str) -> str:
    return "application/pdf" if file_name.lower().endswith(".pdf") else "application/octet-stream"


class WhatsAppChannel(DeliveryChannel):
    """Send the product file as a WhatsApp document message."""

    name = "whatsapp"
    event_type = WHATSAPP_DELIVERY
    contact_field = "phone"
    fallback_error = "Failed to send WhatsApp document"

    @property
    def is_configured(self) -> bool:
        return bool(self.config.ZAPI_INSTANCE_ID and self.config.ZAPI_TOKEN)

    @property
    def base_url(self) -> str:
        return (
            f"{self.config.ZAPI_BASE_URL.rstrip('/')}"
            f"/instances/{self.config.ZAPI_INSTANCE_ID}/token/{self.config.ZAPI_TOKEN}"
        )

    @property
    def headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.config.ZAPI_CLIENT_TOKEN:
            headers["Client-Token"] = self.config.ZAPI_CLIENT_TOKEN
        return headers

    def caption(self, message: DeliveryMessage) -> str:
        return (
            f"Hi {message.customer_name}! Your product *{message.product_name}* "
            f"is ready! Thank you for your purchase!"
        )

    def event_subject(self, message: DeliveryMessage) -> str:
        return f"Product {message.product_name} delivered via WhatsApp"

    def build_payload(self, destination: str, content: bytes, file_name: str, message: DeliveryMessage) -> dict:
        return {
            "phone": format_phone_number(destination, self.config.WHATSAPP_COUNTRY_CODE),
            "document": base64.b64encode(content).decode("ascii"),
            "fileName": file_name,
            "mimeType": mime_type_for(file_name),
            "caption": self.caption(message),
        }

    async def send(
        self,
        destination: str,
        content: bytes,
        file_name: str,
        message: DeliveryMessage
    ) -> ChannelResult:
        if not self.is_configured:
            logger.error("Z-API instance/token not configured")
            return ChannelResult.failed(self.name, "WhatsApp gateway not configured")

        result = await self._post_json(
            f"{self.base_url}/send-document",
            self.build_payload(destination, content, file_name, message),
            self.headers
        )
        if result.success:
            logger.info(f"Product document sent via WhatsApp: {file_name}")
        return result
