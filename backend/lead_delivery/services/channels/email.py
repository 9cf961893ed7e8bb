"""Email delivery through the Resend REST API."""

import base64
import logging

from lead_delivery.models import EMAIL_DELIVERY
from lead_delivery.services.email_templates import render_product_delivery_email
from .base import ChannelResult, DeliveryChannel, DeliveryMessage

logger = logging.getLogger(__name__)


class EmailChannel(DeliveryChannel):
    """Send the product file as an email attachment."""

    name = "email"
    event_type = EMAIL_DELIVERY
    contact_field = "email"
    fallback_error = "Failed to send email"

    @property
    def sender(self) -> str:
        return f"{self.config.EMAIL_SENDER_NAME} <{self.config.EMAIL_SENDER_ADDRESS}>"

    @property
    def headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.RESEND_API_KEY}",
            "Content-Type": "application/json",
        }

    def subject(self, message: DeliveryMessage) -> str:
        return f"Your product {message.product_name} is ready!"

    def event_subject(self, message: DeliveryMessage) -> str:
        return self.subject(message)

    def build_payload(self, destination: str, content: bytes, file_name: str, message: DeliveryMessage) -> dict:
        return {
            "from": self.sender,
            "to": [destination],
            "subject": self.subject(message),
            "html": render_product_delivery_email(
                customer_name=message.customer_name,
                product_name=message.product_name,
                sender_name=self.config.EMAIL_SENDER_NAME,
                support_url=self.config.SUPPORT_URL
            ),
            "attachments": [
                {
                    "filename": file_name,
                    "content": base64.b64encode(content).decode("ascii"),
                }
            ],
        }

    async def send(
        self,
        destination: str,
        content: bytes,
        file_name: str,
        message: DeliveryMessage
    ) -> ChannelResult:
        if not self.config.RESEND_API_KEY:
            logger.error("RESEND_API_KEY not configured")
            return ChannelResult.failed(self.name, "Email provider not configured")

        result = await self._post_json(
            f"{self.config.RESEND_API_URL.rstrip('/')}/emails",
            self.build_payload(destination, content, file_name, message),
            self.headers
        )
        if result.success:
            logger.info(f"Product email sent to {destination}: {file_name}")
        return result
