"""
Delivery channel registry.
"""
from typing import Dict, List, Optional

import httpx

from lead_delivery.config import Settings
from lead_delivery.models import CONTACT_BOTH, CONTACT_EMAIL, CONTACT_PHONE
from .base import ChannelResult, DeliveryChannel, DeliveryMessage
from .email import EmailChannel
from .whatsapp import WhatsAppChannel, format_phone_number, mime_type_for

# Registry of available channels
CHANNEL_REGISTRY = {
    "email": EmailChannel,
    "whatsapp": WhatsAppChannel,
}

# Channels eligible for each contact type
CHANNELS_BY_CONTACT_TYPE: Dict[str, List[str]] = {
    CONTACT_EMAIL: ["email"],
    CONTACT_PHONE: ["whatsapp"],
    CONTACT_BOTH: ["email", "whatsapp"],
}


def create_channels(
    config: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, DeliveryChannel]:
    """Instantiate every registered channel with the given settings."""
    return {
        name: channel_class(config, transport=transport)
        for name, channel_class in CHANNEL_REGISTRY.items()
    }


__all__ = [
    "CHANNEL_REGISTRY",
    "CHANNELS_BY_CONTACT_TYPE",
    "ChannelResult",
    "DeliveryChannel",
    "DeliveryMessage",
    "EmailChannel",
    "WhatsAppChannel",
    "create_channels",
    "format_phone_number",
    "mime_type_for",
]
