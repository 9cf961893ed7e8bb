"""FastAPI dependencies wiring settings into the delivery services."""

from typing import Dict
from fastapi import Depends

from lead_delivery.config import Settings, get_settings
from lead_delivery.services.channels import DeliveryChannel, create_channels
from lead_delivery.services.file_fetcher import FileFetcher, create_file_fetcher


def get_file_fetcher(config: Settings = Depends(get_settings)) -> FileFetcher:
    return create_file_fetcher(config)


def get_delivery_channels(config: Settings = Depends(get_settings)) -> Dict[str, DeliveryChannel]:
    return create_channels(config)
