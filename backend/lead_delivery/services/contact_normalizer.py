"""Contact data normalization service."""

import logging
from dataclasses import dataclass
from typing import Optional

from lead_delivery.models import CONTACT_BOTH, CONTACT_EMAIL, CONTACT_PHONE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedContact:
    """Trimmed email/phone pair and the channels it can be reached on."""
    email: Optional[str]
    phone: Optional[str]
    contact_type: str

    @property
    def has_contact(self) -> bool:
        return bool(self.email or self.phone)


class ContactNormalizer:
    """Normalize contact fields and derive the contact type."""

    @staticmethod
    def clean(value: Optional[str]) -> Optional[str]:
        """
        Strip whitespace.
        Empty strings become None.
        """
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @staticmethod
    def determine_contact_type(email: Optional[str], phone: Optional[str]) -> str:
        """
        Derive contact type from which fields are present.

        Falls back to 'email' when neither is present; API validation
        rejects that case before it gets here.
        """
        has_email = bool(email)
        has_phone = bool(phone)

        if has_email and has_phone:
            return CONTACT_BOTH
        if has_email:
            return CONTACT_EMAIL
        if has_phone:
            return CONTACT_PHONE
        return CONTACT_EMAIL

    def normalize(self, email: Optional[str], phone: Optional[str]) -> NormalizedContact:
        email = self.clean(email)
        phone = self.clean(phone)
        contact = NormalizedContact(
            email=email,
            phone=phone,
            contact_type=self.determine_contact_type(email, phone)
        )
        logger.debug(f"Normalized contact: type={contact.contact_type}")
        return contact


# Singleton instance
contact_normalizer = ContactNormalizer()


def normalize_contact(email: Optional[str], phone: Optional[str]) -> NormalizedContact:
    return contact_normalizer.normalize(email, phone)


def determine_contact_type(email: Optional[str], phone: Optional[str]) -> str:
    return ContactNormalizer.determine_contact_type(
        ContactNormalizer.clean(email),
        ContactNormalizer.clean(phone)
    )
