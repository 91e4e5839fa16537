"""
Contact channels a client can be reached through, and what each one needs.

Pure vocabulary shared by configuration validation and invoice dispatch.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from feaa_kernel.domain.client import ClientField
from feaa_kernel.logging_config import get_logger

logger = get_logger("domain.contact")


class ContactMethod(Enum):
    """Contact channels, by the label callers use to rank them."""

    INTERNAL_ACCOUNTING = "internal accounting"
    EMAIL = "email"
    CARRIER_PIGEON = "carrier pigeon"
    MAIL = "mail"
    PHONE_CALL = "phone call"
    SMS = "sms"

    @property
    def label(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_label(cls, label: str) -> ContactMethod | None:
        """Parse a label case-insensitively; None if unknown."""
        try:
            return cls(label.strip().lower())
        except ValueError:
            return None


_DISPLAY_NAMES: dict[ContactMethod, str] = {
    ContactMethod.CARRIER_PIGEON: "Carrier Pigeon",
    ContactMethod.EMAIL: "Email",
    ContactMethod.MAIL: "Mail",
    ContactMethod.INTERNAL_ACCOUNTING: "Internal Accounting",
    ContactMethod.PHONE_CALL: "Phone call",
    ContactMethod.SMS: "SMS",
}

# Fields that must all be present for a channel, in the order they are sent.
CHANNEL_FIELDS: dict[ContactMethod, tuple[ClientField, ...]] = {
    ContactMethod.INTERNAL_ACCOUNTING: (
        ClientField.INTERNAL_ACCOUNTING,
        ClientField.BUSINESS_NAME,
    ),
    ContactMethod.EMAIL: (ClientField.EMAIL_ADDRESS,),
    ContactMethod.CARRIER_PIGEON: (ClientField.PIGEON_COOP_ID,),
    ContactMethod.MAIL: (
        ClientField.ADDRESS,
        ClientField.SUBURB,
        ClientField.STATE,
        ClientField.POST_CODE,
    ),
    ContactMethod.PHONE_CALL: (ClientField.PHONE_NUMBER,),
    ContactMethod.SMS: (ClientField.PHONE_NUMBER,),
}

DEFAULT_PRIORITY: tuple[ContactMethod, ...] = (
    ContactMethod.INTERNAL_ACCOUNTING,
    ContactMethod.EMAIL,
    ContactMethod.CARRIER_PIGEON,
    ContactMethod.MAIL,
    ContactMethod.PHONE_CALL,
)


def known_contact_methods() -> list[str]:
    """Display names of every supported channel."""
    return list(_DISPLAY_NAMES.values())


def parse_contact_priority(labels: Iterable[str] | None) -> list[ContactMethod]:
    """
    Turn caller labels into a channel priority list.

    Unknown labels are skipped.  When nothing usable remains the default
    priority applies.
    """
    methods: list[ContactMethod] = []
    for label in labels or ():
        method = ContactMethod.from_label(label)
        if method is None:
            logger.debug("contact_label_ignored", extra={"label": label})
            continue
        if method not in methods:
            methods.append(method)
    return methods or list(DEFAULT_PRIORITY)
