"""Phone number checks for WhatsApp verification."""

import re

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
PHONE_EMAIL_DOMAIN = "student.awoof.com"


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(phone))


def phone_to_email(phone: str) -> str:
    """Synthetic login email for students verified only by phone."""
    return f"{phone.replace('+', '')}@{PHONE_EMAIL_DOMAIN}"
