"""Password strength rules applied at registration, reset and change."""

import re

MIN_PASSWORD_LENGTH = 8


def validate_password_strength(password: str) -> list[str]:
    """Return human-readable failures; an empty list means the password is acceptable."""
    errors: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    return errors
