import re
from typing import Optional

from marketlink.services.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def canonical_email(value: Optional[str]) -> str:
    """Lookup form of an address: trimmed and lowercased, not validated."""
    return (value or "").strip().lower()


def is_valid_email(value: Optional[str]) -> bool:
    return bool(EMAIL_PATTERN.match(canonical_email(value)))


def require_email(value: Optional[str], message: str = "A valid email is required") -> str:
    email = canonical_email(value)
    if not EMAIL_PATTERN.match(email):
        raise ValidationError(message)
    return email
