"""
Appointment value objects.

Immutable, self-validating wrappers around the primitives the aggregate uses.
Construct them through their factory classmethods; the factories normalize
input and raise ``ValidationException`` on malformed values.
"""

import re
from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

from app.core.exceptions import ValidationException

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NON_DIGITS = re.compile(r"\D")

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check whether a raw string names a known status."""
        return value in cls._value2member_map_


@dataclass(frozen=True)
class AppointmentId:
    """Opaque identifier of one appointment aggregate."""

    value: str

    @classmethod
    def generate(cls) -> "AppointmentId":
        """Create a new random identifier."""
        return cls(str(uuid4()))

    @classmethod
    def from_string(cls, value: str) -> "AppointmentId":
        """Wrap an existing identifier, rejecting blank input."""
        if not value or not value.strip():
            raise ValidationException("AppointmentId cannot be empty")
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Email:
    """Normalized (trimmed, lower-cased) email address."""

    value: str

    @classmethod
    def create(cls, raw: str) -> "Email":
        """
        Normalize and validate an email address.

        Args:
            raw: Email as entered by the caller

        Returns:
            Email value object

        Raises:
            ValidationException: If the address is empty or malformed
        """
        normalized = (raw or "").strip().lower()

        if not normalized:
            raise ValidationException("Email cannot be empty", details={"field": "email"})

        if not EMAIL_PATTERN.match(normalized):
            raise ValidationException(f"Invalid email format: {raw}", details={"field": "email"})

        return cls(normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PhoneNumber:
    """Digit-only phone number of 10 to 15 digits."""

    value: str

    @classmethod
    def create(cls, raw: str) -> "PhoneNumber":
        """
        Strip separators and validate the digit count.

        Args:
            raw: Phone number with any formatting

        Returns:
            PhoneNumber value object

        Raises:
            ValidationException: If fewer than 10 or more than 15 digits remain
        """
        digits = NON_DIGITS.sub("", raw or "")

        if len(digits) < PHONE_MIN_DIGITS or len(digits) > PHONE_MAX_DIGITS:
            raise ValidationException(f"Invalid phone number: {raw}", details={"field": "phone"})

        return cls(digits)

    def format(self) -> str:
        """Format for display, e.g. (512) 555-1234 for 10-digit numbers."""
        if len(self.value) == PHONE_MIN_DIGITS:
            return f"({self.value[:3]}) {self.value[3:6]}-{self.value[6:]}"
        return self.value

    def __str__(self) -> str:
        return self.format()
