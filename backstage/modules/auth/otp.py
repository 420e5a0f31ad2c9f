"""One-time passcode generation for password recovery."""

import hmac
import secrets
from datetime import datetime, timedelta
from typing import NamedTuple

from backstage.core.config import settings
from backstage.modules.auth.exceptions import InvalidArgumentError


class GeneratedOTP(NamedTuple):
    """A freshly generated passcode and its absolute expiry (naive UTC)."""

    code: str
    expires_at: datetime


def generate_otp(digits: int) -> GeneratedOTP:
    """Generate a numeric passcode of exactly ``digits`` characters.

    The value is drawn uniformly from ``[10**(digits-1), 10**digits - 1]``,
    so it never has a leading zero.

    Args:
        digits: Number of digits, must be positive

    Returns:
        GeneratedOTP: Code and expiry timestamp

    Raises:
        InvalidArgumentError: If digits is zero or negative
    """
    if digits <= 0:
        raise InvalidArgumentError("Number of digits must be greater than 0")

    low = 10 ** (digits - 1)
    high = 10**digits - 1
    value = low + secrets.randbelow(high - low + 1)

    expires_at = datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
    return GeneratedOTP(code=str(value), expires_at=expires_at)


def otp_matches(stored: str | None, submitted: str) -> bool:
    """Compare a submitted passcode with the stored one in constant time.

    A record without a stored passcode never matches.
    """
    if stored is None:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), submitted.encode("utf-8"))


def is_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """Check whether a passcode expiry lies strictly in the past.

    Args:
        expires_at: Stored expiry (naive UTC); missing counts as expired
        now: Reference time, defaults to the current UTC time

    Returns:
        bool: True if the passcode can no longer be used
    """
    if expires_at is None:
        return True
    if expires_at.tzinfo is not None:
        expires_at = expires_at.replace(tzinfo=None) - (expires_at.utcoffset() or timedelta())
    return expires_at < (now or datetime.utcnow())
