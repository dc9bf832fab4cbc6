# src/whatswho/services/otp.py
"""One-time passcode issuance and verification."""

from __future__ import annotations

import hmac
import logging
import secrets
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from whatswho.core.identity import normalize_identity
from whatswho.core.settings import settings
from whatswho.db.time import as_utc, utcnow
from whatswho.models import User

logger = logging.getLogger(__name__)


class OtpVerificationError(ValueError):
    """Raised when a passcode is wrong, expired, or was never issued."""


def generate_code(length: int | None = None) -> str:
    """Return a random numeric passcode without a leading zero."""
    length = length or settings.otp_length
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


class OtpService:
    """Stores pending passcodes on the user row and checks them."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def issue(self, email: str) -> tuple[User, str]:
        """Create or refresh the user's pending passcode.

        Returns:
            The user row and the plaintext code to deliver.
        """
        email = normalize_identity(email)
        user = self.db.scalars(select(User).where(User.email == email)).first()
        if user is None:
            user = User(email=email)
            self.db.add(user)

        code = generate_code()
        user.otp_code = code
        user.otp_expiry = utcnow() + timedelta(seconds=settings.otp_ttl_seconds)
        self.db.commit()
        self.db.refresh(user)
        return user, code

    def verify(self, email: str, code: str) -> User:
        """Consume a pending passcode.

        Raises:
            OtpVerificationError: If no code is pending, it does not match, or it expired.
        """
        email = normalize_identity(email)
        user = self.db.scalars(select(User).where(User.email == email)).first()
        if user is None or not user.otp_code or user.otp_expiry is None:
            raise OtpVerificationError("Invalid or expired code")

        if not hmac.compare_digest(user.otp_code.encode(), code.strip().encode()):
            logger.info("Passcode mismatch for %s", email)
            raise OtpVerificationError("Invalid or expired code")

        if utcnow() >= as_utc(user.otp_expiry):
            logger.info("Expired passcode presented for %s", email)
            raise OtpVerificationError("Invalid or expired code")

        user.otp_code = None
        user.otp_expiry = None
        self.db.commit()
        self.db.refresh(user)
        return user
