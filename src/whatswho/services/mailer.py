# src/whatswho/services/mailer.py
"""Delivery of one-time passcodes by email.

Codes are sent through the Resend HTTP API when an API key is configured.
Without a key, or when the provider rejects the request, the mailer runs in
simulation mode and writes the code to the server log instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from whatswho.core.settings import settings

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when the mail provider cannot accept a message."""


@dataclass(frozen=True)
class MailResult:
    """Outcome of a passcode delivery attempt."""

    delivered: bool
    simulation: bool


class OtpMailer:
    """Sends passcode emails via the Resend API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.api_url = api_url or settings.resend_api_url
        self.sender = sender or settings.mail_from
        self.timeout = timeout if timeout is not None else settings.mail_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send_code(self, email: str, code: str, ttl_seconds: int) -> MailResult:
        """Deliver ``code`` to ``email``, falling back to simulation mode."""
        if not self.enabled:
            self._log_simulated(email, code)
            return MailResult(delivered=False, simulation=True)

        try:
            await self._post(email, code, ttl_seconds)
        except MailDeliveryError as err:
            logger.warning("Mail delivery failed, falling back to simulation: %s", err)
            self._log_simulated(email, code)
            return MailResult(delivered=False, simulation=True)
        return MailResult(delivered=True, simulation=False)

    async def _post(self, email: str, code: str, ttl_seconds: int) -> None:
        minutes = max(1, ttl_seconds // 60)
        payload = {
            "from": self.sender,
            "to": email,
            "subject": "Your Verification Code",
            "html": f"<strong>Your code is: {code}</strong><p>Valid for {minutes} minutes.</p>",
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as err:
            raise MailDeliveryError(f"Mail provider unreachable: {err}") from err

        if response.is_error:
            raise MailDeliveryError(
                f"Mail provider returned {response.status_code}: {response.text[:200]}"
            )

    @staticmethod
    def _log_simulated(email: str, code: str) -> None:
        logger.info("OTP generated (simulation mode) for %s: %s", email, code)


def get_mailer() -> OtpMailer:
    """Return a mailer configured from settings."""
    return OtpMailer()
