"""
Outbound quote email.

The service never talks SMTP. It POSTs the payload built by
quote_output.build_email_payload() to a relay endpoint, which owns delivery.
A failure here is reported to the customer as a notice; the quote itself
stays valid and acceptable.
"""

import logging

import httpx

from .config import settings
from .errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailSender:

    def __init__(self, endpoint: str = None, api_key: str = None,
                 timeout: float = None, transport=None):
        self.endpoint = settings.EMAIL_ENDPOINT if endpoint is None else endpoint
        self.api_key = settings.EMAIL_API_KEY if api_key is None else api_key
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.endpoint)

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def send(self, payload: dict):
        """
        Hand the payload to the relay. Returns the relay's JSON reply (or True
        when it sends none). Raises EmailDeliveryError on any failure.
        """
        if not self.endpoint:
            raise EmailDeliveryError("Email endpoint not configured. Set EMAIL_ENDPOINT.")
        if not payload.get("to"):
            raise EmailDeliveryError("Missing customer email")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Email relay unreachable: %s", e)
            raise EmailDeliveryError(f"Email relay unreachable: {e}") from e

        if not response.is_success:
            message = response.text or "Failed to send email"
            logger.error("Email relay rejected %s: HTTP %s %s",
                         payload.get("subject"), response.status_code, message[:200])
            raise EmailDeliveryError(message)

        logger.info("Quote email sent: %s (%s)", payload.get("subject"), payload.get("trigger"))
        try:
            return response.json()
        except ValueError:
            return True
