"""Resend batch email transport."""

import logging

import httpx

from theme_newsletter.core import (
    BatchSendResponse,
    EmailMessage,
    EmailTransport,
    TransportFailure,
)

logger = logging.getLogger(__name__)


class ResendTransport(EmailTransport):
    """Send email batches through the Resend API.

    Provider errors come back as a `TransportFailure` carrying the HTTP
    status, so rate limits (429) can be told apart from other failures.
    Network errors are raised.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def send_batch(self, messages: list[EmailMessage]) -> BatchSendResponse:
        """Send up to 100 messages in one request."""
        payload = [
            {
                "from": m.from_address,
                "to": [m.to],
                "subject": m.subject,
                "html": m.html,
                "text": m.text,
            }
            for m in messages
        ]

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/emails/batch",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )

        if response.status_code >= 400:
            return BatchSendResponse(error=TransportFailure(
                message=self._error_message(response),
                status_code=response.status_code,
            ))

        data = response.json().get("data") or []
        message_ids = [
            entry.get("id") if isinstance(entry, dict) else None
            for entry in data
        ]
        logger.debug("Resend accepted %d of %d messages",
                     sum(1 for i in message_ids if i), len(messages))
        return BatchSendResponse(message_ids=message_ids)

    def _error_message(self, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text[:200]}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}"
