import asyncio
import logging

import httpx

from bakery.application.interfaces.notifier import EmailSender
from bakery.infrastructure.circuit_breaker import notification_breaker

logger = logging.getLogger(__name__)


class HttpEmailSender(EmailSender):
    """
    Transactional email over a Mailtrap-style send API.

    Without a configured url and token the sender logs and does nothing, so
    local environments work without an email provider.
    """

    def __init__(
        self,
        api_url: str | None,
        api_token: str | None,
        from_email: str,
        from_name: str = "Bakery",
        timeout_seconds: float = 5.0,
    ) -> None:
        self._api_url = api_url
        self._api_token = api_token
        self._from_email = from_email
        self._from_name = from_name
        self._timeout = timeout_seconds

    def _post(self, payload: dict) -> None:
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(
                self._api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_token}"},
            )
            response.raise_for_status()

    async def send(self, to: str, subject: str, html: str) -> None:
        if not self._api_url or not self._api_token:
            logger.warning("Email not configured; skipping send", extra={"subject": subject})
            return
        payload = {
            "from": {"email": self._from_email, "name": self._from_name},
            "to": [{"email": address.strip()} for address in to.split(",") if address.strip()],
            "subject": subject,
            "html": html,
        }
        await asyncio.to_thread(notification_breaker.call, self._post, payload)
        logger.info("Email sent", extra={"subject": subject})
