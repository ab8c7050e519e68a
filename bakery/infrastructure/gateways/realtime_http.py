import asyncio
import logging
from typing import Any

import httpx

from bakery.application.interfaces.notifier import RealtimePublisher
from bakery.infrastructure.circuit_breaker import notification_breaker

logger = logging.getLogger(__name__)


class HttpRealtimePublisher(RealtimePublisher):
    """Publishes dashboard events (channel, event, payload) to an HTTP relay."""

    def __init__(self, url: str | None, token: str | None = None, timeout_seconds: float = 5.0) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout_seconds

    def _post(self, body: dict[str, Any]) -> None:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(self._url, json=body, headers=headers)
            response.raise_for_status()

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        if not self._url:
            logger.debug("Realtime relay not configured; skipping", extra={"channel": channel, "event": event})
            return
        await asyncio.to_thread(
            notification_breaker.call,
            self._post,
            {"channel": channel, "event": event, "data": payload},
        )
