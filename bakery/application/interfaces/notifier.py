from typing import Any


class EmailSender:
    async def send(self, to: str, subject: str, html: str) -> None:
        raise NotImplementedError


class RealtimePublisher:
    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError
