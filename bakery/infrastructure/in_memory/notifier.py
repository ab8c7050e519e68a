from typing import Any

from bakery.application.interfaces.notifier import EmailSender, RealtimePublisher


class RecordingEmailSender(EmailSender):
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail = fail

    async def send(self, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise ConnectionError("email provider unreachable")
        self.sent.append({"to": to, "subject": subject, "html": html})


class RecordingRealtimePublisher(RealtimePublisher):
    def __init__(self, fail: bool = False) -> None:
        self.events: list[dict[str, Any]] = []
        self.fail = fail

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("realtime relay unreachable")
        self.events.append({"channel": channel, "event": event, "payload": payload})
