from datetime import date

from bakery.domain.entities.quote_request import QuoteRequest


class QuoteRequestRepo:
    async def add(self, request: QuoteRequest) -> QuoteRequest:
        raise NotImplementedError

    async def update(self, request: QuoteRequest) -> None:
        raise NotImplementedError

    async def get(self, request_id: str) -> QuoteRequest | None:
        raise NotImplementedError

    async def get_by_session_id(self, session_id: str) -> QuoteRequest | None:
        raise NotImplementedError

    async def list_quoted_on(
        self, on_date: date, exclude_request_id: str | None = None
    ) -> list[QuoteRequest]:
        """Requests in ``quoted`` status for the date: payment links still open."""
        raise NotImplementedError
