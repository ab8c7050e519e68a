from copy import deepcopy
from datetime import date

from bakery.application.interfaces.quote_request_repo import QuoteRequestRepo
from bakery.domain.entities.quote_request import QuoteRequest, QuoteStatus


class InMemoryQuoteRequestRepo(QuoteRequestRepo):
    def __init__(self) -> None:
        self.requests: dict[str, QuoteRequest] = {}

    async def add(self, request: QuoteRequest) -> QuoteRequest:
        if request.id in self.requests:
            raise ValueError("Quote request id already exists")
        self.requests[request.id] = deepcopy(request)
        return request

    async def update(self, request: QuoteRequest) -> None:
        self.requests[request.id] = deepcopy(request)

    async def get(self, request_id: str) -> QuoteRequest | None:
        found = self.requests.get(request_id)
        return deepcopy(found) if found else None

    async def get_by_session_id(self, session_id: str) -> QuoteRequest | None:
        for request in self.requests.values():
            if request.gateway_session_id == session_id:
                return deepcopy(request)
        return None

    async def list_quoted_on(
        self, on_date: date, exclude_request_id: str | None = None
    ) -> list[QuoteRequest]:
        return [
            deepcopy(r)
            for r in self.requests.values()
            if r.status == QuoteStatus.QUOTED
            and r.requested_date == on_date
            and r.id != exclude_request_id
        ]
