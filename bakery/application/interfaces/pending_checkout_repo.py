from bakery.domain.entities.pending_checkout import PendingCheckout


class PendingCheckoutRepo:
    async def save(self, checkout: PendingCheckout) -> None:
        raise NotImplementedError

    async def get(self, session_id: str) -> PendingCheckout | None:
        raise NotImplementedError

    async def delete(self, session_id: str) -> None:
        raise NotImplementedError
