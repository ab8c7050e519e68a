from copy import deepcopy

from bakery.application.interfaces.pending_checkout_repo import PendingCheckoutRepo
from bakery.domain.entities.pending_checkout import PendingCheckout


class InMemoryPendingCheckoutRepo(PendingCheckoutRepo):
    def __init__(self) -> None:
        self.checkouts: dict[str, PendingCheckout] = {}

    async def save(self, checkout: PendingCheckout) -> None:
        self.checkouts[checkout.session_id] = deepcopy(checkout)

    async def get(self, session_id: str) -> PendingCheckout | None:
        found = self.checkouts.get(session_id)
        return deepcopy(found) if found else None

    async def delete(self, session_id: str) -> None:
        self.checkouts.pop(session_id, None)
