import logging

from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.domain.entities.reservation import Reservation
from bakery.domain.errors import ReservationNotFoundError, ValidationError
from bakery.domain.value_objects.order_number import OrderNumber


class LookupOrderUseCase:
    """Customer-facing read of a single order by its order number."""

    def __init__(self, reservation_repo: ReservationRepo) -> None:
        self._reservation_repo = reservation_repo
        self._logger = logging.getLogger(__name__)

    async def get_by_order_number(self, order_number: str | None) -> Reservation:
        try:
            number = OrderNumber.from_string(order_number or "").value
        except ValueError as exc:
            raise ValidationError("order_number", "Order number is required") from exc

        reservation = await self._reservation_repo.get_by_order_number(number)
        if reservation is None:
            self._logger.info("Order lookup miss", extra={"order_number": number})
            raise ReservationNotFoundError(number)
        return reservation
