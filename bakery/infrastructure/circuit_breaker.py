"""
Circuit breakers for outbound calls (Stripe, notification HTTP APIs).

States:
- CLOSED: normal operation, calls pass through
- OPEN: too many consecutive failures, calls fail immediately
- HALF_OPEN: after ``reset_timeout`` one trial call decides the next state

Stripe client errors (bad request, missing resource) say nothing about the
provider's health and are excluded from the failure count.
"""

import logging

import stripe
from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)


stripe_breaker = CircuitBreaker(
    fail_max=5,
    reset_timeout=60,
    exclude=[stripe.InvalidRequestError],
    name="stripe_circuit_breaker",
)

notification_breaker = CircuitBreaker(
    fail_max=5,
    reset_timeout=30,
    name="notification_circuit_breaker",
)


def log_circuit_state_change(breaker_name: str, old_state: str, new_state: str) -> None:
    logger.warning(
        "Circuit breaker state changed",
        extra={
            "breaker_name": breaker_name,
            "old_state": old_state,
            "new_state": new_state,
        },
    )


class StateChangeLogger(CircuitBreakerListener):
    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        log_circuit_state_change(self.name, old_state.name, new_state.name)


stripe_breaker.add_listener(StateChangeLogger("stripe"))
notification_breaker.add_listener(StateChangeLogger("notifications"))


__all__ = [
    "stripe_breaker",
    "notification_breaker",
    "CircuitBreakerError",
]
