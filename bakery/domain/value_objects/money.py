"""Money value object: an amount with its currency."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary amount.

    Attributes:
        amount: Decimal amount (two decimal places).
        currency_code: ISO 4217 code (e.g. USD).
    """

    amount: Decimal
    currency_code: str = "USD"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

        if len(self.currency_code) != 3:
            raise ValueError(f"currency_code must be 3 characters: {self.currency_code}")

        if self.amount < 0:
            raise ValueError(f"amount cannot be negative: {self.amount}")

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError(f"Cannot add Money and {type(other)}")
        if self.currency_code != other.currency_code:
            raise ValueError(
                f"Cannot add different currencies: {self.currency_code} vs {other.currency_code}"
            )
        return Money(amount=self.amount + other.amount, currency_code=self.currency_code)

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency_code}"

    def tax(self, rate: Decimal) -> "Money":
        """Tax on this amount, rounded to the cent."""
        return Money(
            amount=(self.amount * rate).quantize(CENT, rounding=ROUND_HALF_UP),
            currency_code=self.currency_code,
        )

    def with_tax(self, rate: Decimal) -> "Money":
        return self + self.tax(rate)

    @classmethod
    def zero(cls, currency_code: str = "USD") -> "Money":
        return cls(amount=Decimal("0"), currency_code=currency_code)

    @classmethod
    def from_cents(cls, cents: int, currency_code: str = "USD") -> "Money":
        """Builds Money from minor units (gateway amounts)."""
        return cls(amount=Decimal(cents) / 100, currency_code=currency_code.upper())

    def to_cents(self) -> int:
        """Converts to minor units (gateway amounts)."""
        return int((self.amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
