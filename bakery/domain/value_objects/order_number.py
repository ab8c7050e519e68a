"""OrderNumber value object: the human-facing order identifier."""

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderNumber:
    """
    Sequential order number shown to customers and staff.

    Format: 6+ digits, zero padded, offset so the first order reads 100001.
    """

    value: str

    OFFSET = 100000

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("order_number cannot be empty")

        if len(self.value) > 32:
            raise ValueError(f"order_number exceeds 32 characters: {len(self.value)}")

    def __str__(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderNumber):
            return self.value == other.value
        if isinstance(other, str):
            return self.value == other
        return False

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def from_sequence(cls, sequence: int) -> "OrderNumber":
        """Builds the order number for the given 1-based sequence value."""
        if sequence < 1:
            raise ValueError(f"sequence must be >= 1: {sequence}")
        return cls(value=str(cls.OFFSET + sequence))

    @classmethod
    def from_string(cls, value: str) -> "OrderNumber":
        """Normalizes customer input such as ' #100042 '."""
        return cls(value=value.strip().lstrip("#"))
