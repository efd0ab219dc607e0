"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Self
from uuid import UUID

_PHONE_PATTERN = re.compile(r"^\+?[0-9]+$")
_CENTS = Decimal("0.01")

# Largest value a PositiveIntegerField column holds on every supported backend.
MAX_CAPACITY = 2147483647

# Width of a stored order total; a single line at the largest price and
# capacity needs 20 digits.
MAX_ORDER_TOTAL_DIGITS = 22
MAX_ORDER_TOTAL = Decimal(10) ** (MAX_ORDER_TOTAL_DIGITS - 2) - _CENTS


@dataclass(frozen=True)
class LessonId:
    """Unique identifier for a Lesson."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class OrderId:
    """Unique identifier for an Order."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        try:
            amount = Decimal(str(self.amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValueError("Money amount must be a number") from exc
        if not amount.is_finite():
            raise ValueError("Money amount must be a finite number")
        if amount < 0:
            raise ValueError("Money amount cannot be negative")
        object.__setattr__(self, "amount", amount.quantize(_CENTS, rounding=ROUND_HALF_UP))

    def __add__(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def times(self, quantity: int) -> "Money":
        return Money(self.amount * quantity)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Non-negative integer representing capacity."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Capacity must be an integer")
        if self.value < 0:
            raise ValueError("Capacity cannot be negative")
        if self.value > MAX_CAPACITY:
            raise ValueError(f"Capacity cannot exceed {MAX_CAPACITY}")


@dataclass(frozen=True)
class Quantity:
    """Seats requested on one order line; always at least one."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Quantity must be an integer")
        if self.value < 1:
            raise ValueError("Quantity must be at least 1")


@dataclass(frozen=True)
class NonEmptyText:
    """Trimmed text that must contain at least one non-space character."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise ValueError("Text value must be a string")
        trimmed = self.value.strip()
        if not trimmed:
            raise ValueError("Text value cannot be empty")
        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PhoneNumber:
    """Customer phone: digits only, with an optional leading plus sign."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise ValueError("Phone number must be a string")
        trimmed = self.value.strip()
        if not trimmed:
            raise ValueError("Phone number cannot be empty")
        if not _PHONE_PATTERN.match(trimmed):
            raise ValueError("Phone number must contain only digits")
        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value
