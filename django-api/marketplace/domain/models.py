"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in marketplace/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from marketplace.domain.value_objects import Capacity, LessonId, Money, OrderId, Quantity


class OrderStatus(Enum):
    """Terminal outcome of a checkout."""

    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class Lesson:
    """Domain representation of a Lesson."""

    id: LessonId
    subject: str
    location: str
    price: Money
    capacity: Capacity
    available_slots: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class LessonDraft:
    """Validated field values for a lesson that does not exist yet."""

    subject: str
    location: str
    price: Money
    capacity: Capacity


@dataclass(frozen=True)
class LessonChanges:
    """Validated metadata changes; None means "leave as is"."""

    subject: str | None = None
    location: str | None = None
    price: Money | None = None
    capacity: Capacity | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.subject, self.location, self.price, self.capacity)
        )


@dataclass(frozen=True)
class LessonFilter:
    """Browse options for the catalog listing."""

    ORDERING_FIELDS = ("subject", "location", "price", "available_slots", "created_at")

    search: str | None = None
    ordering: str = "-created_at"

    def __post_init__(self) -> None:
        if self.ordering.lstrip("-") not in self.ORDERING_FIELDS:
            raise ValueError(f"Unsupported ordering: {self.ordering}")

    @property
    def sort_field(self) -> str:
        return self.ordering.lstrip("-")

    @property
    def descending(self) -> bool:
        return self.ordering.startswith("-")

    def matches(self, lesson: Lesson) -> bool:
        if not self.search:
            return True
        needle = self.search.lower()
        return needle in lesson.subject.lower() or needle in lesson.location.lower()


@dataclass(frozen=True)
class OrderLineRequest:
    """One requested line of a checkout, before any seat is reserved."""

    lesson_id: LessonId
    quantity: Quantity


@dataclass(frozen=True)
class CheckoutRequest:
    """A validated checkout: who is buying and which seats."""

    customer_name: str
    customer_phone: str
    lines: tuple[OrderLineRequest, ...]


@dataclass(frozen=True)
class OrderLine:
    """A confirmed order line with the price captured at reservation time."""

    lesson_id: LessonId
    quantity: int
    unit_price: Money

    @property
    def subtotal(self) -> Money:
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class Order:
    """Domain representation of an Order."""

    id: OrderId
    customer_name: str
    customer_phone: str
    total: Money
    status: OrderStatus
    created_at: datetime
    lines: tuple[OrderLine, ...] = field(default_factory=tuple)
