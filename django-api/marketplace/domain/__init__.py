from marketplace.domain.models import (
    CheckoutRequest,
    Lesson,
    LessonChanges,
    LessonDraft,
    LessonFilter,
    Order,
    OrderLine,
    OrderLineRequest,
    OrderStatus,
)
from marketplace.domain.value_objects import (
    Capacity,
    LessonId,
    Money,
    NonEmptyText,
    OrderId,
    PhoneNumber,
    Quantity,
)

__all__ = [
    "Lesson",
    "LessonDraft",
    "LessonChanges",
    "LessonFilter",
    "Order",
    "OrderLine",
    "OrderLineRequest",
    "OrderStatus",
    "CheckoutRequest",
    "LessonId",
    "OrderId",
    "Money",
    "Capacity",
    "Quantity",
    "NonEmptyText",
    "PhoneNumber",
]
