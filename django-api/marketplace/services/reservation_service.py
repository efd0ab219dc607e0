"""Reservation service - turns a checkout into a confirmed order.

A checkout reserves seats line by line through the store's atomic
compare-and-decrement. The first failing line stops the checkout and every
seat already taken is released again, newest first, before the error is
raised. Only a fully reserved checkout is persisted as an order.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from marketplace import cache
from marketplace.domain import (
    CheckoutRequest,
    Lesson,
    LessonId,
    Money,
    NonEmptyText,
    Order,
    OrderId,
    OrderLine,
    OrderLineRequest,
    PhoneNumber,
    Quantity,
)
from marketplace.domain.errors import (
    DomainError,
    InvalidOrderIdError,
    OrderNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from marketplace.domain.value_objects import MAX_ORDER_TOTAL
from marketplace.stores.interfaces import LessonStore, OrderStore

logger = logging.getLogger(__name__)


class CheckoutState(Enum):
    """Construction states of an order; CONFIRMED and REJECTED are terminal."""

    BUILDING = "Building"
    COMPENSATING = "Compensating"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


_TRANSITIONS = {
    CheckoutState.BUILDING: {CheckoutState.CONFIRMED, CheckoutState.COMPENSATING},
    CheckoutState.COMPENSATING: {CheckoutState.REJECTED},
    CheckoutState.CONFIRMED: set(),
    CheckoutState.REJECTED: set(),
}


class _Checkout:
    """Seats held so far by one in-flight checkout."""

    def __init__(self, request: CheckoutRequest) -> None:
        self.request = request
        self.state = CheckoutState.BUILDING
        self.reserved: list[tuple[OrderLineRequest, Lesson]] = []

    def move_to(self, state: CheckoutState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal checkout transition {self.state.value} -> {state.value}")
        self.state = state

    def order_lines(self) -> list[OrderLine]:
        return [
            OrderLine(lesson_id=line.lesson_id, quantity=line.quantity.value, unit_price=lesson.price)
            for line, lesson in self.reserved
        ]


def _order_total(lines: list[OrderLine]) -> Money:
    total = sum((line.subtotal for line in lines), Money(Decimal("0")))
    if total.amount > MAX_ORDER_TOTAL:
        raise ValidationError(f"Order total cannot exceed {MAX_ORDER_TOTAL}")
    return total


def parse_checkout(customer_name: Any, customer_phone: Any, lines: Iterable[Mapping[str, Any]]) -> CheckoutRequest:
    """Build a CheckoutRequest from raw values.

    Raises:
        ValidationError: If a field is missing or invalid, the cart is empty,
            or the same lesson appears on more than one line.
    """
    try:
        name = NonEmptyText(customer_name).value
    except ValueError as exc:
        raise ValidationError(f"customerName: {exc}") from exc
    try:
        phone = PhoneNumber(customer_phone).value
    except ValueError as exc:
        raise ValidationError(f"customerPhone: {exc}") from exc

    parsed: list[OrderLineRequest] = []
    seen: set[LessonId] = set()
    for raw in lines or ():
        raw_id = raw.get("lesson_id")
        try:
            lesson_id = LessonId.from_string(raw_id)
        except (ValueError, TypeError, AttributeError) as exc:
            raise ValidationError("lessonId: Invalid lesson ID format") from exc
        try:
            quantity = Quantity(raw.get("quantity"))
        except ValueError as exc:
            raise ValidationError(f"quantity: {exc}", lesson_id=str(lesson_id)) from exc
        if lesson_id in seen:
            raise ValidationError("Duplicate lesson in order lines", lesson_id=str(lesson_id))
        seen.add(lesson_id)
        parsed.append(OrderLineRequest(lesson_id=lesson_id, quantity=quantity))

    if not parsed:
        raise ValidationError("Order must contain at least one line")
    return CheckoutRequest(customer_name=name, customer_phone=phone, lines=tuple(parsed))


class ReservationService:
    """Service for checkout and order lookup."""

    def __init__(self, lessons: LessonStore, orders: OrderStore) -> None:
        self._lessons = lessons
        self._orders = orders

    def checkout(self, request: CheckoutRequest) -> Order:
        """Reserve every line of the request and persist a confirmed order.

        Raises:
            LessonNotFoundError: If a line references a missing lesson.
            InsufficientCapacityError: If a line asks for more seats than are free.
            ValidationError: If the order total is too large to store.
            StoreUnavailableError: If the backing store fails.
        """
        checkout = _Checkout(request)
        for line in request.lines:
            try:
                lesson = self._lessons.try_reserve(line.lesson_id, line.quantity.value)
            except Exception as exc:
                self._compensate(checkout)
                if not isinstance(exc, DomainError):
                    raise
                logger.info(
                    "Checkout rejected for %s on lesson %s: %s",
                    request.customer_name,
                    line.lesson_id,
                    exc.code.value,
                )
                raise
            checkout.reserved.append((line, lesson))

        lines = checkout.order_lines()
        try:
            total = _order_total(lines)
            order = self._orders.create_order(
                request.customer_name, request.customer_phone, lines, total
            )
        except Exception as exc:
            self._compensate(checkout)
            logger.error(
                "Checkout for %s failed while saving the order: %s",
                request.customer_name,
                exc.__class__.__name__,
            )
            raise

        checkout.move_to(CheckoutState.CONFIRMED)
        cache.invalidate_lessons(str(line.lesson_id) for line in request.lines)
        logger.info("Order %s confirmed for %s, total %s", order.id, order.customer_name, order.total)
        return order

    def get_order(self, order_id: str) -> Order:
        """Return a confirmed order by ID.

        Raises:
            InvalidOrderIdError: If the order_id is not a valid UUID.
            OrderNotFoundError: If the order does not exist.
        """
        try:
            parsed = OrderId.from_string(order_id)
        except (ValueError, TypeError, AttributeError) as exc:
            raise InvalidOrderIdError() from exc
        order = self._orders.get_order(parsed)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _compensate(self, checkout: _Checkout) -> None:
        checkout.move_to(CheckoutState.COMPENSATING)
        for line, _ in reversed(checkout.reserved):
            try:
                released = self._lessons.release(line.lesson_id, line.quantity.value)
            except StoreUnavailableError:
                released = False
            if not released:
                logger.warning(
                    "Anomaly: could not release %d seat(s) on lesson %s during compensation",
                    line.quantity.value,
                    line.lesson_id,
                )
        checkout.reserved.clear()
        checkout.move_to(CheckoutState.REJECTED)
        cache.invalidate_lessons(str(line.lesson_id) for line in checkout.request.lines)
