"""Unit tests for CatalogService and ReservationService.

These test error handling, domain error mapping and the all-or-nothing
checkout against the in-memory stores.
Run with: pytest tests/test_services.py -v
"""

import uuid
from decimal import Decimal, InvalidOperation

import pytest

from marketplace.domain import Money, OrderStatus
from marketplace.domain.errors import (
    InsufficientCapacityError,
    InvalidLessonIdError,
    InvalidOrderIdError,
    LessonInUseError,
    LessonNotFoundError,
    OrderNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from marketplace.services import ReservationService, parse_checkout, reservation_service
from marketplace.stores import InMemoryOrderStore


def checkout_request(*lines, name="Ada", phone="0123456789"):
    return parse_checkout(
        name,
        phone,
        [{"lesson_id": str(lesson_id), "quantity": quantity} for lesson_id, quantity in lines],
    )


class TestCatalogService:
    """Tests for CatalogService."""

    def test_create_lesson_starts_with_all_seats_available(self, catalog):
        lesson = catalog.create_lesson("Math", "Room 1", Decimal("20"), 4)
        assert lesson.available_slots == 4
        assert lesson.capacity.value == 4
        assert lesson.price == Money(Decimal("20"))

    @pytest.mark.parametrize(
        "subject, location, price, capacity",
        [
            ("", "Room 1", Decimal("20"), 1),
            ("Math", "   ", Decimal("20"), 1),
            ("Math", "Room 1", Decimal("-1"), 1),
            ("Math", "Room 1", Decimal("20"), -1),
        ],
    )
    def test_create_lesson_rejects_invalid_fields(self, catalog, subject, location, price, capacity):
        with pytest.raises(ValidationError):
            catalog.create_lesson(subject, location, price, capacity)

    def test_get_lesson_invalid_id_raises_error(self, catalog):
        """get_lesson raises InvalidLessonIdError for malformed UUID."""
        with pytest.raises(InvalidLessonIdError):
            catalog.get_lesson("abc")

    def test_get_lesson_not_found_raises_error(self, catalog):
        """get_lesson raises LessonNotFoundError when store returns None."""
        with pytest.raises(LessonNotFoundError):
            catalog.get_lesson(str(uuid.uuid4()))

    def test_update_lesson_changes_metadata_only(self, catalog, reservations, math_lesson):
        reservations.checkout(checkout_request((math_lesson.id, 1)))

        updated = catalog.update_lesson(str(math_lesson.id), {"price": Decimal("25"), "subject": "Algebra"})

        assert updated.subject == "Algebra"
        assert updated.price == Money(Decimal("25"))
        assert updated.available_slots == 1

    def test_update_lesson_rejects_available_slots(self, catalog, math_lesson):
        with pytest.raises(ValidationError):
            catalog.update_lesson(str(math_lesson.id), {"available_slots": 99})

    def test_update_lesson_requires_a_field(self, catalog, math_lesson):
        with pytest.raises(ValidationError):
            catalog.update_lesson(str(math_lesson.id), {})

    def test_update_unknown_lesson_raises_not_found(self, catalog):
        with pytest.raises(LessonNotFoundError):
            catalog.update_lesson(str(uuid.uuid4()), {"subject": "Art"})

    def test_capacity_increase_adds_free_seats(self, catalog, reservations, math_lesson):
        reservations.checkout(checkout_request((math_lesson.id, 1)))

        updated = catalog.update_lesson(str(math_lesson.id), {"capacity": 5})

        assert updated.capacity.value == 5
        assert updated.available_slots == 4

    def test_capacity_shrink_below_reservations_clamps_to_zero(self, catalog, reservations, math_lesson, caplog):
        """Shrinking capacity under reserved seats clamps and logs instead of going negative."""
        reservations.checkout(checkout_request((math_lesson.id, 2)))

        with caplog.at_level("WARNING", logger="marketplace"):
            updated = catalog.update_lesson(str(math_lesson.id), {"capacity": 1})

        assert updated.available_slots == 0
        assert updated.capacity.value == 1
        assert "clamping" in caplog.text

    def test_delete_lesson(self, catalog, math_lesson):
        catalog.delete_lesson(str(math_lesson.id))
        with pytest.raises(LessonNotFoundError):
            catalog.get_lesson(str(math_lesson.id))

    def test_delete_missing_lesson_raises_not_found(self, catalog):
        with pytest.raises(LessonNotFoundError):
            catalog.delete_lesson(str(uuid.uuid4()))

    def test_delete_lesson_with_orders_is_refused(self, catalog, reservations, math_lesson):
        reservations.checkout(checkout_request((math_lesson.id, 1)))
        with pytest.raises(LessonInUseError):
            catalog.delete_lesson(str(math_lesson.id))

    def test_list_lessons_search_and_ordering(self, catalog):
        catalog.create_lesson("Math", "Room 1", Decimal("30"), 2)
        catalog.create_lesson("Music", "Hall", Decimal("10"), 2)
        catalog.create_lesson("Art", "Room 2", Decimal("20"), 2)

        by_price = catalog.list_lessons(ordering="price")
        assert [lesson.subject for lesson in by_price] == ["Music", "Art", "Math"]

        rooms = catalog.list_lessons(search="room", ordering="-subject")
        assert [lesson.subject for lesson in rooms] == ["Math", "Art"]

    def test_list_lessons_rejects_unknown_ordering(self, catalog):
        with pytest.raises(ValidationError):
            catalog.list_lessons(ordering="instructor")


class TestParseCheckout:
    """Tests for checkout request validation."""

    def test_duplicate_lesson_is_rejected(self):
        lesson_id = uuid.uuid4()
        with pytest.raises(ValidationError) as excinfo:
            checkout_request((lesson_id, 1), (lesson_id, 2))
        assert excinfo.value.lesson_id == str(lesson_id)

    def test_empty_cart_is_rejected(self):
        with pytest.raises(ValidationError):
            checkout_request()

    @pytest.mark.parametrize("name, phone", [("", "0123"), ("Ada", ""), ("Ada", "call me")])
    def test_customer_fields_are_required(self, name, phone):
        with pytest.raises(ValidationError):
            checkout_request((uuid.uuid4(), 1), name=name, phone=phone)

    def test_zero_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            checkout_request((uuid.uuid4(), 0))

    def test_malformed_lesson_id_is_rejected(self):
        with pytest.raises(ValidationError):
            checkout_request(("nope", 1))


class TestReservationService:
    """Tests for ReservationService.checkout."""

    def test_checkout_confirms_order_and_takes_seats(self, catalog, reservations, math_lesson):
        order = reservations.checkout(checkout_request((math_lesson.id, 2)))

        assert order.status is OrderStatus.CONFIRMED
        assert order.total == Money(Decimal("40"))
        assert [(line.lesson_id, line.quantity) for line in order.lines] == [(math_lesson.id, 2)]
        assert catalog.get_lesson(str(math_lesson.id)).available_slots == 0

    def test_second_checkout_fails_when_sold_out(self, catalog, reservations, order_store, math_lesson):
        first = reservations.checkout(checkout_request((math_lesson.id, 2)))

        with pytest.raises(InsufficientCapacityError) as excinfo:
            reservations.checkout(checkout_request((math_lesson.id, 1)))

        assert excinfo.value.lesson_id == str(math_lesson.id)
        assert order_store.get_order(first.id) == first
        assert catalog.get_lesson(str(math_lesson.id)).available_slots == 0

    def test_unknown_lesson_creates_nothing(self, catalog, reservations, order_store, math_lesson):
        missing = uuid.uuid4()

        with pytest.raises(LessonNotFoundError) as excinfo:
            reservations.checkout(checkout_request((missing, 1)))

        assert excinfo.value.lesson_id == str(missing)
        assert not order_store.lesson_has_orders(math_lesson.id)
        assert catalog.get_lesson(str(math_lesson.id)).available_slots == 2

    def test_failed_second_line_releases_first_line(self, catalog, reservations, order_store):
        """A multi-line checkout failing on line 2 leaves line 1's seats untouched."""
        first = catalog.create_lesson("Math", "Room 1", Decimal("20"), 3)
        second = catalog.create_lesson("Art", "Room 2", Decimal("15"), 1)

        with pytest.raises(InsufficientCapacityError) as excinfo:
            reservations.checkout(checkout_request((first.id, 2), (second.id, 2)))

        assert excinfo.value.lesson_id == str(second.id)
        assert catalog.get_lesson(str(first.id)).available_slots == 3
        assert catalog.get_lesson(str(second.id)).available_slots == 1
        assert not order_store.lesson_has_orders(first.id)

    def test_total_uses_price_at_reservation_time(self, catalog, reservations, math_lesson):
        order = reservations.checkout(checkout_request((math_lesson.id, 1)))
        catalog.update_lesson(str(math_lesson.id), {"price": Decimal("99")})

        stored = reservations.get_order(str(order.id))

        assert stored.total == Money(Decimal("20"))
        assert stored.lines[0].unit_price == Money(Decimal("20"))

    def test_compensation_failure_is_logged_and_original_error_kept(self, catalog, lesson_store, reservations, caplog):
        first = catalog.create_lesson("Math", "Room 1", Decimal("20"), 2)
        second = catalog.create_lesson("Art", "Room 2", Decimal("15"), 0)
        original_try_reserve = lesson_store.try_reserve

        def reserve_then_vanish(lesson_id, quantity):
            if lesson_id == second.id:
                lesson_store.delete_lesson(first.id)
            return original_try_reserve(lesson_id, quantity)

        lesson_store.try_reserve = reserve_then_vanish

        with caplog.at_level("WARNING", logger="marketplace"):
            with pytest.raises(InsufficientCapacityError):
                reservations.checkout(checkout_request((first.id, 1), (second.id, 1)))

        assert "Anomaly" in caplog.text

    @pytest.mark.parametrize(
        "error",
        [StoreUnavailableError(), InvalidOperation(), RuntimeError("disk full")],
        ids=["store-unavailable", "decimal", "unexpected"],
    )
    def test_order_store_failure_releases_seats(self, catalog, lesson_store, math_lesson, error):
        class BrokenOrderStore(InMemoryOrderStore):
            def create_order(self, *args, **kwargs):
                raise error

        service = ReservationService(lesson_store, BrokenOrderStore(lesson_store))

        with pytest.raises(type(error)):
            service.checkout(checkout_request((math_lesson.id, 2)))

        assert catalog.get_lesson(str(math_lesson.id)).available_slots == 2

    def test_lesson_store_failure_releases_earlier_lines(self, catalog, lesson_store, order_store):
        first = catalog.create_lesson("Math", "Room 1", Decimal("20"), 2)
        second = catalog.create_lesson("Art", "Room 2", Decimal("15"), 2)
        original_try_reserve = lesson_store.try_reserve

        def fail_on_second(lesson_id, quantity):
            if lesson_id == second.id:
                raise OverflowError("value too large")
            return original_try_reserve(lesson_id, quantity)

        lesson_store.try_reserve = fail_on_second
        service = ReservationService(lesson_store, order_store)

        with pytest.raises(OverflowError):
            service.checkout(checkout_request((first.id, 2), (second.id, 1)))

        assert catalog.get_lesson(str(first.id)).available_slots == 2
        assert not order_store.lesson_has_orders(first.id)

    def test_total_too_large_to_store_releases_seats(self, catalog, reservations, order_store, monkeypatch):
        monkeypatch.setattr(reservation_service, "MAX_ORDER_TOTAL", Decimal("99.99"))
        lesson = catalog.create_lesson("Math", "Room 1", Decimal("60"), 3)

        with pytest.raises(ValidationError):
            reservations.checkout(checkout_request((lesson.id, 2)))

        assert catalog.get_lesson(str(lesson.id)).available_slots == 3
        assert not order_store.lesson_has_orders(lesson.id)

    def test_lesson_deleted_mid_checkout_rejects_order(self, catalog, lesson_store, reservations, order_store, math_lesson):
        """A lesson deleted after its seats were reserved never ends up on an order."""
        original_try_reserve = lesson_store.try_reserve

        def reserve_then_delete(lesson_id, quantity):
            lesson = original_try_reserve(lesson_id, quantity)
            catalog.delete_lesson(str(lesson_id))
            return lesson

        lesson_store.try_reserve = reserve_then_delete

        with pytest.raises(LessonNotFoundError) as excinfo:
            reservations.checkout(checkout_request((math_lesson.id, 1)))

        assert excinfo.value.lesson_id == str(math_lesson.id)
        assert not order_store.lesson_has_orders(math_lesson.id)

    def test_lesson_on_an_order_cannot_be_deleted_from_store(self, lesson_store, reservations, math_lesson):
        reservations.checkout(checkout_request((math_lesson.id, 1)))

        with pytest.raises(LessonInUseError):
            lesson_store.delete_lesson(math_lesson.id)

        assert lesson_store.get_lesson(math_lesson.id) is not None

    def test_get_order_errors(self, reservations):
        with pytest.raises(InvalidOrderIdError):
            reservations.get_order("123")
        with pytest.raises(OrderNotFoundError):
            reservations.get_order(str(uuid.uuid4()))
