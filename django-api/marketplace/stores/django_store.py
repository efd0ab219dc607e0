"""Django ORM implementation of the lesson and order stores.

Seat counters are only ever changed through conditional UPDATE statements
built from F() expressions, so the database row is the point of
linearization for each lesson.
"""

import functools
import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, PositiveIntegerField, Q
from django.db.models.deletion import ProtectedError
from django.db.models.functions import Greatest, Least
from django.utils import timezone

from marketplace import models
from marketplace.domain import (
    Capacity,
    Lesson,
    LessonChanges,
    LessonDraft,
    LessonFilter,
    LessonId,
    Money,
    Order,
    OrderId,
    OrderLine,
    OrderStatus,
)
from marketplace.domain.errors import (
    InsufficientCapacityError,
    LessonInUseError,
    LessonNotFoundError,
    StoreUnavailableError,
)
from marketplace.stores.interfaces import LessonStore, OrderStore

logger = logging.getLogger(__name__)


def _translate_db_errors(method):
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as exc:
            logger.error("Database error in %s: %s", method.__qualname__, exc)
            raise StoreUnavailableError() from exc

    return wrapper


def _to_lesson(row: models.Lesson) -> Lesson:
    return Lesson(
        id=LessonId(row.id),
        subject=row.subject,
        location=row.location,
        price=Money(row.price),
        capacity=Capacity(row.capacity),
        available_slots=row.available_slots,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_order(row: models.Order) -> Order:
    return Order(
        id=OrderId(row.id),
        customer_name=row.customer_name,
        customer_phone=row.customer_phone,
        total=Money(row.total),
        status=OrderStatus(row.status),
        created_at=row.created_at,
        lines=tuple(
            OrderLine(
                lesson_id=LessonId(line.lesson_id),
                quantity=line.quantity,
                unit_price=Money(line.unit_price),
            )
            for line in row.lines.all()
        ),
    )


class DjangoLessonStore(LessonStore):
    """Relational lesson store using Django ORM."""

    @_translate_db_errors
    def list_lessons(self, lesson_filter: LessonFilter | None = None) -> list[Lesson]:
        lesson_filter = lesson_filter or LessonFilter()
        queryset = models.Lesson.objects.all()
        if lesson_filter.search:
            queryset = queryset.filter(
                Q(subject__icontains=lesson_filter.search)
                | Q(location__icontains=lesson_filter.search)
            )
        queryset = queryset.order_by(lesson_filter.ordering, "id")
        return [_to_lesson(row) for row in queryset]

    @_translate_db_errors
    def get_lesson(self, lesson_id: LessonId) -> Lesson | None:
        row = models.Lesson.objects.filter(pk=lesson_id.value).first()
        return _to_lesson(row) if row else None

    @_translate_db_errors
    def create_lesson(self, draft: LessonDraft) -> Lesson:
        row = models.Lesson.objects.create(
            subject=draft.subject,
            location=draft.location,
            price=draft.price.amount,
            capacity=draft.capacity.value,
            available_slots=draft.capacity.value,
        )
        return _to_lesson(row)

    @_translate_db_errors
    def update_lesson(self, lesson_id: LessonId, changes: LessonChanges) -> Lesson | None:
        with transaction.atomic():
            row = (
                models.Lesson.objects.select_for_update()
                .filter(pk=lesson_id.value)
                .first()
            )
            if row is None:
                return None
            fields = {"updated_at": timezone.now()}
            if changes.subject is not None:
                fields["subject"] = changes.subject
            if changes.location is not None:
                fields["location"] = changes.location
            if changes.price is not None:
                fields["price"] = changes.price.amount
            if changes.capacity is not None:
                delta = changes.capacity.value - row.capacity
                shifted = row.available_slots + delta
                if shifted < 0:
                    logger.warning(
                        "Capacity of lesson %s lowered to %d below %d reserved seats; "
                        "clamping available slots to 0",
                        lesson_id,
                        changes.capacity.value,
                        row.capacity - row.available_slots,
                    )
                fields["capacity"] = changes.capacity.value
                # Relative to the stored counter so concurrent reservations are kept.
                fields["available_slots"] = Greatest(
                    F("available_slots") + delta, 0, output_field=PositiveIntegerField()
                )
            models.Lesson.objects.filter(pk=lesson_id.value).update(**fields)
            row.refresh_from_db()
        return _to_lesson(row)

    @_translate_db_errors
    def delete_lesson(self, lesson_id: LessonId) -> bool:
        try:
            deleted, _ = models.Lesson.objects.filter(pk=lesson_id.value).delete()
        except (ProtectedError, IntegrityError) as exc:
            raise LessonInUseError(str(lesson_id)) from exc
        return deleted > 0

    @_translate_db_errors
    def try_reserve(self, lesson_id: LessonId, quantity: int) -> Lesson:
        with transaction.atomic():
            updated = models.Lesson.objects.filter(
                pk=lesson_id.value, available_slots__gte=quantity
            ).update(available_slots=F("available_slots") - quantity)
            if not updated:
                if not models.Lesson.objects.filter(pk=lesson_id.value).exists():
                    raise LessonNotFoundError(str(lesson_id))
                raise InsufficientCapacityError(str(lesson_id), quantity)
            # Row is locked by the UPDATE until commit, so this read sees the
            # price the seats were reserved at.
            row = models.Lesson.objects.get(pk=lesson_id.value)
        return _to_lesson(row)

    @_translate_db_errors
    def release(self, lesson_id: LessonId, quantity: int) -> bool:
        updated = models.Lesson.objects.filter(pk=lesson_id.value).update(
            available_slots=Least(
                F("available_slots") + quantity,
                F("capacity"),
                output_field=PositiveIntegerField(),
            )
        )
        return updated > 0


class DjangoOrderStore(OrderStore):
    """Relational order store using Django ORM."""

    @_translate_db_errors
    def create_order(
        self,
        customer_name: str,
        customer_phone: str,
        lines: list[OrderLine],
        total: Money,
    ) -> Order:
        try:
            with transaction.atomic():
                # Row locks keep a concurrent delete out until the lines are written.
                self._lock_lessons(lines)
                row = models.Order.objects.create(
                    customer_name=customer_name,
                    customer_phone=customer_phone,
                    total=total.amount,
                    status=models.Order.Status.CONFIRMED,
                )
                models.OrderLine.objects.bulk_create(
                    models.OrderLine(
                        order=row,
                        lesson_id=line.lesson_id.value,
                        position=position,
                        quantity=line.quantity,
                        unit_price=line.unit_price.amount,
                    )
                    for position, line in enumerate(lines)
                )
        except IntegrityError as exc:
            missing = self._missing_lesson(lines)
            if missing is None:
                raise
            raise LessonNotFoundError(str(missing)) from exc
        return self.get_order(OrderId(row.id))

    @staticmethod
    def _lock_lessons(lines: list[OrderLine]) -> None:
        wanted = {line.lesson_id.value for line in lines}
        found = set(
            models.Lesson.objects.select_for_update()
            .filter(pk__in=wanted)
            .values_list("pk", flat=True)
        )
        for line in lines:
            if line.lesson_id.value not in found:
                raise LessonNotFoundError(str(line.lesson_id))

    @staticmethod
    def _missing_lesson(lines: list[OrderLine]) -> LessonId | None:
        found = set(
            models.Lesson.objects.filter(
                pk__in=[line.lesson_id.value for line in lines]
            ).values_list("pk", flat=True)
        )
        for line in lines:
            if line.lesson_id.value not in found:
                return line.lesson_id
        return None

    @_translate_db_errors
    def get_order(self, order_id: OrderId) -> Order | None:
        row = (
            models.Order.objects.prefetch_related("lines")
            .filter(pk=order_id.value)
            .first()
        )
        return _to_order(row) if row else None

    @_translate_db_errors
    def lesson_has_orders(self, lesson_id: LessonId) -> bool:
        return models.OrderLine.objects.filter(
            lesson_id=lesson_id.value,
            order__status=models.Order.Status.CONFIRMED,
        ).exists()
