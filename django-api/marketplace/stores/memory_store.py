"""In-memory implementation of the lesson and order stores.

Used by unit tests and by `MARKETPLACE_STORE_BACKEND = "memory"`. Each lesson
record carries its own lock; the registry lock only guards membership of the
lesson table, so checkouts on different lessons never wait on each other.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field, replace

from django.utils import timezone

from marketplace.domain import (
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
)
from marketplace.stores.interfaces import LessonStore, OrderStore

logger = logging.getLogger(__name__)


@dataclass
class _LessonRecord:
    lesson: Lesson
    lock: threading.Lock = field(default_factory=threading.Lock)
    deleted: bool = False
    referenced: bool = False


class InMemoryLessonStore(LessonStore):
    """Process-local lesson store with per-lesson locking."""

    def __init__(self) -> None:
        self._records: dict[uuid.UUID, _LessonRecord] = {}
        self._registry_lock = threading.Lock()

    def _record(self, lesson_id: LessonId) -> _LessonRecord | None:
        with self._registry_lock:
            return self._records.get(lesson_id.value)

    def list_lessons(self, lesson_filter: LessonFilter | None = None) -> list[Lesson]:
        lesson_filter = lesson_filter or LessonFilter()
        with self._registry_lock:
            records = list(self._records.values())
        lessons = []
        for record in records:
            with record.lock:
                lessons.append(record.lesson)
        lessons = [lesson for lesson in lessons if lesson_filter.matches(lesson)]
        lessons.sort(key=lambda lesson: str(lesson.id))
        lessons.sort(key=_sort_key(lesson_filter.sort_field), reverse=lesson_filter.descending)
        return lessons

    def get_lesson(self, lesson_id: LessonId) -> Lesson | None:
        record = self._record(lesson_id)
        if record is None:
            return None
        with record.lock:
            return None if record.deleted else record.lesson

    def create_lesson(self, draft: LessonDraft) -> Lesson:
        now = timezone.now()
        lesson = Lesson(
            id=LessonId(uuid.uuid4()),
            subject=draft.subject,
            location=draft.location,
            price=draft.price,
            capacity=draft.capacity,
            available_slots=draft.capacity.value,
            created_at=now,
            updated_at=now,
        )
        with self._registry_lock:
            self._records[lesson.id.value] = _LessonRecord(lesson=lesson)
        return lesson

    def update_lesson(self, lesson_id: LessonId, changes: LessonChanges) -> Lesson | None:
        record = self._record(lesson_id)
        if record is None:
            return None
        with record.lock:
            if record.deleted:
                return None
            current = record.lesson
            available = current.available_slots
            capacity = current.capacity
            if changes.capacity is not None:
                shifted = available + changes.capacity.value - current.capacity.value
                if shifted < 0:
                    logger.warning(
                        "Capacity of lesson %s lowered to %d below %d reserved seats; "
                        "clamping available slots to 0",
                        lesson_id,
                        changes.capacity.value,
                        current.capacity.value - current.available_slots,
                    )
                available = max(shifted, 0)
                capacity = changes.capacity
            record.lesson = replace(
                current,
                subject=changes.subject if changes.subject is not None else current.subject,
                location=changes.location if changes.location is not None else current.location,
                price=changes.price if changes.price is not None else current.price,
                capacity=capacity,
                available_slots=available,
                updated_at=timezone.now(),
            )
            return record.lesson

    def delete_lesson(self, lesson_id: LessonId) -> bool:
        with self._registry_lock:
            record = self._records.get(lesson_id.value)
            if record is None:
                return False
            if record.referenced:
                raise LessonInUseError(str(lesson_id))
            del self._records[lesson_id.value]
        with record.lock:
            record.deleted = True
        return True

    def protect(self, lesson_ids: list[LessonId]) -> None:
        """Mark lessons as referenced by an order so they can no longer be deleted.

        Raises:
            LessonNotFoundError: If any of the lessons is gone; nothing is marked.
        """
        with self._registry_lock:
            records = []
            for lesson_id in lesson_ids:
                record = self._records.get(lesson_id.value)
                if record is None:
                    raise LessonNotFoundError(str(lesson_id))
                records.append(record)
            for record in records:
                record.referenced = True

    def try_reserve(self, lesson_id: LessonId, quantity: int) -> Lesson:
        record = self._record(lesson_id)
        if record is None:
            raise LessonNotFoundError(str(lesson_id))
        with record.lock:
            if record.deleted:
                raise LessonNotFoundError(str(lesson_id))
            if record.lesson.available_slots < quantity:
                raise InsufficientCapacityError(str(lesson_id), quantity)
            record.lesson = replace(
                record.lesson, available_slots=record.lesson.available_slots - quantity
            )
            return record.lesson

    def release(self, lesson_id: LessonId, quantity: int) -> bool:
        record = self._record(lesson_id)
        if record is None:
            return False
        with record.lock:
            if record.deleted:
                return False
            lesson = record.lesson
            record.lesson = replace(
                lesson,
                available_slots=min(lesson.available_slots + quantity, lesson.capacity.value),
            )
            return True


def _sort_key(sort_field: str):
    if sort_field == "price":
        return lambda lesson: lesson.price.amount
    if sort_field in ("subject", "location"):
        return lambda lesson: getattr(lesson, sort_field).lower()
    return lambda lesson: getattr(lesson, sort_field)


class InMemoryOrderStore(OrderStore):
    """Process-local order store.

    Orders pin the lessons they reference in the paired lesson store, the way
    the ORM's PROTECT foreign key does.
    """

    def __init__(self, lessons: InMemoryLessonStore) -> None:
        self._lessons = lessons
        self._orders: dict[uuid.UUID, Order] = {}
        self._lock = threading.Lock()

    def create_order(
        self,
        customer_name: str,
        customer_phone: str,
        lines: list[OrderLine],
        total: Money,
    ) -> Order:
        self._lessons.protect([line.lesson_id for line in lines])
        order = Order(
            id=OrderId(uuid.uuid4()),
            customer_name=customer_name,
            customer_phone=customer_phone,
            total=total,
            status=OrderStatus.CONFIRMED,
            created_at=timezone.now(),
            lines=tuple(lines),
        )
        with self._lock:
            self._orders[order.id.value] = order
        return order

    def get_order(self, order_id: OrderId) -> Order | None:
        with self._lock:
            return self._orders.get(order_id.value)

    def lesson_has_orders(self, lesson_id: LessonId) -> bool:
        with self._lock:
            return any(
                line.lesson_id == lesson_id
                for order in self._orders.values()
                if order.status is OrderStatus.CONFIRMED
                for line in order.lines
            )
