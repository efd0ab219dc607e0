"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models

from marketplace.domain.value_objects import MAX_ORDER_TOTAL_DIGITS


class Lesson(models.Model):
    """Persistence model for lessons."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subject = models.CharField(max_length=255)
    location = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    capacity = models.PositiveIntegerField()
    available_slots = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="lesson_created_at_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_slots__lte=models.F("capacity")),
                name="lesson_available_slots_within_capacity",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.subject} @ {self.location}"


class Order(models.Model):
    """Persistence model for confirmed orders."""

    class Status(models.TextChoices):
        CONFIRMED = "Confirmed"
        REJECTED = "Rejected"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=32)
    total = models.DecimalField(max_digits=MAX_ORDER_TOTAL_DIGITS, decimal_places=2)
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.CONFIRMED
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.customer_name} - {self.total}"


class OrderLine(models.Model):
    """Persistence model for the seats one order holds on one lesson."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="lines")
    lesson = models.ForeignKey(
        Lesson, on_delete=models.PROTECT, related_name="order_lines"
    )
    position = models.PositiveSmallIntegerField()
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "lesson"], name="order_line_unique_lesson"
            ),
        ]
        indexes = [
            models.Index(fields=["lesson"], name="order_line_lesson_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.lesson_id}"
