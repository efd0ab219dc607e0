"""Serializers for request bodies and for Lesson and Order domain models.

Request serializers check shape and types only. Business rules (duplicate
lines, free seats) stay in the services.
"""

from decimal import Decimal

from rest_framework import serializers

from marketplace.domain.value_objects import MAX_CAPACITY, MAX_ORDER_TOTAL_DIGITS


class RejectUnknownFieldsMixin:
    """Fail validation when the body carries fields this endpoint does not accept."""

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(
                {name: ["This field cannot be set."] for name in unknown}
            )
        return attrs


class LessonSerializer(serializers.Serializer):
    """Serializer for Lesson domain model."""

    id = serializers.UUIDField(source="id.value")
    subject = serializers.CharField()
    location = serializers.CharField()
    price = serializers.DecimalField(source="price.amount", max_digits=10, decimal_places=2)
    capacity = serializers.IntegerField(source="capacity.value")
    availableSlots = serializers.IntegerField(source="available_slots")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")


class LessonCreateSerializer(RejectUnknownFieldsMixin, serializers.Serializer):
    """Body of POST /api/lessons."""

    subject = serializers.CharField(max_length=255)
    location = serializers.CharField(max_length=255)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"))
    capacity = serializers.IntegerField(min_value=0, max_value=MAX_CAPACITY)


class LessonUpdateSerializer(LessonCreateSerializer):
    """Body of PUT /api/lessons/{id}; bind with partial=True."""

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if not attrs:
            raise serializers.ValidationError("No fields to update.")
        return attrs


class LessonListQuerySerializer(serializers.Serializer):
    """Query string of GET /api/lessons."""

    ORDERING_ALIASES = {
        "subject": "subject",
        "location": "location",
        "price": "price",
        "availableSlots": "available_slots",
        "spaces": "available_slots",
        "createdAt": "created_at",
    }

    search = serializers.CharField(required=False, allow_blank=True)
    ordering = serializers.CharField(required=False)

    def validate_ordering(self, value: str) -> str:
        descending = value.startswith("-")
        name = value.lstrip("-")
        if name not in self.ORDERING_ALIASES:
            raise serializers.ValidationError(
                f"Unsupported ordering. Use one of: {', '.join(self.ORDERING_ALIASES)}."
            )
        return ("-" if descending else "") + self.ORDERING_ALIASES[name]


class OrderLineInputSerializer(serializers.Serializer):
    lessonId = serializers.UUIDField(source="lesson_id")
    quantity = serializers.IntegerField(min_value=1)


class CheckoutSerializer(RejectUnknownFieldsMixin, serializers.Serializer):
    """Body of POST /api/orders."""

    customerName = serializers.CharField(source="customer_name", max_length=255)
    customerPhone = serializers.CharField(source="customer_phone", max_length=32)
    lines = OrderLineInputSerializer(many=True, allow_empty=False)


class OrderLineSerializer(serializers.Serializer):
    """Serializer for OrderLine domain model."""

    lessonId = serializers.UUIDField(source="lesson_id.value")
    quantity = serializers.IntegerField()
    unitPrice = serializers.DecimalField(source="unit_price.amount", max_digits=10, decimal_places=2)


class OrderSerializer(serializers.Serializer):
    """Serializer for Order domain model."""

    id = serializers.UUIDField(source="id.value")
    customerName = serializers.CharField(source="customer_name")
    customerPhone = serializers.CharField(source="customer_phone")
    status = serializers.CharField(source="status.value")
    total = serializers.DecimalField(
        source="total.amount", max_digits=MAX_ORDER_TOTAL_DIGITS, decimal_places=2
    )
    createdAt = serializers.DateTimeField(source="created_at")
    lines = OrderLineSerializer(many=True)
