"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

from decimal import Decimal

import pytest
from django.core.cache import cache

from marketplace import cache as lesson_cache
from marketplace.models import Lesson


@pytest.fixture
def lesson() -> Lesson:
    return Lesson.objects.create(
        subject="Math", location="Room 1", price=Decimal("20"), capacity=3, available_slots=3
    )


@pytest.mark.django_db
class TestCacheInvalidation:
    """Tests for cache invalidation on model changes and seat updates."""

    def test_detail_read_populates_cache(self, api_client, lesson):
        api_client.get(f"/api/lessons/{lesson.pk}")
        assert cache.get(lesson_cache.lesson_key(str(lesson.pk)))["subject"] == "Math"

    def test_lesson_save_invalidates_detail_cache(self, api_client, lesson):
        """Saving a lesson invalidates the lessons:{id} cache key."""
        api_client.get(f"/api/lessons/{lesson.pk}")

        lesson.subject = "Algebra"
        lesson.save()

        assert cache.get(lesson_cache.lesson_key(str(lesson.pk))) is None
        assert api_client.get(f"/api/lessons/{lesson.pk}").json()["subject"] == "Algebra"

    def test_checkout_invalidates_detail_cache(self, api_client, lesson):
        """Seat updates bypass signals, so checkout clears the key itself."""
        api_client.get(f"/api/lessons/{lesson.pk}")

        response = api_client.post(
            "/api/orders",
            {
                "customerName": "Ada",
                "customerPhone": "0123",
                "lines": [{"lessonId": str(lesson.pk), "quantity": 2}],
            },
            format="json",
        )

        assert response.status_code == 201
        assert api_client.get(f"/api/lessons/{lesson.pk}").json()["availableSlots"] == 1

    def test_lesson_delete_invalidates_detail_cache(self, api_client, lesson):
        api_client.get(f"/api/lessons/{lesson.pk}")

        api_client.delete(f"/api/lessons/{lesson.pk}")

        assert api_client.get(f"/api/lessons/{lesson.pk}").status_code == 404
