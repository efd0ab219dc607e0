"""Pytest configuration and shared fixtures."""

from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from marketplace.services import CatalogService, ReservationService
from marketplace.stores import InMemoryLessonStore, InMemoryOrderStore


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def lesson_store() -> InMemoryLessonStore:
    return InMemoryLessonStore()


@pytest.fixture
def order_store(lesson_store) -> InMemoryOrderStore:
    return InMemoryOrderStore(lesson_store)


@pytest.fixture
def catalog(lesson_store, order_store) -> CatalogService:
    return CatalogService(lesson_store, order_store)


@pytest.fixture
def reservations(lesson_store, order_store) -> ReservationService:
    return ReservationService(lesson_store, order_store)


@pytest.fixture
def math_lesson(catalog):
    return catalog.create_lesson("Math", "Room 1", Decimal("20"), 2)


@pytest.fixture
def create_lesson_via_api(api_client):
    def create(subject="Math", location="Room 1", price="20.00", capacity=2):
        response = api_client.post(
            "/api/lessons",
            {"subject": subject, "location": location, "price": price, "capacity": capacity},
            format="json",
        )
        assert response.status_code == 201, response.data
        return response.data

    return create
