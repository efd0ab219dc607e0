from marketplace.services.catalog_service import CatalogService
from marketplace.services.reservation_service import ReservationService, parse_checkout

__all__ = ["CatalogService", "ReservationService", "parse_checkout"]
