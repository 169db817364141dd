# Business Services
from booking_engine.services.rate_resolver import RateResolver
from booking_engine.services.pricing_service import PricingService
from booking_engine.services.inventory_ledger import InventoryLedger
from booking_engine.services.availability_service import AvailabilityService
from booking_engine.services.booking_service import BookingService, BookingConflictGuard
from booking_engine.services.room_service import RoomService

__all__ = [
    'RateResolver', 'PricingService', 'InventoryLedger',
    'AvailabilityService', 'BookingService', 'BookingConflictGuard', 'RoomService'
]
