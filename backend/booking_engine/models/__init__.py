# Ontology Models
from booking_engine.models.ontology import (
    Room, SeasonalRate, Booking,
    PricingMode, InventoryMode, BookingStatus
)

__all__ = [
    'Room', 'SeasonalRate', 'Booking',
    'PricingMode', 'InventoryMode', 'BookingStatus'
]
