# API Routers
from booking_engine.routers import rooms, bookings, public

__all__ = ['rooms', 'bookings', 'public']
