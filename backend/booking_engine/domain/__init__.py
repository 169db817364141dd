from booking_engine.domain.booking_state import booking_state_machine
from booking_engine.domain.stay import iter_nights, require_nights, count_nights

__all__ = [
    'booking_state_machine',
    'iter_nights', 'require_nights', 'count_nights',
]
