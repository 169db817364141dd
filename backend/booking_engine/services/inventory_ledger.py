"""
库存台账 - 按房间、按日期统计已占用单元数

占用数每次都从 bookings 表实时推导，不单独存储计数器：
一个未取消的预订在 [check_in, check_out) 的每一晚占用 1 个单元，与人数无关。
"""
from collections import Counter
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from booking_engine.domain.stay import iter_nights
from booking_engine.models.ontology import Booking, Room, NON_CONSUMING_STATUSES
from booking_engine.security.tenant import TenantContext


class InventoryLedger:
    """库存台账（只读）"""

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant

    def overlapping_bookings(self, room_id: int, start: date, end: date,
                             exclude_booking_id: Optional[int] = None) -> List[Booking]:
        """
        获取与 [start, end) 重叠且占用库存的预订

        重叠条件: existing.check_in < end AND existing.check_out > start
        """
        query = self.db.query(Booking).filter(
            Booking.tenant_id == self.tenant.tenant_id,
            Booking.room_id == room_id,
            Booking.status.notin_(NON_CONSUMING_STATUSES),
            Booking.check_in < end,
            Booking.check_out > start
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.check_in, Booking.id).all()

    def committed_by_date(self, room_id: int, start: date, end: date,
                          exclude_booking_id: Optional[int] = None) -> Dict[date, int]:
        """统计 [start, end) 内每晚已占用单元数（无占用的日期为 0）"""
        counts = Counter()
        for booking in self.overlapping_bookings(room_id, start, end, exclude_booking_id):
            first = max(booking.check_in, start)
            last = min(booking.check_out, end)
            counts.update(iter_nights(first, last))
        return {night: counts.get(night, 0) for night in iter_nights(start, end)}

    def committed_units(self, room_id: int, target_date: date,
                        exclude_booking_id: Optional[int] = None) -> int:
        """某晚已占用单元数"""
        return len(self.overlapping_bookings(
            room_id, target_date, target_date + timedelta(days=1), exclude_booking_id
        ))

    def fully_booked_dates(self, room: Room, start: date, end: date) -> List[date]:
        """[start, end) 内已满房的日期"""
        total_units = room.bookable_units
        committed = self.committed_by_date(room.id, start, end)
        return sorted(night for night, count in committed.items() if count >= total_units)


