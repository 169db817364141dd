"""
可售性服务 - 库存 + 入住晚数规则

对 [check_in, check_out) 逐晚计算剩余单元，区间可售单元取最紧的一晚：
多晚入住必须在每一晚都能找到空房。
"可不可订" 是正常的查询结果（available=False），不以异常表示。
"""
from dataclasses import dataclass, asdict
from datetime import date
from typing import Optional
import logging

from sqlalchemy.orm import Session

from booking_engine.domain.stay import require_nights
from booking_engine.models.ontology import Room
from booking_engine.security.tenant import TenantContext
from booking_engine.services.inventory_ledger import InventoryLedger
from booking_engine.services.rate_resolver import RateResolver

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    """可售性查询结果"""

    available: bool
    available_units: int
    total_units: int
    nights: int
    min_stay_nights: int
    max_stay_nights: Optional[int]
    meets_min_stay: bool
    meets_max_stay: bool

    @property
    def meets_stay_rules(self) -> bool:
        return self.meets_min_stay and self.meets_max_stay

    def to_dict(self) -> dict:
        return asdict(self)


class AvailabilityService:
    """可售性服务"""

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant
        self.ledger = InventoryLedger(db, tenant)
        self.rate_resolver = RateResolver(db, tenant)

    def check_room(self, room: Room, check_in: date, check_out: date,
                   override_stay_rules: bool = False,
                   exclude_booking_id: Optional[int] = None) -> AvailabilityResult:
        """对已加载（可能已加锁）的房间计算可售性"""
        nights = require_nights(check_in, check_out)

        min_stay = room.min_stay_nights or 1
        max_stay = room.max_stay_nights
        meets_min_stay = nights >= min_stay
        meets_max_stay = max_stay is None or nights <= max_stay

        total_units = room.bookable_units
        committed = self.ledger.committed_by_date(room.id, check_in, check_out, exclude_booking_id)
        available_units = max(0, min(total_units - count for count in committed.values()))

        stay_ok = override_stay_rules or (meets_min_stay and meets_max_stay)
        result = AvailabilityResult(
            available=available_units > 0 and stay_ok,
            available_units=available_units,
            total_units=total_units,
            nights=nights,
            min_stay_nights=min_stay,
            max_stay_nights=max_stay,
            meets_min_stay=meets_min_stay,
            meets_max_stay=meets_max_stay,
        )
        logger.debug(
            f"Availability room={room.id} {check_in}->{check_out}: "
            f"units={available_units}/{total_units} nights={nights} available={result.available}"
        )
        return result

    def check_availability(self, room_id: int, check_in: date, check_out: date,
                           override_stay_rules: bool = False,
                           exclude_booking_id: Optional[int] = None) -> AvailabilityResult:
        """查询房间在 [check_in, check_out) 是否可订"""
        room = self.rate_resolver.get_room(room_id)
        return self.check_room(room, check_in, check_out, override_stay_rules, exclude_booking_id)

    def get_booked_dates(self, room_id: int, start_date: date, end_date: date) -> dict:
        """获取区间内已满房日期"""
        require_nights(start_date, end_date)
        room = self.rate_resolver.get_room(room_id)
        return {
            'booked_dates': self.ledger.fully_booked_dates(room, start_date, end_date),
            'total_units': room.bookable_units,
        }
