"""
价格解析服务 - 单晚生效价

对某个房间的某一天，在季节价与房间基础价之间选出唯一生效的夜间价：
- 覆盖当天（起止日均包含）的季节价中 priority 最高者生效
- priority 相同时，最近创建的季节价生效（created_at、id 依次比较）
- 没有季节价覆盖时使用房间 base_price_per_night
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from booking_engine.domain.stay import iter_nights
from booking_engine.errors import NotFound
from booking_engine.models.ontology import Room, SeasonalRate
from booking_engine.security.tenant import TenantContext

logger = logging.getLogger(__name__)


@dataclass
class ResolvedRate:
    """单晚解析结果"""

    date: date
    base_price: Decimal
    effective_price: Decimal
    seasonal_rate: Optional[SeasonalRate] = None

    def seasonal_rate_ref(self) -> Optional[dict]:
        if self.seasonal_rate is None:
            return None
        return {
            'id': self.seasonal_rate.id,
            'name': self.seasonal_rate.name,
            'price_per_night': self.seasonal_rate.price_per_night,
        }


def rate_precedence(rate: SeasonalRate) -> Tuple[int, datetime, int]:
    """季节价优先级排序键：priority > created_at > id"""
    return (
        rate.priority or 0,
        rate.created_at or datetime.min,
        rate.id or 0,
    )


def pick_seasonal_rate(rates: Iterable[SeasonalRate], target_date: date) -> Optional[SeasonalRate]:
    """从候选季节价中选出覆盖 target_date 的生效项，与输入顺序无关"""
    covering = [r for r in rates if r.start_date <= target_date <= r.end_date]
    if not covering:
        return None
    return max(covering, key=rate_precedence)


class RateResolver:
    """单晚价格解析器"""

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant

    def get_room(self, room_id: int) -> Room:
        """获取当前租户下的房间，不存在时抛 NotFound"""
        room = self.db.query(Room).filter(
            Room.id == room_id,
            Room.tenant_id == self.tenant.tenant_id
        ).first()
        if not room:
            raise NotFound("房间", room_id)
        return room

    def get_overlapping_rates(self, room: Room, start: date, end: date) -> List[SeasonalRate]:
        """获取与 [start, end]（含首尾）有交集的季节价"""
        return self.db.query(SeasonalRate).filter(
            SeasonalRate.room_id == room.id,
            SeasonalRate.tenant_id == self.tenant.tenant_id,
            SeasonalRate.start_date <= end,
            SeasonalRate.end_date >= start
        ).order_by(
            SeasonalRate.priority.desc(),
            SeasonalRate.created_at.desc(),
            SeasonalRate.id.desc()
        ).all()

    def _build(self, room: Room, target_date: date, rate: Optional[SeasonalRate]) -> ResolvedRate:
        return ResolvedRate(
            date=target_date,
            base_price=room.base_price_per_night,
            effective_price=rate.price_per_night if rate else room.base_price_per_night,
            seasonal_rate=rate,
        )

    def resolve(self, room: Room, target_date: date) -> ResolvedRate:
        """解析单晚生效价"""
        rates = self.get_overlapping_rates(room, target_date, target_date)
        return self._build(room, target_date, pick_seasonal_rate(rates, target_date))

    def resolve_range(self, room: Room, check_in: date, check_out: date) -> List[ResolvedRate]:
        """
        逐晚解析 [check_in, check_out)

        只查询一次季节价，每晚使用与 resolve 相同的选择规则，
        保证批量报价与单晚报价一致。
        """
        rates = self.get_overlapping_rates(room, check_in, check_out)
        resolved = [
            self._build(room, night, pick_seasonal_rate(rates, night))
            for night in iter_nights(check_in, check_out)
        ]
        logger.debug(
            f"Resolved {len(resolved)} nights for room {room.id} "
            f"({check_in} -> {check_out}, {len(rates)} candidate rates)"
        )
        return resolved

    def get_effective_price(self, room_id: int, target_date: date) -> dict:
        """获取指定日期的生效价格"""
        room = self.get_room(room_id)
        resolved = self.resolve(room, target_date)
        return {
            'date': target_date,
            'base_price': resolved.base_price,
            'effective_price': resolved.effective_price,
            'seasonal_rate': resolved.seasonal_rate_ref(),
            'currency': room.currency,
        }
