"""
计价服务 - 本体操作层
把逐晚生效价按房间计价模式和入住人数换算为逐晚房费，并汇总报价

计价模式：
- per_unit: 每晚 = 生效价，与人数无关
- per_person: 每晚 = 生效价 × 成人数 + 儿童价 × 计费儿童数
- per_person_sharing: 每晚 = 生效价（首位）+ 加人价 × 其余成人 + 儿童价 × 计费儿童
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence
import logging

from sqlalchemy.orm import Session

from booking_engine.domain.stay import require_nights
from booking_engine.errors import GuestCountInvalid
from booking_engine.models.ontology import Room, PricingMode
from booking_engine.security.tenant import TenantContext
from booking_engine.services.rate_resolver import RateResolver, ResolvedRate

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DEFAULT_CHILD_AGE_LIMIT = 12


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class GuestComposition:
    """计费人数拆分"""

    adults: int
    billable_children: int
    free_children: int = 0

    @property
    def paying_occupants(self) -> int:
        return self.adults + self.billable_children

    def to_dict(self) -> dict:
        return {
            'adults': self.adults,
            'billable_children': self.billable_children,
            'free_children': self.free_children,
        }


def classify_guests(room: Room, adults: int = 0, children: int = 0,
                    children_ages: Optional[Sequence[int]] = None) -> GuestComposition:
    """
    按房间儿童规则拆分入住人数

    - 提供 children_ages 时以其长度为儿童数；年龄按入住日计算，整段入住期间不变
    - 年龄 < child_free_until_age 免费；年龄 >= child_age_limit 按成人计
    - 未提供年龄时所有儿童均计费
    - 计费人数为 0 时按 1 位成人计，避免出现零房费的晚
    """
    adults = adults or 0
    children = children or 0
    if adults < 0 or children < 0:
        raise GuestCountInvalid(
            "入住人数不能为负数", {"adults": adults, "children": children}
        )

    billable = children
    free = 0
    if children_ages is not None:
        if children and children != len(children_ages):
            raise GuestCountInvalid(
                "儿童人数与年龄列表长度不一致",
                {"children": children, "children_ages": list(children_ages)},
            )
        if any(age is None or age < 0 for age in children_ages):
            raise GuestCountInvalid("儿童年龄不能为负数", {"children_ages": list(children_ages)})

        free_until = room.child_free_until_age
        age_limit = room.child_age_limit if room.child_age_limit is not None else DEFAULT_CHILD_AGE_LIMIT
        billable = 0
        for age in children_ages:
            if age >= age_limit:
                adults += 1
            elif free_until is not None and age < free_until:
                free += 1
            else:
                billable += 1

    if adults + billable == 0:
        adults = 1

    return GuestComposition(adults=adults, billable_children=billable, free_children=free)


def night_charge(mode: PricingMode, price: Decimal, guests: GuestComposition,
                 additional_person_rate: Optional[Decimal] = None,
                 child_price_per_night: Optional[Decimal] = None) -> Decimal:
    """按计价模式计算单晚房费"""
    price = Decimal(price)

    if mode == PricingMode.PER_PERSON:
        child_rate = child_price_per_night if child_price_per_night is not None else price
        return _money(price * guests.adults + Decimal(child_rate) * guests.billable_children)

    if mode == PricingMode.PER_PERSON_SHARING:
        additional = additional_person_rate if additional_person_rate is not None else price
        child_rate = child_price_per_night if child_price_per_night is not None else additional
        additional = Decimal(additional)
        child_rate = Decimal(child_rate)
        if guests.adults > 0:
            total = price + additional * (guests.adults - 1) + child_rate * guests.billable_children
        else:
            # 只有计费儿童时首位儿童按全价
            total = price + child_rate * (guests.billable_children - 1)
        return _money(total)

    return _money(price)


@dataclass
class NightCharge:
    """单晚报价明细"""

    resolved: ResolvedRate
    charge: Decimal

    def to_dict(self) -> dict:
        return {
            'date': self.resolved.date,
            'base_price': self.resolved.base_price,
            'effective_price': self.resolved.effective_price,
            'charge': self.charge,
            'seasonal_rate': self.resolved.seasonal_rate_ref(),
        }


@dataclass
class PricingQuote:
    """报价结果（不落库、不缓存）"""

    room_id: int
    check_in: date
    check_out: date
    pricing_mode: PricingMode
    currency: str
    guests: GuestComposition
    nights: List[NightCharge] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return _money(sum((n.charge for n in self.nights), Decimal("0")))

    @property
    def night_count(self) -> int:
        return len(self.nights)

    def to_dict(self) -> dict:
        return {
            'room_id': self.room_id,
            'check_in': self.check_in,
            'check_out': self.check_out,
            'pricing_mode': self.pricing_mode,
            'guests': self.guests.to_dict(),
            'nights': [n.to_dict() for n in self.nights],
            'subtotal': self.subtotal,
            'currency': self.currency,
            'night_count': self.night_count,
        }


class PricingService:
    """计价服务"""

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant
        self.rate_resolver = RateResolver(db, tenant)

    def quote_for_room(self, room: Room, check_in: date, check_out: date,
                       adults: int = 0, children: int = 0,
                       children_ages: Optional[Sequence[int]] = None) -> PricingQuote:
        """对已加载的房间报价"""
        require_nights(check_in, check_out)
        guests = classify_guests(room, adults, children, children_ages)

        quote = PricingQuote(
            room_id=room.id,
            check_in=check_in,
            check_out=check_out,
            pricing_mode=room.pricing_mode,
            currency=room.currency,
            guests=guests,
        )
        for resolved in self.rate_resolver.resolve_range(room, check_in, check_out):
            rate = resolved.seasonal_rate
            mode = room.pricing_mode
            additional = room.additional_person_rate
            child_price = room.child_price_per_night
            # 季节价可单独覆盖计价模式和加人/儿童价
            if rate is not None:
                if rate.pricing_mode is not None:
                    mode = rate.pricing_mode
                if rate.additional_person_rate is not None:
                    additional = rate.additional_person_rate
                if rate.child_price_per_night is not None:
                    child_price = rate.child_price_per_night
            charge = night_charge(mode, resolved.effective_price, guests, additional, child_price)
            quote.nights.append(NightCharge(resolved=resolved, charge=charge))

        logger.debug(
            f"Quote room={room.id} {check_in}->{check_out} "
            f"guests={guests.to_dict()} subtotal={quote.subtotal} {quote.currency}"
        )
        return quote

    def quote(self, room_id: int, check_in: date, check_out: date,
              adults: int = 0, children: int = 0,
              children_ages: Optional[Sequence[int]] = None) -> PricingQuote:
        """计算入住区间 [check_in, check_out) 的逐晚房费与小计"""
        room = self.rate_resolver.get_room(room_id)
        return self.quote_for_room(room, check_in, check_out, adults, children, children_ages)

    def get_batch_pricing(self, room_id: int, start_date: date, end_date: date,
                          adults: int = 0, children: int = 0) -> dict:
        """批量获取日期区间的逐晚价格（预订向导使用）"""
        quote = self.quote(room_id, start_date, end_date, adults, children)
        return {
            'nights': [n.to_dict() for n in quote.nights],
            'total_amount': quote.subtotal,
            'currency': quote.currency,
            'night_count': quote.night_count,
        }

    def calculate_total_price(self, room_id: int, check_in: date, check_out: date,
                              adults: int = 0, children: int = 0,
                              children_ages: Optional[Sequence[int]] = None) -> Decimal:
        """计算总房费"""
        return self.quote(room_id, check_in, check_out, adults, children, children_ages).subtotal
