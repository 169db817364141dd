"""
预订服务 - 本体操作层
管理 Booking 对象的创建、改期和状态流转

所有写操作在同一个事务里完成 "加锁 → 复核可售性 → 写入 → 提交"：
先对房间加写锁（SQLite 为 BEGIN IMMEDIATE 的库级锁，其他数据库为行级 FOR UPDATE），
再由 BookingConflictGuard 基于当前库存复核，复核失败则回滚，不落任何数据。
"""
from datetime import date
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from booking_engine.database import begin_write_transaction
from booking_engine.domain.booking_state import booking_state_machine
from booking_engine.domain.stay import require_nights
from booking_engine.errors import (
    AvailabilityConflict, BookingNotModifiable, InvalidDateRange, NotFound, StayRuleViolation
)
from booking_engine.models.ontology import Booking, BookingStatus, Room
from booking_engine.models.schemas import BookingCreate, BookingResize
from booking_engine.security.tenant import TenantContext
from booking_engine.services.availability_service import AvailabilityResult, AvailabilityService
from booking_engine.services.inventory_ledger import InventoryLedger
from booking_engine.services.pricing_service import PricingService, classify_guests

logger = logging.getLogger(__name__)


def is_resizable(status: BookingStatus) -> bool:
    """终态与已退房的预订不允许改期"""
    return not (booking_state_machine.is_final(status) or status == BookingStatus.CHECKED_OUT)


def conflict_info(booking: Booking) -> dict:
    """重叠预订摘要"""
    return {
        'id': booking.id,
        'guest': booking.guest_name,
        'source': booking.source or 'direct',
        'check_in': booking.check_in,
        'check_out': booking.check_out,
        'status': booking.status,
    }


class BookingConflictGuard:
    """
    提交前的最终复核

    必须在写事务内、房间已加锁之后调用；被修改的预订不计入自身占用。
    """

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant
        self.availability = AvailabilityService(db, tenant)
        self.ledger = InventoryLedger(db, tenant)

    def verify(self, room: Room, check_in: date, check_out: date,
               override_stay_rules: bool = False,
               exclude_booking_id: Optional[int] = None) -> AvailabilityResult:
        """
        复核可售性

        Raises:
            StayRuleViolation: 入住晚数不满足规则且未设置覆盖
            AvailabilityConflict: 至少有一晚已无空余单元
        """
        result = self.availability.check_room(
            room, check_in, check_out,
            override_stay_rules=override_stay_rules,
            exclude_booking_id=exclude_booking_id,
        )

        if not override_stay_rules and not result.meets_stay_rules:
            logger.warning(
                f"Stay rule violation room={room.id} {check_in}->{check_out}: "
                f"nights={result.nights} min={result.min_stay_nights} max={result.max_stay_nights}"
            )
            raise StayRuleViolation(result.nights, result.min_stay_nights, result.max_stay_nights)

        if result.available_units <= 0:
            overlapping = self.ledger.overlapping_bookings(
                room.id, check_in, check_out, exclude_booking_id
            )
            logger.warning(
                f"Availability conflict room={room.id} {check_in}->{check_out}: "
                f"{len(overlapping)} overlapping bookings, {result.total_units} units"
            )
            raise AvailabilityConflict(
                room.id,
                result.available_units,
                [conflict_info(b) for b in overlapping],
            )

        return result


class BookingService:
    """预订服务"""

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant
        self.guard = BookingConflictGuard(db, tenant)
        self.pricing_service = PricingService(db, tenant)
        self.ledger = InventoryLedger(db, tenant)

    def _lock_room(self, room_id: int) -> Room:
        """在写事务内获取房间行锁（SQLite 忽略 FOR UPDATE，由 BEGIN IMMEDIATE 的库级锁保证）"""
        room = self.db.query(Room).filter(
            Room.id == room_id,
            Room.tenant_id == self.tenant.tenant_id
        ).with_for_update().first()
        if not room:
            raise NotFound("房间", room_id)
        return room

    def get_booking(self, booking_id: int) -> Booking:
        """获取单个预订，不存在时抛 NotFound"""
        booking = self.db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.tenant_id == self.tenant.tenant_id
        ).first()
        if not booking:
            raise NotFound("预订", booking_id)
        return booking

    def get_bookings(self, room_id: Optional[int] = None,
                     status: Optional[BookingStatus] = None,
                     start_date: Optional[date] = None,
                     end_date: Optional[date] = None) -> List[Booking]:
        """获取预订列表（可按房间、状态、日期区间过滤）"""
        query = self.db.query(Booking).filter(Booking.tenant_id == self.tenant.tenant_id)

        if room_id:
            query = query.filter(Booking.room_id == room_id)
        if status:
            query = query.filter(Booking.status == status)
        if start_date:
            query = query.filter(Booking.check_out > start_date)
        if end_date:
            query = query.filter(Booking.check_in < end_date)

        return query.order_by(Booking.check_in.desc(), Booking.id.desc()).all()

    def create_booking(self, data: BookingCreate) -> Booking:
        """创建预订"""
        require_nights(data.check_in, data.check_out)

        try:
            begin_write_transaction(self.db)
            room = self._lock_room(data.room_id)
            guests = classify_guests(room, data.adults, data.children, data.children_ages)
            self.guard.verify(
                room, data.check_in, data.check_out,
                override_stay_rules=data.override_stay_rules,
            )

            total_amount = data.total_amount
            if total_amount is None:
                total_amount = self.pricing_service.quote_for_room(
                    room, data.check_in, data.check_out,
                    data.adults, data.children, data.children_ages
                ).subtotal

            children = len(data.children_ages) if data.children_ages is not None else data.children
            booking = Booking(
                tenant_id=self.tenant.tenant_id,
                room_id=room.id,
                guest_name=data.guest_name,
                guest_email=data.guest_email,
                guest_phone=data.guest_phone,
                check_in=data.check_in,
                check_out=data.check_out,
                adults=data.adults,
                children=children,
                status=data.status,
                total_amount=total_amount,
                currency=data.currency or room.currency,
                source=data.source,
                notes=data.notes,
                stay_rule_override=data.override_stay_rules,
            )
            self.db.add(booking)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: room={booking.room_id} "
            f"{booking.check_in}->{booking.check_out} guests={guests.paying_occupants} "
            f"total={booking.total_amount} {booking.currency}"
            + (" (stay rules overridden)" if booking.stay_rule_override else "")
        )
        return booking

    def resize_booking(self, booking_id: int, data: BookingResize) -> Booking:
        """
        修改入住/离店日期（含日历拖拽改期）

        total_amount 保持创建时的值，不随改期重算。
        """
        if data.check_in is None and data.check_out is None:
            raise InvalidDateRange("至少需要提供新的入住或离店日期")

        try:
            begin_write_transaction(self.db)
            booking = self.get_booking(booking_id)
            if not is_resizable(booking.status):
                raise BookingNotModifiable(booking.id, booking.status.value)

            room = self._lock_room(booking.room_id)
            new_check_in = data.check_in or booking.check_in
            new_check_out = data.check_out or booking.check_out
            require_nights(new_check_in, new_check_out)

            self.guard.verify(
                room, new_check_in, new_check_out,
                override_stay_rules=data.override_stay_rules,
                exclude_booking_id=booking.id,
            )

            old_range = (booking.check_in, booking.check_out)
            booking.check_in = new_check_in
            booking.check_out = new_check_out
            if data.override_stay_rules:
                booking.stay_rule_override = True
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} resized: {old_range[0]}->{old_range[1]} "
            f"=> {booking.check_in}->{booking.check_out}"
        )
        return booking

    def transition_status(self, booking_id: int, target: BookingStatus,
                          reason: Optional[str] = None) -> Booking:
        """按状态机变更预订状态"""
        try:
            begin_write_transaction(self.db)
            booking = self.get_booking(booking_id)
            previous = booking.status
            booking_state_machine.assert_transition(previous, target)

            booking.status = target
            if target == BookingStatus.CANCELLED:
                booking.cancel_reason = reason
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} status: {previous.value} -> {target.value}")
        return booking

    def cancel_booking(self, booking_id: int, reason: Optional[str] = None) -> Booking:
        """取消预订，释放其占用的库存"""
        return self.transition_status(booking_id, BookingStatus.CANCELLED, reason)

    def find_conflicts(self, room_id: int, check_in: date, check_out: date,
                       exclude_booking_id: Optional[int] = None) -> dict:
        """
        冲突检查（不加锁，仅供界面提示）

        has_conflict 表示区间内至少有一晚已无空余单元；
        conflicts 列出所有重叠且占用库存的预订。
        """
        result = self.guard.availability.check_availability(
            room_id, check_in, check_out,
            override_stay_rules=True,
            exclude_booking_id=exclude_booking_id,
        )
        overlapping = self.ledger.overlapping_bookings(room_id, check_in, check_out, exclude_booking_id)
        return {
            'has_conflict': result.available_units <= 0,
            'available_units': result.available_units,
            'total_units': result.total_units,
            'conflicts': [conflict_info(b) for b in overlapping],
        }
