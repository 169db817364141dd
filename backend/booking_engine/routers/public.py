"""
公开预订页路由
访客无需登录，租户由路径参数确定；只暴露已启用的房间
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from booking_engine.database import get_db
from booking_engine.errors import GuestCountInvalid
from booking_engine.models.schemas import (
    RoomResponse, PricingQuoteResponse, AvailabilityResponse, BookedDatesResponse,
    BookingCreate, BookingResponse, PublicBookingCreate
)
from booking_engine.security.tenant import TenantContext
from booking_engine.services.availability_service import AvailabilityService
from booking_engine.services.booking_service import BookingService
from booking_engine.services.pricing_service import PricingService
from booking_engine.services.room_service import RoomService

router = APIRouter(prefix="/public/{tenant_id}", tags=["公开预订页"])


def get_path_tenant(tenant_id: str) -> TenantContext:
    """依赖注入：公开接口的租户来自 URL"""
    return TenantContext(tenant_id=tenant_id)


@router.get("/rooms", response_model=List[RoomResponse])
def list_public_rooms(
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_path_tenant)
):
    """获取可预订房间列表"""
    return RoomService(db, tenant).get_active_rooms()


@router.get("/rooms/{room_id}", response_model=RoomResponse)
def get_public_room(
    room_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_path_tenant)
):
    """获取房间详情"""
    return RoomService(db, tenant).get_active_room(room_id)


@router.get("/rooms/{room_id}/availability", response_model=AvailabilityResponse)
def check_public_availability(
    room_id: int,
    check_in: date,
    check_out: date,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_path_tenant)
):
    """查询可售性（公开页不允许越过入住晚数规则）"""
    room = RoomService(db, tenant).get_active_room(room_id)
    return AvailabilityService(db, tenant).check_room(room, check_in, check_out).to_dict()


@router.get("/rooms/{room_id}/pricing", response_model=PricingQuoteResponse)
def get_public_pricing(
    room_id: int,
    check_in: date,
    check_out: date,
    adults: int = 1,
    children: int = 0,
    children_ages: Optional[List[int]] = Query(default=None),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_path_tenant)
):
    """逐晚报价"""
    room = RoomService(db, tenant).get_active_room(room_id)
    quote = PricingService(db, tenant).quote_for_room(
        room, check_in, check_out, adults, children, children_ages
    )
    return quote.to_dict()


@router.get("/rooms/{room_id}/booked-dates", response_model=BookedDatesResponse)
def get_public_booked_dates(
    room_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_path_tenant)
):
    """已满房日期（日历置灰用）"""
    room = RoomService(db, tenant).get_active_room(room_id)
    return AvailabilityService(db, tenant).get_booked_dates(room.id, start_date, end_date)


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_public_booking(
    data: PublicBookingCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_path_tenant)
):
    """
    访客在线下单

    新预订为 pending 状态，来源记为 website，金额按服务端当前价格计算。
    """
    room = RoomService(db, tenant).get_active_room(data.room_id)

    guest_count = data.adults + (len(data.children_ages) if data.children_ages is not None else data.children)
    if guest_count > room.max_guests:
        raise GuestCountInvalid(
            f"该房间最多入住 {room.max_guests} 人",
            {"guests": guest_count, "max_guests": room.max_guests},
        )

    booking = BookingCreate(
        room_id=room.id,
        check_in=data.check_in,
        check_out=data.check_out,
        guest_name=data.guest_name,
        guest_email=data.guest_email,
        guest_phone=data.guest_phone,
        adults=data.adults,
        children=data.children,
        children_ages=data.children_ages,
        source="website",
        notes=data.special_requests,
    )
    return BookingService(db, tenant).create_booking(booking)
