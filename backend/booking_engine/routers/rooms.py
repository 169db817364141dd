"""
房间管理路由
房间 / 季节价维护，以及价格、可售性查询
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from booking_engine.database import get_db
from booking_engine.models.ontology import InventoryMode
from booking_engine.models.schemas import (
    RoomCreate, RoomUpdate, RoomResponse,
    SeasonalRateCreate, SeasonalRateUpdate, SeasonalRateResponse,
    EffectivePriceResponse, BatchPricingResponse, PricingQuoteResponse,
    AvailabilityResponse, BookedDatesResponse
)
from booking_engine.security.tenant import TenantContext, get_tenant_context
from booking_engine.services.availability_service import AvailabilityService
from booking_engine.services.pricing_service import PricingService
from booking_engine.services.rate_resolver import RateResolver
from booking_engine.services.room_service import RoomService

router = APIRouter(prefix="/rooms", tags=["房间管理"])


# ============== 房间 ==============

@router.get("", response_model=List[RoomResponse])
def list_rooms(
    is_active: Optional[bool] = None,
    inventory_mode: Optional[InventoryMode] = None,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """获取房间列表"""
    return RoomService(db, tenant).get_rooms(is_active, inventory_mode)


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """创建房间"""
    return RoomService(db, tenant).create_room(data)


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """获取房间详情"""
    return RoomService(db, tenant).get_room(room_id)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """更新房间"""
    return RoomService(db, tenant).update_room(room_id, data)


# ============== 季节价 ==============

@router.get("/{room_id}/rates", response_model=List[SeasonalRateResponse])
def list_seasonal_rates(
    room_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """获取房间的季节价"""
    return RoomService(db, tenant).get_seasonal_rates(room_id)


@router.post("/{room_id}/rates", response_model=SeasonalRateResponse, status_code=status.HTTP_201_CREATED)
def create_seasonal_rate(
    room_id: int,
    data: SeasonalRateCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """创建季节价"""
    return RoomService(db, tenant).create_seasonal_rate(room_id, data)


@router.put("/{room_id}/rates/{rate_id}", response_model=SeasonalRateResponse)
def update_seasonal_rate(
    room_id: int,
    rate_id: int,
    data: SeasonalRateUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """更新季节价"""
    return RoomService(db, tenant).update_seasonal_rate(room_id, rate_id, data)


@router.delete("/{room_id}/rates/{rate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_seasonal_rate(
    room_id: int,
    rate_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """删除季节价"""
    RoomService(db, tenant).delete_seasonal_rate(room_id, rate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============== 价格与可售性 ==============

@router.get("/{room_id}/price", response_model=EffectivePriceResponse)
def get_effective_price(
    room_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """获取指定日期的生效价格"""
    return RateResolver(db, tenant).get_effective_price(room_id, target_date)


@router.get("/{room_id}/prices", response_model=BatchPricingResponse)
def get_batch_pricing(
    room_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """批量获取逐晚价格（[start_date, end_date)）"""
    return PricingService(db, tenant).get_batch_pricing(room_id, start_date, end_date)


@router.get("/{room_id}/quote", response_model=PricingQuoteResponse)
def get_quote(
    room_id: int,
    check_in: date,
    check_out: date,
    adults: int = 0,
    children: int = 0,
    children_ages: Optional[List[int]] = Query(default=None),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """按入住人数报价"""
    quote = PricingService(db, tenant).quote(
        room_id, check_in, check_out, adults, children, children_ages
    )
    return quote.to_dict()


@router.get("/{room_id}/availability", response_model=AvailabilityResponse)
def check_availability(
    room_id: int,
    check_in: date,
    check_out: date,
    override_stay_rules: bool = False,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """查询房间可售性"""
    result = AvailabilityService(db, tenant).check_availability(
        room_id, check_in, check_out, override_stay_rules=override_stay_rules
    )
    return result.to_dict()


@router.get("/{room_id}/booked-dates", response_model=BookedDatesResponse)
def get_booked_dates(
    room_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """获取已满房日期（日历置灰用）"""
    return AvailabilityService(db, tenant).get_booked_dates(room_id, start_date, end_date)
