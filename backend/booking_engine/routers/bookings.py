"""
预订管理路由
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from booking_engine.database import get_db
from booking_engine.models.ontology import BookingStatus
from booking_engine.models.schemas import (
    BookingCreate, BookingResize, BookingStatusUpdate, BookingCancel, BookingResponse,
    ConflictCheckRequest, ConflictCheckResponse
)
from booking_engine.security.tenant import TenantContext, get_tenant_context
from booking_engine.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["预订管理"])


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    room_id: Optional[int] = None,
    status: Optional[BookingStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """获取预订列表（start_date / end_date 按区间重叠过滤）"""
    return BookingService(db, tenant).get_bookings(room_id, status, start_date, end_date)


@router.post("/check-conflicts", response_model=ConflictCheckResponse)
def check_conflicts(
    data: ConflictCheckRequest,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """冲突检查（日历拖拽前的提示，不加锁）"""
    return BookingService(db, tenant).find_conflicts(
        data.room_id, data.check_in, data.check_out, data.exclude_booking_id
    )


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """获取预订详情"""
    return BookingService(db, tenant).get_booking(booking_id)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """
    创建预订

    库存不足返回 409，入住晚数不满足规则返回 422。
    """
    return BookingService(db, tenant).create_booking(data)


@router.patch("/{booking_id}/dates", response_model=BookingResponse)
def resize_booking(
    booking_id: int,
    data: BookingResize,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """修改入住/离店日期"""
    return BookingService(db, tenant).resize_booking(booking_id, data)


@router.post("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """变更预订状态"""
    return BookingService(db, tenant).transition_status(booking_id, data.status, data.reason)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    data: BookingCancel,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant_context)
):
    """取消预订"""
    return BookingService(db, tenant).cancel_booking(booking_id, data.cancel_reason)
