"""
Pydantic 模式定义
用于 API 请求/响应验证
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from booking_engine.config import settings
from booking_engine.domain.booking_state import booking_state_machine
from booking_engine.models.ontology import PricingMode, InventoryMode, BookingStatus


# ============== 房间 Schemas ==============

class RoomBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    room_code: Optional[str] = Field(None, max_length=50)
    max_guests: int = Field(default=2, ge=1)
    currency: str = Field(default=settings.DEFAULT_CURRENCY, min_length=3, max_length=3)
    pricing_mode: PricingMode = PricingMode.PER_UNIT
    base_price_per_night: Decimal = Field(..., ge=0)
    additional_person_rate: Optional[Decimal] = Field(None, ge=0)
    child_price_per_night: Optional[Decimal] = Field(None, ge=0)
    child_free_until_age: Optional[int] = Field(None, ge=0)
    child_age_limit: Optional[int] = Field(default=12, ge=0)
    min_stay_nights: int = Field(default=1, ge=1)
    max_stay_nights: Optional[int] = Field(None, ge=1)
    inventory_mode: InventoryMode = InventoryMode.SINGLE_UNIT
    total_units: int = Field(default=1, ge=1)
    is_active: bool = True


class RoomCreate(RoomBase):

    @model_validator(mode="after")
    def check_stay_limits(self):
        if self.max_stay_nights is not None and self.max_stay_nights < self.min_stay_nights:
            raise ValueError("max_stay_nights 不能小于 min_stay_nights")
        if self.inventory_mode == InventoryMode.SINGLE_UNIT:
            self.total_units = 1
        return self


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    room_code: Optional[str] = Field(None, max_length=50)
    max_guests: Optional[int] = Field(None, ge=1)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    pricing_mode: Optional[PricingMode] = None
    base_price_per_night: Optional[Decimal] = Field(None, ge=0)
    additional_person_rate: Optional[Decimal] = Field(None, ge=0)
    child_price_per_night: Optional[Decimal] = Field(None, ge=0)
    child_free_until_age: Optional[int] = Field(None, ge=0)
    child_age_limit: Optional[int] = Field(None, ge=0)
    min_stay_nights: Optional[int] = Field(None, ge=1)
    max_stay_nights: Optional[int] = Field(None, ge=1)
    inventory_mode: Optional[InventoryMode] = None
    total_units: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class RoomResponse(RoomBase):
    id: int
    tenant_id: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 季节价 Schemas ==============

class SeasonalRateCreate(BaseModel):
    name: str = Field(..., max_length=255)
    start_date: date
    end_date: date
    price_per_night: Decimal = Field(..., ge=0)
    priority: int = 0
    pricing_mode: Optional[PricingMode] = None
    additional_person_rate: Optional[Decimal] = Field(None, ge=0)
    child_price_per_night: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("结束日期不能早于开始日期")
        return self


class SeasonalRateUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    price_per_night: Optional[Decimal] = Field(None, ge=0)
    priority: Optional[int] = None
    pricing_mode: Optional[PricingMode] = None
    additional_person_rate: Optional[Decimal] = Field(None, ge=0)
    child_price_per_night: Optional[Decimal] = Field(None, ge=0)


class SeasonalRateResponse(BaseModel):
    id: int
    room_id: int
    name: str
    start_date: date
    end_date: date
    price_per_night: Decimal
    priority: int
    pricing_mode: Optional[PricingMode] = None
    additional_person_rate: Optional[Decimal] = None
    child_price_per_night: Optional[Decimal] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SeasonalRateRef(BaseModel):
    id: int
    name: str
    price_per_night: Decimal


# ============== 价格 Schemas ==============

class EffectivePriceResponse(BaseModel):
    date: date
    base_price: Decimal
    effective_price: Decimal
    seasonal_rate: Optional[SeasonalRateRef] = None
    currency: str


class NightPriceResponse(BaseModel):
    date: date
    base_price: Decimal
    effective_price: Decimal
    charge: Decimal
    seasonal_rate: Optional[SeasonalRateRef] = None


class BatchPricingResponse(BaseModel):
    nights: List[NightPriceResponse]
    total_amount: Decimal
    currency: str
    night_count: int


class GuestBreakdown(BaseModel):
    adults: int
    billable_children: int
    free_children: int


class PricingQuoteResponse(BaseModel):
    room_id: int
    check_in: date
    check_out: date
    pricing_mode: PricingMode
    guests: GuestBreakdown
    nights: List[NightPriceResponse]
    subtotal: Decimal
    currency: str
    night_count: int


# ============== 可售性 Schemas ==============

class AvailabilityResponse(BaseModel):
    available: bool
    available_units: int
    total_units: int
    nights: int
    min_stay_nights: int
    max_stay_nights: Optional[int] = None
    meets_min_stay: bool
    meets_max_stay: bool


class BookedDatesResponse(BaseModel):
    booked_dates: List[date]
    total_units: int


# ============== 预订 Schemas ==============

class BookingCreate(BaseModel):
    room_id: int
    check_in: date
    check_out: date
    guest_name: str = Field(..., max_length=255)
    guest_email: Optional[str] = Field(None, max_length=255)
    guest_phone: Optional[str] = Field(None, max_length=50)
    adults: int = 1
    children: int = 0
    children_ages: Optional[List[int]] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)  # 不传时按当前价格报价
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    status: BookingStatus = BookingStatus.PENDING
    source: str = Field(default="direct", max_length=50)
    notes: Optional[str] = None
    override_stay_rules: bool = False

    @field_validator("status")
    @classmethod
    def check_initial_status(cls, v):
        if not booking_state_machine.is_initial(v):
            allowed = ", ".join(s.value for s in booking_state_machine.config.initial_states)
            raise ValueError(f"新预订只能是 {allowed} 状态")
        return v


class BookingResize(BaseModel):
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    override_stay_rules: bool = False


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    reason: Optional[str] = None


class BookingCancel(BaseModel):
    cancel_reason: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    room_id: int
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    adults: int
    children: int
    status: BookingStatus
    total_amount: Decimal
    currency: str
    source: Optional[str] = None
    notes: Optional[str] = None
    stay_rule_override: bool
    cancel_reason: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ConflictCheckRequest(BaseModel):
    room_id: int
    check_in: date
    check_out: date
    exclude_booking_id: Optional[int] = None


class ConflictInfo(BaseModel):
    id: int
    guest: str
    source: Optional[str] = None
    check_in: date
    check_out: date
    status: BookingStatus


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    available_units: int
    total_units: int
    conflicts: List[ConflictInfo]


# ============== 公开预订页 Schemas ==============

class PublicBookingCreate(BaseModel):
    """访客在线下单：价格由服务端报价，不接受客户端金额"""
    room_id: int
    check_in: date
    check_out: date
    guest_name: str = Field(..., max_length=255)
    guest_email: str = Field(..., max_length=255)
    guest_phone: Optional[str] = Field(None, max_length=50)
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    children_ages: Optional[List[int]] = None
    special_requests: Optional[str] = None
