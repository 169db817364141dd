"""
本体对象定义 (Ontology Objects)
房间、季节价、预订三类持久化实体；所有实体按 tenant_id 隔离
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Boolean, Numeric, Text,
    ForeignKey, CheckConstraint, Index, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from booking_engine.database import Base


# ============== 枚举定义 ==============

class PricingMode(str, Enum):
    """计价模式"""
    PER_UNIT = "per_unit"                      # 按房间计价，与人数无关
    PER_PERSON = "per_person"                  # 每人全价
    PER_PERSON_SHARING = "per_person_sharing"  # 首人全价，其余按加人价


class InventoryMode(str, Enum):
    """库存模式"""
    SINGLE_UNIT = "single_unit"  # 单间
    ROOM_TYPE = "room_type"      # 房型（多间相同房）


class BookingStatus(str, Enum):
    """预订状态枚举"""
    PENDING = "pending"          # 待确认
    CONFIRMED = "confirmed"      # 已确认
    CHECKED_IN = "checked_in"    # 已入住
    CHECKED_OUT = "checked_out"  # 已退房
    CANCELLED = "cancelled"      # 已取消
    COMPLETED = "completed"      # 已完成


# 不占用库存的状态
NON_CONSUMING_STATUSES = (BookingStatus.CANCELLED,)


# ============== 本体对象定义 ==============

class Room(Base):
    """
    房间对象 - 可预订的房间或房型
    inventory_mode 为 room_type 时 total_units 表示同类房间数量
    """
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("total_units >= 1", name="rooms_valid_total_units"),
        CheckConstraint("base_price_per_night >= 0", name="rooms_valid_base_price"),
        CheckConstraint("min_stay_nights >= 1", name="rooms_valid_min_stay"),
        CheckConstraint(
            "max_stay_nights IS NULL OR max_stay_nights >= min_stay_nights",
            name="rooms_valid_max_stay"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    room_code = Column(String(50))
    max_guests = Column(Integer, nullable=False, default=2)

    # 计价
    currency = Column(String(3), nullable=False, default="ZAR")
    pricing_mode = Column(SQLEnum(PricingMode), nullable=False, default=PricingMode.PER_UNIT)
    base_price_per_night = Column(Numeric(10, 2), nullable=False)
    additional_person_rate = Column(Numeric(10, 2))   # 仅 per_person_sharing 使用
    child_price_per_night = Column(Numeric(10, 2))
    child_free_until_age = Column(Integer)            # 低于该年龄免费
    child_age_limit = Column(Integer, default=12)     # 达到该年龄按成人计

    # 入住规则
    min_stay_nights = Column(Integer, nullable=False, default=1)
    max_stay_nights = Column(Integer)                 # NULL 表示不限

    # 库存
    inventory_mode = Column(SQLEnum(InventoryMode), nullable=False, default=InventoryMode.SINGLE_UNIT)
    total_units = Column(Integer, nullable=False, default=1)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 链接
    seasonal_rates = relationship(
        "SeasonalRate", back_populates="room", cascade="all, delete-orphan"
    )
    bookings = relationship("Booking", back_populates="room")

    @property
    def bookable_units(self) -> int:
        """实际可售单元数：单间模式恒为 1"""
        if self.inventory_mode == InventoryMode.SINGLE_UNIT:
            return 1
        return self.total_units or 1


class SeasonalRate(Base):
    """
    季节价对象 - 覆盖某段日期（首尾均包含）的夜间基础价
    多条覆盖同一天时 priority 高者生效
    """
    __tablename__ = "seasonal_rates"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="seasonal_rates_valid_date_range"),
        CheckConstraint("price_per_night >= 0", name="seasonal_rates_valid_price"),
        Index("idx_seasonal_rates_dates", "room_id", "start_date", "end_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    priority = Column(Integer, nullable=False, default=0)

    # 可选的计价覆盖，未设置时沿用房间配置
    pricing_mode = Column(SQLEnum(PricingMode))
    additional_person_rate = Column(Numeric(10, 2))
    child_price_per_night = Column(Numeric(10, 2))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="seasonal_rates")


class Booking(Base):
    """
    预订对象
    入住区间为 [check_in, check_out)，离店日不计晚数
    total_amount/currency 在创建时确定，之后不随价格调整重算
    """
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out > check_in", name="valid_dates"),
        Index("idx_bookings_room_dates", "room_id", "check_in", "check_out"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    guest_name = Column(String(255), nullable=False)
    guest_email = Column(String(255))
    guest_phone = Column(String(50))
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    adults = Column(Integer, default=1)
    children = Column(Integer, default=0)
    status = Column(SQLEnum(BookingStatus), nullable=False, default=BookingStatus.PENDING, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    notes = Column(Text)
    source = Column(String(50), default="direct")
    stay_rule_override = Column(Boolean, default=False)  # 审计：是否越过入住晚数规则
    cancel_reason = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="bookings")

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days
