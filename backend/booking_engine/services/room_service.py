"""
房间服务 - 本体操作层
管理 Room 与 SeasonalRate 对象
"""
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from booking_engine.errors import BookingEngineError, NotFound
from booking_engine.models.ontology import Room, SeasonalRate, InventoryMode
from booking_engine.models.schemas import (
    RoomCreate, RoomUpdate, SeasonalRateCreate, SeasonalRateUpdate
)
from booking_engine.security.tenant import TenantContext

logger = logging.getLogger(__name__)


class RoomService:
    """房间服务"""

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant

    # ============== 房间操作 ==============

    def get_rooms(self, is_active: Optional[bool] = None,
                  inventory_mode: Optional[InventoryMode] = None) -> List[Room]:
        """获取房间列表"""
        query = self.db.query(Room).filter(Room.tenant_id == self.tenant.tenant_id)

        if is_active is not None:
            query = query.filter(Room.is_active == is_active)
        if inventory_mode:
            query = query.filter(Room.inventory_mode == inventory_mode)

        return query.order_by(Room.created_at.desc(), Room.id.desc()).all()

    def get_room(self, room_id: int) -> Room:
        """获取单个房间"""
        room = self.db.query(Room).filter(
            Room.id == room_id,
            Room.tenant_id == self.tenant.tenant_id
        ).first()
        if not room:
            raise NotFound("房间", room_id)
        return room

    def create_room(self, data: RoomCreate) -> Room:
        """创建房间"""
        room = Room(tenant_id=self.tenant.tenant_id, **data.model_dump())
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info(f"Room {room.id} created ({room.inventory_mode.value}, {room.bookable_units} units)")
        return room

    def update_room(self, room_id: int, data: RoomUpdate) -> Room:
        """更新房间"""
        room = self.get_room(room_id)
        update_data = data.model_dump(exclude_unset=True)

        for key, value in update_data.items():
            setattr(room, key, value)

        if room.inventory_mode == InventoryMode.SINGLE_UNIT:
            room.total_units = 1

        # 验证入住晚数规则
        if room.max_stay_nights is not None and room.max_stay_nights < room.min_stay_nights:
            self.db.rollback()
            raise BookingEngineError("max_stay_nights 不能小于 min_stay_nights")

        self.db.commit()
        self.db.refresh(room)
        return room

    # ============== 公开页查询 ==============

    def get_active_room(self, room_id: int) -> Room:
        """获取对外可见（已启用）的房间，停用房间视为不存在"""
        room = self.get_room(room_id)
        if not room.is_active:
            raise NotFound("房间", room_id)
        return room

    def get_active_rooms(self) -> List[Room]:
        """公开页房间列表：仅已启用房间，按基础价升序"""
        return self.db.query(Room).filter(
            Room.tenant_id == self.tenant.tenant_id,
            Room.is_active == True
        ).order_by(Room.base_price_per_night.asc(), Room.id.asc()).all()

    # ============== 季节价操作 ==============

    def get_seasonal_rates(self, room_id: int) -> List[SeasonalRate]:
        """获取房间的季节价列表（按开始日期排序）"""
        room = self.get_room(room_id)
        return self.db.query(SeasonalRate).filter(
            SeasonalRate.room_id == room.id,
            SeasonalRate.tenant_id == self.tenant.tenant_id
        ).order_by(SeasonalRate.start_date.asc(), SeasonalRate.id.asc()).all()

    def get_seasonal_rate(self, room_id: int, rate_id: int) -> SeasonalRate:
        """获取单个季节价"""
        rate = self.db.query(SeasonalRate).filter(
            SeasonalRate.id == rate_id,
            SeasonalRate.room_id == room_id,
            SeasonalRate.tenant_id == self.tenant.tenant_id
        ).first()
        if not rate:
            raise NotFound("季节价", rate_id)
        return rate

    def create_seasonal_rate(self, room_id: int, data: SeasonalRateCreate) -> SeasonalRate:
        """创建季节价"""
        room = self.get_room(room_id)
        rate = SeasonalRate(
            tenant_id=self.tenant.tenant_id,
            room_id=room.id,
            **data.model_dump()
        )
        self.db.add(rate)
        self.db.commit()
        self.db.refresh(rate)
        logger.info(
            f"Seasonal rate {rate.id} created for room {room.id}: "
            f"{rate.start_date}..{rate.end_date} @ {rate.price_per_night} (priority {rate.priority})"
        )
        return rate

    def update_seasonal_rate(self, room_id: int, rate_id: int, data: SeasonalRateUpdate) -> SeasonalRate:
        """更新季节价"""
        rate = self.get_seasonal_rate(room_id, rate_id)
        update_data = data.model_dump(exclude_unset=True)

        for key, value in update_data.items():
            setattr(rate, key, value)

        # 验证日期
        if rate.end_date < rate.start_date:
            self.db.rollback()
            raise BookingEngineError("结束日期不能早于开始日期")

        self.db.commit()
        self.db.refresh(rate)
        return rate

    def delete_seasonal_rate(self, room_id: int, rate_id: int) -> bool:
        """删除季节价"""
        rate = self.get_seasonal_rate(room_id, rate_id)
        self.db.delete(rate)
        self.db.commit()
        return True
