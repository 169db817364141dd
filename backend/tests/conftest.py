"""
Pytest 配置和共享 fixtures
"""
import os

# 应用启动时的 init_db 使用内存库，避免在工作目录生成数据库文件
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from booking_engine.database import Base, build_engine, get_db
from booking_engine.models.ontology import (
    Room, SeasonalRate, Booking, PricingMode, InventoryMode, BookingStatus
)
from booking_engine.security.tenant import TenantContext
from booking_engine.main import app

TENANT_ID = "tenant-a"
OTHER_TENANT_ID = "tenant-b"


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎（与生产相同的 SQLite 事务钩子）"""
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 租户相关 Fixtures ==============

@pytest.fixture
def tenant():
    return TenantContext(tenant_id=TENANT_ID)


@pytest.fixture
def other_tenant():
    return TenantContext(tenant_id=OTHER_TENANT_ID)


@pytest.fixture
def tenant_headers():
    """返回带租户标识的请求头"""
    return {"X-Tenant-ID": TENANT_ID}


@pytest.fixture
def other_tenant_headers():
    return {"X-Tenant-ID": OTHER_TENANT_ID}


# ============== 实体相关 Fixtures ==============

def make_room(db, tenant_id=TENANT_ID, **overrides):
    """创建房间（默认单间、按间计价、1000/晚）"""
    values = dict(
        tenant_id=tenant_id,
        name="Garden Suite",
        max_guests=2,
        currency="ZAR",
        pricing_mode=PricingMode.PER_UNIT,
        base_price_per_night=Decimal("1000.00"),
        min_stay_nights=1,
        inventory_mode=InventoryMode.SINGLE_UNIT,
        total_units=1,
    )
    values.update(overrides)
    room = Room(**values)
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


def make_rate(db, room, start_date, end_date, price, priority=0,
              name="Season", created_at=None, **overrides):
    """创建季节价（起止日均包含）"""
    rate = SeasonalRate(
        tenant_id=room.tenant_id,
        room_id=room.id,
        name=name,
        start_date=start_date,
        end_date=end_date,
        price_per_night=Decimal(str(price)),
        priority=priority,
        **overrides
    )
    if created_at is not None:
        rate.created_at = created_at
    db.add(rate)
    db.commit()
    db.refresh(rate)
    return rate


def make_booking(db, room, check_in, check_out, status=BookingStatus.CONFIRMED,
                 guest_name="Existing Guest", **overrides):
    """直接写入预订（绕过可售性复核，用于构造已有占用）"""
    values = dict(
        tenant_id=room.tenant_id,
        room_id=room.id,
        guest_name=guest_name,
        check_in=check_in,
        check_out=check_out,
        adults=1,
        children=0,
        status=status,
        total_amount=Decimal("0.00"),
        currency=room.currency,
        source="direct",
    )
    values.update(overrides)
    booking = Booking(**values)
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def sample_room(db_session):
    """单间：基础价 1000/晚"""
    return make_room(db_session)


@pytest.fixture
def room_type(db_session):
    """房型：3 间相同房"""
    return make_room(
        db_session,
        name="Standard Double",
        inventory_mode=InventoryMode.ROOM_TYPE,
        total_units=3,
        base_price_per_night=Decimal("800.00"),
    )


@pytest.fixture
def sample_booking(db_session, sample_room):
    """6/10 - 6/13 已确认预订"""
    return make_booking(db_session, sample_room, date(2025, 6, 10), date(2025, 6, 13))


@pytest.fixture
def summer_rates(db_session, sample_room):
    """两段重叠的季节价：普通旺季 (priority 1) 与节日价 (priority 5)"""
    peak = make_rate(
        db_session, sample_room, date(2025, 12, 1), date(2025, 12, 31), "1500.00",
        priority=1, name="Peak", created_at=datetime(2025, 1, 1, 9, 0)
    )
    festive = make_rate(
        db_session, sample_room, date(2025, 12, 24), date(2025, 12, 26), "2500.00",
        priority=5, name="Festive", created_at=datetime(2025, 1, 1, 8, 0)
    )
    return peak, festive
