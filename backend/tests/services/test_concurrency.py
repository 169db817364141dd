"""
并发预订测试

使用文件型 SQLite 与多个独立会话模拟并发请求，验证提交前复核在写锁内执行，
同一库存不会被超售。
"""
import threading
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from conftest import make_room, TENANT_ID
from booking_engine.database import Base, build_engine
from booking_engine.errors import AvailabilityConflict
from booking_engine.models.ontology import Booking, InventoryMode
from booking_engine.models.schemas import BookingCreate
from booking_engine.security.tenant import TenantContext
from booking_engine.services.availability_service import AvailabilityService
from booking_engine.services.booking_service import BookingService
from booking_engine.services.rate_resolver import RateResolver


@pytest.fixture
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


def _race(engine, room_id, workers):
    """workers 个线程同时为同一房间同一日期下单，返回 (成功数, 冲突数)"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    tenant = TenantContext(tenant_id=TENANT_ID)
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def attempt(index):
        session = SessionLocal()
        try:
            data = BookingCreate(
                room_id=room_id,
                check_in=date(2025, 10, 1),
                check_out=date(2025, 10, 4),
                guest_name=f"Guest {index}",
                total_amount=Decimal("100.00"),
            )
            barrier.wait()
            try:
                BookingService(session, tenant).create_booking(data)
                outcome = "ok"
            except AvailabilityConflict:
                outcome = "conflict"
            with lock:
                results.append(outcome)
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    return results.count("ok"), results.count("conflict")


class TestConcurrentBooking:

    def test_single_unit_only_one_wins(self, file_engine):
        setup = sessionmaker(bind=file_engine)()
        room = make_room(setup)
        room_id = room.id
        setup.close()

        succeeded, conflicted = _race(file_engine, room_id, workers=2)
        assert succeeded == 1
        assert conflicted == 1

        check = sessionmaker(bind=file_engine)()
        assert check.query(Booking).filter(Booking.room_id == room_id).count() == 1
        check.close()

    def test_room_type_never_oversold(self, file_engine):
        setup = sessionmaker(bind=file_engine)()
        room = make_room(setup, inventory_mode=InventoryMode.ROOM_TYPE, total_units=2)
        room_id = room.id
        setup.close()

        succeeded, conflicted = _race(file_engine, room_id, workers=5)
        assert succeeded == 2
        assert conflicted == 3

        check = sessionmaker(bind=file_engine)()
        assert check.query(Booking).filter(Booking.room_id == room_id).count() == 2
        check.close()


class TestReadsDoNotLock:
    """只读的价格、可售性查询不取写锁，未结束的读事务不阻塞其他请求"""

    def _seed_room(self, engine):
        setup = sessionmaker(bind=engine)()
        room_id = make_room(setup).id
        setup.close()
        return room_id

    def test_open_read_does_not_block_another_read(self, file_engine):
        room_id = self._seed_room(file_engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
        tenant = TenantContext(tenant_id=TENANT_ID)

        reader = SessionLocal()
        other = SessionLocal()
        try:
            AvailabilityService(reader, tenant).check_availability(
                room_id, date(2025, 10, 1), date(2025, 10, 4)
            )
            assert reader.in_transaction()

            price = RateResolver(other, tenant).get_effective_price(room_id, date(2025, 10, 2))
            assert price['effective_price'] == Decimal("1000.00")
        finally:
            other.close()
            reader.close()

    def test_open_read_does_not_block_booking(self, file_engine):
        room_id = self._seed_room(file_engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
        tenant = TenantContext(tenant_id=TENANT_ID)

        reader = SessionLocal()
        writer = SessionLocal()
        try:
            AvailabilityService(reader, tenant).check_availability(
                room_id, date(2025, 10, 1), date(2025, 10, 4)
            )
            booking = BookingService(writer, tenant).create_booking(BookingCreate(
                room_id=room_id,
                check_in=date(2025, 10, 1),
                check_out=date(2025, 10, 4),
                guest_name="Writer",
            ))
            assert booking.id is not None
        finally:
            writer.close()
            reader.close()

    def test_write_after_read_in_same_session(self, file_engine):
        room_id = self._seed_room(file_engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
        tenant = TenantContext(tenant_id=TENANT_ID)

        session = SessionLocal()
        try:
            AvailabilityService(session, tenant).check_availability(
                room_id, date(2025, 10, 1), date(2025, 10, 4)
            )
            BookingService(session, tenant).create_booking(BookingCreate(
                room_id=room_id,
                check_in=date(2025, 10, 1),
                check_out=date(2025, 10, 4),
                guest_name="Same Session",
            ))
            with pytest.raises(AvailabilityConflict):
                BookingService(session, tenant).create_booking(BookingCreate(
                    room_id=room_id,
                    check_in=date(2025, 10, 2),
                    check_out=date(2025, 10, 3),
                    guest_name="Second",
                ))
        finally:
            session.close()
