"""
Tests for booking_engine/services/rate_resolver.py
Covers: pick_seasonal_rate, resolve, resolve_range, get_effective_price
"""
import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

from conftest import make_room, make_rate, OTHER_TENANT_ID
from booking_engine.errors import NotFound
from booking_engine.services.rate_resolver import RateResolver, pick_seasonal_rate


def _rate(id, start, end, price, priority=0, created_at=None):
    return SimpleNamespace(
        id=id, start_date=start, end_date=end,
        price_per_night=Decimal(price), priority=priority,
        created_at=created_at or datetime(2025, 1, 1),
    )


class TestPickSeasonalRate:

    def test_no_covering_rate(self):
        rates = [_rate(1, date(2025, 1, 1), date(2025, 1, 31), "900")]
        assert pick_seasonal_rate(rates, date(2025, 2, 1)) is None

    def test_end_date_is_inclusive(self):
        rate = _rate(1, date(2025, 1, 1), date(2025, 1, 31), "900")
        assert pick_seasonal_rate([rate], date(2025, 1, 31)) is rate
        assert pick_seasonal_rate([rate], date(2025, 1, 1)) is rate

    def test_highest_priority_wins(self):
        low = _rate(1, date(2025, 1, 1), date(2025, 1, 31), "900", priority=1)
        high = _rate(2, date(2025, 1, 10), date(2025, 1, 20), "1200", priority=3)
        assert pick_seasonal_rate([low, high], date(2025, 1, 15)) is high

    def test_tie_goes_to_most_recent(self):
        older = _rate(1, date(2025, 1, 1), date(2025, 1, 31), "900", created_at=datetime(2025, 1, 1))
        newer = _rate(2, date(2025, 1, 1), date(2025, 1, 31), "950", created_at=datetime(2025, 2, 1))
        assert pick_seasonal_rate([older, newer], date(2025, 1, 5)) is newer

    def test_tie_on_created_at_goes_to_higher_id(self):
        a = _rate(1, date(2025, 1, 1), date(2025, 1, 31), "900")
        b = _rate(2, date(2025, 1, 1), date(2025, 1, 31), "950")
        assert pick_seasonal_rate([a, b], date(2025, 1, 5)) is b

    def test_independent_of_input_order(self):
        rates = [
            _rate(1, date(2025, 1, 1), date(2025, 1, 31), "900", priority=2),
            _rate(2, date(2025, 1, 1), date(2025, 1, 31), "950", priority=2,
                  created_at=datetime(2025, 3, 1)),
            _rate(3, date(2025, 1, 1), date(2025, 1, 31), "700", priority=1),
        ]
        assert pick_seasonal_rate(rates, date(2025, 1, 5)).id == 2
        assert pick_seasonal_rate(list(reversed(rates)), date(2025, 1, 5)).id == 2


class TestResolve:

    def test_base_price_without_rates(self, db_session, tenant, sample_room):
        resolved = RateResolver(db_session, tenant).resolve(sample_room, date(2025, 6, 1))
        assert resolved.effective_price == Decimal("1000.00")
        assert resolved.base_price == Decimal("1000.00")
        assert resolved.seasonal_rate is None

    def test_seasonal_rate_applies(self, db_session, tenant, sample_room, summer_rates):
        peak, _ = summer_rates
        resolved = RateResolver(db_session, tenant).resolve(sample_room, date(2025, 12, 5))
        assert resolved.effective_price == Decimal("1500.00")
        assert resolved.seasonal_rate.id == peak.id

    def test_priority_beats_recency(self, db_session, tenant, sample_room, summer_rates):
        # Festive 创建更早但优先级更高
        _, festive = summer_rates
        resolved = RateResolver(db_session, tenant).resolve(sample_room, date(2025, 12, 25))
        assert resolved.effective_price == Decimal("2500.00")
        assert resolved.seasonal_rate.id == festive.id

    def test_zero_price_rate(self, db_session, tenant, sample_room):
        make_rate(db_session, sample_room, date(2025, 7, 1), date(2025, 7, 1), "0")
        resolved = RateResolver(db_session, tenant).resolve(sample_room, date(2025, 7, 1))
        assert resolved.effective_price == Decimal("0")
        assert resolved.seasonal_rate is not None

    def test_other_room_rates_ignored(self, db_session, tenant, sample_room):
        other = make_room(db_session, name="Other")
        make_rate(db_session, other, date(2025, 6, 1), date(2025, 6, 30), "5000")
        resolved = RateResolver(db_session, tenant).resolve(sample_room, date(2025, 6, 15))
        assert resolved.effective_price == Decimal("1000.00")


class TestResolveRange:

    def test_excludes_checkout_night(self, db_session, tenant, sample_room, summer_rates):
        nights = RateResolver(db_session, tenant).resolve_range(
            sample_room, date(2025, 12, 23), date(2025, 12, 27)
        )
        assert [n.date for n in nights] == [
            date(2025, 12, 23), date(2025, 12, 24), date(2025, 12, 25), date(2025, 12, 26)
        ]
        assert [n.effective_price for n in nights] == [
            Decimal("1500.00"), Decimal("2500.00"), Decimal("2500.00"), Decimal("2500.00")
        ]

    def test_matches_single_night_resolution(self, db_session, tenant, sample_room, summer_rates):
        resolver = RateResolver(db_session, tenant)
        nights = resolver.resolve_range(sample_room, date(2025, 11, 28), date(2025, 12, 28))
        for night in nights:
            single = resolver.resolve(sample_room, night.date)
            assert single.effective_price == night.effective_price

    def test_spans_season_boundary(self, db_session, tenant, sample_room, summer_rates):
        nights = RateResolver(db_session, tenant).resolve_range(
            sample_room, date(2025, 11, 30), date(2025, 12, 2)
        )
        assert [n.effective_price for n in nights] == [Decimal("1000.00"), Decimal("1500.00")]


class TestGetEffectivePrice:

    def test_returns_price_and_rate_ref(self, db_session, tenant, sample_room, summer_rates):
        result = RateResolver(db_session, tenant).get_effective_price(sample_room.id, date(2025, 12, 24))
        assert result['effective_price'] == Decimal("2500.00")
        assert result['base_price'] == Decimal("1000.00")
        assert result['seasonal_rate']['name'] == "Festive"
        assert result['currency'] == "ZAR"

    def test_room_not_found(self, db_session, tenant):
        with pytest.raises(NotFound):
            RateResolver(db_session, tenant).get_effective_price(9999, date(2025, 1, 1))

    def test_other_tenant_room_not_visible(self, db_session, tenant):
        foreign = make_room(db_session, tenant_id=OTHER_TENANT_ID)
        with pytest.raises(NotFound):
            RateResolver(db_session, tenant).get_effective_price(foreign.id, date(2025, 1, 1))
