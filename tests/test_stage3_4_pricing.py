"""
Stage 3 + 4 tests — Access notes (neutral friction) and the Pricing Engine.

No AI, no network — Stage 4 is pure math.
"""

import pytest

from removals.errors import StageNotReady
from removals.friction import FrictionAdjuster
from removals.pricing_engine import FLAT, HOURLY, PricingEngine
from removals.quote_record import (
    EstimationMethod, LoadingTime, QuoteRecord, Route, VolumeEntry,
)


def _record(**overrides):
    """20 m³ manual volume, 3 movers, 60 min drive, $12 tolls."""
    data = dict(
        estimation_method=EstimationMethod.VOLUME,
        volume_entry=VolumeEntry(manual_volume=20.0),
        total_volume=20.0,
        loading_time=LoadingTime(loading_hours=2.0, unloading_hours=2.0, total_handling_hours=4.0),
        crew_size=3,
        route=Route(distance_km=30, duration_minutes=60, estimated_toll_cost=12.0),
    )
    data.update(overrides)
    return QuoteRecord(**data)


# ============================================================
# Stage 3 — Friction
# ============================================================

def test_friction_is_neutral():
    record = FrictionAdjuster().apply(_record(), "3rd floor walk-up, no lift, tight stairwell")
    calc = record.friction_calculations
    assert calc.time_multiplier == 1.0
    assert calc.friction_delay == 0.0
    assert calc.adjusted_handling_hours == pytest.approx(4.0)
    assert calc.total_estimated_hours == pytest.approx(5.0)
    assert record.surcharges.total_friction == 0.0
    assert record.surcharges.stairs == 0.0
    assert record.surcharges.access == 0.0


def test_friction_notes_stored_verbatim():
    notes = "  Parking: loading zone only!\nGate code 1234  "
    record = FrictionAdjuster().apply(_record(), notes)
    assert record.friction_notes == notes
    assert FrictionAdjuster().apply(_record(), None).friction_notes == ""


def test_friction_carries_specialty_surcharges():
    record = FrictionAdjuster().apply(_record(specialty_surcharges=150.0), "")
    assert record.surcharges.specialty_items == 150.0


def test_friction_requires_route():
    with pytest.raises(StageNotReady) as exc:
        FrictionAdjuster().apply(_record(route=None), "notes")
    assert exc.value.missing == ["route"]


def test_notes_do_not_change_price():
    engine = PricingEngine()
    plain = engine.calculate(FrictionAdjuster().apply(_record(), ""))
    noted = engine.calculate(FrictionAdjuster().apply(_record(), "piano up 4 flights, no parking"))
    assert plain["total"] == noted["total"]


# ============================================================
# Stage 4 — Hourly
# ============================================================

def test_hourly_breakdown():
    costs = PricingEngine().calculate(_record(), HOURLY)
    assert costs["pricing_model"] == HOURLY
    assert costs["hourly_rate"] == 280.0
    assert costs["handling_hours"] == pytest.approx(4.0)
    assert costs["travel_hours"] == pytest.approx(1.0)
    assert costs["total_hours"] == pytest.approx(5.0)
    assert costs["labor_cost"] == pytest.approx(1120.0)
    assert costs["travel_cost"] == pytest.approx(280.0)
    assert costs["tolls_cost"] == 12.0
    assert costs["subtotal_before_discount"] == pytest.approx(1412.0)
    assert costs["backload_discount"] == 0.0
    assert costs["weekend_premium"] == 0.0
    assert costs["risk_premium"] == 0.0
    assert costs["total"] == pytest.approx(1412.0)


def test_hourly_rate_table():
    engine = PricingEngine()
    assert engine.hourly_rate(2) == 190.0
    assert engine.hourly_rate(3) == 280.0
    assert engine.hourly_rate(4) == 375.0
    assert engine.hourly_rate(7) == 375.0


def test_backload_discount_only_touches_labor_and_travel():
    totals = PricingEngine().compose_total(400.0, 100.0, 0.0, 0.0, flexible_schedule=True)
    assert totals["backload_discount"] == pytest.approx(250.0)
    assert totals["subtotal_before_discount"] == pytest.approx(500.0)
    assert totals["subtotal"] == pytest.approx(250.0)

    with_extras = PricingEngine().compose_total(400.0, 100.0, 150.0, 33.0, flexible_schedule=True)
    assert with_extras["backload_discount"] == pytest.approx(250.0)
    assert with_extras["subtotal"] == pytest.approx(433.0)


def test_weekend_premium_on_discounted_subtotal():
    totals = PricingEngine().compose_total(400.0, 100.0, 0.0, 0.0,
                                           flexible_schedule=True, is_weekend=True)
    assert totals["weekend_premium"] == pytest.approx(250.0 * 0.15)
    assert totals["total"] == pytest.approx(287.5)


def test_weekend_record():
    costs = PricingEngine().calculate(_record(is_weekend=True))
    assert costs["weekend_premium"] == pytest.approx(1412.0 * 0.15)
    assert costs["total"] == pytest.approx(1412.0 * 1.15)


def test_specialty_surcharge_included():
    costs = PricingEngine().calculate(_record(specialty_surcharges=150.0))
    assert costs["total_surcharges"] == pytest.approx(150.0)
    assert costs["total"] == pytest.approx(1562.0)


def test_zero_volume_still_prices_travel():
    record = _record(
        total_volume=0.0,
        loading_time=LoadingTime(),
        crew_size=2,
    )
    costs = PricingEngine().calculate(record)
    assert costs["labor_cost"] == 0.0
    assert costs["travel_cost"] == pytest.approx(190.0)


def test_pricing_requires_route():
    with pytest.raises(StageNotReady):
        PricingEngine().calculate(_record(route=None))


def test_unknown_pricing_model():
    with pytest.raises(ValueError, match="Unknown pricing model"):
        PricingEngine().calculate(_record(), "per_box")


def test_pricing_does_not_mutate_record():
    record = _record()
    before = record.model_dump()
    PricingEngine().calculate(record)
    assert record.model_dump() == before
    assert record.friction_calculations is None


# ============================================================
# Stage 4 — Flat
# ============================================================

@pytest.mark.parametrize("overrides", [
    {},
    {"is_weekend": True},
    {"flexible_schedule": True},
    {"flexible_schedule": True, "is_weekend": True, "specialty_surcharges": 300.0},
    {"crew_size": 4, "route": Route(distance_km=90, duration_minutes=95, estimated_toll_cost=48.0)},
])
def test_flat_is_hourly_plus_twelve_percent(overrides):
    engine = PricingEngine()
    record = _record(**overrides)
    hourly = engine.calculate(record, HOURLY)
    flat = engine.calculate(record, FLAT)
    assert flat["pricing_model"] == FLAT
    assert flat["total"] == pytest.approx(1.12 * hourly["total"])
    assert flat["risk_premium"] == pytest.approx(0.12 * hourly["total"])
    assert flat["hourly_total"] == pytest.approx(hourly["total"])


def test_pricing_is_idempotent():
    engine = PricingEngine()
    record = _record(flexible_schedule=True, is_weekend=True)
    for model in (HOURLY, FLAT):
        assert engine.calculate(record, model) == engine.calculate(record, model)
