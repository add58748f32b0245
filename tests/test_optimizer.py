"""Window search: cheapest contiguous session, cost components and tie-breaks."""

import pandas as pd
import pytest

from chargeplanlogic import slots as slotmod
from chargeplanlogic.exceptions import SlotError
from chargeplanlogic.optimizer import find_optimal_plan
from chargeplanlogic.tariffs import parse_cost_configuration

from helpers import H, TZ, price_frame, tier


def _slots(prices, now):
    return slotmod.normalise_slots(prices, now=now, tz=TZ)


def _recompute_total(plan):
    energy = 0.0
    transfer = 0.0
    for e in plan.timeline:
        energy += e.energy_kwh * e.energy_rate
        transfer += e.energy_kwh * e.transfer_rate
    return energy + transfer + plan.tax_cost + plan.demand_cost


def test_cheapest_single_slot(three_slot_prices, now):
    """[0.05, 0.10, 0.02] at 10 kW for 10 kWh -> the 0.02 slot, 10 * (0.02 + 0.027)."""
    plan = find_optimal_plan(
        _slots(three_slot_prices, now), charging_power=10, target_energy=10
    )
    assert plan is not None
    assert plan.start_index == 2 and plan.end_index == 2
    assert plan.start_time == H + pd.Timedelta(hours=2)
    assert plan.end_time == H + pd.Timedelta(hours=3)
    assert plan.total_cost == pytest.approx(0.47)
    assert plan.energy_cost == pytest.approx(0.2)
    assert plan.tax_cost == pytest.approx(0.27)
    assert plan.transfer_cost == 0.0
    assert plan.average_total_price == pytest.approx(0.047)
    assert plan.average_energy_price == pytest.approx(0.02)


def test_partial_last_slot(three_slot_prices, now):
    """25 kWh at 10 kW needs 2.5 h; only the first start fits before the series ends."""
    plan = find_optimal_plan(
        _slots(three_slot_prices, now), charging_power=10, target_energy=25
    )
    assert plan.start_index == 0 and plan.end_index == 2
    assert plan.duration_hours == pytest.approx(2.5)
    assert [e.charged_hours for e in plan.timeline] == pytest.approx([1.0, 1.0, 0.5])
    assert plan.energy_cost == pytest.approx(10 * 0.05 + 10 * 0.10 + 5 * 0.02)
    assert plan.end_time == H + pd.Timedelta(hours=2.5)
    assert sum(e.energy_kwh for e in plan.timeline) == pytest.approx(25.0)


def test_infeasible_target_gives_no_plan(three_slot_prices, now):
    assert (
        find_optimal_plan(_slots(three_slot_prices, now), charging_power=10, target_energy=40)
        is None
    )


@pytest.mark.parametrize("power, energy", [(0, 10), (-5, 10), (10, 0), (10, -1)])
def test_non_positive_inputs_give_no_plan(three_slot_prices, now, power, energy):
    s = _slots(three_slot_prices, now)
    assert find_optimal_plan(s, charging_power=power, target_energy=energy) is None


def test_no_slots_gives_no_plan(three_slot_prices):
    s = _slots(three_slot_prices, H + pd.Timedelta(hours=6))
    assert s.empty
    assert find_optimal_plan(s, charging_power=10, target_energy=10) is None


def test_equal_cost_prefers_earliest_start(now):
    s = _slots(price_frame(H, [0.02, 0.05, 0.02]), now)
    plan = find_optimal_plan(s, charging_power=10, target_energy=10)
    assert plan.start_index == 0


def test_margin_raises_cost_and_is_clamped(three_slot_prices, now):
    s = _slots(three_slot_prices, now)
    totals = [
        find_optimal_plan(s, charging_power=10, target_energy=10, margin=m).total_cost
        for m in (0.0, 0.003, 0.005)
    ]
    assert totals[0] < totals[1] < totals[2]
    assert totals[1] - totals[0] == pytest.approx(0.03)

    negative = find_optimal_plan(s, charging_power=10, target_energy=10, margin=-0.01)
    assert negative.margin == 0.0
    assert negative.total_cost == pytest.approx(totals[0])


def test_transfer_fee_follows_tier_rate(day_prices, tariff_doc):
    cfg = parse_cost_configuration(tariff_doc)
    now = pd.Timestamp("2025-03-10 11:00", tz=TZ)
    plan = find_optimal_plan(
        _slots(day_prices, now),
        charging_power=10,
        target_energy=40,
        transfer=cfg.transfer,
        demand=cfg.demand,
    )
    # 02:00-06:00 on Tuesday: four 0.01 slots, night transfer rate
    assert plan.start_time == pd.Timestamp("2025-03-11 02:00", tz=TZ)
    assert plan.duration_hours == pytest.approx(4.0)
    assert all(e.transfer_rate == pytest.approx(0.0245) for e in plan.timeline)
    assert plan.transfer_cost == pytest.approx(40 * 0.0245)
    assert plan.demand is None and plan.demand_cost == 0.0


def test_cost_round_trip_is_exact(day_prices, tariff_doc):
    """Summing the timeline's rates back reproduces the reported total."""
    cfg = parse_cost_configuration(tariff_doc)
    now = pd.Timestamp("2025-03-10 11:20", tz=TZ)
    plan = find_optimal_plan(
        _slots(day_prices, now),
        charging_power=7.4,
        target_energy=33,
        transfer=cfg.transfer,
        demand=cfg.demand,
        include_demand=True,
        margin=0.003,
    )
    assert plan is not None
    assert _recompute_total(plan) == plan.total_cost


def test_demand_fee_changes_the_choice(now):
    tariff = parse_cost_configuration(
        {
            "siirto": {"tiers": [tier(0.0, [{"start": "00:00", "end": "00:00"}])]},
            "teho": {"tiers": [tier(3.0, [{"start": "10:00", "end": "11:00"}])]},
        }
    )
    s = _slots(price_frame(H, [0.01, 0.05]), now)
    kwargs = dict(
        charging_power=10, target_energy=10, transfer=tariff.transfer, demand=tariff.demand
    )

    without = find_optimal_plan(s, include_demand=False, **kwargs)
    assert without.start_time == H

    with_fee = find_optimal_plan(s, include_demand=True, **kwargs)
    assert with_fee.start_time == H + pd.Timedelta(hours=1)
    assert with_fee.demand_enabled
    assert with_fee.demand.cost == 0.0
    assert with_fee.timeline[0].demand_rate == 0.0
    assert with_fee.timeline[0].demand_applies is False


def test_demand_metrics_reported_when_enabled(now, all_hours_demand_doc):
    tariff = parse_cost_configuration(all_hours_demand_doc)
    s = _slots(price_frame(H, [0.05, 0.10, 0.02]), now)
    plan = find_optimal_plan(
        s,
        charging_power=11,
        target_energy=11,
        transfer=tariff.transfer,
        demand=tariff.demand,
        include_demand=True,
    )
    assert plan.demand.max_average_power_kw == pytest.approx(11.0)
    assert plan.demand_cost == pytest.approx(33.0)
    assert plan.total_cost == pytest.approx(11 * 0.02 + 11 * 0.027 + 33.0)
    assert all(e.demand_applies and e.demand_rate == 3.0 for e in plan.timeline)


def test_demand_disabled_leaves_demand_fields_empty(now, all_hours_demand_doc):
    tariff = parse_cost_configuration(all_hours_demand_doc)
    plan = find_optimal_plan(
        _slots(price_frame(H, [0.05]), now),
        charging_power=11,
        target_energy=5,
        transfer=tariff.transfer,
        demand=tariff.demand,
        include_demand=False,
    )
    assert plan.demand is None
    assert not plan.demand_enabled
    assert [e.demand_rate for e in plan.timeline] == [None]
    assert [e.demand_applies for e in plan.timeline] == [False]


def test_rejects_frames_breaking_slot_invariants():
    bad = pd.DataFrame(
        {"spot_price": [0.1]}, index=pd.DatetimeIndex([H], name="start")
    )
    with pytest.raises(SlotError):
        find_optimal_plan(bad, charging_power=10, target_energy=10)


def test_point_inside_clamped_slot_remains_chargeable():
    """The 10:05 price resumes at 10:09 and, being cheapest, hosts the session."""
    idx = pd.DatetimeIndex(
        ["2025-03-10 10:00", "2025-03-10 10:05", "2025-03-10 11:00"], name="start"
    ).tz_localize(TZ)
    prices = pd.DataFrame({"spot_price": [0.1, 0.01, 0.3]}, index=idx)
    s = _slots(prices, pd.Timestamp("2025-03-10 09:00", tz=TZ))

    # a plain frame with valid slot columns is accepted too
    plan = find_optimal_plan(pd.DataFrame(s), charging_power=10, target_energy=8.5)

    assert plan.start_time == pd.Timestamp("2025-03-10 10:09", tz=TZ)
    assert abs(plan.end_time - pd.Timestamp("2025-03-10 11:00", tz=TZ)) < pd.Timedelta(seconds=1)
    assert plan.energy_cost == pytest.approx(8.5 * 0.01)
