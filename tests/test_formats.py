"""Plan serialisation to frames and JSON-ready dicts."""

import json

import pandas as pd
import pytest

from chargeplanlogic import formats, slots
from chargeplanlogic.optimizer import find_optimal_plan
from chargeplanlogic.tariffs import parse_cost_configuration

from helpers import H, TZ


@pytest.fixture
def plan(three_slot_prices, now, all_hours_demand_doc):
    tariff = parse_cost_configuration(all_hours_demand_doc)
    return find_optimal_plan(
        slots.normalise_slots(three_slot_prices, now=now, tz=TZ),
        charging_power=10,
        target_energy=15,
        transfer=tariff.transfer,
        demand=tariff.demand,
        include_demand=True,
    )


def test_timeline_frame(plan):
    df = formats.timeline_frame(plan)
    assert df.index.name == "start"
    assert len(df) == len(plan.timeline)
    assert {"energy_kwh", "energy_rate", "energy_cost", "transfer_cost"} <= set(df.columns)
    assert df["energy_cost"].sum() == pytest.approx(plan.energy_cost)
    assert df["energy_kwh"].sum() == pytest.approx(15.0)


def test_plan_to_dict_is_json_ready(plan):
    d = formats.plan_to_dict(plan)
    text = json.dumps(d)
    assert json.loads(text)["costs"]["total"] == pytest.approx(plan.total_cost)

    assert d["start"] == plan.start_time.isoformat()
    assert pd.Timestamp(d["end"]) == plan.end_time
    assert set(d["costs"]) == {"energy", "transfer", "tax", "demand", "total"}
    assert d["demand_enabled"] is True
    assert d["demand"]["max_average_power_kw"] == pytest.approx(10.0)
    assert d["demand"]["hour"] is not None
    assert len(d["timeline"]) == len(plan.timeline)
    assert d["timeline"][0]["demand_applies"] is True


def test_plan_to_dict_without_demand(three_slot_prices, now):
    plan = find_optimal_plan(
        slots.normalise_slots(three_slot_prices, now=now, tz=TZ),
        charging_power=10,
        target_energy=10,
    )
    d = formats.plan_to_dict(plan)
    assert d["demand"] is None
    assert d["costs"]["demand"] == 0.0
    assert d["start"] == (H + pd.Timedelta(hours=2)).isoformat()
    assert d["timeline"][0]["demand_rate"] is None
