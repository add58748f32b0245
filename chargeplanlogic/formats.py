from __future__ import annotations

from dataclasses import asdict

import pandas as pd

from .types import DemandPayload, Plan, PlanPayload, TimelinePayload


def _iso(ts: pd.Timestamp) -> str:
    return pd.Timestamp(ts).isoformat()


def timeline_frame(plan: Plan) -> pd.DataFrame:
    """
    Charged slots of a plan as a DataFrame indexed by 'start'.

    Includes per-slot energy, transfer and tax-free cost components so a
    caller can chart or re-aggregate them.
    """
    if not plan.timeline:
        return pd.DataFrame(index=pd.DatetimeIndex([], name="start"))
    df = pd.DataFrame([asdict(e) for e in plan.timeline]).set_index("start")
    df["energy_cost"] = df["energy_kwh"] * df["energy_rate"]
    df["transfer_cost"] = df["energy_kwh"] * df["transfer_rate"]
    return df


def plan_to_dict(plan: Plan) -> PlanPayload:
    """JSON-ready view of a plan (ISO timestamps, plain floats)."""
    timeline: list[TimelinePayload] = [
        {
            "start": _iso(e.start),
            "end": _iso(e.end),
            "charged_hours": e.charged_hours,
            "energy_kwh": e.energy_kwh,
            "spot_price": e.spot_price,
            "energy_rate": e.energy_rate,
            "transfer_rate": e.transfer_rate,
            "demand_rate": e.demand_rate,
            "demand_applies": e.demand_applies,
        }
        for e in plan.timeline
    ]

    demand: DemandPayload | None = None
    if plan.demand is not None:
        demand = {
            "cost": plan.demand.cost,
            "max_average_power_kw": plan.demand.max_average_power_kw,
            "rate": plan.demand.rate,
            "hour": _iso(plan.demand.hour) if plan.demand.hour is not None else None,
        }

    return {
        "start": _iso(plan.start_time),
        "end": _iso(plan.end_time),
        "duration_hours": plan.duration_hours,
        "energy_kwh": plan.energy_kwh,
        "costs": {
            "energy": plan.energy_cost,
            "transfer": plan.transfer_cost,
            "tax": plan.tax_cost,
            "demand": plan.demand_cost,
            "total": plan.total_cost,
        },
        "average_energy_price": plan.average_energy_price,
        "average_total_price": plan.average_total_price,
        "margin": plan.margin,
        "demand_enabled": plan.demand_enabled,
        "demand": demand,
        "timeline": timeline,
    }
