from __future__ import annotations
import logging
import math
import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Optional

from . import canon, validate
from .demand import estimate_demand_charge
from .tariffs.resolver import rates_at
from .tariffs.schema import TariffBranch
from .types import ChargingPortion, DemandMetrics, Plan, SlotFrame, TimelineEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Candidate:
    start_index: int
    total_cost: float
    energy_cost: float
    transfer_cost: float
    demand: DemandMetrics
    portions: tuple[ChargingPortion, ...]
    indices: tuple[int, ...]


def _walk(
    i: int,
    durations: np.ndarray,
    starts: pd.DatetimeIndex,
    energy_rate: np.ndarray,
    transfer_rate: np.ndarray,
    charging_power: float,
    target_energy: float,
) -> Optional[tuple[float, float, list[ChargingPortion], list[int]]]:
    """Consume ``target_energy`` forward from slot i; None when the series runs out."""
    remaining = target_energy
    energy_cost = 0.0
    transfer_cost = 0.0
    portions: list[ChargingPortion] = []
    indices: list[int] = []

    j = i
    while remaining > canon.EPS_KWH and j < len(durations):
        available = durations[j]
        if not available > 0:
            j += 1
            continue
        hours = min(available, remaining / charging_power)
        if not hours > 0:
            break
        energy = charging_power * hours
        energy_cost += energy * energy_rate[j]
        transfer_cost += energy * transfer_rate[j]
        portions.append(ChargingPortion(start=starts[j], hours=hours, energy_kwh=energy))
        indices.append(j)
        remaining -= energy
        j += 1

    if remaining > canon.EPS_KWH:
        return None
    return energy_cost, transfer_cost, portions, indices


def find_optimal_plan(
    slots: SlotFrame,
    *,
    charging_power: float,
    target_energy: float,
    transfer: Optional[TariffBranch] = None,
    demand: Optional[TariffBranch] = None,
    include_demand: bool = False,
    margin: float = 0.0,
    tax_rate: float = canon.ELECTRICITY_TAX_EUR_PER_KWH,
) -> Optional[Plan]:
    """
    Cheapest contiguous session drawing ``target_energy`` kWh at
    ``charging_power`` kW.

    Every slot is tried as the session start. From there energy is drawn
    slot by slot until the target is met; the candidate is priced as

        energy   = sum(e * (spot + margin))
        transfer = sum(e * transfer rate at slot start)
        tax      = target_energy * tax_rate
        demand   = peak hourly kW * demand rate (when enabled)

    and the lowest total wins, the earliest start on ties. Returns None
    when there are no slots, the inputs are not positive, or no start can
    meet the target before the series ends.
    """
    validate.assert_slots(slots)
    if slots.empty:
        return None
    if not (charging_power > 0 and math.isfinite(charging_power)):
        return None
    if not (target_energy > 0 and math.isfinite(target_energy)):
        return None
    margin = max(float(margin), 0.0) if math.isfinite(margin) else 0.0

    slots = slots if isinstance(slots, SlotFrame) else SlotFrame(slots)
    starts = pd.DatetimeIndex(slots.index)
    durations = slots.duration_h.to_numpy(dtype=float)
    spot = slots.spot_price.to_numpy(dtype=float)
    energy_rate = spot + margin
    transfer_rate = rates_at(transfer, starts).to_numpy()

    demand_on = bool(include_demand) and demand is not None and not demand.is_empty
    demand_rate = rates_at(demand, starts).to_numpy() if demand_on else np.zeros(len(starts))
    tax_cost = target_energy * tax_rate

    best: Optional[_Candidate] = None
    feasible = 0
    for i in range(len(starts)):
        walked = _walk(
            i, durations, starts, energy_rate, transfer_rate, charging_power, target_energy
        )
        if walked is None:
            continue
        energy_cost, transfer_cost, portions, indices = walked
        if not indices:
            continue
        feasible += 1

        metrics = estimate_demand_charge(portions, demand, enabled=demand_on)
        total = energy_cost + transfer_cost + tax_cost + metrics.cost
        if best is None or total < best.total_cost:
            best = _Candidate(
                start_index=i,
                total_cost=total,
                energy_cost=energy_cost,
                transfer_cost=transfer_cost,
                demand=metrics,
                portions=tuple(portions),
                indices=tuple(indices),
            )

    logger.debug("Evaluated %d start slots, %d feasible", len(starts), feasible)
    if best is None:
        return None

    timeline = tuple(
        TimelineEntry(
            start=p.start,
            end=p.start + pd.Timedelta(hours=p.hours),
            charged_hours=p.hours,
            energy_kwh=p.energy_kwh,
            spot_price=float(spot[j]),
            margin=margin,
            energy_rate=float(energy_rate[j]),
            transfer_rate=float(transfer_rate[j]),
            demand_rate=float(demand_rate[j]) if demand_on else None,
            demand_applies=bool(demand_on and demand_rate[j] > 0),
        )
        for p, j in zip(best.portions, best.indices)
    )
    last = best.portions[-1]
    return Plan(
        start_index=best.indices[0],
        end_index=best.indices[-1],
        start_time=best.portions[0].start,
        end_time=last.start + pd.Timedelta(hours=last.hours),
        duration_hours=float(sum(p.hours for p in best.portions)),
        energy_kwh=target_energy,
        energy_cost=best.energy_cost,
        transfer_cost=best.transfer_cost,
        tax_cost=tax_cost,
        demand_cost=best.demand.cost if demand_on else 0.0,
        margin=margin,
        total_cost=best.total_cost,
        average_energy_price=best.energy_cost / target_energy,
        average_total_price=best.total_cost / target_energy,
        timeline=timeline,
        demand=best.demand if demand_on else None,
        demand_enabled=demand_on,
    )
