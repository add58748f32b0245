from __future__ import annotations
import pandas as pd
from typing import Iterable, Iterator, Optional, Tuple

from . import canon, utils
from .tariffs.resolver import rate_at
from .tariffs.schema import TariffBranch
from .types import ChargingPortion, DemandMetrics

NO_DEMAND = DemandMetrics(cost=0.0, max_average_power_kw=0.0, rate=0.0, hour=None)


def _hour_slices(portion: ChargingPortion) -> Iterator[Tuple[pd.Timestamp, float]]:
    """Split a portion at calendar-hour boundaries -> (hour_start, energy_kwh)."""
    if not portion.hours > canon.EPS_HOURS:
        return
    power = portion.energy_kwh / portion.hours
    remaining = portion.hours
    cursor = portion.start
    while remaining > canon.EPS_HOURS:
        bucket = utils.hour_start(cursor)
        to_boundary = utils.hours_between(cursor, bucket + pd.Timedelta(hours=1))
        if to_boundary <= canon.EPS_HOURS:
            piece = min(remaining, 1.0)
        else:
            piece = min(to_boundary, remaining)
        yield bucket, power * piece
        cursor = cursor + pd.Timedelta(hours=piece)
        remaining -= piece


def hourly_energy(portions: Iterable[ChargingPortion]) -> pd.DataFrame:
    """
    Energy drawn per local calendar hour.

    Output is indexed by 'hour_start' with a single 'energy_kwh' column.
    A bucket spans exactly one hour, so its kWh is also the average kW
    drawn during that hour.
    """
    rows = [
        {"hour_start": bucket, "energy_kwh": energy}
        for p in portions
        for bucket, energy in _hour_slices(p)
    ]
    if not rows:
        return pd.DataFrame(
            {"energy_kwh": pd.Series(dtype=float)},
            index=pd.DatetimeIndex([], name="hour_start"),
        )
    return pd.DataFrame(rows).groupby("hour_start", sort=True)[["energy_kwh"]].sum()


def estimate_demand_charge(
    portions: Iterable[ChargingPortion],
    branch: Optional[TariffBranch],
    *,
    enabled: bool = True,
) -> DemandMetrics:
    """
    Demand (power) fee for one charging session.

    Only hours with a positive demand rate at the hour start count. The
    fee is the highest hourly average power among those hours times the
    rate of that hour; ties within 1e-6 kW go to the higher rate.
    """
    if not enabled or branch is None or branch.is_empty:
        return NO_DEMAND

    buckets = hourly_energy(portions)
    best_power, best_rate, best_hour = 0.0, 0.0, None
    for hour, energy in buckets["energy_kwh"].items():
        rate = rate_at(branch, hour)
        if not rate > 0:
            continue
        if energy > best_power + canon.EPS_KW or (
            abs(energy - best_power) <= canon.EPS_KW and rate > best_rate
        ):
            best_power, best_rate, best_hour = float(energy), rate, hour

    if best_hour is None:
        return NO_DEMAND
    return DemandMetrics(
        cost=best_power * best_rate,
        max_average_power_kw=best_power,
        rate=best_rate,
        hour=best_hour,
    )
