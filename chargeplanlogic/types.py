from __future__ import annotations
from typing import TypedDict, List, Optional, Tuple
from dataclasses import dataclass

import pandas as pd


# Slot DataFrame
class SlotFrame(pd.DataFrame):
    """
    Normalised, charge-eligible time slots.

    Expected:
      - DatetimeIndex named 'start', tz-aware, strictly increasing
      - Columns: ['end', 'duration_h', 'spot_price']
    """

    @property
    def _constructor(self):
        return SlotFrame

    @property
    def end(self) -> pd.Series:
        return self["end"]

    @property
    def duration_h(self) -> pd.Series:
        return self["duration_h"]

    @property
    def spot_price(self) -> pd.Series:
        return self["spot_price"]


@dataclass(frozen=True)
class PricePoint:
    start: pd.Timestamp  # tz-aware
    spot_price: float  # EUR/kWh


@dataclass(frozen=True)
class ChargingPortion:
    start: pd.Timestamp
    hours: float
    energy_kwh: float


@dataclass(frozen=True)
class TimelineEntry:
    start: pd.Timestamp
    end: pd.Timestamp
    charged_hours: float
    energy_kwh: float
    spot_price: float
    margin: float
    energy_rate: float  # spot + margin, EUR/kWh
    transfer_rate: float  # EUR/kWh
    demand_rate: Optional[float]  # EUR/kW, None when demand pricing is off
    demand_applies: bool


@dataclass(frozen=True)
class DemandMetrics:
    cost: float
    max_average_power_kw: float
    rate: float
    hour: Optional[pd.Timestamp]


@dataclass(frozen=True)
class Plan:
    start_index: int
    end_index: int
    start_time: pd.Timestamp
    end_time: pd.Timestamp
    duration_hours: float
    energy_kwh: float
    energy_cost: float
    transfer_cost: float
    tax_cost: float
    demand_cost: float
    margin: float
    total_cost: float
    average_energy_price: float
    average_total_price: float
    timeline: Tuple[TimelineEntry, ...]
    demand: Optional[DemandMetrics]
    demand_enabled: bool


# Serialised plan, as produced by formats.plan_to_dict
class TimelinePayload(TypedDict):
    start: str
    end: str
    charged_hours: float
    energy_kwh: float
    spot_price: float
    energy_rate: float
    transfer_rate: float
    demand_rate: Optional[float]
    demand_applies: bool


class DemandPayload(TypedDict):
    cost: float
    max_average_power_kw: float
    rate: float
    hour: Optional[str]


class PlanPayload(TypedDict):
    start: str
    end: str
    duration_hours: float
    energy_kwh: float
    costs: dict[str, float]
    average_energy_price: float
    average_total_price: float
    margin: float
    demand_enabled: bool
    demand: Optional[DemandPayload]
    timeline: List[TimelinePayload]
