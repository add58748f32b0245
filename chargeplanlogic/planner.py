from __future__ import annotations
from typing import Any, Optional

import pandas as pd

from . import canon, ingest
from .optimizer import find_optimal_plan
from .settings import ChargeSettings, default_settings
from .slots import normalise_slots
from .tariffs.schema import CostConfiguration, default_cost_configuration
from .types import Plan


def plan_charging(
    feed: Any,
    tariff: Optional[CostConfiguration] = None,
    settings: Optional[ChargeSettings] = None,
    *,
    now: Optional[Any] = None,
    tz: str = canon.DEFAULT_TZ,
) -> Optional[Plan]:
    """
    Raw inputs in, cheapest plan out.

    ``feed`` is either a price frame (see ingest) or a raw feed payload.
    Settings are normalised first; full-charge mode lowers the effective
    charging power. Returns None when no session can be planned.
    """
    cfg = (settings or default_settings()).normalised()
    tariff = tariff or default_cost_configuration()

    prices = feed if isinstance(feed, pd.DataFrame) else ingest.from_payload(feed, tz=tz)
    slots = normalise_slots(prices, now=now, tz=tz)

    return find_optimal_plan(
        slots,
        charging_power=cfg.effective_power_kw,
        target_energy=cfg.energy_kwh,
        transfer=tariff.transfer,
        demand=tariff.demand,
        include_demand=cfg.include_demand_fee,
        margin=cfg.margin_eur_per_kwh,
        tax_rate=cfg.tax_eur_per_kwh,
    )
