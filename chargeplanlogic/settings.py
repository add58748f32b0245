from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Tuple

from . import canon, utils

CHARGING_POWER_RANGE: Tuple[float, float] = (3.0, 22.0)  # kW
ENERGY_AMOUNT_RANGE: Tuple[float, float] = (5.0, 120.0)  # kWh
MARGIN_RANGE: Tuple[float, float] = (0.0, 0.0056)  # EUR/kWh

# Charging slows towards 100 %, modelled as a flat power reduction
FULL_CHARGE_FACTOR: float = 0.85


def _clamp(value: Any, bounds: Tuple[float, float], fallback: float) -> float:
    v = utils.coerce_float(value)
    if v is None or not math.isfinite(v):
        return fallback
    lo, hi = bounds
    return min(max(v, lo), hi)


@dataclass(frozen=True)
class ChargeSettings:
    # Session
    charging_power_kw: float = 11.0
    energy_kwh: float = 45.0
    full_charge: bool = False

    # Costs
    include_demand_fee: bool = False  # "teho" mode
    margin_eur_per_kwh: float = 0.003
    tax_eur_per_kwh: float = canon.ELECTRICITY_TAX_EUR_PER_KWH

    pricing_id: Optional[str] = None

    @property
    def effective_power_kw(self) -> float:
        if self.full_charge:
            return self.charging_power_kw * FULL_CHARGE_FACTOR
        return self.charging_power_kw

    @property
    def charging_hours(self) -> float:
        power = self.effective_power_kw
        return self.energy_kwh / power if power > 0 else 0.0

    def normalised(self) -> "ChargeSettings":
        """Copy with every numeric field clamped to its allowed range."""
        defaults = ChargeSettings()
        return replace(
            self,
            charging_power_kw=_clamp(
                self.charging_power_kw, CHARGING_POWER_RANGE, defaults.charging_power_kw
            ),
            energy_kwh=_clamp(self.energy_kwh, ENERGY_AMOUNT_RANGE, defaults.energy_kwh),
            margin_eur_per_kwh=_clamp(
                self.margin_eur_per_kwh, MARGIN_RANGE, defaults.margin_eur_per_kwh
            ),
        )


def default_settings() -> ChargeSettings:
    return ChargeSettings()


def from_mapping(raw: Mapping[str, Any]) -> ChargeSettings:
    """
    Build settings from loosely typed input (form values, saved JSON).

    Unknown keys are ignored, invalid numbers fall back to defaults and
    the result is always normalised.
    """
    d = default_settings()
    mode = raw.get("tehoMode", raw.get("include_demand_fee"))
    if isinstance(mode, str):
        include_demand = mode == "include"
    elif isinstance(mode, bool):
        include_demand = mode
    else:
        include_demand = d.include_demand_fee

    full = raw.get("fullCharge", raw.get("full_charge"))
    pricing_id = raw.get("pricingId", raw.get("pricing_id"))

    return ChargeSettings(
        charging_power_kw=raw.get("chargingPower", raw.get("charging_power_kw", d.charging_power_kw)),
        energy_kwh=raw.get("energyAmount", raw.get("energy_kwh", d.energy_kwh)),
        full_charge=full if isinstance(full, bool) else d.full_charge,
        include_demand_fee=include_demand,
        margin_eur_per_kwh=raw.get(
            "electricityMargin", raw.get("margin_eur_per_kwh", d.margin_eur_per_kwh)
        ),
        pricing_id=pricing_id if isinstance(pricing_id, str) and pricing_id else None,
    ).normalised()
