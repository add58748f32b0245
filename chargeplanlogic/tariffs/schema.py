from __future__ import annotations
from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .. import canon

CurrencyEur = float


class Interval(BaseModel):
    """Half-open [start_minutes, end_minutes) window of a day, on the given weekdays (0 = Sun)."""

    model_config = ConfigDict(frozen=True)

    start_minutes: int = Field(ge=0, le=canon.MINUTES_IN_DAY)
    end_minutes: int = Field(ge=0, le=canon.MINUTES_IN_DAY)
    days: frozenset[int]

    def contains(self, weekday: int, minute: int) -> bool:
        return weekday in self.days and self.start_minutes <= minute < self.end_minutes


class Tier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    rate: CurrencyEur = Field(ge=0)
    start_date: date
    end_date: date
    weekdays: frozenset[int]
    intervals: tuple[Interval, ...]

    def covers(self, day: date, weekday: int) -> bool:
        return self.start_date <= day <= self.end_date and weekday in self.weekdays


class DemandOverride(BaseModel):
    """Per-date override of the demand fee. Parsed and kept, not applied."""

    model_config = ConfigDict(frozen=True)

    apply: bool = True
    rate: Optional[CurrencyEur] = None


class TariffBranch(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    unit: str
    tiers: tuple[Tier, ...] = ()
    overrides: dict[str, DemandOverride] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.tiers


class CostConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True)

    siirto: TariffBranch
    teho: TariffBranch

    @property
    def transfer(self) -> TariffBranch:
        return self.siirto

    @property
    def demand(self) -> TariffBranch:
        return self.teho


def default_cost_configuration() -> CostConfiguration:
    """Configuration with no billed tiers in either branch."""
    return CostConfiguration(
        siirto=TariffBranch(
            name=canon.TRANSFER_BRANCH,
            unit=canon.DEFAULT_UNITS[canon.TRANSFER_BRANCH],
        ),
        teho=TariffBranch(
            name=canon.DEMAND_BRANCH,
            unit=canon.DEFAULT_UNITS[canon.DEMAND_BRANCH],
        ),
    )


class PricingEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    config_path: str = Field(min_length=1)


class PricingManifest(BaseModel):
    model_config = ConfigDict(frozen=True)

    default_id: str
    pricings: tuple[PricingEntry, ...]

    def get(self, pricing_id: Optional[str]) -> Optional[PricingEntry]:
        return next((p for p in self.pricings if p.id == pricing_id), None)

    def resolve(self, pricing_id: Optional[str] = None) -> PricingEntry:
        """Requested entry, else the default entry, else the first listed one."""
        return (
            self.get(pricing_id)
            or self.get(self.default_id)
            or self.pricings[0]
        )
