"""Tariff definitions: canonical model, validation and rate resolution."""

from . import schema, validators, resolver, manifest
from .schema import (
    CostConfiguration,
    DemandOverride,
    Interval,
    PricingEntry,
    PricingManifest,
    TariffBranch,
    Tier,
    default_cost_configuration,
)
from .validators import TariffBuilder, parse_cost_configuration
from .resolver import rate_at, rates_at
from .manifest import parse_manifest

__all__ = [
    "schema",
    "validators",
    "resolver",
    "manifest",
    "CostConfiguration",
    "DemandOverride",
    "Interval",
    "PricingEntry",
    "PricingManifest",
    "TariffBranch",
    "Tier",
    "TariffBuilder",
    "default_cost_configuration",
    "parse_cost_configuration",
    "parse_manifest",
    "rate_at",
    "rates_at",
]
