from __future__ import annotations
from typing import Iterable, Optional


class ChargePlanError(Exception): ...


class SlotError(ChargePlanError): ...


class SourceError(ChargePlanError):
    """A price feed, manifest or tariff document could not be fetched or decoded."""


class ConfigurationError(ChargePlanError):
    """Aggregated validation failure; ``details`` holds one message per problem."""

    def __init__(self, message: str, details: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.details: list[str] = list(details or [])


class TariffConfigError(ConfigurationError): ...


class ManifestError(ConfigurationError): ...


def require(condition: bool, message: str, exc: type[ChargePlanError] = ChargePlanError):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
