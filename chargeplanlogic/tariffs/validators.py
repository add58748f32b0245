from __future__ import annotations
import math
import re
from datetime import date
from typing import Any, Mapping, Optional

from .. import canon, utils
from ..exceptions import TariffConfigError
from .schema import CostConfiguration, DemandOverride, Interval, TariffBranch, Tier

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _as_values(raw: Any) -> list[Any]:
    if isinstance(raw, (list, tuple, set, frozenset)):
        return list(raw)
    if isinstance(raw, str):
        return utils.split_tokens(raw)
    return [raw]


def _day_token(value: Any) -> Optional[frozenset[int]]:
    """Resolve one weekday token to a set of indices (Sunday = 0), or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if float(value).is_integer() and 0 <= value <= 6:
            return frozenset({int(value)})
        return None
    if isinstance(value, str):
        token = value.strip().lower()
        if token.isdigit() and 0 <= int(token) <= 6:
            return frozenset({int(token)})
        if token in canon.DAY_GROUPS:
            return canon.DAY_GROUPS[token]
        if token in canon.DAY_NAME_TO_INDEX:
            return frozenset({canon.DAY_NAME_TO_INDEX[token]})
    return None


class TariffBuilder:
    """
    Collects every validation problem of a tariff document before
    producing anything. ``build`` only returns a configuration when the
    error list is empty; otherwise it raises one TariffConfigError with
    all messages in ``details``.
    """

    def __init__(self) -> None:
        self.errors: list[str] = []

    def _error(self, context: str, message: str) -> None:
        self.errors.append(f"{context}: {message}.")

    # ------------------ fields ------------------

    def rate(self, raw: Any, context: str) -> Optional[float]:
        value = utils.coerce_float(raw)
        if value is None or not math.isfinite(value) or value < 0:
            self._error(context, f"rate is invalid ({raw!r})")
            return None
        return value

    def calendar_date(self, raw: Any, context: str, label: str) -> Optional[date]:
        text = raw.strip() if isinstance(raw, str) else None
        if not text or not _DATE_RE.match(text):
            self._error(context, f"{label} date is missing or invalid")
            return None
        try:
            return date.fromisoformat(text)
        except ValueError:
            self._error(context, f"{label} date is not a calendar date ({text})")
            return None

    def weekdays(self, raw: Any, context: str) -> frozenset[int]:
        days: set[int] = set()
        for value in _as_values(raw):
            if value is None or value == "":
                continue
            resolved = _day_token(value)
            if resolved is None:
                self._error(context, f"weekday {value!r} is invalid")
                continue
            days |= resolved
        if not days:
            self._error(context, "no weekdays defined")
        return frozenset(days)

    def time_value(self, raw: Any, context: str, label: str) -> Optional[int]:
        try:
            return utils.parse_time_value(raw)
        except ValueError as err:
            self._error(context, f"{label} {err}")
            return None

    def interval(
        self, raw: Any, context: str, tier_days: frozenset[int]
    ) -> list[Interval]:
        """One raw interval -> zero, one or two canonical intervals."""
        if not isinstance(raw, Mapping):
            self._error(context, "interval is missing or invalid")
            return []

        start = self.time_value(
            utils.first_present(raw, canon.INTERVAL_START_KEYS), context, "start"
        )
        end = self.time_value(
            utils.first_present(raw, canon.INTERVAL_END_KEYS), context, "end"
        )
        raw_days = utils.first_present(raw, canon.INTERVAL_DAY_KEYS)
        if raw_days is None or (isinstance(raw_days, (str, list, tuple)) and not raw_days):
            days = tier_days
        else:
            days = self.weekdays(raw_days, context)
        if start is None or end is None or not days:
            return []

        if start == end:
            spans = [(0, canon.MINUTES_IN_DAY)]
        elif start < end:
            spans = [(start, end)]
        else:
            # crosses midnight
            spans = [(start, canon.MINUTES_IN_DAY), (0, end)]
        return [
            Interval(start_minutes=s, end_minutes=e, days=days)
            for s, e in spans
            if e > s
        ]

    # ------------------ structure ------------------

    def tier(self, raw: Any, branch_name: str, index: int) -> Optional[Tier]:
        if not isinstance(raw, Mapping):
            self._error(branch_name, f"tier {index + 1} definition is missing")
            return None

        label = raw.get("id") or raw.get("name") or f"#{index + 1}"
        context = f"{branch_name} ({label})"
        n_errors = len(self.errors)

        rate = self.rate(utils.first_present(raw, canon.TIER_RATE_KEYS), context)
        start_date = self.calendar_date(
            utils.first_present(raw, canon.TIER_START_DATE_KEYS), context, "start"
        )
        end_date = self.calendar_date(
            utils.first_present(raw, canon.TIER_END_DATE_KEYS), context, "end"
        )
        if start_date and end_date and start_date > end_date:
            self._error(context, "start date is after end date")
        weekdays = self.weekdays(
            utils.first_present(raw, canon.TIER_WEEKDAY_KEYS), context
        )

        raw_intervals = raw.get("intervals")
        intervals: list[Interval] = []
        for i, item in enumerate(raw_intervals if isinstance(raw_intervals, list) else []):
            intervals.extend(
                self.interval(item, f"{context} interval {i + 1}", weekdays)
            )
        if not intervals:
            self._error(context, "intervals are missing")

        if len(self.errors) > n_errors:
            return None
        return Tier(
            id=raw.get("id") if isinstance(raw.get("id"), str) else None,
            rate=rate,
            start_date=start_date,
            end_date=end_date,
            weekdays=weekdays,
            intervals=tuple(intervals),
        )

    def overrides(self, raw: Any) -> dict[str, DemandOverride]:
        """Per-date override map; malformed keys and values are skipped."""
        out: dict[str, DemandOverride] = {}
        if not isinstance(raw, Mapping):
            return out
        for key, value in raw.items():
            if not isinstance(key, str) or not _DATE_RE.match(key):
                continue
            apply, rate = True, None
            if isinstance(value, bool):
                apply = value
            elif isinstance(value, (int, float)):
                rate = float(value)
            elif isinstance(value, Mapping):
                if value.get("apply") is not None:
                    apply = bool(value["apply"])
                rate = utils.coerce_float(
                    utils.first_present(value, canon.OVERRIDE_RATE_KEYS)
                )
            if rate is not None and not math.isfinite(rate):
                rate = None
            out[key] = DemandOverride(apply=apply, rate=rate)
        return out

    def branch(self, raw: Any, name: str, *, optional: bool = False) -> TariffBranch:
        default_unit = canon.DEFAULT_UNITS[name]
        if not isinstance(raw, Mapping):
            if not optional:
                self._error(name, "configuration is missing")
            return TariffBranch(name=name, unit=default_unit)

        unit = raw.get("unit") if isinstance(raw.get("unit"), str) else default_unit
        raw_tiers = raw.get("tiers") if isinstance(raw.get("tiers"), list) else []
        tiers = [self.tier(t, name, i) for i, t in enumerate(raw_tiers)]
        tiers = [t for t in tiers if t is not None]

        if not tiers and not optional:
            self._error(name, "pricing tiers are missing")

        return TariffBranch(
            name=name,
            unit=unit,
            tiers=tuple(tiers),
            overrides=self.overrides(raw.get("usage")),
        )

    def build(self, payload: Any) -> CostConfiguration:
        if not isinstance(payload, Mapping):
            raise TariffConfigError(
                "Tariff configuration failed to load: document structure is missing.",
                ["document structure is missing."],
            )

        config = CostConfiguration(
            siirto=self.branch(payload.get(canon.TRANSFER_BRANCH) or {}, canon.TRANSFER_BRANCH),
            teho=self.branch(
                payload.get(canon.DEMAND_BRANCH) or {}, canon.DEMAND_BRANCH, optional=True
            ),
        )
        if self.errors:
            raise TariffConfigError(
                "Tariff configuration failed to load: " + " ".join(self.errors),
                self.errors,
            )
        return config


def parse_cost_configuration(payload: Any) -> CostConfiguration:
    """Validate a raw tariff document; all-or-nothing."""
    return TariffBuilder().build(payload)


def collect_errors(payload: Any) -> list[str]:
    """Validation messages for a raw tariff document, empty when it is valid."""
    try:
        parse_cost_configuration(payload)
    except TariffConfigError as err:
        return err.details
    return []
