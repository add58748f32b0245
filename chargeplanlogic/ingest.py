from __future__ import annotations
import logging
import math
import pandas as pd
from typing import Any, Iterable, Mapping, Optional
from zoneinfo import ZoneInfo

from . import canon, utils
from .types import PricePoint

logger = logging.getLogger(__name__)


def extract_entries(payload: Any) -> list:
    """
    Locate the record list inside a feed payload.

    Supports a bare list, or a mapping carrying the list under 'prices'
    or 'data'. Anything else yields an empty list.
    """
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in canon.PAYLOAD_LIST_KEYS:
            v = payload.get(key)
            if isinstance(v, list):
                return v
    return []


def resolve_timestamp(entry: Mapping[str, Any], tz: str = canon.DEFAULT_TZ) -> Optional[pd.Timestamp]:
    """First present timestamp alias, parsed to local time. Numbers are epoch ms."""
    return utils.to_local_timestamp(utils.first_present(entry, canon.TIMESTAMP_KEYS), tz)


def normalise_price_to_eur_per_kwh(price: float, unit: str = "") -> float:
    """
    Bring a raw price to EUR/kWh.

    - explicit unit tag 'eur/mwh' / '€/mwh' -> / 1000
    - explicit unit tag 'c/kwh' -> / 100
    - otherwise by magnitude: > 500 is EUR/MWh, > 9 is c/kWh, else EUR/kWh
    """
    unit = unit.lower()
    if "eur/mwh" in unit or "€/mwh" in unit:
        return price / 1000.0
    if "c/kwh" in unit:
        return price / 100.0
    if price > canon.MWH_SCALE_THRESHOLD:
        return price / 1000.0
    if price > canon.CENTS_SCALE_THRESHOLD:
        return price / 100.0
    return price


def resolve_price(entry: Mapping[str, Any]) -> Optional[float]:
    """First present price alias, converted to EUR/kWh, or None."""
    price = utils.coerce_float(utils.first_present(entry, canon.PRICE_KEYS))
    if price is None or not math.isfinite(price):
        return None
    unit = utils.first_present(entry, canon.UNIT_KEYS)
    return normalise_price_to_eur_per_kwh(price, unit if isinstance(unit, str) else "")


def empty_price_frame(tz: str = canon.DEFAULT_TZ) -> pd.DataFrame:
    idx = pd.DatetimeIndex([], tz=ZoneInfo(tz), name=canon.INDEX_NAME)
    return pd.DataFrame({"spot_price": pd.Series(dtype=float)}, index=idx)


def from_records(records: Iterable[Any], *, tz: str = canon.DEFAULT_TZ) -> pd.DataFrame:
    """
    Parse raw feed records into a price frame:
      - index: tz-aware 'start', ascending (stable, duplicates kept)
      - column: spot_price (EUR/kWh)

    Records without both a usable timestamp and price are dropped.
    """
    starts, prices = [], []
    dropped = 0
    for item in records:
        if not isinstance(item, Mapping):
            dropped += 1
            continue
        price = resolve_price(item)
        start = resolve_timestamp(item, tz)
        if price is None or start is None:
            dropped += 1
            continue
        starts.append(start)
        prices.append(price)

    if dropped:
        logger.debug("Dropped %d price records without a usable timestamp or price", dropped)
    if not starts:
        return empty_price_frame(tz)

    idx = pd.DatetimeIndex(starts, name=canon.INDEX_NAME).tz_convert(ZoneInfo(tz))
    df = pd.DataFrame({"spot_price": prices}, index=idx)
    return df.sort_index(kind="mergesort")


def from_payload(payload: Any, *, tz: str = canon.DEFAULT_TZ) -> pd.DataFrame:
    return from_records(extract_entries(payload), tz=tz)


def from_price_points(points: Iterable[PricePoint], *, tz: str = canon.DEFAULT_TZ) -> pd.DataFrame:
    points = list(points)
    if not points:
        return empty_price_frame(tz)
    idx = pd.DatetimeIndex([p.start for p in points], name=canon.INDEX_NAME)
    df = pd.DataFrame({"spot_price": [float(p.spot_price) for p in points]}, index=idx)
    df = utils.ensure_tz_aware_index(df, tz)
    df.index.name = canon.INDEX_NAME
    return df.sort_index(kind="mergesort")


def to_price_points(df: pd.DataFrame) -> list[PricePoint]:
    return [
        PricePoint(start=ts, spot_price=float(price))
        for ts, price in zip(df.index, df["spot_price"])
    ]
