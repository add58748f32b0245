from __future__ import annotations
import numpy as np
import pandas as pd
from typing import Any, Iterable, Optional, Union
from zoneinfo import ZoneInfo

from . import canon, ingest, utils
from .exceptions import SlotError, require
from .types import PricePoint, SlotFrame

PriceInput = Union[pd.DataFrame, Iterable[PricePoint]]


def empty_slot_frame(tz: str = canon.DEFAULT_TZ) -> SlotFrame:
    idx = pd.DatetimeIndex([], tz=ZoneInfo(tz), name=canon.INDEX_NAME)
    return SlotFrame(
        {
            "end": pd.Series(pd.DatetimeIndex([], tz=ZoneInfo(tz)), index=idx),
            "duration_h": pd.Series(dtype=float, index=idx),
            "spot_price": pd.Series(dtype=float, index=idx),
        },
        index=idx,
    )


def resolve_now(now: Any = None, tz: str = canon.DEFAULT_TZ) -> pd.Timestamp:
    """The evaluation instant in local time; wall clock when not given."""
    if now is None:
        return pd.Timestamp.now(tz=ZoneInfo(tz))
    ts = utils.to_local_timestamp(now, tz)
    require(ts is not None, f"Cannot interpret evaluation time {now!r}.", SlotError)
    return ts


def _price_frame(prices: PriceInput, tz: str) -> pd.DataFrame:
    if isinstance(prices, pd.DataFrame):
        if "spot_price" not in prices.columns:
            raise SlotError("Price frame must contain 'spot_price'.")
        if not isinstance(prices.index, pd.DatetimeIndex):
            raise SlotError("Price frame must have a DatetimeIndex.")
        if prices.empty:
            return ingest.empty_price_frame(tz)
        return utils.ensure_tz_aware_index(prices[["spot_price"]], tz)
    return ingest.from_price_points(prices, tz=tz)


def fallback_duration_hours(idx: pd.DatetimeIndex) -> float:
    """Duration used where the gap to the next point is unknown or unusable."""
    return utils.median_gap_hours(idx, default=canon.DEFAULT_SLOT_HOURS)


def normalise_slots(
    prices: PriceInput,
    *,
    now: Optional[Any] = None,
    tz: str = canon.DEFAULT_TZ,
) -> SlotFrame:
    """
    Turn a raw price series into ordered, non-overlapping future slots.

    - Sorted ascending by start; duplicate starts keep the last record.
    - Duration is the gap to the next point; the last point and any
      non-positive gap use the median positive gap (1 h if there is none).
    - Durations are clamped to [0.15 h, 6 h]. A point starting inside the
      previous slot's clamped span starts where that slot ends instead,
      and is dropped only when nothing of it remains.
    - Slots ending at or before ``now`` are dropped; a slot straddling
      ``now`` starts at ``now`` with the remaining duration.

    Empty or all-past input gives an empty SlotFrame.
    """
    df = _price_frame(prices, tz)
    if df.empty:
        return empty_slot_frame(tz)

    df = df.assign(spot_price=pd.to_numeric(df["spot_price"], errors="coerce"))
    df = df[np.isfinite(df["spot_price"].to_numpy(dtype=float))]
    df = df.sort_index(kind="mergesort")
    df = df[~df.index.duplicated(keep="last")]
    if df.empty:
        return empty_slot_frame(tz)

    now_ts = resolve_now(now, tz)
    starts = pd.DatetimeIndex(df.index)
    fallback = fallback_duration_hours(starts)

    gaps = np.append(
        np.asarray((starts[1:] - starts[:-1]) / pd.Timedelta(hours=1), dtype=float),
        np.nan,
    )
    durations = np.where(np.isfinite(gaps) & (gaps > canon.EPS_HOURS), gaps, fallback)
    durations = np.clip(durations, canon.MIN_SLOT_HOURS, canon.MAX_SLOT_HOURS)

    out_start, out_end, out_dur, out_price = [], [], [], []
    prev_end: Optional[pd.Timestamp] = None
    next_starts = list(starts[1:]) + [None]
    rows = zip(starts, next_starts, gaps, durations, df["spot_price"].to_numpy(dtype=float))
    for start, next_start, gap, dur, price in rows:
        # an unclamped gap ends exactly at the next point
        end = next_start if dur == gap else start + pd.Timedelta(hours=float(dur))
        if prev_end is not None and start < prev_end:
            # starts inside the previous slot: keep only the part after it
            if utils.hours_between(prev_end, end) <= canon.EPS_HOURS:
                continue
            start = prev_end
            dur = utils.hours_between(start, end)
        prev_end = end
        if end <= now_ts:
            continue
        if start < now_ts:
            dur = utils.hours_between(now_ts, end)
            if dur <= canon.EPS_HOURS:
                continue
            start = now_ts
        out_start.append(start)
        out_end.append(end)
        out_dur.append(float(dur))
        out_price.append(float(price))

    if not out_start:
        return empty_slot_frame(tz)

    idx = pd.DatetimeIndex(out_start, name=canon.INDEX_NAME)
    return SlotFrame(
        {
            "end": pd.DatetimeIndex(out_end),
            "duration_h": out_dur,
            "spot_price": out_price,
        },
        index=idx,
    )
