# chargeplanlogic/utils.py
from __future__ import annotations
import math
import re
import numpy as np
import pandas as pd
from zoneinfo import ZoneInfo
from typing import Any, Iterable, Mapping, Optional

from . import canon

_TIME_RE = re.compile(r"^[0-2]?\d(:[0-5]\d)?$")
_TOKEN_SPLIT_RE = re.compile(r"[\s,;]+")


def first_present(mapping: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the value of the first key that is present and not None."""
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def split_tokens(value: str) -> list[str]:
    """'mon, tue;wed' -> ['mon', 'tue', 'wed']"""
    return [t for t in _TOKEN_SPLIT_RE.split(value.strip()) if t]


def to_local_timestamp(value: Any, tz: str = canon.DEFAULT_TZ) -> Optional[pd.Timestamp]:
    """
    Coerce a raw timestamp into a tz-aware Timestamp in ``tz``.

    Accepts datetimes, ISO strings (naive strings are local wall time)
    and epoch milliseconds. Returns None when nothing sensible comes out.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float, np.integer, np.floating)):
            if not np.isfinite(value):
                return None
            ts = pd.Timestamp(int(value), unit="ms", tz="UTC")
        else:
            ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tz is None:
        ts = ts.tz_localize(ZoneInfo(tz), ambiguous=True, nonexistent="shift_forward")
    else:
        ts = ts.tz_convert(ZoneInfo(tz))
    return ts


def ensure_tz_aware_index(df: pd.DataFrame, tz: str) -> pd.DataFrame:
    idx = pd.DatetimeIndex(df.index)
    if idx.tz is None:
        df = df.tz_localize(ZoneInfo(tz))
    else:
        df = df.tz_convert(ZoneInfo(tz))
    return df


def median_gap_hours(
    idx: pd.DatetimeIndex, default: float = canon.DEFAULT_SLOT_HOURS
) -> float:
    """
    Median of the strictly positive gaps between consecutive sorted
    timestamps, in hours. Duplicates are ignored.
    """
    ts = pd.DatetimeIndex(idx).sort_values()
    if len(ts) < 2:
        return float(default)

    diffs_h = (ts[1:] - ts[:-1]) / pd.Timedelta(hours=1)
    diffs_h = np.asarray(diffs_h, dtype=float)
    diffs_h = diffs_h[np.isfinite(diffs_h) & (diffs_h > canon.EPS_HOURS)]
    if len(diffs_h) == 0:
        return float(default)
    return float(np.median(diffs_h))


def weekday_index(ts: pd.Timestamp) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return (ts.dayofweek + 1) % 7


def minute_of_day(ts: pd.Timestamp) -> int:
    return ts.hour * 60 + ts.minute


def hour_start(ts: pd.Timestamp) -> pd.Timestamp:
    """Start of the local calendar hour containing ts."""
    return ts - pd.Timedelta(
        minutes=ts.minute,
        seconds=ts.second,
        microseconds=ts.microsecond,
        nanoseconds=ts.nanosecond,
    )


def hours_between(start: pd.Timestamp, end: pd.Timestamp) -> float:
    return (end - start) / pd.Timedelta(hours=1)


def parse_time_value(value: Any) -> int:
    """
    Parse a time-of-day into minutes after midnight.

    Accepts "HH:MM", "HH" or a fractional hour number in [0, 24].
    "24:00" / 24 map to 1440 (end of day). Raises ValueError otherwise.
    """
    if value is None:
        raise ValueError("time is not defined")
    if isinstance(value, bool):
        raise ValueError(f"time is invalid ({value!r})")
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 0 or value > 24:
            raise ValueError(f"time is invalid ({value})")
        return int(math.floor(value * 60 + 0.5))
    if not isinstance(value, str):
        raise ValueError(f"time is invalid ({value!r})")

    s = value.strip()
    if not _TIME_RE.match(s):
        raise ValueError(f"time is invalid ({value})")
    hours_part, _, minutes_part = s.partition(":")
    hours = int(hours_part)
    total = hours * 60 + int(minutes_part or 0)
    if hours > 24 or total > canon.MINUTES_IN_DAY:
        raise ValueError(f"time is invalid ({value})")
    return total


def coerce_float(value: Any) -> Optional[float]:
    """float(value) for numbers and numeric strings; None for anything else."""
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value.strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        return None
    return out
