from __future__ import annotations
from typing import Iterable, Optional

import pandas as pd

from .. import utils
from .schema import TariffBranch


def rate_at(branch: Optional[TariffBranch], ts: pd.Timestamp) -> float:
    """
    Rate of ``branch`` in force at local time ``ts``.

    Tiers are scanned in declaration order and the first tier whose date
    range and weekdays cover ``ts`` is searched interval by interval; the
    first matching interval decides. Nothing matching means the moment is
    unbilled by this branch and the rate is 0.0.
    """
    if branch is None or ts is None or pd.isna(ts):
        return 0.0

    day = ts.date()
    weekday = utils.weekday_index(ts)
    minute = utils.minute_of_day(ts)

    for tier in branch.tiers:
        if not tier.covers(day, weekday):
            continue
        for interval in tier.intervals:
            if interval.contains(weekday, minute):
                return tier.rate
    return 0.0


def rates_at(branch: Optional[TariffBranch], index: Iterable[pd.Timestamp]) -> pd.Series:
    """rate_at evaluated for every timestamp of ``index``."""
    idx = pd.DatetimeIndex(list(index)) if not isinstance(index, pd.DatetimeIndex) else index
    return pd.Series(
        [rate_at(branch, ts) for ts in idx], index=idx, dtype=float, name="rate"
    )
