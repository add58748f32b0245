from __future__ import annotations
import numpy as np
import pandas as pd
from typing import cast

from . import canon, exceptions


def assert_slots(df: pd.DataFrame) -> None:
    """Raise SlotError unless ``df`` satisfies the SlotFrame invariants."""
    for col in canon.SLOT_COLS:
        if col not in df.columns:
            raise exceptions.SlotError(f"Missing required column '{col}'.")
    if not isinstance(df.index, pd.DatetimeIndex):
        raise exceptions.SlotError("Index must be a DatetimeIndex.")
    tz_index = cast(pd.DatetimeIndex, df.index)
    if tz_index.tz is None:
        raise exceptions.SlotError("Index must be tz-aware.")
    if df.empty:
        return
    if not (tz_index.is_monotonic_increasing and tz_index.is_unique):
        raise exceptions.SlotError("Slot starts must be strictly increasing.")

    dur = df["duration_h"].to_numpy(dtype=float)
    if not np.isfinite(dur).all() or (dur <= 0).any():
        raise exceptions.SlotError("Slot durations must be positive.")
    if (dur > canon.MAX_SLOT_HOURS + canon.EPS_HOURS).any():
        raise exceptions.SlotError(
            f"Slot durations must not exceed {canon.MAX_SLOT_HOURS} h."
        )

    ends = pd.DatetimeIndex(df["end"])
    if (ends[:-1] > tz_index[1:]).any():
        raise exceptions.SlotError("Slots must not overlap.")
