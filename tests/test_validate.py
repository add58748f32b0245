"""Validation tests to enforce slot frame invariants."""

import pandas as pd
import pytest
from chargeplanlogic import slots, validate
from chargeplanlogic.exceptions import SlotError

from helpers import H, TZ


def _slots(starts, durations, prices=None):
    idx = pd.DatetimeIndex(starts, name="start")
    ends = [s + pd.Timedelta(hours=d) for s, d in zip(starts, durations)]
    return pd.DataFrame(
        {
            "end": pd.DatetimeIndex(ends),
            "duration_h": [float(d) for d in durations],
            "spot_price": prices or [0.1] * len(starts),
        },
        index=idx,
    )


def test_assert_slots_accepts_normalised_output(three_slot_prices, now):
    validate.assert_slots(slots.normalise_slots(three_slot_prices, now=now, tz=TZ))


def test_assert_slots_rejects_non_monotonic():
    """Starts must be strictly increasing; shuffled rows should fail."""
    df = _slots([H + pd.Timedelta(hours=1), H], [1, 1])
    with pytest.raises(SlotError):
        validate.assert_slots(df)


def test_assert_slots_rejects_duplicate_starts():
    df = _slots([H, H], [1, 1])
    with pytest.raises(SlotError):
        validate.assert_slots(df)


def test_assert_slots_rejects_overlap():
    """A 2 h slot followed by one starting an hour later overlaps."""
    df = _slots([H, H + pd.Timedelta(hours=1)], [2, 1])
    with pytest.raises(SlotError, match="overlap"):
        validate.assert_slots(df)


@pytest.mark.parametrize("duration", [0.0, -1.0, 7.0])
def test_assert_slots_rejects_bad_durations(duration):
    df = _slots([H], [1])
    df["duration_h"] = duration
    with pytest.raises(SlotError):
        validate.assert_slots(df)


def test_assert_slots_rejects_naive_index():
    df = _slots([H, H + pd.Timedelta(hours=1)], [1, 1])
    df.index = df.index.tz_localize(None)
    with pytest.raises(SlotError, match="tz-aware"):
        validate.assert_slots(df)


def test_assert_slots_rejects_missing_column():
    df = _slots([H], [1]).drop(columns=["end"])
    with pytest.raises(SlotError, match="end"):
        validate.assert_slots(df)
