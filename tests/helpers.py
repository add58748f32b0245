"""Shared constants and builders for price frames and raw tariff tiers."""

import pandas as pd

TZ = "Europe/Helsinki"

# Monday, well clear of DST changes
H = pd.Timestamp("2025-03-10 10:00", tz=TZ)

ALL_YEAR = {"startDate": "2025-01-01", "endDate": "2025-12-31"}


def price_frame(start, prices, freq="1h"):
    """Price frame with one point per ``freq`` from ``start``."""
    idx = pd.date_range(start, periods=len(prices), freq=freq, name="start")
    return pd.DataFrame({"spot_price": [float(p) for p in prices]}, index=idx)


def tier(rate, intervals, weekdays="0,1,2,3,4,5,6", **extra):
    return {"rate": rate, **ALL_YEAR, "weekdays": weekdays, "intervals": intervals, **extra}
