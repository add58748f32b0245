import pandas as pd
import pytest

from helpers import H, TZ, price_frame, tier


@pytest.fixture
def now():
    return H - pd.Timedelta(hours=1)


@pytest.fixture
def three_slot_prices():
    return price_frame(H, [0.05, 0.10, 0.02])


@pytest.fixture
def day_prices():
    """24 hourly prices: expensive daytime, cheap 02:00-05:00 next night."""
    start = pd.Timestamp("2025-03-10 12:00", tz=TZ)
    prices = [0.12] * 12 + [0.08, 0.06, 0.01, 0.01, 0.01, 0.01, 0.04] + [0.15] * 5
    return price_frame(start, prices)


@pytest.fixture
def tariff_doc():
    """Raw tariff document: day/night transfer fee and a weekday demand fee."""
    return {
        "siirto": {
            "unit": "EUR_PER_KWH",
            "tiers": [
                tier(0.0406, [{"start": "07:00", "end": "22:00"}], id="day"),
                tier(0.0245, [{"start": "22:00", "end": "07:00"}], id="night"),
            ],
        },
        "teho": {
            "unit": "EUR_PER_KW",
            "tiers": [
                tier(3.0, [{"start": "07:00", "end": "21:00"}], weekdays="weekdays", id="peak"),
            ],
        },
    }


@pytest.fixture
def all_hours_demand_doc():
    return {
        "siirto": {"tiers": [tier(0.0, [{"start": "00:00", "end": "00:00"}])]},
        "teho": {"tiers": [tier(3.0, [{"start": "00:00", "end": "00:00"}], id="flat")]},
    }


@pytest.fixture
def manifest_doc():
    return {
        "default": "helen",
        "pricings": [
            {"id": "helen", "name": "Helen Sähköverkko", "configPath": "helen.json"},
            {"id": "caruna", "name": "Caruna", "config": "caruna.json"},
        ],
    }
