from __future__ import annotations
from typing import Final, Dict, Tuple

INDEX_NAME: Final[str] = "start"
SLOT_COLS: Final[list[str]] = ["end", "duration_h", "spot_price"]
DEFAULT_TZ: Final[str] = "Europe/Helsinki"

MINUTES_IN_DAY: Final[int] = 24 * 60
MIN_SLOT_HOURS: Final[float] = 0.15
MAX_SLOT_HOURS: Final[float] = 6.0
DEFAULT_SLOT_HOURS: Final[float] = 1.0
EPS_HOURS: Final[float] = 1e-6
EPS_KWH: Final[float] = 1e-6
EPS_KW: Final[float] = 1e-6

# sähkövero, fixed per kWh regardless of timing
ELECTRICITY_TAX_EUR_PER_KWH: Final[float] = 0.027

# Price feed field aliases, tried in order
PAYLOAD_LIST_KEYS: Final[Tuple[str, ...]] = ("prices", "data")
TIMESTAMP_KEYS: Final[Tuple[str, ...]] = (
    "startTime",
    "start_time",
    "startDate",
    "start_date",
    "startDateTime",
    "start_date_time",
    "dateTime",
    "DateTime",
    "time",
    "timestamp",
    "Timestamp",
    "hourUTC",
    "hour_local",
)
PRICE_KEYS: Final[Tuple[str, ...]] = (
    "price",
    "priceEurMwh",
    "price_eur_mwh",
    "priceEurMWh",
    "price_cents",
    "priceCents",
    "value",
    "unitPrice",
    "unit_price",
    "Price",
    "PriceWithTax",
    "PriceWithoutTax",
    "priceWithTax",
    "priceWithoutTax",
)
UNIT_KEYS: Final[Tuple[str, ...]] = ("unit", "priceUnit")

# Raw price magnitudes above these are taken as EUR/MWh and c/kWh
MWH_SCALE_THRESHOLD: Final[float] = 500.0
CENTS_SCALE_THRESHOLD: Final[float] = 9.0

# Tariff document
TRANSFER_BRANCH: Final[str] = "siirto"
DEMAND_BRANCH: Final[str] = "teho"
DEFAULT_UNITS: Final[Dict[str, str]] = {
    TRANSFER_BRANCH: "EUR_PER_KWH",
    DEMAND_BRANCH: "EUR_PER_KW",
}
TIER_RATE_KEYS: Final[Tuple[str, ...]] = ("rate", "value", "price", "amount")
TIER_START_DATE_KEYS: Final[Tuple[str, ...]] = (
    "startDate",
    "start_date",
    "start",
    "validFrom",
)
TIER_END_DATE_KEYS: Final[Tuple[str, ...]] = ("endDate", "end_date", "end", "validUntil")
TIER_WEEKDAY_KEYS: Final[Tuple[str, ...]] = ("weekdays", "days", "dayOfWeek")
INTERVAL_START_KEYS: Final[Tuple[str, ...]] = ("start", "startTime", "from", "begin")
INTERVAL_END_KEYS: Final[Tuple[str, ...]] = ("end", "endTime", "to", "finish")
INTERVAL_DAY_KEYS: Final[Tuple[str, ...]] = ("days", "day", "weekdays", "dayOfWeek")
OVERRIDE_RATE_KEYS: Final[Tuple[str, ...]] = (
    "rate",
    "value",
    "amount",
    "price",
    "ratePerKw",
    "rate_per_kw",
)

# Pricing manifest
MANIFEST_PATH_KEYS: Final[Tuple[str, ...]] = ("configPath", "config", "file")
MANIFEST_FILE: Final[str] = "manifest.json"
DEFAULT_CONFIG_FILE: Final[str] = "helen.json"

# Weekday indices, Sunday = 0
ALL_DAYS: Final[frozenset[int]] = frozenset(range(7))
WORKDAYS: Final[frozenset[int]] = frozenset({1, 2, 3, 4, 5})
WEEKEND: Final[frozenset[int]] = frozenset({0, 6})

DAY_GROUPS: Final[Dict[str, frozenset[int]]] = {
    "weekday": WORKDAYS,
    "weekdays": WORKDAYS,
    "weekend": WEEKEND,
    "weekends": WEEKEND,
}

DAY_NAME_TO_INDEX: Final[Dict[str, int]] = {
    # English
    "sun": 0,
    "sunday": 0,
    "mon": 1,
    "monday": 1,
    "tue": 2,
    "tuesday": 2,
    "wed": 3,
    "wednesday": 3,
    "thu": 4,
    "thursday": 4,
    "fri": 5,
    "friday": 5,
    "sat": 6,
    "saturday": 6,
    # Finnish
    "su": 0,
    "sunnuntai": 0,
    "ma": 1,
    "maanantai": 1,
    "ti": 2,
    "tiistai": 2,
    "ke": 3,
    "keskiviikko": 3,
    "to": 4,
    "torstai": 4,
    "pe": 5,
    "perjantai": 5,
    "la": 6,
    "lauantai": 6,
}
