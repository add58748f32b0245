from __future__ import annotations
import json
import logging
import re
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urljoin

import pandas as pd
import requests

from . import canon, ingest
from .exceptions import SourceError
from .tariffs.manifest import parse_manifest
from .tariffs.schema import CostConfiguration, PricingEntry, PricingManifest
from .tariffs.validators import parse_cost_configuration

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_TIMEOUT_S = 30

Source = Union[str, Path]


def is_url(source: Any) -> bool:
    return isinstance(source, str) and bool(_URL_RE.match(source.strip()))


def resolve_config_source(
    source: Union[PricingEntry, Source, None], base: Source
) -> str:
    """
    Where to read a tariff document from.

    Absolute http(s) URLs are used as-is; other paths are resolved against
    ``base`` (a directory or a URL). No source means the bundled default
    document under ``base``.
    """
    if isinstance(source, PricingEntry):
        path = source.config_path
    elif isinstance(source, Path):
        path = str(source)
    elif isinstance(source, str) and source.strip():
        path = source.strip()
    else:
        path = canon.DEFAULT_CONFIG_FILE

    if is_url(path):
        return path
    if is_url(base):
        base_url = str(base)
        return urljoin(base_url if base_url.endswith("/") else base_url + "/", path)
    return str(Path(base) / path)


def read_json(source: Source, *, timeout: float = DEFAULT_TIMEOUT_S) -> Any:
    """Load a JSON document from a URL or a local file. Raises SourceError."""
    if is_url(source):
        try:
            response = requests.get(str(source), timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Request for %s failed: %s", source, e)
            raise SourceError(f"Fetching {source} failed: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            raise SourceError(f"{source} did not return valid JSON.") from e

    try:
        with open(source, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except OSError as e:
        logger.warning("Reading %s failed: %s", source, e)
        raise SourceError(f"Reading {source} failed: {e}") from e
    except ValueError as e:
        raise SourceError(f"{source} is not valid JSON.") from e


def fetch_spot_prices(
    url: str, *, tz: str = canon.DEFAULT_TZ, timeout: float = DEFAULT_TIMEOUT_S
) -> pd.DataFrame:
    """
    Fetch one spot price feed and parse it into a price frame.

    Single request, no retry and no alternative endpoints; an empty result
    is reported as a SourceError like any other unusable response.
    """
    df = ingest.from_payload(read_json(url, timeout=timeout), tz=tz)
    if df.empty:
        logger.warning("Spot price feed %s returned no usable prices", url)
        raise SourceError(f"Spot price feed {url} returned no usable prices.")
    logger.debug("Received %d spot prices from %s", len(df), url)
    return df


def load_manifest(
    source: Optional[Source] = None,
    *,
    base: Source = ".",
    timeout: float = DEFAULT_TIMEOUT_S,
) -> PricingManifest:
    if source is None:
        source = resolve_config_source(canon.MANIFEST_FILE, base)
    return parse_manifest(read_json(source, timeout=timeout))


def load_cost_configuration(
    source: Union[PricingEntry, Source, None] = None,
    *,
    base: Source = ".",
    timeout: float = DEFAULT_TIMEOUT_S,
) -> CostConfiguration:
    """Read and validate a tariff document; see tariffs.validators."""
    location = resolve_config_source(source, base)
    return parse_cost_configuration(read_json(location, timeout=timeout))
