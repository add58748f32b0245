from __future__ import annotations
from typing import Any, Mapping, Optional

from .. import canon
from ..exceptions import ManifestError
from .schema import PricingEntry, PricingManifest


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _entry(raw: Any, index: int, errors: list[str]) -> Optional[PricingEntry]:
    if not isinstance(raw, Mapping):
        errors.append(f"Pricing manifest: entry {index + 1} is missing.")
        return None

    pricing_id = _text(raw.get("id"))
    if not pricing_id:
        errors.append(f"Pricing manifest: entry {index + 1} has no id.")
        return None

    name = _text(raw.get("name"))
    if not name:
        errors.append(f"Pricing manifest: entry {pricing_id} has no name.")
        return None

    path = next(
        (_text(raw[k]) for k in canon.MANIFEST_PATH_KEYS if isinstance(raw.get(k), str)),
        "",
    )
    if not path:
        errors.append(f"Pricing manifest: entry {pricing_id} has no configuration path.")
        return None

    return PricingEntry(id=pricing_id, name=name, config_path=path)


def parse_manifest(payload: Any) -> PricingManifest:
    """
    Validate a pricing manifest ``{default, pricings: [{id, name, configPath}]}``.

    Every entry problem is collected; any problem rejects the manifest
    with a single ManifestError. A missing ``default`` falls back to the
    first listed entry.
    """
    if not isinstance(payload, Mapping):
        raise ManifestError(
            "Pricing manifest unavailable: structure is missing.",
            ["structure is missing."],
        )

    errors: list[str] = []
    raw_entries = payload.get("pricings") if isinstance(payload.get("pricings"), list) else []
    entries = [_entry(raw, i, errors) for i, raw in enumerate(raw_entries)]
    entries = [e for e in entries if e is not None]

    if not entries:
        errors.append("Pricing manifest: no pricings defined.")

    default_id = _text(payload.get("default")) or (entries[0].id if entries else "")
    if not default_id:
        errors.append("Pricing manifest: default pricing is missing.")

    if errors:
        raise ManifestError(
            "Pricing manifest failed to load: " + " ".join(errors), errors
        )
    return PricingManifest(default_id=default_id, pricings=tuple(entries))
