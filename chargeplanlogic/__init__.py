from . import (
    canon,
    exceptions,
    types,
    utils,
    ingest,
    validate,
    slots,
    tariffs,
    demand,
    optimizer,
    settings,
    planner,
    formats,
    loaders,
)

__all__ = [
    "canon",
    "exceptions",
    "types",
    "utils",
    "ingest",
    "validate",
    "slots",
    "tariffs",
    "demand",
    "optimizer",
    "settings",
    "planner",
    "formats",
    "loaders",
]
