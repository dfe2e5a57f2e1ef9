import os
from pathlib import Path

import yaml

_DEFAULT_PATH = Path(__file__).resolve().parent.parent / "constants" / "gestion_locative.yaml"


def _constants_path() -> Path:
    """Read RENTAL_CONSTANTS_PATH at call time (supports env var changes in tests)."""
    return Path(os.getenv("RENTAL_CONSTANTS_PATH", str(_DEFAULT_PATH)))


# Use a simple dict cache keyed by path to support test env var overrides
_cache: dict[str, dict] = {}


def load_constants() -> dict:
    path = _constants_path()
    cache_key = str(path)
    if cache_key in _cache:
        return _cache[cache_key]

    if not path.exists():
        raise FileNotFoundError(f"No rental constants found at {path}")

    with open(path, encoding="utf-8") as f:
        result = yaml.safe_load(f) or {}
    _cache[cache_key] = result
    return result


def get_validation_constants() -> dict:
    return load_constants().get("validation", {})


def get_mode_aliases() -> dict[str, list[str]]:
    return load_constants().get("payment_modes", {}).get("aliases", {})


def get_place_name_corrections() -> list[dict]:
    return load_constants().get("place_name_corrections", [])


def get_importer_constants(variant: str) -> dict:
    importers = load_constants().get("importers", {})
    if variant not in importers:
        raise KeyError(f"Unknown importer variant: {variant}")
    return importers[variant]
