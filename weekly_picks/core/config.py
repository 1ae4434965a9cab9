"""Configuration module for loading project settings and environment variables."""

import copy
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

load_dotenv()

NEWS_PROVIDERS = ("google", "newsdata", "mock")
MARKET_PROVIDERS = ("yfinance", "mock")

DEFAULT_UNIVERSE = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "META", "TSLA", "NVDA", "JPM", "XOM", "UNH",
]

DEFAULTS: Dict[str, Any] = {
    "universe": DEFAULT_UNIVERSE,
    "top_n": 5,
    "output_dir": "output",
    "database": {"path": "output/weekly_picks.db"},
    "pipeline": {"max_workers": 1},
    "news": {
        "providers": ["google", "newsdata"],
        "max_headlines": 50,
        "cache_path": "output/.cache.db",
        "cache_ttl_hours": 24,
    },
    "market": {"provider": "yfinance", "lookback_days": 5, "scale": 0.10},
}


def default_config_path() -> str:
    return os.getenv("WEEKLY_PICKS_CONFIG", "config.yaml")


def load_config(config_path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load and validate configuration from a YAML file.

    Args:
        config_path (str | Path | None): Path to the configuration file.
            Defaults to ``$WEEKLY_PICKS_CONFIG`` or ``config.yaml``.

    Returns:
        Dict[str, Any]: The validated configuration with defaults filled in.
    """
    config_file = Path(config_path or default_config_path())
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found at {config_file}")

    with open(config_file, "r", encoding="utf-8") as file:
        config_data = yaml.safe_load(file)

    if not config_data:
        raise ValueError(f"Configuration file {config_file} is empty or invalid.")

    return validate_config(config_data)


def validate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``raw`` over :data:`DEFAULTS` and reject unusable values.

    Raises:
        ValueError: On any configuration error (e.g. ``top_n <= 0``).
    """
    if not isinstance(raw, dict):
        raise ValueError("Configuration must be a mapping")

    config = _merge(DEFAULTS, raw)

    universe = config["universe"]
    if not isinstance(universe, list) or not universe:
        raise ValueError("universe must be a non-empty list of tickers")
    config["universe"] = [str(t).strip().upper() for t in universe if str(t).strip()]
    if not config["universe"]:
        raise ValueError("universe must contain at least one non-blank ticker")

    top_n = config["top_n"]
    if isinstance(top_n, bool) or not isinstance(top_n, int) or top_n <= 0:
        raise ValueError(f"top_n must be a positive integer, got {top_n!r}")

    max_workers = config["pipeline"]["max_workers"]
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise ValueError(f"pipeline.max_workers must be >= 1, got {max_workers!r}")

    providers = config["news"]["providers"]
    if not providers:
        raise ValueError("news.providers must list at least one provider")
    unknown = [p for p in providers if p not in NEWS_PROVIDERS]
    if unknown:
        raise ValueError(f"Unknown news providers {unknown}; expected one of {NEWS_PROVIDERS}")
    ttl = config["news"]["cache_ttl_hours"]
    if ttl is not None and ttl <= 0:
        raise ValueError("news.cache_ttl_hours must be positive (or null to never expire)")

    market = config["market"]
    if market["provider"] not in MARKET_PROVIDERS:
        raise ValueError(
            f"Unknown market provider {market['provider']!r}; expected one of {MARKET_PROVIDERS}"
        )
    if market["lookback_days"] <= 0:
        raise ValueError("market.lookback_days must be positive")
    if market["scale"] <= 0:
        raise ValueError("market.scale must be positive")

    return config


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive dict merge; ``override`` wins, inputs are left untouched."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
