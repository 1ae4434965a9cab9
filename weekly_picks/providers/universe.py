"""Ticker universe taken from configuration."""

from typing import List, Sequence

from weekly_picks.core.config import DEFAULT_UNIVERSE
from weekly_picks.providers.base import UniverseProvider


class StaticUniverseProvider(UniverseProvider):
    """Fixed universe; duplicates are dropped, first occurrence wins."""

    def __init__(self, tickers: Sequence[str] = DEFAULT_UNIVERSE) -> None:
        self.tickers = list(dict.fromkeys(tickers))

    def get_tickers(self) -> List[str]:
        return list(self.tickers)
