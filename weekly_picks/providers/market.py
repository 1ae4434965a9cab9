"""Price momentum via yfinance, plus a deterministic offline stand-in."""

import pandas as pd
import yfinance as yf

from weekly_picks.core.errors import DataUnavailable
from weekly_picks.core.logger import logger
from weekly_picks.core.retry import with_retries
from weekly_picks.providers.base import MomentumSource


class YFinanceMomentumProvider(MomentumSource):
    """Close-to-close return over the last ``lookback_days`` sessions.

    The raw return is divided by ``scale`` and clipped to ``[-1, 1]``, so with
    the default ``scale=0.10`` a 10% weekly move is full-strength momentum.

    Args:
        lookback_days: Number of trading sessions the return spans.
        scale: Return that maps to momentum ``±1``.
    """

    def __init__(self, lookback_days: int = 5, scale: float = 0.10) -> None:
        self.lookback_days = lookback_days
        self.scale = scale

    def fetch_momentum(self, ticker: str) -> float:
        closes = self._fetch_closes(ticker)
        if len(closes) < self.lookback_days + 1:
            raise DataUnavailable(
                ticker,
                f"need {self.lookback_days + 1} closes, got {len(closes)}",
            )

        window = closes.iloc[-(self.lookback_days + 1):]
        first, last = float(window.iloc[0]), float(window.iloc[-1])
        if first <= 0:
            raise DataUnavailable(ticker, f"non-positive close {first}")

        raw_return = last / first - 1.0
        momentum = max(-1.0, min(1.0, raw_return / self.scale))
        logger.info(
            f"YFinanceMomentumProvider: {ticker} {self.lookback_days}d return "
            f"{raw_return:+.2%} → momentum {momentum:+.3f}"
        )
        return round(momentum, 4)

    @with_retries(max_retries=3, initial_delay=2)
    def _fetch_closes(self, ticker: str) -> pd.Series:
        """Daily closes for roughly the last month, oldest first, NaNs dropped."""
        logger.info(f"Fetching price history for {ticker}")
        hist = yf.Ticker(ticker).history(period="1mo", auto_adjust=True)
        if hist is None or hist.empty or "Close" not in hist.columns:
            logger.warning(f"No price history returned for {ticker}")
            return pd.Series(dtype=float)
        closes = pd.to_numeric(hist["Close"], errors="coerce").dropna()
        return closes.sort_index()


class MockMomentumProvider(MomentumSource):
    """Deterministic per-ticker momentum in ``[-1, 0.9]`` for offline runs."""

    def fetch_momentum(self, ticker: str) -> float:
        code_sum = sum(ord(ch) for ch in ticker)
        return ((code_sum % 20) - 10) / 10


def build_momentum_source(market_config: dict) -> MomentumSource:
    provider = market_config.get("provider", "yfinance")
    if provider == "yfinance":
        return YFinanceMomentumProvider(
            lookback_days=market_config.get("lookback_days", 5),
            scale=market_config.get("scale", 0.10),
        )
    if provider == "mock":
        return MockMomentumProvider()
    raise ValueError(f"Unknown market provider {provider!r}")
