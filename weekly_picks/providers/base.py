"""Abstract base classes for data providers."""

from abc import ABC, abstractmethod
from datetime import date
from typing import List

from weekly_picks.models.datatypes import Headline


class UniverseProvider(ABC):
    """Abstract interface for the set of tickers scanned each week."""

    @abstractmethod
    def get_tickers(self) -> List[str]:
        """
        Return the ticker universe in scan order.

        Returns:
            List[str]: Ticker symbols. Order matters: it breaks score ties.
        """
        pass


class HeadlineSource(ABC):
    """Abstract interface for fetching company-specific news headlines."""

    @abstractmethod
    def fetch_headlines(self, ticker: str, window_start: date, window_end: date) -> List[Headline]:
        """
        Fetch headlines about a ticker published within a window.

        Args:
            ticker (str): The ticker symbol.
            window_start (date): First day of the window (inclusive).
            window_end (date): Last day of the window (inclusive).

        Returns:
            List[Headline]: Possibly empty list of headlines.

        Raises:
            DataUnavailable: The source could not be queried.
        """
        pass


class MomentumSource(ABC):
    """Abstract interface for recent price momentum."""

    @abstractmethod
    def fetch_momentum(self, ticker: str) -> float:
        """
        Fetch the recent price-trend signal for a ticker.

        Args:
            ticker (str): The ticker symbol.

        Returns:
            float: Momentum, expected in ``[-1.0, 1.0]``.

        Raises:
            DataUnavailable: No price history could be obtained.
        """
        pass
