"""Error taxonomy for the weekly picks pipeline and query path.

``DataUnavailable`` is recovered per ticker, ``PersistenceFailure`` aborts a
run, ``Unauthorized`` rejects a picks query. A missing subscription is not an
error: the query path answers with a locked response instead.
"""


class WeeklyPicksError(Exception):
    """Base class for all weekly picks errors."""


class DataUnavailable(WeeklyPicksError):
    """A provider could not return data for one ticker."""

    def __init__(self, ticker: str, message: str) -> None:
        self.ticker = ticker
        super().__init__(f"{ticker}: {message}")


class PersistenceFailure(WeeklyPicksError):
    """Writing or reading Week / Pick / subscription rows failed."""


class Unauthorized(WeeklyPicksError):
    """No resolvable user identity for a picks query."""
