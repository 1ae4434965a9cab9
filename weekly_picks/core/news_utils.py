"""Utility helpers for headline search — company-name resolution and relevance."""

import json
import os
import re
from typing import Optional

import yfinance as yf

from weekly_picks.core.logger import logger

_CACHE_FILENAME = "ticker_aliases.json"

# Legal-form suffixes only; descriptive words like 'Group' or 'Platforms'
# are part of how headlines name the company.
CORPORATE_SUFFIXES = [
    "incorporated", "inc", "inc.", "corporation", "corp", "corp.",
    "company", "co", "co.", "limited", "ltd", "ltd.", "plc",
]


def strip_suffix(long_name: str) -> str:
    """Remove trailing corporate suffixes from a company long name.

    Examples:
        ``"Apple Inc."`` → ``"Apple"``
        ``"Meta Platforms, Inc."`` → ``"Meta Platforms"``
        ``"JPMorgan Chase & Co."`` → ``"JPMorgan Chase"``

    Args:
        long_name (str): Full company name from yfinance.

    Returns:
        str: Name with the trailing suffix removed.
    """
    pattern = r"[\s,]+(" + "|".join(re.escape(s) for s in CORPORATE_SUFFIXES) + r")[\s.]*$"
    stripped = re.sub(pattern, "", long_name, flags=re.IGNORECASE)
    return stripped.rstrip(" ,&").strip()


def is_relevant_title(title: str, long_name: str, ticker: str = "") -> bool:
    """Return True if the title names the company or ticker as a standalone phrase.

    A match glued to other letters or digits (``"Pineapple"`` for ``"Apple"``)
    is rejected, so the phrase has to stand as its own word or words.

    Args:
        title (str): Headline text.
        long_name (str): Full company long name (e.g. ``"Apple Inc."``).
        ticker (str): Ticker symbol, an optional extra search term.

    Returns:
        bool: ``True`` if the title is about the company.
    """
    title_lower = title.lower()

    def _standalone_match(text: str, phrase: str) -> bool:
        # lookarounds instead of \b so phrases ending in "." still match
        pattern = r'(?<![a-z0-9])' + re.escape(phrase) + r'(?![a-z0-9])'
        return re.search(pattern, text) is not None

    if long_name and _standalone_match(title_lower, long_name.lower()):
        return True

    stripped = strip_suffix(long_name).lower() if long_name else ""
    if stripped and _standalone_match(title_lower, stripped):
        return True

    if ticker and _standalone_match(title_lower, ticker.lower()):
        return True

    return False


def _load_aliases(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _save_aliases(path: str, data: dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def get_long_name(ticker: str, cache_dir: str = "output") -> str:
    """Return the company longName for a ticker.

    Resolution order:
      1. ``<cache_dir>/ticker_aliases.json`` — zero network cost.
      2. ``yf.Ticker(ticker).info["longName"]`` — one network call, result cached.
      3. The raw ticker — when yfinance fails or returns an empty name.

    Args:
        ticker (str): Ticker symbol (e.g. ``"AAPL"``).
        cache_dir (str): Directory holding the alias cache file.

    Returns:
        str: Company long name, or the ticker as fallback.
    """
    os.makedirs(cache_dir, exist_ok=True)
    path = os.path.join(cache_dir, _CACHE_FILENAME)
    aliases = _load_aliases(path)

    if ticker in aliases:
        return aliases[ticker]

    long_name = _fetch_long_name_from_yfinance(ticker)
    aliases[ticker] = long_name
    _save_aliases(path, aliases)
    logger.info(f"get_long_name cached: {ticker} → {long_name}")
    return long_name


def _fetch_long_name_from_yfinance(ticker: str) -> str:
    try:
        info: dict = yf.Ticker(ticker).info
        long_name: Optional[str] = (info.get("longName") or "").strip()
        if long_name:
            return long_name
        logger.warning(f"get_long_name: empty longName for {ticker}, using ticker")
    except Exception as exc:
        logger.warning(f"get_long_name: yfinance raised for {ticker}: {exc}, using ticker")
    return ticker
