"""News headline sources and the fallback chain used by the weekly pipeline.

Chain per ticker (order from ``news.providers`` in config.yaml):
  1. GoogleNewsProvider — Query A (company name) → Query B (ticker)
  2. NewsDataProvider   — Query A (company name) → Query B (ticker)
  3. No headlines       — the pipeline drops the ticker for this week

Query A keeps only titles that name the company (``is_relevant_title``);
Query B is not title-filtered because the ticker in the query already is the
relevance signal. Every provider keeps only headlines published inside the
requested window.
"""

import os
import time
import urllib.parse
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import feedparser
import requests

from weekly_picks.core.cache import SQLiteCache
from weekly_picks.core.errors import DataUnavailable
from weekly_picks.core.logger import logger
from weekly_picks.core.news_utils import get_long_name, is_relevant_title, strip_suffix
from weekly_picks.models.datatypes import Headline
from weekly_picks.providers.base import HeadlineSource

_NEWSDATA_URL = "https://newsdata.io/api/1/latest"
_GOOGLE_RSS_BASE = "https://news.google.com/rss/search"
_NEWSDATA_PUBDATE_FMT = "%Y-%m-%d %H:%M:%S"

MOCK_HEADLINE = "{ticker} sees positive analyst coverage this week"


# ── GoogleNewsProvider ────────────────────────────────────────────────────────

class GoogleNewsProvider(HeadlineSource):
    """Google News RSS provider.

    Uses the ``after:``/``before:`` search operators for server-side date
    filtering and re-checks the window locally.

    Args:
        cache_instance: Shared SQLite cache (created if not provided).
        alias_dir: Directory of the ticker → company-name alias cache.
        max_headlines: Cap on headlines returned per ticker.
    """

    def __init__(
        self,
        cache_instance: Optional[SQLiteCache] = None,
        alias_dir: str = "output",
        max_headlines: int = 50,
    ) -> None:
        self.cache = cache_instance or SQLiteCache()
        self.alias_dir = alias_dir
        self.max_headlines = max_headlines

    def fetch_headlines(self, ticker: str, window_start: date, window_end: date) -> List[Headline]:
        long_name = get_long_name(ticker, self.alias_dir)
        search_name = strip_suffix(long_name)
        window = f"after:{window_start.isoformat()} before:{(window_end + timedelta(days=1)).isoformat()}"

        # Query A: company name, title filter on
        q_a = f'"{search_name}" (stock OR shares) {window}'
        entries = self._try_query(ticker, q_a, window_start, window_end, "name")
        headlines = _select_headlines(
            entries, ticker, long_name, window_start, window_end,
            title_filter=True, limit=self.max_headlines,
        )
        if headlines:
            return headlines

        # Query B: ticker symbol, no title filter
        q_b = f'"{ticker}" stock {window}'
        entries = self._try_query(ticker, q_b, window_start, window_end, "ticker")
        return _select_headlines(
            entries, ticker, long_name, window_start, window_end,
            title_filter=False, limit=self.max_headlines,
        )

    def _try_query(
        self,
        ticker: str,
        query: str,
        window_start: date,
        window_end: date,
        cache_sfx: str,
    ) -> List[Dict[str, str]]:
        cache_key = f"gnews_{ticker}_{window_start}_{window_end}_{cache_sfx}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"GoogleNewsProvider: cache hit [{cache_sfx}] for {ticker}")
            return cached

        entries = self._fetch_rss(ticker, query)
        self.cache.set(cache_key, entries)
        return entries

    def _fetch_rss(self, ticker: str, query: str) -> List[Dict[str, str]]:
        """Fetch and parse Google News RSS into normalised entry dicts."""
        encoded = urllib.parse.quote(query)
        url = f"{_GOOGLE_RSS_BASE}?q={encoded}&hl=en-US&gl=US&ceid=US:en"
        logger.info(f"GoogleNewsProvider: fetching [{ticker}] q={query!r}")

        try:
            feed = feedparser.parse(url)
        except Exception as exc:
            raise DataUnavailable(ticker, f"Google News RSS failed: {exc}") from exc

        if feed.bozo and not feed.entries:
            raise DataUnavailable(
                ticker, f"Google News RSS unreadable: {getattr(feed, 'bozo_exception', 'unknown')}"
            )
        if feed.bozo:
            logger.warning(
                f"GoogleNewsProvider: RSS parse warning for {ticker}: "
                f"{getattr(feed, 'bozo_exception', 'unknown')}"
            )

        entries = []
        for entry in feed.entries:
            title = (entry.get("title") or "").strip()
            if not title:
                continue
            pub_parsed = entry.get("published_parsed")
            published_at = (
                datetime(*pub_parsed[:6], tzinfo=timezone.utc).isoformat()
                if pub_parsed else ""
            )
            source_raw = entry.get("source") or {}
            source = (
                source_raw.get("title") or "Google News"
                if isinstance(source_raw, dict)
                else str(source_raw) or "Google News"
            )
            entries.append({
                "title": title,
                "source": source,
                "url": entry.get("link") or "",
                "published_at": published_at,
            })

        logger.info(f"GoogleNewsProvider: {len(entries)} entries for {ticker}")
        return entries


# ── NewsDataProvider ──────────────────────────────────────────────────────────

class NewsDataProvider(HeadlineSource):
    """NewsData.io ``/api/1/latest`` provider.

    Free tier: 200 credits/day, so raw responses are cached per ticker and
    window.

    Args:
        api_key: NewsData.io API key (``NEWSDATA_API_KEY``).
        cache_instance: Shared SQLite cache (created if not provided).
        alias_dir: Directory of the ticker → company-name alias cache.
        max_headlines: Cap on headlines returned per ticker.
        request_delay: Seconds slept before each API call.
    """

    def __init__(
        self,
        api_key: str,
        cache_instance: Optional[SQLiteCache] = None,
        alias_dir: str = "output",
        max_headlines: int = 50,
        request_delay: float = 1.0,
    ) -> None:
        self.api_key = api_key
        self.cache = cache_instance or SQLiteCache()
        self.alias_dir = alias_dir
        self.max_headlines = max_headlines
        self.request_delay = request_delay
        if not api_key:
            logger.warning("NewsDataProvider: NEWSDATA_API_KEY is not set — provider disabled")

    def fetch_headlines(self, ticker: str, window_start: date, window_end: date) -> List[Headline]:
        if not self.api_key:
            raise DataUnavailable(ticker, "NEWSDATA_API_KEY not set")

        long_name = get_long_name(ticker, self.alias_dir)
        search_name = strip_suffix(long_name)

        # Query A: company name, title filter on
        entries = self._try_query(ticker, f'"{search_name}"', window_start, window_end, "name")
        headlines = _select_headlines(
            entries, ticker, long_name, window_start, window_end,
            title_filter=True, limit=self.max_headlines,
        )
        if headlines:
            return headlines

        # Query B: ticker symbol, no title filter
        entries = self._try_query(ticker, f'"{ticker}"', window_start, window_end, "ticker")
        return _select_headlines(
            entries, ticker, long_name, window_start, window_end,
            title_filter=False, limit=self.max_headlines,
        )

    def _try_query(
        self,
        ticker: str,
        q: str,
        window_start: date,
        window_end: date,
        cache_sfx: str,
    ) -> List[Dict[str, str]]:
        cache_key = f"newsdata_{ticker}_{window_start}_{window_end}_{cache_sfx}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"NewsDataProvider: cache hit [{cache_sfx}] for {ticker}")
            return cached

        entries = [_normalise_newsdata(r) for r in self._call_api(ticker, q)]
        self.cache.set(cache_key, entries)
        return entries

    def _call_api(self, ticker: str, q: str) -> List[dict]:
        logger.info(f"NewsDataProvider: fetching for {ticker} (q={q})")
        params = {
            "apikey": self.api_key,
            "q": q,
            "language": "en",
            "country": "us",
            "category": "business",
            "removeduplicate": 1,
        }
        if self.request_delay:
            time.sleep(self.request_delay)
        try:
            resp = requests.get(_NEWSDATA_URL, params=params, timeout=15)
        except requests.RequestException as exc:
            raise DataUnavailable(ticker, f"NewsData request failed: {exc}") from exc

        if resp.status_code != 200:
            raise DataUnavailable(
                ticker, f"NewsData HTTP {resp.status_code}: {resp.text[:200]}"
            )
        return resp.json().get("results") or []


def _normalise_newsdata(article: dict) -> Dict[str, str]:
    pub_str = article.get("pubDate") or ""
    try:
        published_at = (
            datetime.strptime(pub_str, _NEWSDATA_PUBDATE_FMT)
            .replace(tzinfo=timezone.utc)
            .isoformat()
        )
    except ValueError:
        published_at = ""
    return {
        "title": (article.get("title") or "").strip(),
        "source": article.get("source_id") or "NewsData",
        "url": article.get("link") or "",
        "published_at": published_at,
    }


# ── MockNewsProvider ──────────────────────────────────────────────────────────

class MockNewsProvider(HeadlineSource):
    """One synthetic, sentiment-neutral headline per ticker for offline runs."""

    def fetch_headlines(self, ticker: str, window_start: date, window_end: date) -> List[Headline]:
        return [
            Headline(
                title=MOCK_HEADLINE.format(ticker=ticker),
                source="MockNews",
                url="https://example.com",
                published_at=f"{window_end.isoformat()}T12:00:00+00:00",
            )
        ]


# ── Fallback chain ────────────────────────────────────────────────────────────

class FallbackHeadlineSource(HeadlineSource):
    """Try each named source in order; the first non-empty result wins.

    A source that raises is logged and skipped. If every source raised the
    ticker is reported as :class:`DataUnavailable`; if they merely found
    nothing, an empty list is returned.
    """

    def __init__(self, sources: Sequence[Tuple[str, HeadlineSource]]) -> None:
        self.sources = list(sources)

    def fetch_headlines(self, ticker: str, window_start: date, window_end: date) -> List[Headline]:
        failures = []
        for name, source in self.sources:
            try:
                headlines = source.fetch_headlines(ticker, window_start, window_end)
            except Exception as exc:
                logger.error(f"HEADLINES [{ticker}] {name} raised: {exc}")
                failures.append(name)
                continue
            if headlines:
                logger.info(f"HEADLINES [{ticker}] source={name} | {len(headlines)} headlines")
                return headlines

        if failures and len(failures) == len(self.sources):
            raise DataUnavailable(ticker, f"all headline sources failed ({', '.join(failures)})")

        logger.warning(
            f"HEADLINES [{ticker}] window={window_start}..{window_end} | "
            f"reason=COVERAGE_GAP — no headline survived filters from any source"
        )
        return []


def build_headline_source(news_config: dict, output_dir: str = "output") -> HeadlineSource:
    """Build the configured fallback chain (``news.providers`` order)."""
    cache = SQLiteCache(
        news_config.get("cache_path", os.path.join(output_dir, ".cache.db")),
        ttl_hours=news_config.get("cache_ttl_hours"),
    )
    cache.purge_expired()
    max_headlines = news_config.get("max_headlines", 50)

    sources: List[Tuple[str, HeadlineSource]] = []
    for name in news_config.get("providers", ["google"]):
        if name == "google":
            sources.append((name, GoogleNewsProvider(
                cache_instance=cache, alias_dir=output_dir, max_headlines=max_headlines,
            )))
        elif name == "newsdata":
            sources.append((name, NewsDataProvider(
                api_key=os.getenv("NEWSDATA_API_KEY", ""), cache_instance=cache,
                alias_dir=output_dir, max_headlines=max_headlines,
            )))
        elif name == "mock":
            sources.append((name, MockNewsProvider()))
        else:
            raise ValueError(f"Unknown news provider {name!r}")
    return FallbackHeadlineSource(sources)


# ── helpers ───────────────────────────────────────────────────────────────────

def _select_headlines(
    entries: List[Dict[str, str]],
    ticker: str,
    long_name: str,
    window_start: date,
    window_end: date,
    title_filter: bool,
    limit: int,
) -> List[Headline]:
    """Filter entries to the window (and optionally by title), newest first."""
    seen = set()
    candidates = []
    for entry in entries:
        title = (entry.get("title") or "").strip()
        if not title or title.lower() in seen:
            continue
        published = _parse_published(entry.get("published_at", ""))
        if published is None or not (window_start <= published.date() <= window_end):
            continue
        if title_filter and not is_relevant_title(title, long_name, ticker):
            logger.debug(f"skipped (title): {title!r}")
            continue
        seen.add(title.lower())
        candidates.append((published, Headline(
            title=title,
            source=entry.get("source") or "",
            url=entry.get("url") or "",
            published_at=published.isoformat(),
        )))

    candidates.sort(key=lambda c: c[0], reverse=True)
    return [h for _, h in candidates[:limit]]


def _parse_published(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
