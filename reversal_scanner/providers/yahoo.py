from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional

import aiohttp

from ..models import Candle
from .base import ProviderError, sort_candles, validate_candles

log = logging.getLogger("yahoo")

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart"

INTERVALS = {"1m": "1m", "5m": "5m", "15m": "15m", "1h": "1h", "1d": "1d"}

# Approximate candles per trading day (6.5h session).
CANDLES_PER_DAY = {"1m": 390.0, "5m": 78.0, "15m": 26.0, "1h": 6.5, "1d": 1.0}

RANGES = (
    (1, "1d"),
    (5, "5d"),
    (30, "1mo"),
    (90, "3mo"),
    (180, "6mo"),
    (365, "1y"),
    (730, "2y"),
)


def range_for(timeframe: str, limit: int) -> str:
    """Smallest Yahoo range covering `limit` candles, with a 50% buffer for gaps."""
    per_day = CANDLES_PER_DAY.get(timeframe)
    days = math.ceil(limit / per_day) if per_day else 5
    days = math.ceil(days * 1.5)
    for max_days, name in RANGES:
        if days <= max_days:
            return name
    return "5y"


def parse_chart(payload: Dict[str, Any], limit: int) -> List[Candle]:
    """chart.result[0] -> candles; rows with missing OHLC are dropped."""
    try:
        result = payload["chart"]["result"][0]
        timestamps = result.get("timestamp") or []
        quote = result["indicators"]["quote"][0]
    except (KeyError, IndexError, TypeError) as e:
        err = (payload.get("chart") or {}).get("error") if isinstance(payload, dict) else None
        raise ProviderError(f"Invalid Yahoo Finance payload: {err or e!r}") from None

    opens = quote.get("open") or []
    highs = quote.get("high") or []
    lows = quote.get("low") or []
    closes = quote.get("close") or []
    vols = quote.get("volume") or []

    out: List[Candle] = []
    for i, ts in enumerate(timestamps):
        try:
            o, h, l, c = opens[i], highs[i], lows[i], closes[i]
        except IndexError:
            break
        if o is None or h is None or l is None or c is None:
            continue
        v = vols[i] if i < len(vols) and vols[i] is not None else 0
        out.append(Candle(
            timestamp_ms=int(ts) * 1000,
            open=float(o),
            high=float(h),
            low=float(l),
            close=float(c),
            volume=float(v),
        ))

    if not validate_candles(out):
        raise ProviderError("Invalid data received from Yahoo Finance")
    return sort_candles(out)[-int(limit):]


class YahooProvider:
    name = "yahoo"

    def __init__(
        self,
        *,
        timeout_s: int = 10,
        max_retries: int = 4,
        backoff_s: float = 0.8,
        conn_limit: int = 20,
        conn_limit_per_host: int = 6,
    ):
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.backoff_s = backoff_s
        self.conn_limit = conn_limit
        self.conn_limit_per_host = conn_limit_per_host
        self._session: Optional[aiohttp.ClientSession] = None

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.timeout_s,
            connect=min(10, self.timeout_s),
            sock_read=max(5, int(self.timeout_s * 0.75)),
        )

    def _connector(self) -> aiohttp.TCPConnector:
        return aiohttp.TCPConnector(
            limit=self.conn_limit,
            limit_per_host=self.conn_limit_per_host,
            ttl_dns_cache=300,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout(),
                connector=self._connector(),
                headers={"User-Agent": "Mozilla/5.0 (reversal-scanner)"},
            )
        return self._session

    async def _get_json(self, url: str, params: Dict[str, str], symbol: str, timeframe: str) -> Dict[str, Any]:
        sess = await self._get_session()
        backoff = float(self.backoff_s)
        last_err: Optional[BaseException] = None
        for attempt in range(1, int(self.max_retries) + 1):
            try:
                async with sess.get(url, params=params) as resp:
                    if resp.status == 429:
                        retry_after = resp.headers.get("Retry-After")
                        sleep_s = float(retry_after) if (retry_after and retry_after.isdigit()) else backoff
                        log.warning(
                            "rate_limited symbol=%s tf=%s attempt=%d/%d sleep=%.1fs",
                            symbol,
                            timeframe,
                            attempt,
                            self.max_retries,
                            sleep_s,
                        )
                        await asyncio.sleep(sleep_s)
                        backoff = min(backoff * 2.0, 20.0)
                        last_err = ProviderError(f"Yahoo Finance rate limited: {symbol}")
                        continue

                    if resp.status != 200:
                        txt = await resp.text()
                        raise ProviderError(f"Yahoo Finance API error: {resp.status} {txt[:300]}")

                    return await resp.json(content_type=None)

            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_err = e
                if attempt >= int(self.max_retries):
                    break
                log.warning(
                    "timeout_or_client_err attempt=%d/%d symbol=%s tf=%s backoff=%.1fs err=%s",
                    attempt,
                    self.max_retries,
                    symbol,
                    timeframe,
                    backoff,
                    e,
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2.0, 20.0)

        raise ProviderError(f"Yahoo Finance request failed for {symbol}: {last_err!r}")

    async def fetch_candles(self, symbol: str, timeframe: str, limit: int = 200) -> List[Candle]:
        interval = INTERVALS.get(timeframe)
        if interval is None:
            raise ProviderError(f"Unsupported timeframe: {timeframe!r}")
        params = {"interval": interval, "range": range_for(timeframe, limit)}
        payload = await self._get_json(f"{CHART_URL}/{symbol}", params, symbol, timeframe)
        candles = parse_chart(payload, limit)
        log.debug("fetched symbol=%s tf=%s candles=%d range=%s", symbol, timeframe, len(candles), params["range"])
        return candles

    async def is_available(self) -> bool:
        try:
            await self.fetch_candles("AAPL", "1d", 1)
            return True
        except (ProviderError, asyncio.TimeoutError, aiohttp.ClientError) as e:
            log.warning("unavailable err=%s", e)
            return False
