"""TwelveData price API wrapper: quote currency -> USD conversion multiplier."""

from __future__ import annotations

import time

import httpx
import structlog
from pydantic import BaseModel
from tenacity import retry, stop_after_attempt, wait_exponential

from trade_journal.config import Settings

logger = structlog.get_logger()

# Currencies quoted as XXX/USD; everything else is quoted as USD/XXX.
DIRECT_PAIRS = {"EUR", "GBP", "AUD", "NZD", "XAU", "XAG", "BTC", "ETH", "SOL", "BNB"}


class FxQuote(BaseModel):
    rate: float
    pair: str


class Conversion(BaseModel):
    amount_quote: float
    amount_usd: float | None = None
    rate_used: float | None = None
    pair_used: str | None = None


class FxRateClient:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._cache: dict[str, tuple[FxQuote, float]] = {}

    async def get_rate_to_usd(self, quote_currency: str) -> float | None:
        """Multiplier converting 1 unit of ``quote_currency`` to USD, or None."""
        quote = await self.get_quote(quote_currency)
        return quote.rate if quote else None

    async def __call__(self, quote_currency: str) -> float | None:
        return await self.get_rate_to_usd(quote_currency)

    async def get_quote(self, quote_currency: str) -> FxQuote | None:
        code = quote_currency.upper()
        if code == "USD":
            return FxQuote(rate=1.0, pair="USD")

        cached = self._check_cache(code)
        if cached is not None:
            return cached

        if not self.settings.TWELVEDATA_API_KEY:
            logger.debug("fx_api_key_missing", currency=code)
            return None

        is_direct = code in DIRECT_PAIRS
        symbol = f"{code}/USD" if is_direct else f"USD/{code}"

        price = await self._fetch_price(symbol)
        if price is None:
            return None

        quote = FxQuote(rate=price if is_direct else 1.0 / price, pair=symbol)
        self._cache[code] = (quote, time.monotonic())
        return quote

    async def convert_quote_to_usd(self, amount_quote: float, quote_currency: str) -> Conversion:
        if not quote_currency or quote_currency.upper() == "USD":
            return Conversion(
                amount_quote=amount_quote, amount_usd=amount_quote, rate_used=1.0, pair_used="USD"
            )
        quote = await self.get_quote(quote_currency)
        if quote is None:
            return Conversion(amount_quote=amount_quote)
        return Conversion(
            amount_quote=amount_quote,
            amount_usd=amount_quote * quote.rate,
            rate_used=quote.rate,
            pair_used=quote.pair,
        )

    def _check_cache(self, code: str) -> FxQuote | None:
        entry = self._cache.get(code)
        if entry is None:
            return None
        quote, fetched_at = entry
        if time.monotonic() - fetched_at >= self.settings.FX_CACHE_TTL_SECONDS:
            return None
        return quote

    async def _fetch_price(self, symbol: str) -> float | None:
        """Fetch and validate a price; any failure degrades to None."""
        try:
            data = await self._call_api_with_retry(symbol)
        except Exception as e:
            logger.warning("fx_rate_fetch_failed", symbol=symbol, error=str(e))
            return None

        if not isinstance(data, dict):
            logger.warning("fx_unexpected_payload", symbol=symbol, payload_type=type(data).__name__)
            return None
        if data.get("status") == "error" or data.get("code"):
            logger.warning("fx_api_error", symbol=symbol, message=data.get("message", "unknown"))
            return None

        try:
            price = float(data["price"])
        except (KeyError, TypeError, ValueError):
            logger.warning("fx_price_missing", symbol=symbol)
            return None
        if price <= 0:
            return None
        return price

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=10), reraise=True)
    async def _call_api_with_retry(self, symbol: str) -> dict:
        """Low-level HTTP GET with retry on transient errors."""
        async with httpx.AsyncClient() as http:
            response = await http.get(
                f"{self.settings.TWELVEDATA_BASE_URL}/price",
                params={"symbol": symbol, "apikey": self.settings.TWELVEDATA_API_KEY},
                timeout=self.settings.FX_HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            return response.json()
