"""Static instrument reference table and symbol -> base/quote parsing."""

from __future__ import annotations

from pydantic import BaseModel

DEFAULT_QUOTE_CURRENCY = "USD"


class Asset(BaseModel):
    asset_pair: str
    contract_size: float
    pip: float
    tick: float
    base: str
    quote: str


class BaseQuote(BaseModel):
    base: str
    quote: str


def _fx(pair: str, pip: float = 0.0001, tick: float = 0.00001) -> Asset:
    return Asset(
        asset_pair=pair,
        contract_size=100_000,
        pip=pip,
        tick=tick,
        base=pair[:3],
        quote=pair[3:],
    )


ASSETS: list[Asset] = [
    Asset(asset_pair="XAUUSD", contract_size=100, pip=0.1, tick=0.01, base="XAU", quote="USD"),
    Asset(asset_pair="XAGUSD", contract_size=5000, pip=0.01, tick=0.001, base="XAG", quote="USD"),
    _fx("EURUSD"),
    _fx("USDJPY", pip=0.01, tick=0.001),
    _fx("GBPUSD"),
    _fx("AUDUSD"),
    _fx("NZDUSD"),
    _fx("USDCAD"),
    _fx("USDCHF"),
    _fx("EURJPY", pip=0.01, tick=0.001),
    _fx("GBPJPY", pip=0.01, tick=0.001),
    _fx("EURAUD"),
    _fx("EURGBP"),
    _fx("AUDJPY", pip=0.01, tick=0.001),
    _fx("CADJPY", pip=0.01, tick=0.001),
    Asset(asset_pair="BTCUSD", contract_size=1, pip=1.0, tick=0.01, base="BTC", quote="USD"),
    Asset(asset_pair="ETHUSD", contract_size=1, pip=0.1, tick=0.01, base="ETH", quote="USD"),
]

_ASSETS_BY_PAIR = {a.asset_pair: a for a in ASSETS}


def get_asset(symbol: str | None) -> Asset | None:
    if not symbol:
        return None
    return _ASSETS_BY_PAIR.get(symbol.upper().strip())


def get_base_quote(symbol: str | None) -> BaseQuote | None:
    """Resolve base/quote: reference table first, then 6-char and '/' heuristics."""
    if not symbol:
        return None
    s = symbol.upper().strip()

    known = _ASSETS_BY_PAIR.get(s)
    if known:
        return BaseQuote(base=known.base, quote=known.quote)

    # EURUSD, XAUUSD, BTCUSD ...
    if len(s) == 6:
        return BaseQuote(base=s[:3], quote=s[3:])

    if "/" in s:
        parts = s.split("/")
        if len(parts) == 2:
            return BaseQuote(base=parts[0], quote=parts[1])

    return None


def quote_currency_for(symbol: str | None) -> str:
    info = get_base_quote(symbol)
    return info.quote if info else DEFAULT_QUOTE_CURRENCY
