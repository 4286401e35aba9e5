"""Market signal producer backed by the CoinGecko markets endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx

from .models import DataPoint, Signal
from .utils import as_float, log_step, round_half_up, signed, token_price, usd_billions

COINGECKO_LABEL = "CoinGecko"
MOVER_THRESHOLD_PCT = 10
MAX_MOVERS = 5


class MarketSource:
    """Derive price, momentum and liquidity signals for ecosystem tokens."""

    def __init__(
        self,
        base_url: str,
        category: str = "solana-ecosystem",
        timeout: float = 15.0,
        user_agent: str = "narrative-scout",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.category = category
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    async def collect(self) -> list[Signal]:
        tokens = await self._fetch_tokens()
        return build_market_signals(tokens, now=datetime.now(timezone.utc))

    async def _fetch_tokens(self) -> list[dict]:
        params = {
            "vs_currency": "usd",
            "category": self.category,
            "order": "market_cap_desc",
            "per_page": 30,
            "page": 1,
            "sparkline": "false",
            "price_change_percentage": "7d",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                response = await client.get(f"{self.base_url}/coins/markets", params=params)
            if response.status_code != 200:
                log_step(f"CoinGecko returned {response.status_code}")
                return []
            payload = response.json()
        except Exception as exc:
            log_step(f"CoinGecko fetch failed: {exc}")
            return []

        return payload if isinstance(payload, list) else []


def _change_7d(token: dict) -> float:
    return as_float(token.get("price_change_percentage_7d_in_currency"))


def _movers(tokens: list[dict], gaining: bool) -> list[dict]:
    if gaining:
        selected = [t for t in tokens if _change_7d(t) > MOVER_THRESHOLD_PCT and t.get("symbol") != "sol"]
    else:
        selected = [t for t in tokens if _change_7d(t) < -MOVER_THRESHOLD_PCT and t.get("symbol") != "sol"]
    selected.sort(key=_change_7d, reverse=gaining)
    return selected[:MAX_MOVERS]


def build_market_signals(tokens: list[dict], now: datetime) -> list[Signal]:
    if not tokens:
        return []

    signals: list[Signal] = []
    sol = next((t for t in tokens if t.get("symbol") == "sol"), None)

    if sol is not None:
        price = as_float(sol.get("current_price"))
        change_24h = as_float(sol.get("price_change_percentage_24h"))
        market_cap = as_float(sol.get("market_cap"))
        volume = as_float(sol.get("total_volume"))
        signals.append(
            Signal(
                source="market",
                category="Market",
                title="SOL Market Position",
                description=(
                    f"SOL at ${price:.2f} with {signed(change_24h)}% (24h). "
                    f"Market cap: {usd_billions(market_cap, digits=1)}. "
                    f"24h volume: {usd_billions(volume)}."
                ),
                data_points=(
                    DataPoint(
                        metric="Price",
                        value=f"${price:.2f}",
                        change=f"{signed(change_24h)}% (24h)",
                        source=COINGECKO_LABEL,
                    ),
                    DataPoint(metric="Market Cap", value=usd_billions(market_cap, digits=1), source=COINGECKO_LABEL),
                    DataPoint(metric="24h Volume", value=usd_billions(volume), source=COINGECKO_LABEL),
                ),
                strength=min(100, 50 + abs(change_24h) * 3),
                timestamp=now,
            )
        )

    gainers = _movers(tokens, gaining=True)
    if len(gainers) >= 2:
        signals.append(
            Signal(
                source="market",
                category="Momentum",
                title=f"{len(gainers)} Solana tokens surging this week",
                description="Notable 7-day gains across the Solana ecosystem: "
                + ", ".join(f"{str(t.get('symbol', '')).upper()} (+{_change_7d(t):.0f}%)" for t in gainers)
                + ".",
                data_points=tuple(
                    DataPoint(
                        metric=t.get("name", ""),
                        value=token_price(as_float(t.get("current_price"))),
                        change=f"+{_change_7d(t):.1f}% (7d)",
                        source=COINGECKO_LABEL,
                    )
                    for t in gainers
                ),
                strength=min(100, sum(_change_7d(t) / 5 for t in gainers)),
                timestamp=now,
            )
        )

    losers = _movers(tokens, gaining=False)
    if len(losers) >= 2:
        signals.append(
            Signal(
                source="market",
                category="Risk",
                title=f"{len(losers)} Solana tokens declining this week",
                description="Notable 7-day declines: "
                + ", ".join(f"{str(t.get('symbol', '')).upper()} ({_change_7d(t):.0f}%)" for t in losers)
                + ".",
                data_points=tuple(
                    DataPoint(
                        metric=t.get("name", ""),
                        value=token_price(as_float(t.get("current_price"))),
                        change=f"{_change_7d(t):.1f}% (7d)",
                        source=COINGECKO_LABEL,
                    )
                    for t in losers
                ),
                strength=min(100, sum(abs(_change_7d(t)) / 5 for t in losers)),
                timestamp=now,
            )
        )

    total_volume = sum(as_float(t.get("total_volume")) for t in tokens)
    sol_volume = as_float(sol.get("total_volume")) if sol else 0.0
    alt_volume = total_volume - sol_volume
    if alt_volume > 0 and total_volume > 0:
        alt_share = alt_volume / total_volume * 100
        diversity = "healthy ecosystem diversity" if alt_share > 40 else "SOL dominance"
        signals.append(
            Signal(
                source="market",
                category="Liquidity",
                title="Solana ecosystem token trading volume",
                description=(
                    f"Total 24h volume across tracked Solana tokens: {usd_billions(total_volume)}. "
                    f"Non-SOL tokens account for {alt_share:.0f}% of volume, indicating {diversity}."
                ),
                data_points=(
                    DataPoint(metric="Total Volume", value=usd_billions(total_volume), source=COINGECKO_LABEL),
                    DataPoint(metric="Alt Token Share", value=f"{alt_share:.0f}%", source=COINGECKO_LABEL),
                ),
                strength=min(100, round_half_up(alt_share * 1.5 + 20)),
                timestamp=now,
            )
        )

    return signals
