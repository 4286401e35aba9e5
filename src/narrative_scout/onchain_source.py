"""On-chain signal producer backed by DeFi Llama and Solana JSON-RPC."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from .models import DataPoint, Signal
from .utils import as_float, log_step, round_half_up, signed, usd_billions, usd_millions

DEFILLAMA_LABEL = "DeFi Llama"
SOLANA_RPC_LABEL = "Solana RPC"
SLOTS_PER_EPOCH = 432_000
MIN_PROTOCOL_TVL = 1_000_000
MAX_PROTOCOLS = 20
MAX_TOP_MOVERS = 5


@dataclass(slots=True)
class ChainTvl:
    total_tvl: float = 0.0
    protocols: list[dict] = field(default_factory=list)


@dataclass(slots=True)
class ChainStats:
    slot: int = 0
    epoch: int = 0
    tps: int = 0


class OnChainSource:
    """Turn Solana TVL and network throughput into signals."""

    def __init__(
        self,
        defillama_base_url: str,
        rpc_url: str,
        timeout: float = 15.0,
        user_agent: str = "narrative-scout",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.defillama_base_url = defillama_base_url.rstrip("/")
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    async def collect(self) -> list[Signal]:
        """Fetch both feeds concurrently; each degrades to empty on failure."""

        async with self._client() as client:
            tvl, stats = await asyncio.gather(
                self._fetch_tvl(client),
                self._fetch_stats(client),
            )
        return build_onchain_signals(tvl, stats, now=datetime.now(timezone.utc))

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self.transport,
        )

    async def _fetch_tvl(self, client: httpx.AsyncClient) -> ChainTvl:
        try:
            chains_response = await client.get(f"{self.defillama_base_url}/v2/chains")
            chains_response.raise_for_status()
            protocols_response = await client.get(f"{self.defillama_base_url}/protocols")
            protocols_response.raise_for_status()
            return parse_chain_tvl(chains_response.json(), protocols_response.json())
        except Exception as exc:
            log_step(f"DeFi Llama fetch failed: {exc}")
            return ChainTvl()

    async def _fetch_stats(self, client: httpx.AsyncClient) -> ChainStats:
        try:
            slot_response, perf_response = await asyncio.gather(
                client.post(self.rpc_url, json={"jsonrpc": "2.0", "id": 1, "method": "getSlot"}),
                client.post(
                    self.rpc_url,
                    json={
                        "jsonrpc": "2.0",
                        "id": 2,
                        "method": "getRecentPerformanceSamples",
                        "params": [1],
                    },
                ),
            )
            slot_response.raise_for_status()
            perf_response.raise_for_status()
            return parse_chain_stats(slot_response.json(), perf_response.json())
        except Exception as exc:
            log_step(f"Solana RPC fetch failed: {exc}")
            return ChainStats()


def parse_chain_tvl(chains: list[dict], protocols: list[dict]) -> ChainTvl:
    """Pick Solana's TVL and its largest protocols above the TVL floor."""

    solana = next(
        (item for item in chains if str(item.get("name", "")).lower() == "solana"),
        None,
    )
    total_tvl = as_float(solana.get("tvl")) if solana else 0.0

    solana_protocols = [
        item
        for item in protocols
        if "Solana" in (item.get("chains") or []) and as_float(item.get("tvl")) > MIN_PROTOCOL_TVL
    ]
    solana_protocols.sort(key=lambda item: as_float(item.get("tvl")), reverse=True)
    return ChainTvl(total_tvl=total_tvl, protocols=solana_protocols[:MAX_PROTOCOLS])


def parse_chain_stats(slot_payload: dict, perf_payload: dict) -> ChainStats:
    slot = int(slot_payload.get("result") or 0)
    samples = perf_payload.get("result") or []
    tps = 0
    if samples:
        sample = samples[0]
        period = as_float(sample.get("samplePeriodSecs"))
        if period > 0:
            tps = round_half_up(as_float(sample.get("numTransactions")) / period)
    return ChainStats(slot=slot, epoch=slot // SLOTS_PER_EPOCH, tps=tps)


def build_onchain_signals(tvl: ChainTvl, stats: ChainStats, now: datetime) -> list[Signal]:
    """Derive TVL, mover, throughput and sector signals."""

    signals: list[Signal] = []

    if tvl.total_tvl > 0:
        signals.append(
            Signal(
                source="onchain",
                category="DeFi",
                title="Solana Total Value Locked",
                description=(
                    f"Solana ecosystem holds {usd_billions(tvl.total_tvl)} in TVL "
                    f"across {len(tvl.protocols)}+ protocols."
                ),
                data_points=(
                    DataPoint(
                        metric="Total TVL",
                        value=usd_billions(tvl.total_tvl),
                        source=DEFILLAMA_LABEL,
                        url="https://defillama.com/chain/Solana",
                    ),
                ),
                strength=min(100, round_half_up(tvl.total_tvl / 1e10 * 100)),
                timestamp=now,
            )
        )

    movers = [item for item in tvl.protocols if abs(as_float(item.get("change_7d"))) > 10]
    movers.sort(key=lambda item: abs(as_float(item.get("change_7d"))), reverse=True)
    for protocol in movers[:MAX_TOP_MOVERS]:
        name = protocol.get("name") or "Unknown"
        category = protocol.get("category") or "DeFi"
        change_7d = as_float(protocol.get("change_7d"))
        change_1d = as_float(protocol.get("change_1d"))
        protocol_tvl = as_float(protocol.get("tvl"))
        direction = "growing" if change_7d > 0 else "declining"
        signals.append(
            Signal(
                source="onchain",
                category=category,
                title=f"{name} TVL {direction}",
                description=(
                    f"{name} ({protocol.get('category') or ''}) has seen {signed(change_7d)}% "
                    f"TVL change over 7 days. Current TVL: {usd_millions(protocol_tvl)}."
                ),
                data_points=(
                    DataPoint(
                        metric="TVL",
                        value=usd_millions(protocol_tvl),
                        change=f"{signed(change_7d)}% (7d)",
                        source=DEFILLAMA_LABEL,
                    ),
                    DataPoint(metric="24h Change", value=f"{signed(change_1d)}%", source=DEFILLAMA_LABEL),
                ),
                strength=min(100, round_half_up(abs(change_7d) * 2)),
                timestamp=now,
            )
        )

    if stats.tps > 0:
        signals.append(
            Signal(
                source="onchain",
                category="Infrastructure",
                title="Solana Network Throughput",
                description=(
                    f"Solana processing ~{stats.tps:,} TPS at slot {stats.slot:,} "
                    f"(epoch {stats.epoch})."
                ),
                data_points=(
                    DataPoint(metric="TPS", value=stats.tps, source=SOLANA_RPC_LABEL),
                    DataPoint(metric="Current Slot", value=f"{stats.slot:,}", source=SOLANA_RPC_LABEL),
                ),
                strength=min(100, round_half_up(stats.tps / 5000 * 100)),
                timestamp=now,
            )
        )

    signals.extend(_sector_signals(tvl.protocols, now))
    return signals


def _sector_signals(protocols: list[dict], now: datetime) -> list[Signal]:
    sectors: dict[str, list[dict]] = {}
    for protocol in protocols:
        sectors.setdefault(protocol.get("category") or "Other", []).append(protocol)

    signals: list[Signal] = []
    for category, members in sectors.items():
        if len(members) < 3:
            continue
        avg_change = sum(as_float(item.get("change_7d")) for item in members) / len(members)
        if abs(avg_change) <= 5:
            continue

        total_tvl = sum(as_float(item.get("tvl")) for item in members)
        signals.append(
            Signal(
                source="onchain",
                category=category,
                title=f"{category} sector {'expansion' if avg_change > 0 else 'contraction'} on Solana",
                description=(
                    f"{len(members)} {category} protocols averaging {signed(avg_change)}% change "
                    f"over 7 days. Combined TVL: {usd_millions(total_tvl, digits=0)}."
                ),
                data_points=tuple(
                    DataPoint(
                        metric=item.get("name") or "Unknown",
                        value=usd_millions(as_float(item.get("tvl"))),
                        change=f"{signed(as_float(item.get('change_7d')))}%",
                        source=DEFILLAMA_LABEL,
                    )
                    for item in members[:3]
                ),
                strength=min(100, round_half_up(abs(avg_change) * 3 + len(members) * 5)),
                timestamp=now,
            )
        )
    return signals
