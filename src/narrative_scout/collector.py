"""Signal collector combining the upstream producers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from .interfaces import SignalProducerInterface
from .models import CollectedSignals, Signal
from .utils import log_step


@dataclass(frozen=True, slots=True)
class ProducerSlot:
    """A producer and the source labels it stands for when non-empty."""

    name: str
    producer: SignalProducerInterface
    labels: tuple[str, ...]


class SignalCollector:
    """Run producers concurrently and merge their signals by strength."""

    def __init__(self, slots: list[ProducerSlot]):
        self.slots = slots

    async def collect(self) -> CollectedSignals:
        results = await asyncio.gather(*(self._safe_collect(slot) for slot in self.slots))

        signals: list[Signal] = []
        sources: list[str] = []
        for slot, items in zip(self.slots, results):
            signals.extend(items)
            if items:
                sources.extend(label for label in slot.labels if label not in sources)

        # sorted() is stable, so ties keep producer order.
        signals = sorted(signals, key=lambda signal: signal.strength, reverse=True)
        return CollectedSignals(signals=signals, sources=sources)

    async def _safe_collect(self, slot: ProducerSlot) -> list[Signal]:
        try:
            items = list(await slot.producer.collect())
        except Exception as exc:
            log_step(f"Producer failed: {slot.name}: {exc}")
            return []

        log_step(f"Producer completed: {slot.name}, signals={len(items)}")
        return items
