"""Protocol interfaces for engine dependency typing."""

from __future__ import annotations

from datetime import date
from typing import Protocol

from .models import AnalysisResult, CollectedSignals, Signal


class SignalProducerInterface(Protocol):
    """Upstream feed turned into signals; failures map to an empty list."""

    async def collect(self) -> list[Signal]: ...


class CollectorInterface(Protocol):
    """Signal collector interface."""

    async def collect(self) -> CollectedSignals: ...


class RendererInterface(Protocol):
    """Renderer interface for report generation."""

    def render(self, run_date: date, result: AnalysisResult) -> str: ...


class WriterInterface(Protocol):
    """Writer interface for report output."""

    def write(self, run_date: date, text: str) -> str: ...
