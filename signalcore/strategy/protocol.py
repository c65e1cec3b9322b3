"""Strategy protocol and shared base class.

A strategy turns one price snapshot plus its candle window into a
StrategySignal. Strategies are synchronous and pure; indicator failures
propagate as SignalEngineError and are handled by the executor.
"""

from __future__ import annotations

from typing import ClassVar, Protocol, runtime_checkable

from signalcore.models.config import EngineConfig, IndicatorConfig
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.metrics import BaseMetrics, EmptyMetrics
from signalcore.models.signal import MarketRegime, Signal, StrategySignal


@runtime_checkable
class Strategy(Protocol):
    """Protocol that all signal strategies must implement."""

    @property
    def name(self) -> str:
        """Registered strategy identifier (e.g., 'momentum')."""
        ...

    @property
    def regimes(self) -> frozenset[MarketRegime]:
        """Regimes this strategy is designed for (its affinity)."""
        ...

    def evaluate(self, snapshot: PriceSnapshot, window: CandleWindow) -> StrategySignal:
        """Score the asset and return a signal.

        Raises:
            SignalEngineError: If an indicator cannot be computed from the window.
        """
        ...


class BaseStrategy:
    """Common plumbing for the built-in strategies."""

    name: ClassVar[str] = ""
    regimes: ClassVar[frozenset[MarketRegime]] = frozenset()

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    @property
    def periods(self) -> IndicatorConfig:
        return self.config.indicators

    def evaluate(self, snapshot: PriceSnapshot, window: CandleWindow) -> StrategySignal:
        raise NotImplementedError

    def build_signal(
        self,
        signal: Signal,
        confidence: float,
        reasoning: str,
        metrics: BaseMetrics | None = None,
    ) -> StrategySignal:
        return StrategySignal(
            strategy=self.name,
            signal=signal,
            confidence=max(0, min(100, round(confidence))),
            reasoning=reasoning,
            metrics=metrics if metrics is not None else EmptyMetrics(),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
