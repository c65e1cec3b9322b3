"""Strategy executor: run every strategy and fuse the results.

Each strategy runs in isolation. A strategy that raises SignalEngineError is
excluded from the result and logged; the remaining strategies still produce
a complete StrategyResult with agreement computed over the survivors.
"""

from __future__ import annotations

import logging
from typing import Iterable

from signalcore.errors import SignalEngineError
from signalcore.models.config import EngineConfig
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.signal import MarketRegime, Signal, StrategyResult, StrategySignal
from signalcore.regime import detect_regime
from signalcore.scoring import calculate_risk_score
from signalcore.strategy.protocol import Strategy
from signalcore.strategy.registry import create_strategies

logger = logging.getLogger(__name__)

NO_STRATEGY = "none"
DEFAULT_RISK = 50


class StrategyExecutor:
    """Runs a fixed set of strategies against one asset at a time."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        strategies: Iterable[Strategy] | None = None,
    ):
        self.config = config or EngineConfig()
        if strategies is None:
            strategies = create_strategies(config=self.config)
        self.strategies: list[Strategy] = list(strategies)

    def execute(
        self,
        snapshot: PriceSnapshot,
        window: CandleWindow,
        regime: MarketRegime | None = None,
    ) -> StrategyResult:
        if regime is None:
            regime = detect_regime(snapshot, window, self.config)

        signals: list[StrategySignal] = []
        excluded: list[str] = []
        failures: list[str] = []
        affinity: set[str] = set()

        for strategy in self.strategies:
            try:
                result = strategy.evaluate(snapshot, window)
            except SignalEngineError as e:
                logger.warning(
                    "Strategy %s excluded for %s: %s", strategy.name, snapshot.symbol, e
                )
                excluded.append(strategy.name)
                failures.append(f"{strategy.name}: {e}")
                continue
            signals.append(result)
            if regime in strategy.regimes:
                affinity.add(strategy.name)

        if not signals:
            reasoning = "No strategies executed: " + ("; ".join(failures) or "none configured")
            primary = StrategySignal(
                strategy=NO_STRATEGY,
                signal=Signal.HOLD,
                confidence=0,
                reasoning=reasoning,
            )
            return StrategyResult(
                regime=regime,
                signals=(),
                primary_signal=primary,
                overall_confidence=0,
                risk_score=DEFAULT_RISK,
                agreement=0.0,
                excluded=tuple(excluded),
            )

        primary = select_primary(signals, affinity)
        agreement = sum(
            1 for s in signals if s.signal.direction == primary.signal.direction
        ) / len(signals)

        scoring = self.config.scoring
        overall = (
            scoring.primary_weight * primary.confidence
            + scoring.agreement_weight * agreement * 100
        )
        risk = calculate_risk_score(
            regime,
            primary.confidence,
            _volatility(primary, signals),
            agreement,
            scoring,
        )

        logger.debug(
            "%s regime=%s primary=%s/%s agreement=%.2f excluded=%s",
            snapshot.symbol,
            regime.value,
            primary.strategy,
            primary.signal.value,
            agreement,
            excluded,
        )
        return StrategyResult(
            regime=regime,
            signals=tuple(signals),
            primary_signal=primary,
            overall_confidence=max(0, min(100, round(overall))),
            risk_score=risk,
            agreement=agreement,
            excluded=tuple(excluded),
        )


def select_primary(signals: list[StrategySignal], affinity: set[str]) -> StrategySignal:
    """Highest-confidence signal among regime-matched strategies, else among all.

    Ties keep the earlier signal (strategy registration order).
    """
    candidates = [s for s in signals if s.strategy in affinity] or signals
    return max(candidates, key=lambda s: s.confidence)


def _volatility(primary: StrategySignal, signals: list[StrategySignal]) -> float | None:
    if primary.metrics.volatility_pct is not None:
        return primary.metrics.volatility_pct
    for signal in signals:
        if signal.metrics.volatility_pct is not None:
            return signal.metrics.volatility_pct
    return None
