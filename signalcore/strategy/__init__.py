"""Strategy plugin system.

Public API:
- Strategy: Protocol that all strategies must implement
- BaseStrategy: Shared base class of the built-in strategies
- register_strategy: Decorator to register a strategy class
- create_strategy / create_strategies: Instantiate strategies by name
- list_strategies / get_strategy_class: Registry lookups
- StrategyExecutor: Runs all strategies and fuses their signals

Importing this package auto-registers all built-in strategies.
"""

from signalcore.models.signal import MarketRegime
from signalcore.strategy.protocol import BaseStrategy, Strategy
from signalcore.strategy.registry import (
    create_strategies,
    create_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
)

# Import built-in strategies to trigger auto-registration
import signalcore.strategy.momentum  # noqa: F401
import signalcore.strategy.mean_reversion  # noqa: F401
import signalcore.strategy.breakout  # noqa: F401
import signalcore.strategy.volatility  # noqa: F401

from signalcore.strategy.executor import StrategyExecutor, select_primary


def _check_affinity() -> None:
    covered = set()
    for name in list_strategies():
        covered |= get_strategy_class(name).regimes
    missing = set(MarketRegime) - covered
    if missing:
        raise RuntimeError(
            f"Regimes without a strategy: {sorted(r.value for r in missing)}"
        )


_check_affinity()

__all__ = [
    "Strategy",
    "BaseStrategy",
    "register_strategy",
    "create_strategy",
    "create_strategies",
    "list_strategies",
    "get_strategy_class",
    "StrategyExecutor",
    "select_primary",
]
