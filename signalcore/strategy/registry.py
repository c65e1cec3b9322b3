"""Strategy registry.

Usage:
    @register_strategy("momentum")
    class MomentumStrategy(BaseStrategy):
        regimes = frozenset({MarketRegime.TRENDING})
        ...

    strategy = create_strategy("momentum", config=config)
    everything = create_strategies(config=config)
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

logger = logging.getLogger(__name__)

# strategy_name -> strategy_class, in registration order
_REGISTRY: dict[str, type] = {}


def register_strategy(name: str):
    """Class decorator registering a strategy under ``name``.

    The name is also stored on the class as ``cls.name`` so instances report
    the same identifier they were registered with.

    Raises:
        ValueError: If the name is already taken.
    """

    def decorator(cls):
        if name in _REGISTRY:
            raise ValueError(
                f"Strategy '{name}' is already registered by {_REGISTRY[name].__name__}"
            )
        cls.name = name
        _REGISTRY[name] = cls
        logger.debug("Registered strategy: %s -> %s", name, cls.__name__)
        return cls

    return decorator


def get_strategy_class(name: str) -> type:
    """Look up a registered strategy class.

    Raises:
        KeyError: If no strategy is registered under the given name.
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        available = ", ".join(sorted(_REGISTRY)) or "(none)"
        raise KeyError(f"Unknown strategy '{name}'. Available: {available}") from None


def create_strategy(name: str, **kwargs: Any):
    """Instantiate a registered strategy, passing kwargs to its constructor."""
    return get_strategy_class(name)(**kwargs)


def create_strategies(names: Iterable[str] | None = None, **kwargs: Any) -> list:
    """Instantiate several strategies (all registered ones by default)."""
    selected = list(_REGISTRY) if names is None else list(names)
    return [create_strategy(name, **kwargs) for name in selected]


def list_strategies() -> list[str]:
    """Return a sorted list of registered strategy names."""
    return sorted(_REGISTRY)
