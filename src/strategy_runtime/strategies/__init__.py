"""
Interaction strategies.

Each strategy lives in its own ``strategy_<name>`` module exposing a
module-level ``create(context)`` factory. Modules are imported on demand
by the StrategyRegistry, never eagerly from here.
"""

from .base import Strategy, StrategyModule, ValidatingStrategy

__all__ = [
    "Strategy",
    "StrategyModule",
    "ValidatingStrategy",
]
