"""
Exception taxonomy for the strategy runtime.

All three fatal errors are caught at the InteractionController boundary and
never reach the host; they end up on ``controller.error`` for diagnostics.
"""


class StrategyRuntimeBaseError(Exception):
    """Base class for all runtime errors."""


class ConfigurationError(StrategyRuntimeBaseError):
    """No configuration source yielded a usable interaction spec."""


class StrategyLoadError(StrategyRuntimeBaseError):
    """A named strategy module could not be located or resolved."""

    def __init__(self, strategy_name: str, reason: str):
        self.strategy_name = strategy_name
        self.reason = reason
        super().__init__(f"Cannot load strategy '{strategy_name}': {reason}")


class StrategyRuntimeError(StrategyRuntimeBaseError):
    """A strategy raised while being created, mounted or rendered."""
