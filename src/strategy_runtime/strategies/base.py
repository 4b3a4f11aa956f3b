"""
Base protocols for interaction strategies.

A strategy module is any module (or object) exposing ``create(context)``.
The instance it returns must provide the core lifecycle below; the
validity and rendering-property hooks are optional and the controller
falls back to permissive defaults when they are missing.
"""

from typing import Any, Protocol

from ..models import StrategyContext


class Strategy(Protocol):
    """Protocol for strategy instances."""

    def mount(self) -> None:
        """Render into the context's mount element and attach listeners."""
        ...

    def get_response(self) -> Any:
        """Current response. Non-string values are JSON-encoded by the controller."""
        ...

    def get_state(self) -> Any:
        """Serializable state blob; set_state(get_state()) must round-trip."""
        ...

    def set_state(self, state: Any) -> None:
        """Restore a blob produced by get_state()."""
        ...

    def dispose(self) -> None:
        """Remove listeners and rendered content."""
        ...


class ValidatingStrategy(Strategy, Protocol):
    """Optional validity hooks."""

    def check_validity(self) -> bool:
        ...

    def get_custom_validity(self) -> str:
        ...


class StrategyModule(Protocol):
    """Factory for strategy instances."""

    def create(self, context: StrategyContext) -> Strategy:
        ...
