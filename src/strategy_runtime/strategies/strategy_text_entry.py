"""
Text entry strategy.

The default strategy for property-derived configuration. Renders an
optional prompt and one text input; the response is the entered string.
Validity requires a non-blank value that fully matches ``props.patternMask``
when one is given.
"""

from __future__ import annotations

import re
from typing import Any

from loguru import logger

from ..dom import Element, Event
from ..errors import StrategyRuntimeError
from ..models import StrategyContext


class TextEntryStrategy:
    """Single free-text response."""

    def __init__(self, ctx: StrategyContext):
        self.dom = ctx.mount_point
        self.props = ctx.spec.props
        self.value = ""
        self.input: Element | None = None
        self._request_resize = ctx.request_resize

        mask = self.props.get("patternMask")
        try:
            self.pattern = re.compile(mask) if mask else None
        except re.error as e:
            raise StrategyRuntimeError(f"Invalid patternMask {mask!r}: {e}") from e

    def mount(self) -> None:
        self.dom.clear()
        container = Element("div", class_name="qti-text-entry-interaction")
        if self.props.get("prompt"):
            container.append_child(Element("div", class_name="qti-prompt", text=self.props["prompt"]))

        attributes = {"type": "text"}
        if self.props.get("placeholder"):
            attributes["placeholder"] = str(self.props["placeholder"])
        if self.props.get("expectedLength"):
            attributes["size"] = str(self.props["expectedLength"])
        self.input = container.append_child(
            Element("input", class_name="qti-text-entry", attributes=attributes)
        )
        self.input.add_event_listener("input", self._on_input)
        self.dom.append_child(container)
        self._request_resize()

    def _on_input(self, event: Event) -> None:
        self.value = event.target.value

    def get_response(self) -> str:
        return self.value

    def get_state(self) -> dict[str, Any]:
        return {"value": self.value}

    def set_state(self, state: Any) -> None:
        if state is None:
            return
        self.value = str(state.get("value", "")) if isinstance(state, dict) else str(state)
        if self.input is not None:
            self.input.value = self.value

    def check_validity(self) -> bool:
        return self.get_custom_validity() == ""

    def get_custom_validity(self) -> str:
        if not self.value.strip():
            return "Please enter a response"
        if self.pattern is not None and not self.pattern.fullmatch(self.value):
            return self.props.get("patternMaskMessage") or "Response does not match the required format"
        return ""

    def set_rendering_properties(self, properties: dict[str, Any]) -> None:
        logger.debug(f"Text entry rendering properties updated: {properties}")

    def dispose(self) -> None:
        if self.input is not None:
            self.input.remove_event_listener("input", self._on_input)
            self.input = None
        self.dom.clear()


def create(ctx: StrategyContext) -> TextEntryStrategy:
    """Create a new text entry strategy instance."""
    return TextEntryStrategy(ctx)
