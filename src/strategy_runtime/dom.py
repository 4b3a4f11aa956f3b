"""
In-process element tree used as the runtime's mount point.

Models just the DOM surface the runtime and its strategies touch:
- attributes, class lists, inline style, children and text
- simple selector lookup (tag, .class, [attr], [attr=value], comma lists)
- event listeners with bubbling, stopPropagation and preventDefault
- click activation for checkbox/radio inputs, typed text for text inputs
- layout metrics (offset / scroll / bounding rect) that a host fills in
- an owning Window that may be embedded in a parent window (frame)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterator

Listener = Callable[["Event"], None]

_COMPOUND_RE = re.compile(
    r"^(?P<tag>[a-zA-Z][\w-]*)?"
    r"(?P<classes>(?:\.[\w-]+)*)"
    r"(?P<attrs>(?:\[[^\]]+\])*)$"
)
_ATTR_RE = re.compile(r"\[\s*([\w-]+)\s*(?:=\s*[\"']?([^\"'\]]*)[\"']?\s*)?\]")


@dataclass
class Rect:
    """Bounding client rect (only the size matters to the runtime)."""

    width: float = 0.0
    height: float = 0.0


class Event:
    """A dispatched event, mirroring the CustomEvent surface."""

    def __init__(
        self,
        type: str,
        detail: Any = None,
        *,
        bubbles: bool = False,
        cancelable: bool = False,
    ):
        self.type = type
        self.detail = detail
        self.bubbles = bubbles
        self.cancelable = cancelable
        self.target: Element | None = None
        self.current_target: Element | None = None
        self.default_prevented = False
        self._propagation_stopped = False

    def prevent_default(self) -> None:
        if self.cancelable:
            self.default_prevented = True

    def stop_propagation(self) -> None:
        self._propagation_stopped = True

    def __repr__(self) -> str:
        return f"Event(type={self.type!r}, detail={self.detail!r})"


@dataclass
class PostedMessage:
    message: Any
    target_origin: str


class Window:
    """
    A browsing context. ``parent`` is set when this window is embedded in a
    frame; a top-level window has no parent.
    """

    def __init__(self, parent: Window | None = None, *, name: str = "window"):
        self.parent = parent
        self.name = name
        self.messages: list[PostedMessage] = []
        self.blocked = False
        self._message_listeners: list[Callable[[PostedMessage], None]] = []

    @property
    def is_embedded(self) -> bool:
        return self.parent is not None and self.parent is not self

    def add_message_listener(self, listener: Callable[[PostedMessage], None]) -> None:
        self._message_listeners.append(listener)

    def post_message(self, message: Any, target_origin: str) -> None:
        """Deliver a message to this window's listeners."""
        if self.blocked:
            raise PermissionError(f"postMessage to {self.name} is blocked")
        posted = PostedMessage(message=message, target_origin=target_origin)
        self.messages.append(posted)
        for listener in list(self._message_listeners):
            listener(posted)


class Element:
    """A node in the mount-point tree."""

    def __init__(
        self,
        tag: str = "div",
        *,
        attributes: dict[str, str] | None = None,
        class_name: str = "",
        text: str = "",
        window: Window | None = None,
    ):
        self.tag = tag.lower()
        self.attributes: dict[str, str] = dict(attributes or {})
        self.classes: list[str] = class_name.split()
        self.text = text
        self.style: dict[str, str] = {}
        self.children: list[Element] = []
        self.parent: Element | None = None
        self.checked = False
        self.value = self.attributes.get("value", "")
        self._window = window
        self._listeners: dict[str, list[Listener]] = {}

        # Layout metrics, filled in by whoever performs layout
        self.offset_width = 0.0
        self.offset_height = 0.0
        self.scroll_width = 0.0
        self.scroll_height = 0.0
        self.rect = Rect()

    def __repr__(self) -> str:
        classes = "".join(f".{c}" for c in self.classes)
        return f"<{self.tag}{classes} children={len(self.children)}>"

    # =========================================================================
    # Tree
    # =========================================================================

    @property
    def window(self) -> Window | None:
        node: Element | None = self
        while node is not None:
            if node._window is not None:
                return node._window
            node = node.parent
        return None

    @property
    def root(self) -> Element:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def append_child(self, child: Element) -> Element:
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: Element) -> None:
        self.children.remove(child)
        child.parent = None

    def clear(self) -> None:
        """Drop all children and own text (innerHTML = '')."""
        for child in list(self.children):
            self.remove_child(child)
        self.text = ""

    def contains(self, other: Element | None) -> bool:
        node = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def iter_descendants(self) -> Iterator[Element]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    @property
    def text_content(self) -> str:
        return self.text + "".join(child.text_content for child in self.children)

    # =========================================================================
    # Attributes and classes
    # =========================================================================

    def get_attribute(self, name: str) -> str | None:
        if name == "class":
            return self.class_name or None
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        if name == "class":
            self.class_name = str(value)
            return
        self.attributes[name] = str(value)
        if name == "value":
            self.value = str(value)

    def has_attribute(self, name: str) -> bool:
        return self.get_attribute(name) is not None

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    @property
    def class_name(self) -> str:
        return " ".join(self.classes)

    @class_name.setter
    def class_name(self, value: str) -> None:
        self.classes = value.split()

    def add_class(self, *names: str) -> None:
        for name in names:
            if name not in self.classes:
                self.classes.append(name)

    def remove_class(self, *names: str) -> None:
        self.classes = [c for c in self.classes if c not in names]

    def has_class(self, name: str) -> bool:
        return name in self.classes

    @property
    def input_type(self) -> str:
        return self.attributes.get("type", "text").lower() if self.tag == "input" else ""

    def get_bounding_client_rect(self) -> Rect:
        return self.rect

    # =========================================================================
    # Selectors
    # =========================================================================

    def matches(self, selector: str) -> bool:
        return any(self._matches_compound(part.strip()) for part in selector.split(","))

    def _matches_compound(self, compound: str) -> bool:
        match = _COMPOUND_RE.match(compound)
        if match is None:
            raise ValueError(f"Unsupported selector: {compound!r}")
        tag = match.group("tag")
        if tag and self.tag != tag.lower():
            return False
        for cls in filter(None, match.group("classes").split(".")):
            if cls not in self.classes:
                return False
        for name, expected in _ATTR_RE.findall(match.group("attrs")):
            actual = self.get_attribute(name)
            if actual is None:
                return False
            if expected and actual != expected:
                return False
        return True

    def query_selector(self, selector: str) -> Element | None:
        return next((el for el in self.iter_descendants() if el.matches(selector)), None)

    def query_selector_all(self, selector: str) -> list[Element]:
        return [el for el in self.iter_descendants() if el.matches(selector)]

    # =========================================================================
    # Events
    # =========================================================================

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def dispatch_event(self, event: Event) -> bool:
        """Dispatch ``event`` at this element. Returns False if it was canceled."""
        event.target = self
        node: Element | None = self
        while node is not None:
            event.current_target = node
            for listener in list(node._listeners.get(event.type, [])):
                listener(event)
            if not event.bubbles or event._propagation_stopped:
                break
            node = node.parent
        event.current_target = None
        return not event.default_prevented

    def click(self) -> None:
        """Simulate a user click, including checkbox/radio activation."""
        event = Event("click", bubbles=True, cancelable=True)
        if not self.dispatch_event(event):
            return
        if self.input_type == "checkbox":
            self.checked = not self.checked
            self.dispatch_event(Event("change", bubbles=True))
        elif self.input_type == "radio" and not self.checked:
            name = self.attributes.get("name")
            if name:
                for other in self.root.query_selector_all(f'input[type="radio"][name="{name}"]'):
                    other.checked = False
            self.checked = True
            self.dispatch_event(Event("change", bubbles=True))

    def type_text(self, value: str) -> None:
        """Simulate the user replacing a text input's value."""
        self.value = value
        self.dispatch_event(Event("input", bubbles=True))
        self.dispatch_event(Event("change", bubbles=True))


def create_mount_point(
    *,
    config_href: str | None = None,
    inline_config: str | None = None,
    embedded: bool = False,
) -> Element:
    """
    Build a mount element the way a host player would.

    Args:
        config_href: value for the ``data-config-href`` attribute
        inline_config: JSON text for an embedded ``script[type=application/json]``
        embedded: place the mount point inside a framed window
    """
    window = Window(parent=Window(name="parent") if embedded else None)
    element = Element("div", class_name="qti-interaction", window=window)
    if config_href:
        element.set_attribute("data-config-href", config_href)
    if inline_config is not None:
        element.append_child(
            Element("script", attributes={"type": "application/json"}, text=inline_config)
        )
    return element
