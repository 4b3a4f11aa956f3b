"""
Content-size negotiation.

A resize is announced through four independent channels, always in this order:
1. style   - min-height/height set on the mount element
2. event   - bubbling, cancelable ``pci-content-resize`` event on the mount element
3. callback - hostConfig.on_content_resize(width, height), when provided
4. frame   - {type: "resize", ...} posted to the parent window, when embedded

Each channel fails on its own without affecting the others, and notify()
never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from loguru import logger

from config import get_settings

from .dom import Element, Event
from .models import HostConfig

RESIZE_EVENT = "pci-content-resize"
CONTENT_SELECTOR = ".qti-choice-interaction"


class ResizeChannel(str, Enum):
    STYLE = "style"
    EVENT = "event"
    CALLBACK = "callback"
    FRAME = "frame"


CHANNEL_ORDER = (
    ResizeChannel.STYLE,
    ResizeChannel.EVENT,
    ResizeChannel.CALLBACK,
    ResizeChannel.FRAME,
)


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float

    def to_dict(self) -> dict[str, float]:
        return {"width": self.width, "height": self.height}


def measure(container: Element, buffer: float) -> Dimensions:
    """
    Largest of the offset, scroll and bounding-rect sizes, with ``buffer``
    added to the height.
    """
    rect = container.get_bounding_client_rect()
    height = max(container.offset_height, container.scroll_height, rect.height)
    width = max(container.offset_width, container.scroll_width, rect.width)
    return Dimensions(width=width, height=height + buffer)


def _px(value: float) -> str:
    return f"{value:g}px"


class ResizeNotifier:
    """Announces content size changes for one mount point's host."""

    def __init__(
        self,
        host_config: HostConfig | None = None,
        *,
        channels: Iterable[ResizeChannel | str] | None = None,
        buffer: float | None = None,
        runtime_id: str | None = None,
        target_origin: str | None = None,
    ):
        settings = get_settings()
        self.host_config = host_config
        enabled = channels if channels is not None else settings.get_resize_channels()
        self.channels: set[ResizeChannel] = set()
        for name in enabled:
            try:
                self.channels.add(ResizeChannel(name))
            except ValueError:
                logger.warning(f"Ignoring unknown resize channel: {name!r}")
        self.buffer = buffer if buffer is not None else settings.resize_buffer_px
        self.runtime_id = runtime_id or settings.runtime_id
        self.target_origin = target_origin or settings.frame_target_origin

    def measure(self, container: Element) -> Dimensions:
        return measure(container, self.buffer)

    def notify_content(
        self, mount_point: Element | None, container: Element | None = None
    ) -> Dimensions | None:
        """Measure the content container (default: the choice area or the mount) and notify."""
        if mount_point is None:
            return None
        try:
            target = container or mount_point.query_selector(CONTENT_SELECTOR) or mount_point
            dimensions = self.measure(target)
        except Exception as e:
            logger.debug(f"Could not measure content: {e}")
            return None
        logger.debug(f"Content requires size: {dimensions.to_dict()}")
        self.notify(mount_point, dimensions)
        return dimensions

    def notify(self, mount_point: Element | None, dimensions: Dimensions) -> None:
        if mount_point is None:
            return
        for channel in CHANNEL_ORDER:
            if channel not in self.channels:
                continue
            try:
                self._send(channel, mount_point, dimensions)
            except Exception as e:
                logger.debug(f"Resize channel '{channel.value}' failed: {e}")

    def _send(self, channel: ResizeChannel, mount_point: Element, dimensions: Dimensions) -> None:
        if channel is ResizeChannel.STYLE:
            mount_point.style["min-height"] = _px(dimensions.height)
            mount_point.style["height"] = _px(dimensions.height)

        elif channel is ResizeChannel.EVENT:
            mount_point.dispatch_event(
                Event(RESIZE_EVENT, dimensions.to_dict(), bubbles=True, cancelable=True)
            )

        elif channel is ResizeChannel.CALLBACK:
            callback = self.host_config.on_content_resize if self.host_config else None
            if callable(callback):
                callback(dimensions.width, dimensions.height)

        elif channel is ResizeChannel.FRAME:
            window = mount_point.window
            if window is not None and window.is_embedded:
                window.parent.post_message(self.frame_message(dimensions), self.target_origin)

    def frame_message(self, dimensions: Dimensions) -> dict[str, Any]:
        return {
            "type": "resize",
            "source": self.runtime_id,
            "dimensions": dimensions.to_dict(),
        }
