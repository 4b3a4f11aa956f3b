"""
Configuration-driven interaction runtime.

Given a mount point and a host configuration, resolves an interaction spec,
loads the named strategy, mounts it and bridges response, state and
validity back to the host.
"""

from .config_resolver import ConfigResolver, ConfigSource
from .controller import ControllerState, InteractionController
from .dom import Element, Event, Window, create_mount_point
from .errors import (
    ConfigurationError,
    StrategyLoadError,
    StrategyRuntimeBaseError,
    StrategyRuntimeError,
)
from .host import InteractionContext, StrategyRuntime, create_runtime
from .models import HostConfig, InteractionSpec, StrategyContext
from .registry import StrategyRegistry, default_registry
from .resize import Dimensions, ResizeChannel, ResizeNotifier

__all__ = [
    "ConfigResolver",
    "ConfigSource",
    "ConfigurationError",
    "ControllerState",
    "Dimensions",
    "Element",
    "Event",
    "HostConfig",
    "InteractionContext",
    "InteractionController",
    "InteractionSpec",
    "ResizeChannel",
    "ResizeNotifier",
    "StrategyContext",
    "StrategyLoadError",
    "StrategyRegistry",
    "StrategyRuntime",
    "StrategyRuntimeBaseError",
    "StrategyRuntimeError",
    "Window",
    "create_mount_point",
    "create_runtime",
    "default_registry",
]
