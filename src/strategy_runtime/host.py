"""
Host binding.

The hosting player supplies an interaction context with ``register()``;
the runtime registers a descriptor whose ``get_instance()`` hands back an
InteractionController immediately and finishes initialization on the
running event loop.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from loguru import logger

from config import get_settings

from .controller import InteractionController
from .dom import Element
from .models import HostConfig
from .registry import StrategyRegistry, default_registry


class InteractionContext(Protocol):
    """The host's custom-interaction registration context."""

    def register(self, descriptor: Any) -> None:
        ...


class StrategyRuntime:
    """Plugin descriptor registered with the host."""

    def __init__(self, registry: StrategyRegistry | None = None, **controller_options: Any):
        self.type_identifier = get_settings().type_identifier
        self.registry = registry or default_registry()
        self.controller_options = controller_options
        self.instances: list[InteractionController] = []

    def register(self, context: InteractionContext) -> None:
        logger.info(f"Registering '{self.type_identifier}' with interaction context")
        context.register(self)

    def get_instance(
        self,
        dom: Element,
        config: HostConfig | Mapping[str, Any],
        state: Any = None,
    ) -> InteractionController:
        """
        Create a controller and schedule its initialization.

        Must be called from a running event loop; ``config.onready`` fires
        once initialization settles, successfully or not.
        """
        host_config = config if isinstance(config, HostConfig) else HostConfig.from_mapping(config)
        controller = InteractionController(
            dom, host_config, state, registry=self.registry, **self.controller_options
        )
        controller.start()
        self.instances = [c for c in self.instances if not c.is_disposed]
        self.instances.append(controller)
        return controller


def create_runtime(context: InteractionContext, **options: Any) -> StrategyRuntime:
    """Build a runtime and register it with ``context``."""
    runtime = StrategyRuntime(**options)
    runtime.register(context)
    return runtime
