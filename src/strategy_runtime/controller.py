"""
Interaction controller: one per host interaction instance.

Lifecycle:
    CREATED -> CONFIG_RESOLVING -> STRATEGY_LOADING -> INSTANTIATING -> MOUNTED -> READY
    any pre-mount state -> ERROR
    any state -> DISPOSED

The host's ``onready(instance, state)`` fires exactly once per controller,
whether initialization succeeded, failed or was overtaken by dispose().
A controller without a mounted strategy answers every host call with a
permissive default.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Any, Callable

from loguru import logger

from config import get_settings

from .config_resolver import ConfigResolver
from .dom import Element
from .errors import StrategyRuntimeBaseError, StrategyRuntimeError
from .models import HostConfig, InteractionSpec, StrategyContext
from .registry import StrategyRegistry, default_registry
from .resize import ResizeNotifier
from .strategies.base import Strategy

MARKUP_SELECTOR = ".qti-interaction-markup"


class ControllerState(str, Enum):
    CREATED = "created"
    CONFIG_RESOLVING = "config_resolving"
    STRATEGY_LOADING = "strategy_loading"
    INSTANTIATING = "instantiating"
    MOUNTED = "mounted"
    READY = "ready"
    ERROR = "error"
    DISPOSED = "disposed"


class InteractionController:
    """
    Bridges a host interaction to a dynamically loaded strategy.

    Usage:
        controller = InteractionController(mount_point, host_config, prior_state)
        await controller.initialize()      # or controller.start() for a task
        controller.get_response()
        controller.dispose()
    """

    def __init__(
        self,
        mount_point: Element,
        host_config: HostConfig,
        prior_state: Any = None,
        *,
        registry: StrategyRegistry | None = None,
        resolver: ConfigResolver | None = None,
        notifier: ResizeNotifier | None = None,
        settle_delay: float | None = None,
        feedback_delay: float | None = None,
    ):
        settings = get_settings()
        self.type_identifier = settings.type_identifier
        self.mount_point: Element | None = mount_point
        self.host_config = host_config
        self.prior_state = prior_state

        self.registry = registry or default_registry()
        self.resolver = resolver or ConfigResolver()
        self._owns_resolver = resolver is None
        self.notifier = notifier or ResizeNotifier(host_config)
        self.settle_delay = (
            settle_delay if settle_delay is not None else settings.resize_settle_delay_seconds
        )
        self.feedback_delay = (
            feedback_delay if feedback_delay is not None else settings.feedback_resize_delay_seconds
        )

        self.state = ControllerState.CREATED
        self.spec: InteractionSpec | None = None
        self.context: StrategyContext | None = None
        self.strategy: Strategy | None = None
        self.error: StrategyRuntimeBaseError | None = None
        self.ready: asyncio.Task[None] | None = None

        self._ready_notified = False
        self._timers: list[asyncio.TimerHandle] = []

    def __repr__(self) -> str:
        name = self.spec.strategy_name if self.spec else None
        return f"<InteractionController state={self.state.value} strategy={name!r}>"

    @property
    def is_disposed(self) -> bool:
        return self.state is ControllerState.DISPOSED

    def _transition(self, new_state: ControllerState) -> None:
        logger.debug(f"Controller {self.state.value} -> {new_state.value}")
        self.state = new_state

    # =========================================================================
    # Initialization
    # =========================================================================

    def start(self) -> asyncio.Task[None]:
        """Schedule initialize() on the running loop and return the task."""
        if self.ready is None:
            self.ready = asyncio.ensure_future(self.initialize())
        return self.ready

    async def initialize(self) -> None:
        """Drive CREATED -> MOUNTED, then notify the host. Never raises runtime errors."""
        if self.is_disposed:
            logger.info("Disposed before initialization; skipping to ready")
            self._notify_ready()
            return
        if self.state is not ControllerState.CREATED:
            logger.warning(f"initialize() called in state {self.state.value}; ignoring")
            return

        try:
            await self._initialize()
        except StrategyRuntimeBaseError as e:
            logger.error(f"Initialization failed: {e}")
            self._fail(e)
        except Exception as e:
            logger.exception("Unexpected failure during initialization")
            self._fail(StrategyRuntimeError(str(e)))
        finally:
            if self._owns_resolver:
                await self.resolver.close()

        self._notify_ready()

    async def _initialize(self) -> None:
        self._transition(ControllerState.CONFIG_RESOLVING)
        spec = await self.resolver.resolve(self.host_config, self.mount_point)
        if self.is_disposed:
            logger.info("Disposed during config resolution; discarding result")
            return
        self.spec = spec

        self._transition(ControllerState.STRATEGY_LOADING)
        logger.info(f"Loading strategy: {spec.strategy_name}")
        module = await self.registry.load(spec.strategy_name)
        if self.is_disposed:
            logger.info("Disposed during strategy load; discarding result")
            return

        self._transition(ControllerState.INSTANTIATING)
        self.context = StrategyContext(
            mount_point=self._strategy_root(),
            host_config=self.host_config,
            spec=spec,
            prior_state=self.prior_state,
            request_resize=self.request_resize,
        )
        try:
            strategy = module.create(self.context)
            if callable(getattr(strategy, "mount", None)):
                strategy.mount()
            else:
                logger.error(f"Strategy '{spec.strategy_name}' has no mount()")
            self.strategy = strategy
            self._transition(ControllerState.MOUNTED)

            if self.prior_state:
                strategy.set_state(self.prior_state)
        except StrategyRuntimeBaseError:
            raise
        except Exception as e:
            raise StrategyRuntimeError(
                f"Strategy '{spec.strategy_name}' failed to mount: {e}"
            ) from e

    def _strategy_root(self) -> Element:
        return self.mount_point.query_selector(MARKUP_SELECTOR) or self.mount_point

    def _fail(self, error: StrategyRuntimeBaseError) -> None:
        self.error = error
        strategy, self.strategy = self.strategy, None
        if strategy is not None and callable(getattr(strategy, "dispose", None)):
            try:
                strategy.dispose()
            except Exception:
                logger.exception("Strategy dispose failed after initialization error")
        if not self.is_disposed:
            self._transition(ControllerState.ERROR)

    def _notify_ready(self) -> None:
        if self._ready_notified:
            return
        self._ready_notified = True

        if self.state is ControllerState.MOUNTED:
            self._transition(ControllerState.READY)
            self._schedule(self.settle_delay, self.notify_content_resize)

        onready = self.host_config.onready
        if callable(onready):
            onready(self, self.prior_state)

    # =========================================================================
    # Resize
    # =========================================================================

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback()
            return
        self._timers = [t for t in self._timers if not t.cancelled()]
        self._timers.append(loop.call_later(delay, self._run_timer, callback))

    def _run_timer(self, callback: Callable[[], None]) -> None:
        if not self.is_disposed:
            callback()

    def request_resize(self) -> None:
        """Strategy hook: re-announce the content size once the change settles."""
        if not self.is_disposed:
            self._schedule(self.feedback_delay, self.notify_content_resize)

    def notify_content_resize(self) -> None:
        if self.is_disposed or self.mount_point is None:
            return
        self.notifier.notify_content(self.mount_point)

    # =========================================================================
    # Host surface
    # =========================================================================

    def get_response(self) -> str | None:
        """The strategy's response, always as text (non-strings are JSON-encoded)."""
        if self.strategy is None:
            return None
        response = self.strategy.get_response()
        return response if isinstance(response, str) else json.dumps(response)

    def get_state(self) -> Any:
        if self.strategy is None:
            return None
        return self.strategy.get_state()

    def set_state(self, state: Any) -> None:
        if self.strategy is None or not state:
            return
        try:
            self.strategy.set_state(state)
        except Exception:
            logger.exception("Strategy rejected state; keeping current selection")

    def check_validity(self) -> bool:
        check = getattr(self.strategy, "check_validity", None)
        if callable(check):
            return bool(check())
        return True

    def get_custom_validity(self) -> str:
        message = getattr(self.strategy, "get_custom_validity", None)
        if callable(message):
            return message() or ""
        return ""

    def set_rendering_properties(self, properties: dict[str, Any]) -> None:
        apply = getattr(self.strategy, "set_rendering_properties", None)
        if callable(apply):
            apply(properties)

    def dispose(self) -> None:
        """Tear down the strategy and release references. Safe at any point."""
        if self.is_disposed:
            return
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()

        strategy, self.strategy = self.strategy, None
        self._transition(ControllerState.DISPOSED)
        if strategy is not None and callable(getattr(strategy, "dispose", None)):
            try:
                strategy.dispose()
            except Exception:
                logger.exception("Strategy dispose failed")

        self.context = None
        self.mount_point = None

    # Host lifecycle hook name
    oncompleted = dispose
