"""
Strategy registry: resolves strategy names to cached strategy modules.

A strategy named ``text-entry`` lives in a module named
``<prefix><name with - replaced by _>`` (``strategy_text_entry`` by default),
looked up in each configured package in order.

Cache lifetime: entries are never evicted or invalidated. The registry
returned by ``default_registry()`` lives for the whole interpreter process;
controllers may be handed their own registry instead.
"""

from __future__ import annotations

import asyncio
import importlib
import pkgutil
import re
from functools import lru_cache
from types import ModuleType
from typing import Any, Callable, Iterable

from loguru import logger

from config import get_settings

from .errors import StrategyLoadError
from .strategies.base import StrategyModule

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
_UNSET: Any = object()


class StrategyRegistry:
    """Loads strategy modules on demand and caches them by name."""

    def __init__(
        self,
        packages: Iterable[str] | None = None,
        *,
        prefix: str | None = None,
        timeout: float | None = _UNSET,
        importer: Callable[[str], ModuleType] = importlib.import_module,
    ):
        settings = get_settings()
        self.packages = list(packages) if packages is not None else settings.get_strategy_packages()
        self.prefix = prefix if prefix is not None else settings.strategy_module_prefix
        self.timeout = settings.strategy_load_timeout_seconds if timeout is _UNSET else timeout
        self._importer = importer
        self._cache: dict[str, StrategyModule] = {}
        self._pending: dict[str, asyncio.Future[StrategyModule]] = {}

    def module_name(self, name: str) -> str:
        """Module name for a strategy name (``mcq`` -> ``strategy_mcq``)."""
        return self.prefix + name.replace("-", "_")

    def is_loaded(self, name: str) -> bool:
        return name in self._cache

    def get_cached(self, name: str) -> StrategyModule | None:
        return self._cache.get(name)

    def register(self, name: str, module: StrategyModule) -> None:
        """Seed the cache with an already-available strategy module."""
        if not callable(getattr(module, "create", None)):
            raise StrategyLoadError(name, "module has no callable create()")
        self._cache[name] = module
        logger.debug(f"Strategy registered: {name}")

    async def load(self, name: str) -> StrategyModule:
        """
        Get the strategy module for ``name``.

        Cached modules are returned without suspending. Concurrent loads of
        the same uncached name share a single resolution.

        Raises:
            StrategyLoadError: if the module cannot be located or is not a strategy
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        pending = self._pending.get(name)
        if pending is None:
            pending = asyncio.ensure_future(self._resolve(name))
            self._pending[name] = pending
            pending.add_done_callback(lambda _: self._pending.pop(name, None))
        return await asyncio.shield(pending)

    async def _resolve(self, name: str) -> StrategyModule:
        if not _NAME_RE.match(name or ""):
            raise StrategyLoadError(name, "invalid strategy name")

        work = asyncio.to_thread(self._import, name)
        try:
            if self.timeout is not None:
                module = await asyncio.wait_for(work, self.timeout)
            else:
                module = await work
        except asyncio.TimeoutError as e:
            raise StrategyLoadError(name, f"timed out after {self.timeout}s") from e

        if not callable(getattr(module, "create", None)):
            raise StrategyLoadError(name, f"{module.__name__} has no callable create()")

        module = self._cache.setdefault(name, module)
        logger.info(f"Strategy loaded: {name} ({getattr(module, '__name__', module)})")
        return module

    def _import(self, name: str) -> ModuleType:
        module_name = self.module_name(name)
        for package in self.packages:
            path = f"{package}.{module_name}"
            try:
                return self._importer(path)
            except ModuleNotFoundError as e:
                if e.name and (path == e.name or path.startswith(e.name + ".")):
                    logger.debug(f"No strategy module {path}")
                    continue
                raise StrategyLoadError(name, f"{path} failed to import: {e}") from e
            except Exception as e:
                raise StrategyLoadError(name, f"{path} failed to import: {e}") from e
        raise StrategyLoadError(
            name, f"no module '{module_name}' in {', '.join(self.packages) or 'any package'}"
        )

    def available(self) -> list[str]:
        """Names of cached strategies plus those discoverable in the search packages."""
        names = set(self._cache)
        for package in self.packages:
            try:
                pkg = importlib.import_module(package)
            except ImportError as e:
                logger.warning(f"Strategy package {package} not importable: {e}")
                continue
            for info in pkgutil.iter_modules(getattr(pkg, "__path__", [])):
                if info.name.startswith(self.prefix) and info.name != self.prefix:
                    names.add(info.name[len(self.prefix):].replace("_", "-"))
        return sorted(names)


@lru_cache(maxsize=1)
def default_registry() -> StrategyRegistry:
    """Process-wide registry shared by controllers that are not given one."""
    return StrategyRegistry()
