"""
Unit tests for strategy loading and caching.
"""

import asyncio
import importlib
from types import SimpleNamespace

import pytest

from src.strategy_runtime.errors import StrategyLoadError
from src.strategy_runtime.registry import StrategyRegistry, default_registry

PACKAGE = "src.strategy_runtime.strategies"


class CountingImporter:
    """Wraps importlib so tests can see how many resolutions happened."""

    def __init__(self):
        self.calls = []

    def __call__(self, path):
        self.calls.append(path)
        return importlib.import_module(path)


class TestNaming:
    """Test the name -> module mapping."""

    def test_default_prefix(self, registry):
        assert registry.module_name("mcq") == "strategy_mcq"

    def test_hyphen_mapped_to_underscore(self, registry):
        assert registry.module_name("text-entry") == "strategy_text_entry"

    def test_custom_prefix(self):
        registry = StrategyRegistry([PACKAGE], prefix="interaction_")
        assert registry.module_name("mcq") == "interaction_mcq"


class TestLoading:
    """Test module resolution."""

    @pytest.mark.asyncio
    async def test_loads_builtin_mcq(self, registry):
        module = await registry.load("mcq")

        assert module.__name__ == f"{PACKAGE}.strategy_mcq"
        assert callable(module.create)
        assert registry.is_loaded("mcq")

    @pytest.mark.asyncio
    async def test_second_load_served_from_cache(self):
        importer = CountingImporter()
        registry = StrategyRegistry([PACKAGE], importer=importer)

        first = await registry.load("mcq")
        second = await registry.load("mcq")

        assert first is second
        assert importer.calls == [f"{PACKAGE}.strategy_mcq"]

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_resolution(self):
        importer = CountingImporter()
        registry = StrategyRegistry([PACKAGE], importer=importer)

        results = await asyncio.gather(*(registry.load("text-entry") for _ in range(5)))

        assert all(r is results[0] for r in results)
        assert len(importer.calls) == 1

    @pytest.mark.asyncio
    async def test_searches_packages_in_order(self):
        importer = CountingImporter()
        registry = StrategyRegistry(["src.nonexistent_strategies", PACKAGE], importer=importer)

        module = await registry.load("mcq")

        assert module.__name__.endswith("strategy_mcq")
        assert importer.calls == [
            "src.nonexistent_strategies.strategy_mcq",
            f"{PACKAGE}.strategy_mcq",
        ]

    @pytest.mark.asyncio
    async def test_unknown_strategy_raises(self, registry):
        with pytest.raises(StrategyLoadError) as exc_info:
            await registry.load("does-not-exist")

        assert exc_info.value.strategy_name == "does-not-exist"
        assert not registry.is_loaded("does-not-exist")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "../mcq", "a.b", "mcq/x"])
    async def test_invalid_names_rejected(self, registry, name):
        with pytest.raises(StrategyLoadError):
            await registry.load(name)

    @pytest.mark.asyncio
    async def test_module_without_create_rejected(self):
        registry = StrategyRegistry(
            [PACKAGE], importer=lambda path: SimpleNamespace(__name__=path)
        )

        with pytest.raises(StrategyLoadError, match="create"):
            await registry.load("mcq")

    @pytest.mark.asyncio
    async def test_import_error_inside_module_is_load_error(self):
        def broken(path):
            raise ModuleNotFoundError("No module named 'missing_dep'", name="missing_dep")

        registry = StrategyRegistry([PACKAGE], importer=broken)

        with pytest.raises(StrategyLoadError, match="failed to import"):
            await registry.load("mcq")

    @pytest.mark.asyncio
    async def test_timeout_is_load_error(self):
        def slow(path):
            import time
            time.sleep(0.5)
            return importlib.import_module(path)

        registry = StrategyRegistry([PACKAGE], importer=slow, timeout=0.05)

        with pytest.raises(StrategyLoadError, match="timed out"):
            await registry.load("mcq")


class TestRegistration:
    """Test explicit registration."""

    @pytest.mark.asyncio
    async def test_registered_module_needs_no_import(self):
        importer = CountingImporter()
        registry = StrategyRegistry([PACKAGE], importer=importer)
        fake = SimpleNamespace(create=lambda ctx: None)

        registry.register("fake", fake)

        assert await registry.load("fake") is fake
        assert importer.calls == []

    def test_register_requires_create(self, registry):
        with pytest.raises(StrategyLoadError):
            registry.register("broken", SimpleNamespace())

    def test_available_lists_builtin_strategies(self, registry):
        registry.register("fake", SimpleNamespace(create=lambda ctx: None))

        names = registry.available()

        assert {"mcq", "text-entry", "fake"} <= set(names)
        assert "base" not in names

    def test_default_registry_is_process_wide(self):
        assert default_registry() is default_registry()
