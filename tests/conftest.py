"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import copy
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.strategy_runtime.models import HostConfig  # noqa: E402
from src.strategy_runtime.registry import StrategyRegistry  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full host flow)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class HostRecorder:
    """Records every callback the runtime makes into the host."""

    def __init__(self):
        self.ready_calls = []
        self.checks = []
        self.resizes = []

    def onready(self, instance, state):
        self.ready_calls.append((instance, state))

    def oncheck(self, result):
        self.checks.append(result)

    def on_content_resize(self, width, height):
        self.resizes.append((width, height))

    def config(self, **kwargs) -> HostConfig:
        return HostConfig(
            onready=self.onready,
            oncheck=self.oncheck,
            on_content_resize=self.on_content_resize,
            **kwargs,
        )


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def host():
    """A fresh host callback recorder."""
    return HostRecorder()


@pytest.fixture
def registry():
    """A registry with an empty cache, isolated from the process-wide one."""
    return StrategyRegistry()


_PRIMES_SPEC = {
    "version": "1.0",
    "strategy": "mcq",
    "props": {
        "prompt": "Which of the following are prime numbers?",
        "choices": [
            {"id": "c1", "text": "2"},
            {"id": "c2", "text": "3"},
            {"id": "c3", "text": "4"},
            {"id": "c4", "text": "5"},
            {"id": "c5", "text": "6"},
            {"id": "c6", "text": "7"},
            {"id": "c7", "text": "8"},
            {"id": "c8", "text": "9"},
        ],
        "correct": ["c1", "c2", "c4", "c6"],
        "multi": True,
    },
    "ui": {"shuffle": False},
}


@pytest.fixture
def multi_spec_payload():
    """Multi-select MCQ: which numbers are prime."""
    return copy.deepcopy(_PRIMES_SPEC)


@pytest.fixture
def single_spec_payload():
    """Single-select MCQ."""
    return {
        "version": "1.0",
        "strategy": "mcq",
        "props": {
            "prompt": "What is the capital of France?",
            "choices": [
                {"id": "c1", "text": "Paris"},
                {"id": "c2", "text": "Lyon"},
                {"id": "c3", "text": "Marseille"},
            ],
            "correct": ["c1"],
        },
        "ui": {},
    }
