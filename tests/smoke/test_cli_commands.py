"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(command: str, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m src.strategy_runtime')
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m src.strategy_runtime {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should list the commands."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "Commands" in stdout
        for command in ("resolve", "strategies", "preview"):
            assert command in stdout

    def test_preview_help(self):
        """Preview command help should work."""
        code, stdout, stderr = run_cli_command("preview --help")

        assert code == 0, f"Preview help failed: {stderr}"


class TestCLIStrategies:
    """Test strategies command."""

    def test_lists_builtin_strategies(self):
        """Both bundled strategies should be discoverable."""
        code, stdout, stderr = run_cli_command("strategies")

        assert code == 0, f"Strategies failed with: {stderr}"
        assert "mcq" in stdout
        assert "text-entry" in stdout


class TestCLIResolve:
    """Test resolve command."""

    def test_resolve_from_properties(self):
        """Properties alone should synthesize a spec."""
        code, stdout, stderr = run_cli_command("resolve -p strategy=mcq -p prompt=Hello")

        assert code == 0, f"Resolve failed with: {stderr}"
        assert "mcq" in stdout
        assert "properties" in stdout

    def test_resolve_primary_file(self):
        """A spec file is used as the primary configuration."""
        code, stdout, stderr = run_cli_command("resolve --spec specs/mcq-primes.json")

        assert code == 0, f"Resolve failed with: {stderr}"
        assert "primary" in stdout

    def test_resolve_nothing_fails_cleanly(self):
        """No sources at all should exit 1, not crash."""
        code, stdout, stderr = run_cli_command("resolve")

        assert code == 1
        assert "Traceback" not in stderr


class TestCLIPreview:
    """Test preview command."""

    def test_preview_correct_answer(self):
        """Selecting every prime and checking reports correct."""
        code, stdout, stderr = run_cli_command(
            "preview specs/mcq-primes.json -s c1 -s c2 -s c4 -s c6 --check"
        )

        assert code == 0, f"Preview failed with: {stderr}"
        assert "Correct" in stdout
        assert "qti-choice-interaction" in stdout

    def test_preview_incorrect_answer(self):
        """A partial selection is reported incorrect."""
        code, stdout, stderr = run_cli_command("preview specs/mcq-primes.json -s c1 --check")

        assert code == 0, f"Preview failed with: {stderr}"
        assert "Incorrect" in stdout

    def test_preview_restores_state(self):
        """Prior state selects choices without clicking."""
        code, stdout, stderr = run_cli_command(
            "preview specs/mcq-capital.json --state '{\"selectedChoices\": [\"paris\"]}'"
        )

        assert code == 0, f"Preview failed with: {stderr}"
        assert "paris" in stdout

    def test_preview_missing_file(self):
        """A missing spec file should fail gracefully."""
        code, stdout, stderr = run_cli_command("preview specs/does-not-exist.json")

        assert code in [1, 2], f"Preview crashed: {stderr}"
