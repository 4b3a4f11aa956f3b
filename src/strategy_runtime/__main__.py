"""
Entry point for running the strategy runtime CLI as a module.

Usage:
    python -m src.strategy_runtime resolve --property strategy=mcq
    python -m src.strategy_runtime preview specs/mcq-primes.json --select c1
    python -m src.strategy_runtime --help
"""
from .cli import main

if __name__ == "__main__":
    main()
