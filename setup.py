"""
Setup script for strategy-runtime.

Strategy Runtime is a configuration-driven interaction dispatcher for
assessment players. It serves three roles:

1. Config Resolution - Finds the interaction spec through a trusted fallback chain
2. Strategy Loading - Imports and caches named strategy modules on demand
3. Host Bridging - Relays response, state, validity and size to the host

The 'strategy-runtime' command resolves, lists and previews strategies.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="strategy-runtime",
    version="1.0.0",
    description="Configuration-driven interaction runtime with pluggable strategies",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Right Learning",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "strategy-runtime=src.strategy_runtime.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Testing",
    ],
    keywords="assessment interaction strategy runtime qti",
)
