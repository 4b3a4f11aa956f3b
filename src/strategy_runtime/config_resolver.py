"""
Interaction spec resolution.

Sources are tried in trust order, first usable one wins:
1. hostConfig.primaryConfiguration  (trusted as-is)
2. configHref property / data-config-href attribute  (HTTP fetch)
3. script[type="application/json"] inside the mount point
4. hostConfig.properties  (strategy defaults to "text-entry")

A failing source is logged and skipped; only exhausting the chain raises.

Usage:
    async with ConfigResolver() as resolver:
        spec = await resolver.resolve(host_config, mount_point)
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from config import get_settings

from .dom import Element
from .errors import ConfigurationError
from .models import HostConfig, InteractionSpec

CONFIG_HREF_PROPERTY = "configHref"
CONFIG_HREF_ATTRIBUTE = "data-config-href"
STRATEGY_PROPERTY = "strategy"
INLINE_CONFIG_SELECTOR = 'script[type="application/json"]'

_UNSET: Any = object()


class ConfigSource(str, Enum):
    """Where a resolved spec came from."""

    PRIMARY = "primary"
    FETCHED = "fetched"
    INLINE = "inline"
    PROPERTIES = "properties"


class ConfigResolver:
    """Resolves the effective InteractionSpec for a mount point."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        default_strategy: str | None = None,
        timeout: float | None = _UNSET,
    ):
        settings = get_settings()
        self.base_url = base_url if base_url is not None else settings.config_base_url
        self.default_strategy = (
            default_strategy if default_strategy is not None else settings.default_strategy
        )
        self.timeout = settings.fetch_timeout_seconds if timeout is _UNSET else timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> ConfigResolver:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Resolution
    # =========================================================================

    async def resolve(self, host_config: HostConfig, mount_point: Element) -> InteractionSpec:
        """Resolve the spec, raising ConfigurationError if no source is usable."""
        spec, _ = await self.resolve_with_source(host_config, mount_point)
        return spec

    async def resolve_with_source(
        self, host_config: HostConfig, mount_point: Element
    ) -> tuple[InteractionSpec, ConfigSource]:
        """Resolve the spec and report which source produced it."""
        primary = host_config.primary_configuration
        if primary is not None:
            logger.debug("Using primary configuration")
            try:
                spec = InteractionSpec.from_payload(primary)
            except ValidationError as e:
                raise ConfigurationError(f"Primary configuration is not a spec: {e}") from e
            return self._require_usable(spec, ConfigSource.PRIMARY), ConfigSource.PRIMARY

        href = self.config_href(host_config, mount_point)
        if href:
            spec = await self._fetch(href)
            if spec is not None:
                return spec, ConfigSource.FETCHED

        spec = self._inline(mount_point)
        if spec is not None:
            return spec, ConfigSource.INLINE

        if host_config.properties is not None:
            spec = self._from_properties(host_config.properties)
            return self._require_usable(spec, ConfigSource.PROPERTIES), ConfigSource.PROPERTIES

        raise ConfigurationError("No configuration found")

    @staticmethod
    def config_href(host_config: HostConfig, mount_point: Element) -> str | None:
        """The external config reference, from properties first then the mount point."""
        properties = host_config.properties or {}
        return properties.get(CONFIG_HREF_PROPERTY) or mount_point.get_attribute(
            CONFIG_HREF_ATTRIBUTE
        )

    def _require_usable(self, spec: InteractionSpec, source: ConfigSource) -> InteractionSpec:
        if not spec.is_usable:
            raise ConfigurationError(
                f"Invalid configuration from {source.value} source: missing strategy"
            )
        logger.info(f"Resolved '{spec.strategy_name}' spec from {source.value} source")
        return spec

    def _validated(self, payload: Any, source: ConfigSource) -> InteractionSpec | None:
        try:
            spec = InteractionSpec.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Malformed {source.value} config: {e.error_count()} validation errors")
            return None
        if not spec.is_usable:
            logger.warning(f"Ignoring {source.value} config: missing strategy")
            return None
        logger.info(f"Resolved '{spec.strategy_name}' spec from {source.value} source")
        return spec

    # =========================================================================
    # Sources
    # =========================================================================

    async def _fetch(self, href: str) -> InteractionSpec | None:
        url = str(httpx.URL(self.base_url).join(href)) if self.base_url else href
        logger.debug(f"Fetching external config: {url}")
        try:
            client = self._ensure_client()
            response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Failed to fetch external config {url}: {e}")
            return None

        if not response.is_success:
            logger.warning(f"Failed to fetch external config {url}: HTTP {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"External config {url} is not JSON: {e}")
            return None
        return self._validated(payload, ConfigSource.FETCHED)

    def _inline(self, mount_point: Element) -> InteractionSpec | None:
        node = mount_point.query_selector(INLINE_CONFIG_SELECTOR)
        if node is None:
            return None
        try:
            payload = json.loads(node.text_content)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse inline config: {e}")
            return None
        return self._validated(payload, ConfigSource.INLINE)

    def _from_properties(self, properties: dict[str, str] | Any) -> InteractionSpec:
        props = {key: value for key, value in properties.items() if key != STRATEGY_PROPERTY}
        logger.debug("Using properties as config")
        return InteractionSpec(
            strategy_name=properties.get(STRATEGY_PROPERTY) or self.default_strategy,
            props=props,
        )
