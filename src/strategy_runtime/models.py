"""
Data model shared by the resolver, the controller and strategies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from .dom import Element

ReadyCallback = Callable[[Any, Any], None]
CheckCallback = Callable[[bool], None]
ResizeCallback = Callable[[float, float], None]


class InteractionSpec(BaseModel):
    """
    Resolved interaction configuration.

    Wire format (fetched, embedded or host-provided):
        {"version": "1.0", "strategy": "mcq", "props": {...}, "ui": {...}}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    version: str | None = None
    strategy_name: str = Field(
        default="",
        validation_alias=AliasChoices("strategy", "strategyName", "strategy_name"),
        serialization_alias="strategy",
    )
    props: dict[str, Any] = Field(default_factory=dict)
    ui: dict[str, Any] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("strategy_name", mode="before")
    @classmethod
    def _coerce_strategy(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("props", "ui", mode="before")
    @classmethod
    def _coerce_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_usable(self) -> bool:
        """A spec is usable when it names a strategy."""
        return bool(self.strategy_name.strip())

    @classmethod
    def from_payload(cls, payload: Any) -> InteractionSpec:
        """Build a spec from a wire payload or pass an existing spec through."""
        if isinstance(payload, InteractionSpec):
            return payload
        return cls.model_validate(payload)

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the wire format."""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class HostConfig:
    """
    Capability bundle supplied by the host. Read-only to the runtime.

    ``properties`` carries the host element's data attributes in camelCase
    (``data-config-href`` arrives as ``configHref``).
    """

    onready: ReadyCallback | None = None
    properties: Mapping[str, str] | None = None
    primary_configuration: InteractionSpec | Mapping[str, Any] | None = None
    response_identifier: str | None = None
    oncheck: CheckCallback | None = None
    on_content_resize: ResizeCallback | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> HostConfig:
        """Accept the camelCase object shape hosts hand to custom interactions."""
        return cls(
            onready=data.get("onready"),
            properties=data.get("properties"),
            primary_configuration=data.get("primaryConfiguration"),
            response_identifier=data.get("responseIdentifier"),
            oncheck=data.get("oncheck"),
            on_content_resize=data.get("onContentResize"),
        )


def _no_resize() -> None:
    return None


@dataclass(frozen=True)
class StrategyContext:
    """Everything a strategy factory receives. Built once per controller."""

    mount_point: Element
    host_config: HostConfig
    spec: InteractionSpec
    prior_state: Any = None
    request_resize: Callable[[], None] = _no_resize
