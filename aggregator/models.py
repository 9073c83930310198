"""Data shapes shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


@dataclass(frozen=True)
class ServiceDescriptor:
    """A discovered service and the address its about endpoint lives under."""

    name: str
    namespace: str
    base_url: str

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError(f"Service {self.namespace}/{self.name} has no base URL")

    @property
    def about_url(self) -> str:
        return f"{self.base_url}__/about"

    def to_dict(self) -> dict[str, str]:
        return {"Name": self.name, "Namespace": self.namespace, "BaseURL": self.base_url}


# ──────────────────────────────────────────────────────────────────
# Structured __/about payload
# ──────────────────────────────────────────────────────────────────

class _AboutModel(BaseModel):
    """Treats a JSON null like a missing field, so the default applies."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class Owner(_AboutModel):
    name: str = ""
    slack: str = ""


class Link(_AboutModel):
    url: str = ""
    description: str = ""


class BuildInfo(_AboutModel):
    revision: str = ""


class AboutDoc(_AboutModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    description: str = ""
    owners: list[Owner] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    build_info: BuildInfo = Field(default_factory=BuildInfo, alias="build-info")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


Payload = Union[AboutDoc, bytes]


@dataclass(frozen=True)
class MetadataDocument:
    """One successful fetch: the service plus whatever its endpoint returned."""

    service: ServiceDescriptor
    payload: Payload

    @property
    def doc(self) -> AboutDoc | None:
        return self.payload if isinstance(self.payload, AboutDoc) else None

    def payload_dict(self) -> Any:
        if isinstance(self.payload, AboutDoc):
            return self.payload.to_dict()
        return self.payload.decode("utf-8", errors="replace")

    def to_dict(self) -> dict[str, Any]:
        return {"Service": self.service.to_dict(), "Doc": self.payload_dict()}
