"""Pydantic models for the persisted state document.

These mirror the in-memory records and validate ``state.json`` on load.
Bytes are stored as ``0x`` hex strings and asset ids as ``0x`` hex so that
256-bit values survive any JSON consumer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

STATE_VERSION = 1


def _check_hex(value: str, digits: int | None = None) -> str:
    if not value.startswith("0x"):
        raise ValueError(f"expected 0x-prefixed hex, got {value!r}")
    try:
        int(value[2:] or "0", 16)
    except ValueError:
        raise ValueError(f"invalid hex: {value!r}") from None
    if digits is not None and len(value) != digits + 2:
        raise ValueError(f"expected {digits} hex digits, got {value!r}")
    return value.lower()


class AclModel(BaseModel):
    """Mirrors provreg.auth.permissions.AccessControl."""

    admin: list[str] = Field(default_factory=list)
    writer: list[str] = Field(default_factory=list)


class NameRecordModel(BaseModel):
    """Mirrors provreg.registry.models.NameRecord."""

    address: str
    display_name: str
    catalog: str = "0x" + "0" * 40

    @field_validator("address", "catalog")
    @classmethod
    def _address(cls, v: str) -> str:
        return _check_hex(v, 40)


class SeriesModel(BaseModel):
    """Mirrors provreg.catalog.models.Series."""

    series_id: str
    description: str = ""

    @field_validator("series_id")
    @classmethod
    def _key(cls, v: str) -> str:
        return _check_hex(v, 64)


class AssetModel(BaseModel):
    """Mirrors provreg.catalog.models.Asset."""

    asset_id: str
    description: str = ""
    series_id: str = "0x" + "0" * 64
    creator: str
    tags: list[str] = Field(default_factory=list)
    document_hash: str = "0x" + "0" * 64

    @field_validator("asset_id")
    @classmethod
    def _asset_id(cls, v: str) -> str:
        return _check_hex(v)

    @field_validator("series_id", "document_hash")
    @classmethod
    def _key(cls, v: str) -> str:
        return _check_hex(v, 64)

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: list[str]) -> list[str]:
        return [_check_hex(t, 64) for t in v]


class CatalogModel(BaseModel):
    """Mirrors provreg.catalog.catalog.Catalog."""

    address: str
    creator: str
    invoker: str
    display_name: str
    story: str = ""
    url_template: str = ""
    acl: AclModel = Field(default_factory=AclModel)
    series: list[SeriesModel] = Field(default_factory=list)
    assets: list[AssetModel] = Field(default_factory=list)


class RegistryModel(BaseModel):
    """Mirrors provreg.registry.names.NameRegistry."""

    address: str
    owner: str
    acl: AclModel = Field(default_factory=AclModel)
    names: list[NameRecordModel] = Field(default_factory=list)


class FactoryModel(BaseModel):
    """Mirrors provreg.catalog.factory.CatalogFactory."""

    address: str
    owner: str
    nonce: int = 0
    acl: AclModel = Field(default_factory=AclModel)
    catalogs: list[CatalogModel] = Field(default_factory=list)


class StateModel(BaseModel):
    """The whole persisted deployment."""

    version: int = STATE_VERSION
    owner: str
    registry: RegistryModel
    factory: FactoryModel
