"""Typed errors raised by the registry components.

Every mutating operation validates all of its preconditions before touching
state, so any error below means nothing was changed and nothing was emitted.

Hierarchy::

    RegistryError
    ├── NotFound          SeriesNotFound, AssetNotFound, CatalogNotFound, TagNotFound
    ├── AlreadyExists     SeriesExists, AssetAlreadyRegistered, AlreadyProvisioned
    ├── ValidationFailed  DescriptionTooLarge, InvalidPageSize, InvalidOffset,
    │                     InvalidIdentifier, NameRequired
    ├── Unauthorized
    ├── NameUnavailable
    └── NameAlreadySet
"""

from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base class for all registry errors.

    ``message`` defaults to the canonical text of the error kind, which is
    what callers and indexers match on.
    """

    code = "REGISTRY_ERROR"
    default_message = "REGISTRY ERROR"

    def __init__(self, message: str = "", **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": {k: _plain(v) for k, v in self.context.items()},
        }


def _plain(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return value


# ── Not found ────────────────────────────────────────────────────────


class NotFound(RegistryError):
    code = "NOT_FOUND"
    default_message = "NOT FOUND"


class SeriesNotFound(NotFound):
    default_message = "SERIES NOT FOUND"


class AssetNotFound(NotFound):
    default_message = "ASSET NOT FOUND"


class CatalogNotFound(NotFound):
    default_message = "CATALOG NOT FOUND"


class TagNotFound(NotFound):
    default_message = "TAG NOT FOUND"


# ── Already exists ───────────────────────────────────────────────────


class AlreadyExists(RegistryError):
    code = "ALREADY_EXISTS"
    default_message = "ALREADY EXISTS"


class SeriesExists(AlreadyExists):
    default_message = "SERIES EXISTS"


class AssetAlreadyRegistered(AlreadyExists):
    default_message = "ASSET ALREADY REGISTERED"


class AlreadyProvisioned(AlreadyExists):
    default_message = "ALREADY PROVISIONED"


# ── Validation ───────────────────────────────────────────────────────


class ValidationFailed(RegistryError):
    code = "VALIDATION_FAILED"
    default_message = "VALIDATION FAILED"


class DescriptionTooLarge(ValidationFailed):
    default_message = "DESCRIPTION TOO LARGE"


class InvalidPageSize(ValidationFailed):
    default_message = "INVALID PAGESIZE"


class InvalidOffset(ValidationFailed):
    default_message = "INVALID OFFSET"


class InvalidIdentifier(ValidationFailed):
    default_message = "INVALID IDENTIFIER"


class NameRequired(ValidationFailed):
    default_message = "NAME REQUIRED"


# ── Access and identity binding ──────────────────────────────────────


class Unauthorized(RegistryError):
    code = "UNAUTHORIZED"
    default_message = "UNAUTHORIZED"


class NameUnavailable(RegistryError):
    code = "NAME_UNAVAILABLE"
    default_message = "NAME NOT AVAILABLE"


class NameAlreadySet(RegistryError):
    code = "NAME_ALREADY_SET"
    default_message = "CREATOR NAME ALREADY SET"
