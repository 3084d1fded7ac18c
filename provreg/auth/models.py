"""Roles understood by the registry access-control lists."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Capabilities that can be granted to an identity.

    ``admin`` may grant and revoke roles. ``writer`` is the authorized-writer
    capability: it lets the holder write on behalf of other identities.
    """

    admin = "admin"
    writer = "writer"

    @property
    def role_id(self) -> str:
        """Stable identifier used in events and persisted state."""
        return {
            Role.admin: "DEFAULT_ADMIN_ROLE",
            Role.writer: "AUTH_ROLE",
        }[self]
