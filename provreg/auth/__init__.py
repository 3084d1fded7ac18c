"""Access control — roles and the per-component ACL."""

from provreg.auth.models import Role
from provreg.auth.permissions import AccessControl

__all__ = ["AccessControl", "Role"]
