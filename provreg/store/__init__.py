"""Persistence — save and load a whole deployment as JSON."""

from provreg.store.state_store import StateError, StateStore

__all__ = ["StateError", "StateStore"]
