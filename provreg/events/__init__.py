"""Event log — the audit trail of every accepted mutation."""

from provreg.events.log import Event, EventLog

__all__ = ["Event", "EventLog"]
