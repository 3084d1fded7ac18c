"""Wiring of a complete deployment: name registry, factory, and the grant between them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from provreg.auth.models import Role
from provreg.catalog.factory import CatalogFactory
from provreg.events.log import EventLog
from provreg.registry.names import NameRegistry
from provreg.utils.ids import Address, to_address

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    """The shared components of one registry deployment."""

    owner: Address
    names: NameRegistry
    factory: CatalogFactory
    events: EventLog


def bootstrap(owner: Address, events: Optional[EventLog] = None) -> Deployment:
    """Deploy a name registry and a factory, and make the factory a writer.

    All components share one event log so events keep a single global order.
    """
    owner = to_address(owner)
    events = events if events is not None else EventLog()
    names = NameRegistry(owner, events=events)
    factory = CatalogFactory(names, owner=owner, events=events)
    names.grant_role(Role.writer, factory.address, caller=owner)
    logger.info("deployed registry %s and factory %s for %s", names.address, factory.address, owner)
    return Deployment(owner=owner, names=names, factory=factory, events=events)
