"""File-based persistence for a whole deployment.

Storage path: ``<state_dir>/`` with:
- ``state.json`` -- registry, factory, catalogs and their ACLs
- ``events.jsonl`` -- the shared event log, one event per line
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from provreg.catalog.catalog import Catalog
from provreg.catalog.factory import CatalogFactory
from provreg.catalog.models import Asset, Series
from provreg.deployment import Deployment, bootstrap
from provreg.events.log import EventLog
from provreg.registry.models import NameRecord
from provreg.registry.names import NameRegistry
from provreg.store.schema import (
    STATE_VERSION,
    AclModel,
    AssetModel,
    CatalogModel,
    FactoryModel,
    NameRecordModel,
    RegistryModel,
    SeriesModel,
    StateModel,
)
from provreg.utils.ids import bytes32_hex
from provreg.utils.text import to_lower

logger = logging.getLogger(__name__)


class StateError(Exception):
    """The state directory is missing, unreadable, or fails validation."""


class StateStore:
    """Saves and loads a :class:`Deployment` under a directory."""

    STATE_FILE = "state.json"
    EVENTS_FILE = "events.jsonl"

    def __init__(self, state_dir: str | Path) -> None:
        self.state_dir = Path(state_dir)
        self.state_path = self.state_dir / self.STATE_FILE
        self.events_path = self.state_dir / self.EVENTS_FILE

    def exists(self) -> bool:
        return self.state_path.exists()

    def create(self, owner: str) -> Deployment:
        """Bootstrap a fresh deployment and save it. Refuses to overwrite."""
        if self.exists():
            raise StateError(f"State already exists at {self.state_path}")
        self.state_dir.mkdir(parents=True, exist_ok=True)
        deployment = bootstrap(owner, events=EventLog(self.events_path))
        self.save(deployment)
        return deployment

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, deployment: Deployment) -> None:
        """Write the deployment's state atomically."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        state = _deployment_to_model(deployment)
        fd, tmp = tempfile.mkstemp(dir=self.state_dir, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(state.model_dump_json(indent=2))
            os.replace(tmp, self.state_path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("saved state to %s", self.state_path)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> Deployment:
        """Read and validate the saved deployment."""
        if not self.exists():
            raise StateError(f"No state at {self.state_path}; run 'provreg init' first")
        try:
            raw = json.loads(self.state_path.read_text())
            state = StateModel.model_validate(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StateError(f"Invalid state file {self.state_path}: {e}") from e
        if state.version != STATE_VERSION:
            raise StateError(f"Unsupported state version {state.version}")

        events = EventLog(self.events_path)
        events.load()
        deployment = _model_to_deployment(state, events)
        logger.debug("loaded state from %s", self.state_path)
        return deployment


# ----------------------------------------------------------------------
# Conversion helpers
# ----------------------------------------------------------------------


def _acl_to_model(snapshot: dict[str, list[str]]) -> AclModel:
    return AclModel(admin=snapshot.get("admin", []), writer=snapshot.get("writer", []))


def _catalog_to_model(catalog: Catalog) -> CatalogModel:
    series, assets = catalog.snapshot()
    return CatalogModel(
        address=catalog.address,
        creator=catalog.creator,
        invoker=catalog.invoker,
        display_name=catalog.display_name,
        story=catalog.story,
        url_template=catalog.url_template,
        acl=_acl_to_model(catalog.acl.snapshot()),
        series=[SeriesModel(series_id=bytes32_hex(s.series_id), description=s.description) for s in series],
        assets=[
            AssetModel(
                asset_id=hex(a.asset_id),
                description=a.description,
                series_id=bytes32_hex(a.series_id),
                creator=a.creator,
                tags=[bytes32_hex(t) for t in a.tags],
                document_hash=bytes32_hex(a.document_hash),
            )
            for a in assets
        ],
    )


def _deployment_to_model(deployment: Deployment) -> StateModel:
    names = deployment.names
    factory = deployment.factory
    return StateModel(
        owner=deployment.owner,
        registry=RegistryModel(
            address=names.address,
            owner=names.owner,
            acl=_acl_to_model(names.acl.snapshot()),
            names=[
                NameRecordModel(address=r.address, display_name=r.display_name, catalog=r.catalog)
                for r in names.records()
            ],
        ),
        factory=FactoryModel(
            address=factory.address,
            owner=factory.owner,
            nonce=factory.nonce,
            acl=_acl_to_model(factory.acl.snapshot()),
            catalogs=[_catalog_to_model(c) for c in factory.catalogs()],
        ),
    )


def _model_to_catalog(data: CatalogModel, names: NameRegistry, events: EventLog) -> Catalog:
    catalog = Catalog(
        data.creator,
        names,
        data.story,
        data.url_template,
        invoker=data.invoker,
        display_name=data.display_name,
        address=data.address,
        events=events,
    )
    catalog.acl.load_snapshot(data.acl.model_dump())
    catalog.load_snapshot(
        [Series(series_id=bytes.fromhex(s.series_id[2:]), description=s.description) for s in data.series],
        [
            Asset(
                asset_id=int(a.asset_id, 16),
                description=a.description,
                series_id=bytes.fromhex(a.series_id[2:]),
                creator=a.creator,
                tags=[bytes.fromhex(t[2:]) for t in a.tags],
                document_hash=bytes.fromhex(a.document_hash[2:]),
            )
            for a in data.assets
        ],
    )
    return catalog


def _model_to_deployment(state: StateModel, events: EventLog) -> Deployment:
    names = NameRegistry(state.registry.owner, address=state.registry.address, events=events)
    names.acl.load_snapshot(state.registry.acl.model_dump())
    names.load_snapshot(
        [
            NameRecord(
                address=r.address,
                display_name=r.display_name,
                folded_name=to_lower(r.display_name),
                catalog=r.catalog,
            )
            for r in state.registry.names
        ]
    )

    factory = CatalogFactory(names, owner=state.factory.owner, address=state.factory.address, events=events)
    factory.acl.load_snapshot(state.factory.acl.model_dump())
    factory.load_snapshot(
        [_model_to_catalog(c, names, events) for c in state.factory.catalogs],
        state.factory.nonce,
    )
    return Deployment(owner=state.owner, names=names, factory=factory, events=events)
