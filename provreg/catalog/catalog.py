"""Per-creator catalog of series, assets, and tags.

A catalog is bound to one creator. Series and assets are append-only: they
are created once, their descriptions and tags may change, and they are never
deleted. Every mutation validates all preconditions under the catalog lock
before any state is touched, so a rejected call has no side effects.

Storage layout per catalog:
- ``_series`` / ``_assets``: key -> record, for O(1) existence checks
- ``_series_order`` / ``_asset_order``: insertion-ordered keys, for paging
- ``_series_assets``: series id -> insertion-ordered asset ids
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Union

from provreg.auth.models import Role
from provreg.auth.permissions import AccessControl
from provreg.catalog.models import Asset, AssetMetadata, CreatorMetadata, Page, Series
from provreg.catalog.pagination import paginate
from provreg.errors import (
    AssetAlreadyRegistered,
    AssetNotFound,
    DescriptionTooLarge,
    InvalidIdentifier,
    NameAlreadySet,
    RegistryError,
    SeriesExists,
    SeriesNotFound,
    TagNotFound,
)
from provreg.events.log import EventLog
from provreg.registry.names import NameRegistry
from provreg.utils.ids import (
    ZERO_BYTES32,
    Address,
    asset_id_hex,
    new_address,
    to_address,
    to_asset_id,
    to_bytes32,
)
from provreg.utils.text import is_string_empty, string_length, to_lower

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 1024

Key = Union[str, bytes]
AssetKey = Union[int, str]


def check_description(description: str) -> None:
    if string_length(description) > MAX_DESCRIPTION_LENGTH:
        raise DescriptionTooLarge(length=string_length(description), max_length=MAX_DESCRIPTION_LENGTH)


class Catalog:
    """A creator's registry of series and assets.

    Parameters
    ----------
    creator:
        The address the catalog is bound to.
    name_registry:
        Shared name registry. If *creator* has no name yet, *display_name*
        is bound through it during construction, using *registrar* (or
        *invoker*) as the calling identity.
    story:
        Free text about the creator. Fixed after construction.
    url_template:
        Asset URL pattern; ``{0}`` is replaced with the asset id in hex.
    invoker:
        The identity constructing the catalog. It and the creator receive
        the ``admin`` and ``writer`` roles.
    """

    def __init__(
        self,
        creator: Address,
        name_registry: NameRegistry,
        story: str,
        url_template: str,
        *,
        invoker: Address,
        display_name: str = "",
        registrar: Optional[Address] = None,
        address: Optional[Address] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self.creator = to_address(creator)
        self.invoker = to_address(invoker)
        self.address = to_address(address) if address else new_address()
        self.name_registry = name_registry
        self.story = story
        self.url_template = url_template
        self.events = events if events is not None else name_registry.events

        bound = name_registry.get_name(self.creator)
        if not bound:
            name_registry.set_name(self.creator, display_name, caller=registrar or self.invoker)
        elif not is_string_empty(display_name) and to_lower(display_name) != to_lower(bound):
            raise NameAlreadySet(address=self.creator, name=bound)
        self.display_name = name_registry.get_name(self.creator)

        self.acl = AccessControl(self.address, self.events)
        for role in (Role.admin, Role.writer):
            self.acl.setup_role(role, {self.creator, self.invoker})

        self._series: dict[bytes, Series] = {}
        self._series_order: list[bytes] = []
        self._assets: dict[int, Asset] = {}
        self._asset_order: list[int] = []
        self._series_assets: dict[bytes, list[int]] = {}
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"Catalog(address={self.address!r}, creator={self.creator!r})"

    # ------------------------------------------------------------------
    # Creator
    # ------------------------------------------------------------------

    def get_creator_metadata(self) -> CreatorMetadata:
        with self._lock:
            return CreatorMetadata(
                creator=self.creator,
                display_name=self.display_name,
                story=self.story,
                asset_count=len(self._assets),
            )

    @property
    def asset_count(self) -> int:
        with self._lock:
            return len(self._assets)

    @property
    def series_count(self) -> int:
        with self._lock:
            return len(self._series_order)

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    def create_series(self, series_id: Key, description: str, *, caller: Address) -> Series:
        """Create a series. Emits ``SeriesCreated(creator, seriesId, description, invoker)``."""
        series_id = to_bytes32(series_id)
        with self._lock:
            try:
                self.acl.require_role(Role.writer, caller)
                if series_id in self._series:
                    raise SeriesExists(series_id=series_id)
                check_description(description)
            except RegistryError as e:
                logger.debug("create_series rejected on %s: %s", self.address, e.code)
                raise

            self.events.emit(
                "SeriesCreated",
                self.address,
                creator=self.creator,
                seriesId=series_id,
                description=description,
                invoker=to_address(caller),
            )
            self._series[series_id] = Series(series_id=series_id, description=description)
            self._series_order.append(series_id)
            logger.info("series %s created on %s", series_id.hex(), self.address)
            return Series(series_id=series_id, description=description)

    def update_series_description(self, series_id: Key, description: str, *, caller: Address) -> None:
        """Replace a series description in place; its list position is unchanged."""
        series_id = to_bytes32(series_id)
        with self._lock:
            try:
                self.acl.require_role(Role.writer, caller)
                if series_id not in self._series:
                    raise SeriesNotFound(series_id=series_id)
                check_description(description)
            except RegistryError as e:
                logger.debug("update_series_description rejected on %s: %s", self.address, e.code)
                raise

            self.events.emit(
                "SeriesDescriptionUpdated",
                self.address,
                seriesId=series_id,
                description=description,
                invoker=to_address(caller),
            )
            self._series[series_id].description = description
            logger.info("series %s description updated on %s", series_id.hex(), self.address)

    def get_series_metadata(self, series_id: Key) -> str:
        """Return the series description, or ``""`` when the series is absent."""
        series_id = to_bytes32(series_id)
        with self._lock:
            series = self._series.get(series_id)
            return series.description if series else ""

    def has_series(self, series_id: Key) -> bool:
        with self._lock:
            return to_bytes32(series_id) in self._series

    def list_series(self, offset: int, page_size: int) -> Page:
        """Page through series ids in creation order."""
        with self._lock:
            return paginate(self._series_order, offset, page_size, ZERO_BYTES32)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def register_asset(
        self,
        asset_id: AssetKey,
        series_id: Key,
        description: str,
        tags: Iterable[Key] = (),
        *,
        caller: Address,
        document_hash: Key = ZERO_BYTES32,
    ) -> Asset:
        """Register an asset and its initial tags.

        *series_id* is not required to name an existing series. Initial tags
        follow the same rule as :meth:`add_tag_to_asset`: the zero tag is
        rejected. Emits
        ``AssetRegistered(assetId, description, seriesId, creator, invoker)``
        followed by ``AssetTagsAdded(assetId, tags)``.
        """
        asset_id = to_asset_id(asset_id)
        series_id = to_bytes32(series_id)
        tag_list = [to_bytes32(t) for t in tags]
        document_hash = to_bytes32(document_hash)
        caller = to_address(caller)
        with self._lock:
            try:
                self.acl.require_role(Role.writer, caller)
                if asset_id == 0:
                    raise InvalidIdentifier("Asset id 0 is reserved")
                if asset_id in self._assets:
                    raise AssetAlreadyRegistered(asset_id=asset_id)
                check_description(description)
                for tag in tag_list:
                    _check_tag(tag)
            except RegistryError as e:
                logger.debug("register_asset rejected on %s: %s", self.address, e.code)
                raise

            self.events.emit_many(
                self.address,
                [
                    (
                        "AssetRegistered",
                        dict(
                            assetId=asset_id,
                            description=description,
                            seriesId=series_id,
                            creator=caller,
                            invoker=caller,
                        ),
                    ),
                    ("AssetTagsAdded", dict(assetId=asset_id, tags=list(tag_list))),
                ],
            )
            asset = Asset(
                asset_id=asset_id,
                description=description,
                series_id=series_id,
                creator=caller,
                tags=tag_list,
                document_hash=document_hash,
            )
            self._assets[asset_id] = asset
            self._asset_order.append(asset_id)
            self._series_assets.setdefault(series_id, []).append(asset_id)
            logger.info("asset %s registered on %s", asset_id_hex(asset_id), self.address)
            return _copy_asset(asset)

    def update_asset_description(self, asset_id: AssetKey, description: str, *, caller: Address) -> None:
        asset_id = to_asset_id(asset_id)
        with self._lock:
            try:
                self.acl.require_role(Role.writer, caller)
                asset = self._require_asset(asset_id)
                check_description(description)
            except RegistryError as e:
                logger.debug("update_asset_description rejected on %s: %s", self.address, e.code)
                raise

            self.events.emit(
                "AssetDescriptionUpdated",
                self.address,
                assetId=asset_id,
                description=description,
                invoker=to_address(caller),
            )
            asset.description = description
            logger.info("asset %s description updated on %s", asset_id_hex(asset_id), self.address)

    def get_asset_metadata(self, asset_id: AssetKey) -> AssetMetadata:
        """Return the asset's metadata, or an all-sentinel record when absent."""
        asset_id = to_asset_id(asset_id)
        with self._lock:
            asset = self._assets.get(asset_id)
            if asset is None:
                return AssetMetadata()
            return AssetMetadata(
                id=asset.asset_id,
                tags=tuple(asset.tags),
                description=asset.description,
                creator=asset.creator,
                series_id=asset.series_id,
                url=self.asset_url(asset.asset_id),
                document_hash=asset.document_hash,
            )

    def asset_url(self, asset_id: int) -> str:
        if not self.url_template:
            return ""
        return self.url_template.replace("{0}", asset_id_hex(asset_id))

    def get_assets_by_series(self, series_id: Key, offset: int, page_size: int) -> Page:
        """Page through the assets registered against *series_id*, oldest first."""
        series_id = to_bytes32(series_id)
        with self._lock:
            return paginate(self._series_assets.get(series_id, []), offset, page_size, 0)

    def list_assets(self, offset: int, page_size: int) -> Page:
        """Page through every asset id in registration order."""
        with self._lock:
            return paginate(self._asset_order, offset, page_size, 0)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag_to_asset(self, asset_id: AssetKey, tag: Key, *, caller: Address) -> None:
        """Append *tag* to the asset's tags. Duplicates are allowed."""
        asset_id = to_asset_id(asset_id)
        tag = to_bytes32(tag)
        with self._lock:
            try:
                self.acl.require_role(Role.writer, caller)
                asset = self._require_asset(asset_id)
                _check_tag(tag)
            except RegistryError as e:
                logger.debug("add_tag_to_asset rejected on %s: %s", self.address, e.code)
                raise

            self.events.emit("AssetTagsAdded", self.address, assetId=asset_id, tags=[tag])
            asset.tags.append(tag)

    def remove_tag_from_asset(self, asset_id: AssetKey, tag: Key, *, caller: Address) -> None:
        """Remove the first occurrence of *tag* from the asset.

        Later tags shift left by one and the last slot is set to the zero
        sentinel, so the tag list keeps its length: removing ``K`` from
        ``[W, K, E]`` leaves ``[W, E, 0]``.
        """
        asset_id = to_asset_id(asset_id)
        tag = to_bytes32(tag)
        with self._lock:
            try:
                self.acl.require_role(Role.writer, caller)
                asset = self._require_asset(asset_id)
                _check_tag(tag)
                if tag not in asset.tags:
                    raise TagNotFound(asset_id=asset_id, tag=tag)
            except RegistryError as e:
                logger.debug("remove_tag_from_asset rejected on %s: %s", self.address, e.code)
                raise

            self.events.emit(
                "AssetTagRemoved",
                self.address,
                assetId=asset_id,
                tag=tag,
                invoker=to_address(caller),
            )
            tags = asset.tags
            index = tags.index(tag)
            tags[index:-1] = tags[index + 1 :]
            tags[-1] = ZERO_BYTES32

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def has_role(self, role: Role, account: Address) -> bool:
        return self.acl.has_role(role, account)

    def grant_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        return self.acl.grant_role(role, account, caller=caller)

    def revoke_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        return self.acl.revoke_role(role, account, caller=caller)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_asset(self, asset_id: int) -> Asset:
        asset = self._assets.get(asset_id)
        if asset is None:
            raise AssetNotFound(asset_id=asset_id)
        return asset

    def snapshot(self) -> tuple[list[Series], list[Asset]]:
        with self._lock:
            series = [Series(s, self._series[s].description) for s in self._series_order]
            assets = [_copy_asset(self._assets[a]) for a in self._asset_order]
            return series, assets

    def load_snapshot(self, series: list[Series], assets: list[Asset]) -> None:
        with self._lock:
            for s in series:
                self._series[s.series_id] = Series(s.series_id, s.description)
                self._series_order.append(s.series_id)
            for a in assets:
                self._assets[a.asset_id] = _copy_asset(a)
                self._asset_order.append(a.asset_id)
                self._series_assets.setdefault(a.series_id, []).append(a.asset_id)


def _check_tag(tag: bytes) -> None:
    if tag == ZERO_BYTES32:
        raise InvalidIdentifier("The zero tag is reserved")


def _copy_asset(asset: Asset) -> Asset:
    return Asset(
        asset_id=asset.asset_id,
        description=asset.description,
        series_id=asset.series_id,
        creator=asset.creator,
        tags=list(asset.tags),
        document_hash=asset.document_hash,
    )
