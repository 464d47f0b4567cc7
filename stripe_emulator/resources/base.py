"""Shared behaviour of the per-kind lifecycle managers."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from ..exceptions import ResourceAlreadyExistsError, ResourceMissingError
from ..ids import new_id
from ..models import Record
from ..pagination import CursorResolver, apply_list_options
from ..store import AccountData

if TYPE_CHECKING:
    from ..config import EmulatorConfig
    from ..emulator import StripeEmulator

logger = structlog.get_logger(__name__)


class ResourceManager:
    """Create/retrieve/update/list over one object kind.

    Subclasses set ``object_name`` (used in error messages), ``id_prefix``
    and ``url_path``.
    """

    object_name: str = "object"
    id_prefix: str = ""
    url_path: str = ""

    def __init__(self, emulator: StripeEmulator, store: AccountData[Record]):
        self._emulator = emulator
        self._store = store

    @property
    def config(self) -> EmulatorConfig:
        return self._emulator.config

    def clear(self) -> None:
        self._store.clear()

    def _new_id(self, prefix: str | None = None) -> str:
        return new_id(prefix or self.id_prefix, self.config.id_length)

    def _claim_id(self, account_id: str, params: Mapping[str, Any]) -> str:
        """Return the caller-supplied id, or a fresh one.

        Raises:
            ResourceAlreadyExistsError: the supplied id is already stored
        """
        param_id = params.get("id")
        if param_id and self._store.contains(account_id, param_id):
            logger.warning(
                "resource_already_exists",
                account_id=account_id,
                object=self.object_name,
                id=param_id,
            )
            raise ResourceAlreadyExistsError(
                f"{self.object_name.capitalize()} already exists.", param="id"
            )
        return param_id or self._new_id()

    def retrieve(self, account_id: str, entity_id: str, param_name: str = "id") -> Record:
        """Return the stored entity.

        Raises:
            ResourceMissingError: no such entity in this account; ``param``
                is set to ``param_name``
        """
        entity = self._store.get(account_id, entity_id) if entity_id else None
        if entity is None:
            raise ResourceMissingError(
                f"No such {self.object_name}: {entity_id}", param=param_name
            )
        return entity

    def _list(
        self,
        account_id: str,
        params: Mapping[str, Any] | None,
        predicate: Callable[[Record], bool] | None = None,
        url: str | None = None,
        resolver: CursorResolver | None = None,
    ) -> Record:
        data = self._store.get_all(account_id)
        if predicate is not None:
            data = [entity for entity in data if predicate(entity)]

        def retrieve_cursor(entity_id: str, param_name: str) -> Record:
            return self.retrieve(account_id, entity_id, param_name)

        return apply_list_options(
            data,
            params,
            resolver or retrieve_cursor,
            url=url if url is not None else self.url_path,
            config=self.config,
        )
