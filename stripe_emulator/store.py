"""
Account-scoped in-memory storage.

Entities are partitioned by account id and then by entity id. Nothing is
visible across accounts; insertion order within an account is preserved and
is the default list order.
"""

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

T = TypeVar("T", bound=Mapping[str, Any])


class AccountData(Generic[T]):
    """Keyed container for entities of one kind, partitioned by account.

    No locking is done; callers serialize access per account.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, dict[str, T]] = {}

    def put(self, account_id: str, entity: T) -> None:
        """Insert or overwrite an entity under its own id."""
        self._accounts.setdefault(account_id, {})[entity["id"]] = entity

    def get(self, account_id: str, entity_id: str) -> T | None:
        """Return the entity, or None if it is not stored for this account."""
        return self._accounts.get(account_id, {}).get(entity_id)

    def contains(self, account_id: str, entity_id: str) -> bool:
        return entity_id in self._accounts.get(account_id, {})

    def get_all(self, account_id: str) -> list[T]:
        """Return every entity of the account in insertion order."""
        return list(self._accounts.get(account_id, {}).values())

    def clear(self) -> None:
        """Drop all entities for all accounts."""
        self._accounts.clear()
