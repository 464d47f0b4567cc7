"""
Emulator data models.

Entity records themselves are plain dicts shaped like Stripe API objects.
This module holds the small typed pieces around them: object kind tags,
status values, list options and the id-or-expanded reference union.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

from .exceptions import InvalidRequestError

Record: TypeAlias = dict[str, Any]


class ObjectKind(str, Enum):
    """Values of the ``object`` tag carried by every record."""

    CARD = "card"
    CHARGE = "charge"
    CUSTOMER = "customer"
    DISPUTE = "dispute"
    LIST = "list"
    PLAN = "plan"
    REFUND = "refund"
    SUBSCRIPTION = "subscription"
    SUBSCRIPTION_ITEM = "subscription_item"


# Kinds the structural comparator knows how to compare.
COMPARABLE_KINDS = frozenset(
    {
        ObjectKind.CARD,
        ObjectKind.CHARGE,
        ObjectKind.CUSTOMER,
        ObjectKind.DISPUTE,
        ObjectKind.LIST,
        ObjectKind.REFUND,
    }
)


class SubscriptionStatus(str, Enum):
    """Standard Stripe subscription statuses."""

    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    TRIALING = "trialing"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    PAUSED = "paused"


class ChargeStatus(str, Enum):
    """Stripe charge statuses."""

    SUCCEEDED = "succeeded"
    PENDING = "pending"
    FAILED = "failed"


class DisputeStatus(str, Enum):
    """Stripe dispute statuses."""

    WARNING_NEEDS_RESPONSE = "warning_needs_response"
    WARNING_UNDER_REVIEW = "warning_under_review"
    WARNING_CLOSED = "warning_closed"
    NEEDS_RESPONSE = "needs_response"
    UNDER_REVIEW = "under_review"
    CHARGE_REFUNDED = "charge_refunded"
    WON = "won"
    LOST = "lost"


@dataclass
class ListOptions:
    """Parsed pagination parameters of a list call."""

    limit: int
    starting_after: str | None = None
    ending_before: str | None = None


@dataclass(frozen=True)
class Reference:
    """A field holding a bare object id."""

    id: str


@dataclass(frozen=True)
class Expanded:
    """A field holding the full (expanded) object."""

    entity: Mapping[str, Any]

    @property
    def id(self) -> str:
        return self.entity["id"]


def to_ref(value: Any, param: str | None = None) -> Reference | Expanded | None:
    """Classify an id-or-object field value."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return Reference(value)
    if isinstance(value, Mapping) and isinstance(value.get("id"), str):
        return Expanded(value)
    raise InvalidRequestError(f"Invalid object reference: {value!r}", param=param)


def id_of(value: Any, param: str | None = None) -> str | None:
    """Return the id of a field that is either an id or an expanded object."""
    ref = to_ref(value, param)
    return ref.id if ref is not None else None
