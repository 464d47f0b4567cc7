"""
Subscriptions and their items.

Every subscription is modeled as monthly: ``current_period_end`` is one
calendar month after ``current_period_start`` whatever the plan says.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from .. import ids
from ..exceptions import InvalidRequestError
from ..models import ObjectKind, Record, SubscriptionStatus, id_of
from ..pagination import list_envelope
from ..utils import (
    add_months,
    merge_metadata,
    now,
    parse_integer,
    parse_number,
    stringify_metadata,
)
from .base import ResourceManager
from .charges import parse_flag

logger = structlog.get_logger(__name__)


def _parse_quantity(raw: Any, param: str) -> int:
    if raw is None or raw == "":
        return 1
    quantity = parse_integer(raw, param)
    if quantity < 0:
        raise InvalidRequestError(
            "This value must be greater than or equal to 0.",
            code="parameter_invalid_integer",
            param=param,
        )
    return quantity


class SubscriptionManager(ResourceManager):
    """Subscription lifecycle; items live inside their subscription."""

    object_name = "subscription"
    id_prefix = ids.SUBSCRIPTION
    url_path = "/v1/subscriptions"

    def _plan(self, plan_id: str) -> Record:
        """Synthesize the plan object for a plan id."""
        return {
            "id": plan_id,
            "object": ObjectKind.PLAN.value,
            "active": True,
            "aggregate_usage": None,
            "amount": 10 * 100,
            "billing_scheme": "per_unit",
            "created": self._emulator.started_at,
            "currency": "usd",
            "interval": "month",
            "interval_count": 1,
            "livemode": False,
            "metadata": {},
            "nickname": None,
            "product": f"{ids.PRODUCT}_{plan_id[5:]}",
            "tiers": None,
            "tiers_mode": None,
            "transform_usage": None,
            "trial_period_days": None,
            "usage_type": "licensed",
        }

    def _resolve_default_source(
        self, account_id: str, customer_id: str, value: Any
    ) -> str | None:
        """Use an id as is; materialize an inline card under the customer."""
        if not value:
            return None
        if isinstance(value, str):
            return value
        card = self._emulator.customers.create_card(account_id, customer_id, {"source": value})
        return card["id"]

    def create_item(
        self, item: Mapping[str, Any], subscription_id: str, index: int = 0
    ) -> Record:
        """Build a subscription item owned by ``subscription_id``."""
        param = f"items[{index}]"
        if not isinstance(item, Mapping):
            raise InvalidRequestError(f"Invalid object: {param}", param=param)
        plan_id = id_of(item.get("plan"), f"{param}[plan]")
        if not plan_id:
            raise InvalidRequestError(
                f"Missing required param: {param}[plan].",
                code="parameter_missing",
                param=f"{param}[plan]",
            )
        quantity = _parse_quantity(item.get("quantity"), f"{param}[quantity]")
        return {
            "id": item.get("id") or self._new_id(ids.SUBSCRIPTION_ITEM),
            "object": ObjectKind.SUBSCRIPTION_ITEM.value,
            "billing_thresholds": None,
            "created": now(),
            "metadata": stringify_metadata(item.get("metadata")),
            "plan": self._plan(plan_id),
            "quantity": quantity,
            "subscription": subscription_id,
        }

    def create(self, account_id: str, params: Mapping[str, Any]) -> Record:
        """Create a subscription for an existing customer.

        Every parameter is validated before anything is written; an inline
        ``default_source`` is then attached to the customer as a new card.
        The plan comes from ``plan`` or from the first item.

        Raises:
            ResourceAlreadyExistsError: ``id`` was supplied and is taken
            ResourceMissingError: the customer does not exist
            InvalidRequestError: neither ``plan`` nor ``items`` was given,
                or a parameter is malformed
        """
        logger.debug("subscription_create", account_id=account_id, params=params)

        subscription_id = self._claim_id(account_id, params)
        customer = self._emulator.customers.retrieve(
            account_id, id_of(params.get("customer"), "customer"), "customer"
        )
        customer_id = customer["id"]

        items = [
            self.create_item(item, subscription_id, index)
            for index, item in enumerate(params.get("items") or [])
        ]
        plan_id = id_of(params.get("plan"), "plan")
        if not plan_id and items:
            plan_id = items[0]["plan"]["id"]
        if not plan_id:
            raise InvalidRequestError(
                "Missing required param: items.",
                code="parameter_missing",
                param="items",
            )

        started = now()
        anchor = params.get("billing_cycle_anchor")
        billing_cycle_anchor = (
            started if anchor in (None, "") else parse_integer(anchor, "billing_cycle_anchor")
        )
        quantity = _parse_quantity(params.get("quantity"), "quantity")
        application_fee_percent = parse_number(
            params.get("application_fee_percent"), "application_fee_percent"
        )
        tax_percent = parse_number(params.get("tax_percent"), "tax_percent")

        default_source = self._resolve_default_source(
            account_id, customer_id, params.get("default_source")
        )

        billing = params.get("billing") or "charge_automatically"
        subscription: Record = {
            "id": subscription_id,
            "object": ObjectKind.SUBSCRIPTION.value,
            "application_fee_percent": application_fee_percent,
            "billing": billing,
            "collection_method": billing,
            "billing_cycle_anchor": billing_cycle_anchor,
            "billing_thresholds": None,
            "cancel_at": None,
            "cancel_at_period_end": False,
            "canceled_at": None,
            "created": started,
            "current_period_end": add_months(started, 1),
            "current_period_start": started,
            "customer": params["customer"],
            "days_until_due": params.get("days_until_due"),
            "default_payment_method": None,
            "default_source": default_source,
            "discount": None,
            "ended_at": None,
            "items": list_envelope(
                items, f"/v1/subscription_items?subscription={subscription_id}"
            ),
            "latest_invoice": self._new_id(ids.INVOICE),
            "livemode": False,
            "metadata": stringify_metadata(params.get("metadata")),
            "plan": self._plan(plan_id),
            "quantity": quantity,
            "start": started,
            "start_date": started,
            "status": SubscriptionStatus.ACTIVE.value,
            "tax_percent": tax_percent,
            "trial_end": None,
            "trial_start": None,
        }

        self._store.put(account_id, subscription)
        self._emulator.customers.add_subscription(account_id, customer_id, subscription)

        logger.debug(
            "subscription_created",
            account_id=account_id,
            subscription_id=subscription_id,
            customer_id=customer_id,
            plan=plan_id,
        )
        return subscription

    def update(
        self, account_id: str, subscription_id: str, params: Mapping[str, Any]
    ) -> Record:
        """Apply an update in place and return the stored subscription.

        ``items[i]`` updates the quantity of the i-th existing item.

        Raises:
            ResourceMissingError: no such subscription
            InvalidRequestError: more items were given than the
                subscription has, or a quantity is malformed; nothing is
                changed in either case
        """
        logger.debug(
            "subscription_update",
            account_id=account_id,
            subscription_id=subscription_id,
            params=params,
        )

        subscription = self.retrieve(account_id, subscription_id, "id")

        items = list(params.get("items") or [])
        existing = subscription["items"]["data"]
        if len(items) > len(existing):
            index = len(existing)
            logger.warning(
                "subscription_update_rejected",
                account_id=account_id,
                subscription_id=subscription_id,
                items=len(items),
                existing=len(existing),
            )
            raise InvalidRequestError(
                f"Subscription {subscription_id} has no item at index {index}.",
                param=f"items[{index}]",
            )

        quantities = {
            index: _parse_quantity(item["quantity"], f"items[{index}][quantity]")
            for index, item in enumerate(items)
            if "quantity" in item
        }
        quantity = (
            _parse_quantity(params["quantity"], "quantity") if "quantity" in params else None
        )
        default_source = None
        if params.get("default_source"):
            default_source = self._resolve_default_source(
                account_id, id_of(subscription["customer"]), params["default_source"]
            )

        for index, item_quantity in quantities.items():
            existing[index]["quantity"] = item_quantity
        if quantity is not None:
            subscription["quantity"] = quantity
        if "metadata" in params:
            subscription["metadata"] = merge_metadata(
                subscription["metadata"], params["metadata"]
            )
        if "cancel_at_period_end" in params:
            at_period_end = parse_flag(params["cancel_at_period_end"], False)
            subscription["cancel_at_period_end"] = at_period_end
            subscription["cancel_at"] = (
                subscription["current_period_end"] if at_period_end else None
            )
        if default_source:
            subscription["default_source"] = default_source

        return subscription

    def cancel(
        self,
        account_id: str,
        subscription_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> Record:
        """Cancel a subscription.

        With ``at_period_end`` the subscription stays active until the end
        of the current period; otherwise it is canceled immediately. The
        record is never removed.
        """
        params = params or {}
        logger.debug(
            "subscription_cancel",
            account_id=account_id,
            subscription_id=subscription_id,
            at_period_end=params.get("at_period_end", False),
        )

        subscription = self.retrieve(account_id, subscription_id, "id")
        if subscription["status"] == SubscriptionStatus.CANCELED.value:
            raise InvalidRequestError(
                f"Subscription {subscription_id} is already canceled.", param="id"
            )

        if parse_flag(params.get("at_period_end"), False):
            subscription["cancel_at_period_end"] = True
            subscription["cancel_at"] = subscription["current_period_end"]
        else:
            cancelled = now()
            subscription["status"] = SubscriptionStatus.CANCELED.value
            subscription["canceled_at"] = cancelled
            subscription["ended_at"] = cancelled
        return subscription

    def list(self, account_id: str, params: Mapping[str, Any] | None = None) -> Record:
        params = params or {}
        customer_id = id_of(params.get("customer"), "customer")
        status = params.get("status")

        def matches(subscription: Record) -> bool:
            if customer_id and id_of(subscription["customer"]) != customer_id:
                return False
            if status and status != "all" and subscription["status"] != status:
                return False
            return True

        return self._list(account_id, params, matches)
