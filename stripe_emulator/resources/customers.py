"""
Customers.

A customer owns its card sources and its subscriptions. Both are kept as
full (never truncated) list envelopes on the customer record, so
``total_count`` always equals ``len(data)``.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from .. import ids
from ..exceptions import ResourceMissingError
from ..models import ObjectKind, Record
from ..pagination import list_envelope
from ..utils import merge_metadata, now, stringify_metadata
from .base import ResourceManager

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = (
    "address",
    "description",
    "email",
    "name",
    "phone",
    "preferred_locales",
    "shipping",
)


class CustomerManager(ResourceManager):
    """Customer lifecycle, plus the source and subscription links."""

    object_name = "customer"
    id_prefix = ids.CUSTOMER
    url_path = "/v1/customers"

    def create(self, account_id: str, params: Mapping[str, Any] | None = None) -> Record:
        params = params or {}
        logger.debug("customer_create", account_id=account_id, params=params)

        customer_id = self._claim_id(account_id, params)
        customer: Record = {
            "id": customer_id,
            "object": ObjectKind.CUSTOMER.value,
            "account_balance": 0,
            "address": params.get("address"),
            "balance": 0,
            "created": now(),
            "currency": None,
            "default_source": None,
            "delinquent": False,
            "description": params.get("description"),
            "discount": None,
            "email": params.get("email"),
            "invoice_prefix": ids.generate_id(8).upper(),
            "invoice_settings": {
                "custom_fields": None,
                "default_payment_method": None,
                "footer": None,
            },
            "livemode": False,
            "metadata": stringify_metadata(params.get("metadata")),
            "name": params.get("name"),
            "phone": params.get("phone"),
            "preferred_locales": list(params.get("preferred_locales") or []),
            "shipping": params.get("shipping"),
            "sources": list_envelope([], f"/v1/customers/{customer_id}/sources"),
            "subscriptions": list_envelope([], f"/v1/customers/{customer_id}/subscriptions"),
            "tax_exempt": "none",
        }
        self._store.put(account_id, customer)

        if params.get("source"):
            self.create_card(account_id, customer_id, {"source": params["source"]})

        logger.debug("customer_created", account_id=account_id, customer_id=customer_id)
        return customer

    def update(self, account_id: str, customer_id: str, params: Mapping[str, Any]) -> Record:
        logger.debug(
            "customer_update", account_id=account_id, customer_id=customer_id, params=params
        )

        customer = self.retrieve(account_id, customer_id)
        if "default_source" in params:
            # Validate before mutating anything.
            self._emulator.cards.retrieve(
                account_id, customer_id, params["default_source"], "default_source"
            )

        for key in UPDATABLE_FIELDS:
            if key in params:
                customer[key] = params[key]
        if "metadata" in params:
            customer["metadata"] = merge_metadata(customer["metadata"], params["metadata"])

        if params.get("source"):
            card = self.create_card(account_id, customer_id, {"source": params["source"]})
            customer["default_source"] = card["id"]
        if "default_source" in params:
            customer["default_source"] = params["default_source"]

        return customer

    def list(self, account_id: str, params: Mapping[str, Any] | None = None) -> Record:
        params = params or {}
        email = params.get("email")
        predicate = (lambda customer: customer["email"] == email) if email else None
        return self._list(account_id, params, predicate)

    def create_card(
        self, account_id: str, customer_id: str, params: Mapping[str, Any]
    ) -> Record:
        """Attach a new card to the customer's sources.

        The first card attached becomes the customer's ``default_source``.

        Raises:
            ResourceMissingError: no such customer (``param="customer"``)
        """
        customer = self.retrieve(account_id, customer_id, "customer")
        card = self._emulator.cards.materialize(account_id, params, customer_id=customer["id"])

        sources = customer["sources"]
        sources["data"].append(card)
        sources["total_count"] = len(sources["data"])
        if not customer["default_source"]:
            customer["default_source"] = card["id"]

        logger.debug(
            "customer_card_created",
            account_id=account_id,
            customer_id=customer_id,
            card_id=card["id"],
        )
        return card

    def add_subscription(
        self, account_id: str, customer_id: str, subscription: Record
    ) -> None:
        """Link a subscription to its owning customer."""
        customer = self._store.get(account_id, customer_id)
        if customer is None:
            raise ResourceMissingError(f"No such customer: {customer_id}", param="customer")

        subscriptions = customer["subscriptions"]
        subscriptions["data"].append(subscription)
        subscriptions["total_count"] = len(subscriptions["data"])
