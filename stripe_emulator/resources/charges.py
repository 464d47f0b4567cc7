"""
Charges.

A charge is paid from a card: a test token or inline card passed as
``source``, a card of ``customer``, or the customer's default source.
Declining test cards store a failed charge and then raise ``CardError``,
as the live API does.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from .. import ids
from ..exceptions import CardError, InvalidRequestError, ResourceMissingError
from ..models import ChargeStatus, ObjectKind, Record, id_of
from ..pagination import list_envelope
from ..utils import merge_metadata, now, parse_integer, stringify_metadata
from .base import ResourceManager
from .cards import CardBehavior, behavior_for_source

logger = structlog.get_logger(__name__)

MINIMUM_AMOUNT = 50
UPDATABLE_FIELDS = ("description", "fraud_details", "receipt_email", "shipping", "transfer_group")


def parse_amount(raw: Any, param: str = "amount") -> int:
    """Validate a positive integer amount in the currency's smallest unit."""
    if raw is None or raw == "":
        raise InvalidRequestError(
            f"Missing required param: {param}.", code="parameter_missing", param=param
        )
    amount = parse_integer(raw, param)
    if amount < 0:
        raise InvalidRequestError(
            f"Invalid integer: {raw}", code="parameter_invalid_integer", param=param
        )
    return amount


def parse_flag(raw: Any, default: bool) -> bool:
    """Read a boolean parameter that may arrive form-encoded."""
    if raw is None:
        return default
    if isinstance(raw, str):
        return raw.lower() == "true"
    return bool(raw)


def _outcome(behavior: CardBehavior) -> Record:
    if behavior.declines:
        return {
            "network_status": "declined_by_network",
            "reason": behavior.decline_code,
            "risk_level": "normal",
            "rule": None,
            "seller_message": "The bank did not return any further details with this decline.",
            "type": "issuer_declined",
        }
    return {
        "network_status": "approved_by_network",
        "reason": None,
        "risk_level": "normal",
        "rule": None,
        "seller_message": "Payment complete.",
        "type": "authorized",
    }


def _billing_details(card: Record) -> Record:
    return {
        "address": {
            "city": card["address_city"],
            "country": card["address_country"],
            "line1": card["address_line1"],
            "line2": card["address_line2"],
            "postal_code": card["address_zip"],
            "state": card["address_state"],
        },
        "email": None,
        "name": card["name"],
        "phone": None,
    }


class ChargeManager(ResourceManager):
    """Charge lifecycle; each charge owns its refunds list."""

    object_name = "charge"
    id_prefix = ids.CHARGE
    url_path = "/v1/charges"

    def _resolve_source(
        self, account_id: str, params: Mapping[str, Any]
    ) -> tuple[Record, CardBehavior]:
        """Return the card to charge and how it behaves."""
        cards = self._emulator.cards
        customer_id = id_of(params.get("customer"), "customer")
        source = params.get("source")

        if customer_id:
            customer = self._emulator.customers.retrieve(account_id, customer_id, "customer")
            if source:
                card = (
                    cards.find(account_id, customer_id, source)
                    if isinstance(source, str)
                    else None
                )
                if card is None:
                    raise ResourceMissingError(
                        f"Customer {customer_id} does not have a linked source with ID {source}.",
                        param="source",
                    )
                return card, cards.behavior_of(account_id, card["id"])
            if not customer["default_source"]:
                raise InvalidRequestError(
                    "Cannot charge a customer that has no active card",
                    code="missing",
                    param="card",
                )
            card = cards.retrieve(
                account_id, customer_id, customer["default_source"], "default_source"
            )
            return card, cards.behavior_of(account_id, card["id"])

        if source:
            # Unstored cards have no tracked behaviour.
            return cards.materialize(account_id, {"source": source}), behavior_for_source(source)

        raise InvalidRequestError(
            "Must provide source or customer.", code="parameter_missing", param="source"
        )

    def create(self, account_id: str, params: Mapping[str, Any]) -> Record:
        """Create a charge.

        Raises:
            InvalidRequestError: invalid amount/currency or no payment source
            ResourceMissingError: unknown customer, card or token
            CardError: the card declines; the failed charge is still stored
        """
        logger.debug("charge_create", account_id=account_id, params=params)

        charge_id = self._claim_id(account_id, params)
        amount = parse_amount(params.get("amount"))
        if amount < MINIMUM_AMOUNT:
            raise InvalidRequestError(
                "Amount must be at least 50 cents",
                code="amount_too_small",
                param="amount",
            )
        currency = params.get("currency")
        if not currency:
            raise InvalidRequestError(
                "Missing required param: currency.",
                code="parameter_missing",
                param="currency",
            )

        card, behavior = self._resolve_source(account_id, params)
        captured = parse_flag(params.get("capture"), True) and not behavior.declines

        charge: Record = {
            "id": charge_id,
            "object": ObjectKind.CHARGE.value,
            "amount": amount,
            "amount_refunded": 0,
            "application": None,
            "application_fee": None,
            "application_fee_amount": None,
            "balance_transaction": self._new_id(ids.TRANSACTION) if captured else None,
            "billing_details": _billing_details(card),
            "captured": captured,
            "created": now(),
            "currency": currency.lower(),
            "customer": card["customer"],
            "description": params.get("description"),
            "dispute": None,
            "failure_code": behavior.error_code if behavior.declines else None,
            "failure_message": behavior.decline_message if behavior.declines else None,
            "fraud_details": {},
            "invoice": None,
            "livemode": False,
            "metadata": stringify_metadata(params.get("metadata")),
            "on_behalf_of": params.get("on_behalf_of"),
            "outcome": _outcome(behavior),
            "paid": not behavior.declines,
            "payment_intent": None,
            "receipt_email": params.get("receipt_email"),
            "receipt_number": None,
            "refunded": False,
            "refunds": list_envelope([], f"/v1/charges/{charge_id}/refunds"),
            "review": None,
            "shipping": params.get("shipping"),
            "source": card,
            "source_transfer": None,
            "statement_descriptor": params.get("statement_descriptor"),
            "statement_descriptor_suffix": params.get("statement_descriptor_suffix"),
            "status": (
                ChargeStatus.FAILED.value if behavior.declines else ChargeStatus.SUCCEEDED.value
            ),
            "transfer_data": None,
            "transfer_group": params.get("transfer_group"),
        }
        self._store.put(account_id, charge)

        if behavior.declines:
            logger.debug(
                "charge_declined",
                account_id=account_id,
                charge_id=charge_id,
                decline_code=behavior.decline_code,
            )
            raise CardError(
                behavior.decline_message,
                decline_code=behavior.decline_code,
                charge=charge_id,
                code=behavior.error_code,
            )

        if behavior.dispute:
            dispute = self._emulator.disputes.create(account_id, charge)
            charge["dispute"] = dispute["id"]

        logger.debug("charge_created", account_id=account_id, charge_id=charge_id, amount=amount)
        return charge

    def update(self, account_id: str, charge_id: str, params: Mapping[str, Any]) -> Record:
        logger.debug("charge_update", account_id=account_id, charge_id=charge_id, params=params)

        charge = self.retrieve(account_id, charge_id)
        for key in UPDATABLE_FIELDS:
            if key in params:
                charge[key] = params[key]
        if "metadata" in params:
            charge["metadata"] = merge_metadata(charge["metadata"], params["metadata"])
        return charge

    def capture(
        self,
        account_id: str,
        charge_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> Record:
        """Capture an authorized charge.

        Capturing less than the authorized amount refunds the remainder.
        """
        params = params or {}
        logger.debug("charge_capture", account_id=account_id, charge_id=charge_id)

        charge = self.retrieve(account_id, charge_id)
        if charge["captured"]:
            raise InvalidRequestError(
                f"Charge {charge_id} has already been captured.",
                code="charge_already_captured",
            )
        if charge["status"] == ChargeStatus.FAILED.value:
            raise InvalidRequestError(f"Charge {charge_id} has failed and cannot be captured.")

        amount = charge["amount"]
        if params.get("amount") is not None:
            amount = parse_amount(params["amount"])
            if amount > charge["amount"]:
                raise InvalidRequestError(
                    f"Amount to capture ({amount}) is greater than the authorized "
                    f"amount ({charge['amount']}).",
                    code="amount_too_large",
                    param="amount",
                )

        charge["captured"] = True
        charge["balance_transaction"] = self._new_id(ids.TRANSACTION)
        if amount < charge["amount"]:
            self._emulator.refunds.create(
                account_id, {"charge": charge_id, "amount": charge["amount"] - amount}
            )
        return charge

    def list(self, account_id: str, params: Mapping[str, Any] | None = None) -> Record:
        params = params or {}
        customer_id = id_of(params.get("customer"), "customer")
        predicate = (lambda charge: charge["customer"] == customer_id) if customer_id else None
        return self._list(account_id, params, predicate)
