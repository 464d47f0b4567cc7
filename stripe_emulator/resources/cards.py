"""
Card sources.

Cards are materialized from Stripe test tokens (``tok_visa``,
``tok_chargeDeclined`` ...) or from inline card details. A card attached to
a customer is stored and listed under that customer; a card used directly
on a charge is built but not stored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from .. import ids
from ..exceptions import InvalidRequestError, ResourceMissingError
from ..ids import generate_id
from ..models import ObjectKind, Record
from ..utils import merge_metadata, parse_integer, stringify_metadata
from .base import ResourceManager

if TYPE_CHECKING:
    from ..emulator import StripeEmulator
    from ..store import AccountData

logger = structlog.get_logger(__name__)

ADDRESS_FIELDS = (
    "address_city",
    "address_country",
    "address_line1",
    "address_line2",
    "address_state",
    "address_zip",
)
EXPIRY_FIELDS = ("exp_month", "exp_year")


@dataclass(frozen=True)
class CardBehavior:
    """How a test card behaves when charged."""

    brand: str
    last4: str
    funding: str = "credit"
    country: str = "US"
    decline_code: str | None = None
    error_code: str = "card_declined"
    decline_message: str = "Your card was declined."
    dispute: bool = False

    @property
    def declines(self) -> bool:
        return self.decline_code is not None


TEST_TOKENS: dict[str, CardBehavior] = {
    "tok_visa": CardBehavior("Visa", "4242"),
    "tok_visa_debit": CardBehavior("Visa", "5556", funding="debit"),
    "tok_mastercard": CardBehavior("MasterCard", "4444"),
    "tok_mastercard_debit": CardBehavior("MasterCard", "8210", funding="debit"),
    "tok_amex": CardBehavior("American Express", "8431"),
    "tok_discover": CardBehavior("Discover", "1117"),
    "tok_chargeDeclined": CardBehavior("Visa", "0002", decline_code="generic_decline"),
    "tok_chargeDeclinedInsufficientFunds": CardBehavior(
        "Visa",
        "9995",
        decline_code="insufficient_funds",
        decline_message="Your card has insufficient funds.",
    ),
    "tok_chargeDeclinedFraudulent": CardBehavior("Visa", "0019", decline_code="fraudulent"),
    "tok_chargeDeclinedExpiredCard": CardBehavior(
        "Visa",
        "0069",
        decline_code="expired_card",
        error_code="expired_card",
        decline_message="Your card has expired.",
    ),
    "tok_createDispute": CardBehavior("Visa", "0259", dispute=True),
}

# Full test card numbers that behave like their token counterparts.
TEST_NUMBERS: dict[str, str] = {
    "4000000000000002": "tok_chargeDeclined",
    "4000000000009995": "tok_chargeDeclinedInsufficientFunds",
    "4100000000000019": "tok_chargeDeclinedFraudulent",
    "4000000000000069": "tok_chargeDeclinedExpiredCard",
    "4000000000000259": "tok_createDispute",
}


def brand_for_number(number: str) -> str:
    """Card brand from the leading digits of a card number."""
    if number.startswith("4"):
        return "Visa"
    if number[:2] in ("34", "37"):
        return "American Express"
    if number.startswith(("6011", "65")):
        return "Discover"
    if number[:2] in ("51", "52", "53", "54", "55") or number.startswith("2"):
        return "MasterCard"
    return "Unknown"


def behavior_for_source(source: Any) -> CardBehavior:
    """Resolve a token or inline card into its charge behaviour."""
    if isinstance(source, str):
        behavior = TEST_TOKENS.get(source)
        if behavior is None:
            raise ResourceMissingError(f"No such token: '{source}'", param="source")
        return behavior

    if isinstance(source, Mapping):
        number = "".join(str(source.get("number", "")).split())
        if not number.isdigit() or len(number) < 12:
            raise InvalidRequestError(
                "Missing required param: source[number].",
                code="parameter_missing",
                param="source[number]",
            )
        token = TEST_NUMBERS.get(number)
        if token is not None:
            return TEST_TOKENS[token]
        return CardBehavior(brand_for_number(number), number[-4:])

    raise InvalidRequestError(f"Invalid source object: {source!r}", param="source")

def _parse_expiry(raw: Any, param: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    return parse_integer(raw, f"source[{param}]")


class CardManager(ResourceManager):
    """Cards attached to customers as payment sources."""

    object_name = "source"
    id_prefix = ids.CARD

    def __init__(self, emulator: StripeEmulator, store: AccountData[Record]):
        super().__init__(emulator, store)
        # (account_id, card_id) -> behaviour when charged
        self._behaviors: dict[tuple[str, str], CardBehavior] = {}

    def clear(self) -> None:
        super().clear()
        self._behaviors.clear()

    def materialize(
        self,
        account_id: str,
        params: Mapping[str, Any],
        customer_id: str | None = None,
    ) -> Record:
        """Build a card from ``params["source"]``.

        The card is stored only when it belongs to a customer.
        """
        source = params.get("source")
        behavior = behavior_for_source(source)
        card_id = self._claim_id(account_id, params)
        details: Mapping[str, Any] = source if isinstance(source, Mapping) else {}

        card: Record = {
            "id": card_id,
            "object": ObjectKind.CARD.value,
            "address_city": details.get("address_city"),
            "address_country": details.get("address_country"),
            "address_line1": details.get("address_line1"),
            "address_line1_check": "unchecked" if details.get("address_line1") else None,
            "address_line2": details.get("address_line2"),
            "address_state": details.get("address_state"),
            "address_zip": details.get("address_zip"),
            "address_zip_check": "unchecked" if details.get("address_zip") else None,
            "brand": behavior.brand,
            "country": behavior.country,
            "customer": customer_id,
            "cvc_check": "unchecked" if details.get("cvc") else None,
            "dynamic_last4": None,
            "exp_month": _parse_expiry(details.get("exp_month"), "exp_month", 12),
            "exp_year": _parse_expiry(
                details.get("exp_year"), "exp_year", datetime.now(timezone.utc).year + 1
            ),
            "fingerprint": generate_id(16),
            "funding": behavior.funding,
            "last4": behavior.last4,
            "metadata": stringify_metadata(params.get("metadata") or details.get("metadata")),
            "name": details.get("name"),
            "tokenization_method": None,
        }

        if customer_id:
            self._behaviors[(account_id, card_id)] = behavior
            self._store.put(account_id, card)

        logger.debug(
            "card_materialized",
            account_id=account_id,
            card_id=card_id,
            customer_id=customer_id,
            brand=behavior.brand,
        )
        return card

    def behavior_of(self, account_id: str, card_id: str) -> CardBehavior:
        return self._behaviors[(account_id, card_id)]

    def find(self, account_id: str, customer_id: str, card_id: str) -> Record | None:
        """Return the customer's card, or None."""
        card = self._store.get(account_id, card_id) if card_id else None
        if card is None or card["customer"] != customer_id:
            return None
        return card

    def create(self, account_id: str, customer_id: str, params: Mapping[str, Any]) -> Record:
        """Attach a new card to a customer."""
        return self._emulator.customers.create_card(account_id, customer_id, params)

    def retrieve(  # type: ignore[override]
        self,
        account_id: str,
        customer_id: str,
        card_id: str,
        param_name: str = "id",
    ) -> Record:
        """Return a card of the given customer.

        A card belonging to another customer is reported as missing.
        """
        card = self.find(account_id, customer_id, card_id)
        if card is None:
            raise ResourceMissingError(f"No such source: '{card_id}'", param=param_name)
        return card

    def update(
        self,
        account_id: str,
        customer_id: str,
        card_id: str,
        params: Mapping[str, Any],
    ) -> Record:
        logger.debug("card_update", account_id=account_id, card_id=card_id)

        card = self.retrieve(account_id, customer_id, card_id)
        expiry = {
            key: parse_integer(params[key], key) for key in EXPIRY_FIELDS if key in params
        }
        for key in ADDRESS_FIELDS + ("name",):
            if key in params:
                card[key] = params[key]
        card.update(expiry)
        if "metadata" in params:
            card["metadata"] = merge_metadata(card["metadata"], params["metadata"])
        return card

    def list(
        self,
        account_id: str,
        customer_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> Record:
        # Unknown customers are a 404, not an empty list.
        self._emulator.customers.retrieve(account_id, customer_id, "customer")

        def resolve(card_id: str, param_name: str) -> Record:
            return self.retrieve(account_id, customer_id, card_id, param_name)

        return self._list(
            account_id,
            params,
            predicate=lambda card: card["customer"] == customer_id,
            url=f"/v1/customers/{customer_id}/sources",
            resolver=resolve,
        )
