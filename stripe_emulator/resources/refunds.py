"""Refunds of charges."""

from collections.abc import Mapping
from typing import Any

import structlog

from .. import ids
from ..exceptions import InvalidRequestError
from ..models import ChargeStatus, ObjectKind, Record, id_of
from ..utils import merge_metadata, now, stringify_metadata
from .base import ResourceManager
from .charges import parse_amount

logger = structlog.get_logger(__name__)


class RefundManager(ResourceManager):
    """Refund lifecycle.

    Each refund is also prepended to its charge's ``refunds`` list (newest
    first, like the live API) and the charge's refunded totals are kept in
    step.
    """

    object_name = "refund"
    id_prefix = ids.REFUND
    url_path = "/v1/refunds"

    def create(self, account_id: str, params: Mapping[str, Any]) -> Record:
        """Refund all or part of a charge.

        Raises:
            ResourceMissingError: the charge does not exist
            InvalidRequestError: the charge is failed or already refunded,
                or ``amount`` exceeds what is left to refund
        """
        logger.debug("refund_create", account_id=account_id, params=params)

        refund_id = self._claim_id(account_id, params)
        charge_id = id_of(params.get("charge"), "charge")
        if not charge_id:
            raise InvalidRequestError(
                "Missing required param: charge.", code="parameter_missing", param="charge"
            )
        charge = self._emulator.charges.retrieve(account_id, charge_id, "charge")

        if charge["status"] == ChargeStatus.FAILED.value:
            raise InvalidRequestError(
                f"Charge {charge_id} has failed and cannot be refunded.", param="charge"
            )
        remaining = charge["amount"] - charge["amount_refunded"]
        if remaining <= 0:
            raise InvalidRequestError(
                f"Charge {charge_id} has already been refunded.",
                code="charge_already_refunded",
            )

        amount = remaining
        if params.get("amount") is not None:
            amount = parse_amount(params["amount"])
            if amount < 1:
                raise InvalidRequestError(
                    "This value must be greater than or equal to 1.",
                    code="parameter_invalid_integer",
                    param="amount",
                )
            if amount > remaining:
                raise InvalidRequestError(
                    f"Refund amount ({amount}) is greater than unrefunded amount on "
                    f"charge ({remaining})",
                    code="amount_too_large",
                    param="amount",
                )

        refund: Record = {
            "id": refund_id,
            "object": ObjectKind.REFUND.value,
            "amount": amount,
            "balance_transaction": self._new_id(ids.TRANSACTION),
            "charge": charge_id,
            "created": now(),
            "currency": charge["currency"],
            "metadata": stringify_metadata(params.get("metadata")),
            "reason": params.get("reason"),
            "receipt_number": None,
            "source_transfer_reversal": None,
            "status": "succeeded",
            "transfer_reversal": None,
        }
        self._store.put(account_id, refund)

        refunds = charge["refunds"]
        refunds["data"].insert(0, refund)
        refunds["total_count"] = len(refunds["data"])
        charge["amount_refunded"] += amount
        charge["refunded"] = charge["amount_refunded"] == charge["amount"]

        logger.debug(
            "refund_created",
            account_id=account_id,
            refund_id=refund_id,
            charge_id=charge_id,
            amount=amount,
        )
        return refund

    def update(self, account_id: str, refund_id: str, params: Mapping[str, Any]) -> Record:
        logger.debug("refund_update", account_id=account_id, refund_id=refund_id)

        refund = self.retrieve(account_id, refund_id)
        if "metadata" in params:
            refund["metadata"] = merge_metadata(refund["metadata"], params["metadata"])
        return refund

    def list(self, account_id: str, params: Mapping[str, Any] | None = None) -> Record:
        params = params or {}
        charge_id = id_of(params.get("charge"), "charge")
        predicate = (lambda refund: refund["charge"] == charge_id) if charge_id else None
        return self._list(account_id, params, predicate)
