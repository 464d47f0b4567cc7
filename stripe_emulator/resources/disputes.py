"""
Disputes.

Disputes are opened by the emulator itself when a charge is paid with a
disputing test card (``tok_createDispute``); callers can then update
evidence or close them.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from .. import ids
from ..exceptions import InvalidRequestError
from ..models import DisputeStatus, ObjectKind, Record, id_of
from ..utils import merge_metadata, now
from .base import ResourceManager
from .charges import parse_flag

logger = structlog.get_logger(__name__)

RESPONSE_WINDOW = 7 * 24 * 60 * 60

EVIDENCE_FIELDS = (
    "access_activity_log",
    "billing_address",
    "cancellation_policy",
    "cancellation_policy_disclosure",
    "cancellation_rebuttal",
    "customer_communication",
    "customer_email_address",
    "customer_name",
    "customer_purchase_ip",
    "customer_signature",
    "duplicate_charge_documentation",
    "duplicate_charge_explanation",
    "duplicate_charge_id",
    "product_description",
    "receipt",
    "refund_policy",
    "refund_policy_disclosure",
    "refund_refusal_explanation",
    "service_date",
    "service_documentation",
    "shipping_address",
    "shipping_carrier",
    "shipping_date",
    "shipping_documentation",
    "shipping_tracking_number",
    "uncategorized_file",
    "uncategorized_text",
)

CLOSED_STATUSES = frozenset(
    {DisputeStatus.WON.value, DisputeStatus.LOST.value, DisputeStatus.WARNING_CLOSED.value}
)


class DisputeManager(ResourceManager):
    """Dispute lifecycle."""

    object_name = "dispute"
    id_prefix = ids.DISPUTE
    url_path = "/v1/disputes"

    def create(self, account_id: str, charge: Record) -> Record:
        """Open a dispute against a charge."""
        dispute_id = self._new_id()
        created = now()
        dispute: Record = {
            "id": dispute_id,
            "object": ObjectKind.DISPUTE.value,
            "amount": charge["amount"],
            "balance_transactions": [],
            "charge": charge["id"],
            "created": created,
            "currency": charge["currency"],
            "evidence": {field: None for field in EVIDENCE_FIELDS},
            "evidence_details": {
                "due_by": created + RESPONSE_WINDOW,
                "has_evidence": False,
                "past_due": False,
                "submission_count": 0,
            },
            "is_charge_refundable": False,
            "livemode": False,
            "metadata": {},
            "reason": "fraudulent",
            "status": DisputeStatus.NEEDS_RESPONSE.value,
        }
        self._store.put(account_id, dispute)

        logger.debug(
            "dispute_created",
            account_id=account_id,
            dispute_id=dispute_id,
            charge_id=charge["id"],
        )
        return dispute

    def _check_open(self, dispute: Record) -> None:
        if dispute["status"] in CLOSED_STATUSES:
            raise InvalidRequestError(
                f"This dispute is already closed: {dispute['id']}", param="id"
            )

    def update(self, account_id: str, dispute_id: str, params: Mapping[str, Any]) -> Record:
        """Stage or submit evidence and update metadata.

        Evidence is submitted unless ``submit`` is false, and submitting
        moves the dispute under review.
        """
        logger.debug("dispute_update", account_id=account_id, dispute_id=dispute_id)

        dispute = self.retrieve(account_id, dispute_id)
        self._check_open(dispute)

        evidence = params.get("evidence") or {}
        for key in evidence:
            if key not in EVIDENCE_FIELDS:
                raise InvalidRequestError(
                    f"Received unknown parameter: evidence[{key}]",
                    code="parameter_unknown",
                    param=f"evidence[{key}]",
                )

        if "metadata" in params:
            dispute["metadata"] = merge_metadata(dispute["metadata"], params["metadata"])

        if evidence:
            dispute["evidence"].update(evidence)
            details = dispute["evidence_details"]
            details["has_evidence"] = True
            if parse_flag(params.get("submit"), True):
                details["submission_count"] += 1
                dispute["status"] = DisputeStatus.UNDER_REVIEW.value
        return dispute

    def close(self, account_id: str, dispute_id: str) -> Record:
        """Accept the dispute as lost."""
        logger.debug("dispute_close", account_id=account_id, dispute_id=dispute_id)

        dispute = self.retrieve(account_id, dispute_id)
        self._check_open(dispute)
        dispute["status"] = DisputeStatus.LOST.value
        return dispute

    def list(self, account_id: str, params: Mapping[str, Any] | None = None) -> Record:
        params = params or {}
        charge_id = id_of(params.get("charge"), "charge")
        predicate = (lambda dispute: dispute["charge"] == charge_id) if charge_id else None
        return self._list(account_id, params, predicate)
