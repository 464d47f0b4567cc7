"""
Live Stripe client with the emulator's surface.

``LiveStripeClient`` exposes the same ``<resource>.<operation>(account_id,
...)`` methods as ``StripeEmulator`` but sends them to the real API through
the official ``stripe`` SDK. Fidelity tests run one body against both and
compare the results with ``stripe_emulator.assertions``.
"""

from collections.abc import Mapping
from typing import Any

import stripe
import structlog

from .config import StripeConfig

logger = structlog.get_logger(__name__)


class LiveResource:
    """create/retrieve/update/list for one Stripe resource class."""

    expand: tuple[str, ...] = ()

    def __init__(self, client: "LiveStripeClient", resource: Any):
        self._client = client
        self._resource = resource

    def _options(self, account_id: str | None) -> dict[str, Any]:
        return self._client.request_options(account_id)

    def _expand(self) -> dict[str, Any]:
        return {"expand": list(self.expand)} if self.expand else {}

    def create(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        logger.info("live_create", resource=self._resource.__name__, account_id=account_id)
        return self._resource.create(
            **self._expand(), **dict(params or {}), **self._options(account_id)
        )

    def retrieve(self, account_id: str, object_id: str, param_name: str = "id") -> Any:
        logger.info(
            "live_retrieve",
            resource=self._resource.__name__,
            account_id=account_id,
            object_id=object_id,
        )
        return self._resource.retrieve(object_id, **self._expand(), **self._options(account_id))

    def update(self, account_id: str, object_id: str, params: Mapping[str, Any]) -> Any:
        logger.info(
            "live_update",
            resource=self._resource.__name__,
            account_id=account_id,
            object_id=object_id,
        )
        return self._resource.modify(
            object_id, **self._expand(), **dict(params), **self._options(account_id)
        )

    def list(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._resource.list(**dict(params or {}), **self._options(account_id))


class LiveCustomers(LiveResource):
    expand = ("sources",)

    def create_card(self, account_id: str, customer_id: str, params: Mapping[str, Any]) -> Any:
        return stripe.Customer.create_source(
            customer_id, **dict(params), **self._options(account_id)
        )


class LiveCards:
    """Card sources, addressed through their customer."""

    def __init__(self, client: "LiveStripeClient"):
        self._client = client

    def create(self, account_id: str, customer_id: str, params: Mapping[str, Any]) -> Any:
        return stripe.Customer.create_source(
            customer_id, **dict(params), **self._client.request_options(account_id)
        )

    def retrieve(
        self, account_id: str, customer_id: str, card_id: str, param_name: str = "id"
    ) -> Any:
        return stripe.Customer.retrieve_source(
            customer_id, card_id, **self._client.request_options(account_id)
        )

    def update(
        self, account_id: str, customer_id: str, card_id: str, params: Mapping[str, Any]
    ) -> Any:
        return stripe.Customer.modify_source(
            customer_id, card_id, **dict(params), **self._client.request_options(account_id)
        )

    def list(
        self, account_id: str, customer_id: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        return stripe.Customer.list_sources(
            customer_id,
            object="card",
            **dict(params or {}),
            **self._client.request_options(account_id),
        )


class LiveSubscriptions(LiveResource):
    def cancel(
        self,
        account_id: str,
        subscription_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        params = params or {}
        if params.get("at_period_end"):
            return self.update(account_id, subscription_id, {"cancel_at_period_end": True})
        return stripe.Subscription.cancel(subscription_id, **self._options(account_id))


class LiveCharges(LiveResource):
    def capture(
        self,
        account_id: str,
        charge_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        return stripe.Charge.capture(
            charge_id, **dict(params or {}), **self._options(account_id)
        )


class LiveDisputes(LiveResource):
    def close(self, account_id: str, dispute_id: str) -> Any:
        return stripe.Dispute.close(dispute_id, **self._options(account_id))


class LiveStripeClient:
    """Live counterpart of ``StripeEmulator``.

    Account ids other than ``config.platform_account`` are sent as the
    ``Stripe-Account`` header, so connected accounts play the role of the
    emulator's tenants.
    """

    def __init__(self, config: StripeConfig):
        """Initialize the live client.

        Args:
            config: StripeConfig instance with API credentials
        """
        self.config = config
        stripe.max_network_retries = config.max_retries

        self.customers = LiveCustomers(self, stripe.Customer)
        self.cards = LiveCards(self)
        self.subscriptions = LiveSubscriptions(self, stripe.Subscription)
        self.charges = LiveCharges(self, stripe.Charge)
        self.refunds = LiveResource(self, stripe.Refund)
        self.disputes = LiveDisputes(self, stripe.Dispute)

        logger.info(
            "live_stripe_client_initialized",
            is_test_mode=config.is_test_mode,
        )

    def request_options(self, account_id: str | None) -> dict[str, Any]:
        """Per-request SDK options for the given account."""
        options: dict[str, Any] = {"api_key": self.config.api_key}
        if account_id and account_id != self.config.platform_account:
            options["stripe_account"] = account_id
        return options
