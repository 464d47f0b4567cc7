"""
The emulator facade.

Wires one store per object kind to its lifecycle manager. Every
``StripeEmulator`` owns its own stores, so independent instances (one per
test, say) never see each other's data.
"""

import structlog

from .config import EmulatorConfig
from .models import Record
from .resources import (
    CardManager,
    ChargeManager,
    CustomerManager,
    DisputeManager,
    RefundManager,
    ResourceManager,
    SubscriptionManager,
)
from .store import AccountData
from .utils import now

logger = structlog.get_logger(__name__)


class StripeEmulator:
    """In-memory, multi-tenant Stripe emulator.

    Every operation takes the account id as its first argument; nothing
    created under one account is visible from another.

    Example:
        emulator = StripeEmulator()

        customer = emulator.customers.create("acct_a", {"source": "tok_visa"})
        subscription = emulator.subscriptions.create(
            "acct_a",
            {"customer": customer["id"], "items": [{"plan": "plan_gold", "quantity": 2}]},
        )
        page = emulator.subscriptions.list("acct_a", {"customer": customer["id"]})
    """

    def __init__(self, config: EmulatorConfig | None = None) -> None:
        self.config = config or EmulatorConfig()
        self.started_at = now()

        self.customers = CustomerManager(self, AccountData[Record]())
        self.cards = CardManager(self, AccountData[Record]())
        self.subscriptions = SubscriptionManager(self, AccountData[Record]())
        self.charges = ChargeManager(self, AccountData[Record]())
        self.refunds = RefundManager(self, AccountData[Record]())
        self.disputes = DisputeManager(self, AccountData[Record]())

        logger.debug("stripe_emulator_initialized", config=self.config)

    @property
    def managers(self) -> tuple[ResourceManager, ...]:
        return (
            self.customers,
            self.cards,
            self.subscriptions,
            self.charges,
            self.refunds,
            self.disputes,
        )

    def clear(self) -> None:
        """Clear all stored data."""
        for manager in self.managers:
            manager.clear()
