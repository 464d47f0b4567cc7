"""
    stripe-emulator - In-memory, multi-tenant Stripe API emulator.

    Lets client code be tested without network calls, plus structural
    assertions that check emulated objects against live API objects.

Example usage:
    from stripe_emulator import StripeEmulator
    from stripe_emulator.assertions import assert_objects_are_basically_equal

    emulator = StripeEmulator()

    # Create a customer with a card
    customer = emulator.customers.create("acct_test", {"source": "tok_visa"})

    # Charge it
    charge = emulator.charges.create(
        "acct_test",
        {"amount": 2000, "currency": "usd", "customer": customer["id"]},
    )

    # Page through charges
    page = emulator.charges.list("acct_test", {"limit": 3})
"""

from .config import EmulatorConfig, StripeConfig
from .emulator import StripeEmulator
from .exceptions import (
    CardError,
    InvalidRequestError,
    ResourceAlreadyExistsError,
    ResourceMissingError,
    StripeAPIError,
    StripeConfigError,
    StripeError,
    UnsupportedObjectError,
)
from .live import LiveStripeClient
from .models import (
    ChargeStatus,
    DisputeStatus,
    Expanded,
    ListOptions,
    ObjectKind,
    Reference,
    SubscriptionStatus,
    id_of,
)
from .pagination import apply_list_options
from .store import AccountData
from .utils import stringify_metadata
from .version import __version__

__all__ = [
    # Emulator
    "StripeEmulator",
    "AccountData",
    "apply_list_options",
    "stringify_metadata",
    # Live client
    "LiveStripeClient",
    # Config
    "EmulatorConfig",
    "StripeConfig",
    # Exceptions
    "StripeError",
    "StripeAPIError",
    "InvalidRequestError",
    "ResourceAlreadyExistsError",
    "ResourceMissingError",
    "CardError",
    "UnsupportedObjectError",
    "StripeConfigError",
    # Models
    "ObjectKind",
    "SubscriptionStatus",
    "ChargeStatus",
    "DisputeStatus",
    "ListOptions",
    "Reference",
    "Expanded",
    "id_of",
    # Version
    "__version__",
]
