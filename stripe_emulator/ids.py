"""
Identifier generation.

Ids are a kind prefix plus a random alphanumeric tail, matching the shape of
live Stripe ids (``cus_...``, ``sub_...``) so client code that inspects
prefixes behaves the same against the emulator.
"""

import random
import string

ID_ALPHABET = string.ascii_letters + string.digits
DEFAULT_ID_LENGTH = 14

CARD = "card"
CHARGE = "ch"
CUSTOMER = "cus"
DISPUTE = "dp"
INVOICE = "in"
PRODUCT = "prod"
REFUND = "re"
SUBSCRIPTION = "sub"
SUBSCRIPTION_ITEM = "si"
TRANSACTION = "txn"


def generate_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """Return a random alphanumeric string of the given length."""
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(random.choices(ID_ALPHABET, k=length))


def new_id(prefix: str, length: int = DEFAULT_ID_LENGTH) -> str:
    """Return a fresh id for the given kind prefix."""
    return f"{prefix}_{generate_id(length)}"
