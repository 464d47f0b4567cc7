"""Per-kind lifecycle managers."""

from .base import ResourceManager
from .cards import CardBehavior, CardManager
from .charges import ChargeManager
from .customers import CustomerManager
from .disputes import DisputeManager
from .refunds import RefundManager
from .subscriptions import SubscriptionManager

__all__ = [
    "ResourceManager",
    "CardBehavior",
    "CardManager",
    "ChargeManager",
    "CustomerManager",
    "DisputeManager",
    "RefundManager",
    "SubscriptionManager",
]
