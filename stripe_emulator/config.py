"""
Emulator and live client configuration.

Standalone configuration with no app-specific dependencies.
"""

from dataclasses import dataclass

from .exceptions import StripeConfigError


@dataclass
class EmulatorConfig:
    """Configuration for the in-memory emulator.

    Args:
        default_list_limit: Page size used when a list call omits ``limit``
        max_list_limit: Largest ``limit`` a list call may request
        id_length: Length of the random part of generated identifiers
    """

    default_list_limit: int = 10
    max_list_limit: int = 100
    id_length: int = 14

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_list_limit < 1:
            raise StripeConfigError("max_list_limit must be positive")

        if not 1 <= self.default_list_limit <= self.max_list_limit:
            raise StripeConfigError(
                "default_list_limit must be between 1 and max_list_limit"
            )

        if self.id_length < 8:
            raise StripeConfigError("id_length must be at least 8")


@dataclass
class StripeConfig:
    """Configuration for the live Stripe client used in fidelity tests.

    Args:
        api_key: Stripe secret key (sk_live_* or sk_test_*)
        platform_account: Account id that maps to the platform itself;
            calls scoped to it are sent without a Stripe-Account header
        timeout: API request timeout in seconds
        max_retries: Maximum number of retries for failed requests
    """

    api_key: str
    platform_account: str | None = None
    timeout: float = 30.0
    max_retries: int = 3

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.api_key:
            raise StripeConfigError("api_key is required")

        if not self.api_key.startswith(("sk_live_", "sk_test_", "rk_live_", "rk_test_")):
            raise StripeConfigError(
                "api_key must be a valid Stripe secret key (sk_*) or restricted key (rk_*)"
            )

        if self.timeout <= 0:
            raise StripeConfigError("timeout must be positive")

        if self.max_retries < 0:
            raise StripeConfigError("max_retries must be non-negative")

    @property
    def is_test_mode(self) -> bool:
        """Check if using test mode API key."""
        return "_test_" in self.api_key

    @property
    def is_live_mode(self) -> bool:
        """Check if using live mode API key."""
        return "_live_" in self.api_key
