"""Shared test fixtures."""

import os

import pytest
import structlog

from stripe_emulator import LiveStripeClient, StripeConfig, StripeEmulator


def pytest_configure(config):
    config.addinivalue_line("markers", "e2e: runs against the live Stripe API")


@pytest.fixture(autouse=True)
def configure_structlog():
    """Configure structlog for testing."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@pytest.fixture
def emulator() -> StripeEmulator:
    """Create a fresh emulator for each test."""
    return StripeEmulator()


@pytest.fixture
def account_id() -> str:
    return "acct_test_a"


@pytest.fixture
def other_account_id() -> str:
    return "acct_test_b"


@pytest.fixture
def customer(emulator: StripeEmulator, account_id: str) -> dict:
    """A customer with one Visa card as default source."""
    return emulator.customers.create(
        account_id, {"email": "buyer@example.com", "source": "tok_visa"}
    )


@pytest.fixture
def live_config() -> StripeConfig | None:
    """Create a config for E2E tests with real Stripe.

    Returns None if STRIPE_TEST_API_KEY is not set.
    """
    api_key = os.environ.get("STRIPE_TEST_API_KEY")
    if not api_key:
        return None

    return StripeConfig(
        api_key=api_key,
        platform_account=os.environ.get("STRIPE_TEST_PLATFORM_ACCOUNT"),
    )


@pytest.fixture
def live_client(live_config: StripeConfig | None) -> LiveStripeClient | None:
    """Create a live Stripe client for E2E tests.

    Returns None if STRIPE_TEST_API_KEY is not set.
    """
    if not live_config:
        return None
    return LiveStripeClient(live_config)


@pytest.fixture
def live_account_id() -> str | None:
    """Connected account used as the tenant in E2E tests.

    Returns None (the platform account) if STRIPE_TEST_ACCOUNT_ID is not set.
    """
    return os.environ.get("STRIPE_TEST_ACCOUNT_ID")
