"""
Structural comparison of emulated objects against live API objects.

Only a fixed subset of fields is compared per object kind: live responses
carry ids, timestamps and fields the emulator does not reproduce. Objects
from the official ``stripe`` SDK and plain dicts from the emulator can be
mixed freely on either side.

Example:
    mocked = emulator.charges.create(account_id, params)
    live = live_client.charges.create(account_id, params)
    assert_objects_are_basically_equal(mocked, live, "charge with tok_visa")
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import stripe

from .exceptions import StripeAPIError, UnsupportedObjectError
from .models import ObjectKind

ComparableStripeObject: TypeAlias = BaseException | Mapping[str, Any]

CHARGE_ID_PATTERN = re.compile(r"^ch_")

COMPARABLE_ERROR_KEYS = ("code", "raw_type", "status_code", "type")
COMPARABLE_RAW_ERROR_KEYS = ("code", "decline_code", "doc_url", "param", "type")

CARD_KEYS = (
    "object",
    "address_city",
    "address_country",
    "address_line1",
    "address_line1_check",
    "address_line2",
    "address_state",
    "address_zip",
    "address_zip_check",
    "brand",
    "country",
    "cvc_check",
    "dynamic_last4",
    "exp_month",
    "exp_year",
    "funding",
    "last4",
    "metadata",
    "name",
    "tokenization_method",
)
CHARGE_KEYS = (
    "object",
    "amount",
    "amount_refunded",
    "application_fee",
    "application_fee_amount",
    "billing_details",
    "captured",
    "currency",
    "description",
    "failure_code",
    "failure_message",
    "metadata",
    "paid",
    "receipt_email",
    "refunded",
    "statement_descriptor",
    "statement_descriptor_suffix",
    "status",
    "transfer_group",
)
OUTCOME_KEYS = ("network_status", "reason", "risk_level", "rule", "seller_message", "type")
CUSTOMER_KEYS = (
    "object",
    "account_balance",
    "address",
    "balance",
    "currency",
    "delinquent",
    "description",
    "discount",
    "email",
    "invoice_settings",
    "livemode",
    "metadata",
    "name",
    "phone",
    "preferred_locales",
    "shipping",
)
DISPUTE_KEYS = (
    "object",
    "amount",
    "currency",
    "is_charge_refundable",
    "livemode",
    "metadata",
    "reason",
    "status",
)
REFUND_KEYS = ("object", "amount", "currency", "description", "metadata", "reason", "status")


@dataclass(frozen=True)
class ComparableError:
    """The parts of an API error that must match between mock and live."""

    code: str | None
    raw_type: str | None
    status_code: int | None
    type: str
    raw: dict[str, Any] = field(default_factory=dict)


def comparable_error(error: BaseException) -> ComparableError:
    """Normalize an emulator error or a ``stripe`` SDK error."""
    if isinstance(error, StripeAPIError):
        return ComparableError(
            code=error.code,
            raw_type=error.raw_type,
            status_code=error.status_code,
            type=error.type,
            raw=error.raw,
        )
    if isinstance(error, stripe.StripeError):
        body = error.json_body if isinstance(error.json_body, Mapping) else {}
        raw = dict(body.get("error") or {})
        return ComparableError(
            code=error.code,
            raw_type=raw.get("type"),
            status_code=error.http_status,
            type=type(error).__name__,
            raw=raw,
        )
    return ComparableError(code=None, raw_type=None, status_code=None, type=type(error).__name__)


def _field(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _plain(value: Any) -> Any:
    """Convert SDK objects to plain dicts and lists for deep equality."""
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return _plain(to_dict())
    return value


def _fail(path: str, detail: str, message: str) -> None:
    suffix = f" ({message})" if message else ""
    raise AssertionError(f"{path}: {detail}{suffix}")


def _assert_equal(actual: Any, expected: Any, path: str, detail: str, message: str) -> None:
    actual, expected = _plain(actual), _plain(expected)
    if actual != expected:
        _fail(path, f"{detail}: {actual!r} != {expected!r}", message)


def _assert_keys(
    actual: Any, expected: Any, keys: tuple[str, ...], path: str, message: str
) -> None:
    for key in keys:
        _assert_equal(
            _field(actual, key),
            _field(expected, key),
            f"{path}.{key}",
            f"comparing key '{key}'",
            message,
        )


def _assert_page_is_complete(envelope: Any, path: str, message: str) -> None:
    data = _field(envelope, "data") or []
    total_count = _field(envelope, "total_count")
    if len(data) != total_count:
        _fail(
            f"{path}.data",
            f"expected the full list of {total_count}, got {len(data)}",
            message,
        )


def assert_errors_are_equal(
    actual: BaseException, expected: BaseException, message: str = "", path: str = "error"
) -> None:
    actual_error, expected_error = comparable_error(actual), comparable_error(expected)
    for key in COMPARABLE_ERROR_KEYS:
        _assert_equal(
            getattr(actual_error, key),
            getattr(expected_error, key),
            f"{path}.{key}",
            f"comparing key '{key}'",
            message,
        )
    for key in COMPARABLE_RAW_ERROR_KEYS:
        _assert_equal(
            actual_error.raw.get(key),
            expected_error.raw.get(key),
            f"{path}.raw.{key}",
            f"comparing key 'raw.{key}'",
            message,
        )


def assert_error_thunks_are_equal(
    actual: Callable[[], Any], expected: Callable[[], Any], message: str = ""
) -> None:
    """Run both callables, require both to raise, and compare the errors."""
    actual_error: Exception | None = None
    try:
        actual()
    except Exception as e:
        actual_error = e

    expected_error: Exception | None = None
    try:
        expected()
    except Exception as e:
        expected_error = e

    if actual_error is None:
        _fail("actual", "expected an error, nothing was raised", message)
    if expected_error is None:
        _fail("expected", "expected an error, nothing was raised", message)
    assert_errors_are_equal(actual_error, expected_error, message)


def assert_lists_are_basically_equal(
    actual: Any, expected: Any, message: str = "", path: str = "list"
) -> None:
    actual_data = _field(actual, "data") or []
    expected_data = _field(expected, "data") or []
    if len(actual_data) != len(expected_data):
        _fail(
            f"{path}.data",
            f"length {len(actual_data)} != {len(expected_data)}",
            message,
        )
    _assert_keys(actual, expected, ("object", "has_more", "total_count"), path, message)

    for ix, (actual_item, expected_item) in enumerate(zip(actual_data, expected_data)):
        assert_objects_are_basically_equal(
            actual_item, expected_item, message, path=f"{path}.data[{ix}]"
        )


def assert_cards_are_basically_equal(
    actual: Any, expected: Any, message: str = "", path: str = "card"
) -> None:
    _assert_keys(actual, expected, CARD_KEYS, path, message)


def assert_charges_are_basically_equal(
    actual: Any, expected: Any, message: str = "", path: str = "charge"
) -> None:
    charge_id = _field(actual, "id") or ""
    if not CHARGE_ID_PATTERN.match(charge_id):
        _fail(f"{path}.id", f"actual charge id {charge_id!r} is not formatted correctly", message)

    _assert_keys(actual, expected, CHARGE_KEYS, path, message)

    actual_refunds = _field(actual, "refunds")
    expected_refunds = _field(expected, "refunds")
    _assert_equal(
        _field(actual_refunds, "total_count"),
        _field(expected_refunds, "total_count"),
        f"{path}.refunds.total_count",
        "comparing key 'total_count'",
        message,
    )
    _assert_page_is_complete(actual_refunds, f"{path}.refunds", message)

    _assert_keys(
        _field(actual, "outcome"),
        _field(expected, "outcome"),
        OUTCOME_KEYS,
        f"{path}.outcome",
        message,
    )
    assert_lists_are_basically_equal(actual_refunds, expected_refunds, message, f"{path}.refunds")


def assert_customers_are_basically_equal(
    actual: Any, expected: Any, message: str = "", path: str = "customer"
) -> None:
    _assert_keys(actual, expected, CUSTOMER_KEYS, path, message)

    if bool(_field(actual, "default_source")) != bool(_field(expected, "default_source")):
        _fail(
            f"{path}.default_source",
            "both should have default_source set or unset",
            message,
        )

    actual_sources = _field(actual, "sources")
    expected_sources = _field(expected, "sources")
    if actual_sources is None and expected_sources is None:
        return
    if actual_sources is None or expected_sources is None:
        _fail(f"{path}.sources", "only one side includes sources", message)

    _assert_equal(
        _field(actual_sources, "total_count"),
        _field(expected_sources, "total_count"),
        f"{path}.sources.total_count",
        "comparing key 'total_count'",
        message,
    )
    _assert_page_is_complete(actual_sources, f"{path}.sources", message)

    actual_data = _field(actual_sources, "data")
    expected_data = _field(expected_sources, "data") or []
    for ix, expected_source in enumerate(expected_data):
        actual_source = actual_data[ix]
        source_path = f"{path}.sources.data[{ix}]"
        for side, source, owner in (
            ("actual", actual_source, actual),
            ("expected", expected_source, expected),
        ):
            if _field(source, "object") != ObjectKind.CARD.value:
                _fail(
                    f"{source_path}.object",
                    f"only card checking is supported, {side} is {_field(source, 'object')!r}",
                    message,
                )
            if _field(source, "customer") != _field(owner, "id"):
                _fail(
                    f"{source_path}.customer",
                    f"{side} source belongs to {_field(source, 'customer')!r}, "
                    f"not its customer {_field(owner, 'id')!r}",
                    message,
                )
        assert_cards_are_basically_equal(actual_source, expected_source, message, source_path)


def assert_disputes_are_basically_equal(
    actual: Any, expected: Any, message: str = "", path: str = "dispute"
) -> None:
    _assert_keys(actual, expected, DISPUTE_KEYS, path, message)


def assert_refunds_are_basically_equal(
    actual: Any, expected: Any, message: str = "", path: str = "refund"
) -> None:
    _assert_keys(actual, expected, REFUND_KEYS, path, message)


_COMPARATORS: dict[ObjectKind, Callable[[Any, Any, str, str], None]] = {
    ObjectKind.CARD: assert_cards_are_basically_equal,
    ObjectKind.CHARGE: assert_charges_are_basically_equal,
    ObjectKind.CUSTOMER: assert_customers_are_basically_equal,
    ObjectKind.DISPUTE: assert_disputes_are_basically_equal,
    ObjectKind.LIST: assert_lists_are_basically_equal,
    ObjectKind.REFUND: assert_refunds_are_basically_equal,
}


def assert_objects_are_basically_equal(
    actual: ComparableStripeObject | None,
    expected: ComparableStripeObject | None,
    message: str = "",
    path: str | None = None,
) -> None:
    """Assert that two objects of the same kind match on their compared keys.

    Args:
        actual: Object (or error) produced by the emulator
        expected: Object (or error) returned by the live API
        message: Context appended to every failure message
        path: Nesting path used in failure messages; defaults to the kind

    Raises:
        AssertionError: a compared field differs
        UnsupportedObjectError: the kind has no comparator
    """
    if actual is None:
        _fail(path or "actual", "actual is None", message)
    if expected is None:
        _fail(path or "expected", "expected is None", message)

    actual_is_error = isinstance(actual, BaseException)
    expected_is_error = isinstance(expected, BaseException)
    if actual_is_error or expected_is_error:
        if not (actual_is_error and expected_is_error):
            _fail(path or "error", "both should be errors", message)
        assert_errors_are_equal(actual, expected, message, path or "error")
        return

    actual_kind = _field(actual, "object")
    expected_kind = _field(expected, "object")
    if actual_kind != expected_kind:
        _fail(
            f"{path or 'object'}.object",
            f"comparing key 'object': {actual_kind!r} != {expected_kind!r}",
            message,
        )

    try:
        kind = ObjectKind(actual_kind)
    except ValueError:
        raise UnsupportedObjectError(f"Unhandled Stripe object type: {actual_kind}") from None
    compare = _COMPARATORS.get(kind)
    if compare is None:
        raise UnsupportedObjectError(f"Unhandled Stripe object type: {actual_kind}")

    compare(actual, expected, message, path or kind.value)
