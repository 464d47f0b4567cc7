"""Tests for the structural comparison helpers."""

import copy

import pytest
import stripe

from stripe_emulator import StripeEmulator
from stripe_emulator.assertions import (
    _COMPARATORS,
    assert_error_thunks_are_equal,
    assert_errors_are_equal,
    assert_objects_are_basically_equal,
    comparable_error,
)
from stripe_emulator.exceptions import (
    CardError,
    InvalidRequestError,
    ResourceMissingError,
    UnsupportedObjectError,
)
from stripe_emulator.models import COMPARABLE_KINDS

ACCOUNT = "acct_compare"


def _charge(emulator: StripeEmulator, **params) -> dict:
    return emulator.charges.create(
        ACCOUNT, {"amount": 1200, "currency": "usd", "source": "tok_visa", **params}
    )


def _customer_with_cards(emulator: StripeEmulator) -> dict:
    customer = emulator.customers.create(ACCOUNT, {"email": "a@example.com", "source": "tok_visa"})
    emulator.cards.create(ACCOUNT, customer["id"], {"source": "tok_mastercard"})
    return customer


class TestObjectComparison:
    """Tests for assert_objects_are_basically_equal."""

    def test_every_comparable_kind_has_a_comparator(self):
        assert set(_COMPARATORS) == COMPARABLE_KINDS

    def test_charges_from_separate_emulators_match(self):
        mocked = _charge(StripeEmulator(), description="order")
        live = _charge(StripeEmulator(), description="order")

        assert mocked["id"] != live["id"]
        assert_objects_are_basically_equal(mocked, live, "charge with tok_visa")

    def test_untracked_field_is_ignored(self):
        mocked = _charge(StripeEmulator())
        live = copy.deepcopy(mocked)
        live["created"] += 100
        live["receipt_number"] = "1234-5678"
        live["balance_transaction"] = "txn_other"

        assert_objects_are_basically_equal(mocked, live)

    def test_tracked_field_difference_fails(self):
        mocked = _charge(StripeEmulator())
        live = copy.deepcopy(mocked)
        live["amount"] = 1300

        with pytest.raises(AssertionError) as exc_info:
            assert_objects_are_basically_equal(mocked, live, "amount check")
        text = str(exc_info.value)
        assert "charge.amount" in text
        assert "'amount'" in text
        assert "amount check" in text

    def test_charge_id_format_is_checked(self):
        mocked = _charge(StripeEmulator())
        live = copy.deepcopy(mocked)
        mocked = {**mocked, "id": "py_123"}

        with pytest.raises(AssertionError, match="charge.id"):
            assert_objects_are_basically_equal(mocked, live)

    def test_outcome_is_compared(self):
        mocked = _charge(StripeEmulator())
        live = copy.deepcopy(mocked)
        live["outcome"]["risk_level"] = "elevated"

        with pytest.raises(AssertionError, match="charge.outcome.risk_level"):
            assert_objects_are_basically_equal(mocked, live)

    def test_nested_refund_path(self):
        emulator = StripeEmulator()
        mocked = _charge(emulator)
        emulator.refunds.create(ACCOUNT, {"charge": mocked["id"], "amount": 200})
        live = copy.deepcopy(mocked)
        live["refunds"]["data"][0]["reason"] = "duplicate"

        with pytest.raises(AssertionError, match=r"charge\.refunds\.data\[0\]\.reason"):
            assert_objects_are_basically_equal(mocked, live)

    def test_incomplete_refunds_page_fails(self):
        emulator = StripeEmulator()
        mocked = _charge(emulator)
        emulator.refunds.create(ACCOUNT, {"charge": mocked["id"], "amount": 200})
        live = copy.deepcopy(mocked)
        mocked = copy.deepcopy(mocked)
        mocked["refunds"]["data"] = []

        with pytest.raises(AssertionError, match="full list"):
            assert_objects_are_basically_equal(mocked, live)

    def test_customers_with_cards_match(self):
        mocked = _customer_with_cards(StripeEmulator())
        live = _customer_with_cards(StripeEmulator())

        assert_objects_are_basically_equal(mocked, live)

    def test_card_back_reference_mismatch_fails(self):
        mocked = _customer_with_cards(StripeEmulator())
        live = copy.deepcopy(mocked)
        live["sources"]["data"][1]["customer"] = "cus_someone_else"

        with pytest.raises(AssertionError) as exc_info:
            assert_objects_are_basically_equal(mocked, live)
        text = str(exc_info.value)
        assert "customer.sources.data[1].customer" in text
        assert "expected" in text

    def test_card_field_difference_fails(self):
        mocked = _customer_with_cards(StripeEmulator())
        live = copy.deepcopy(mocked)
        live["sources"]["data"][0]["last4"] = "0000"

        with pytest.raises(AssertionError, match=r"sources\.data\[0\]\.last4"):
            assert_objects_are_basically_equal(mocked, live)

    def test_sources_on_one_side_only(self):
        mocked = _customer_with_cards(StripeEmulator())
        live = copy.deepcopy(mocked)
        live["sources"] = None

        with pytest.raises(AssertionError, match="only one side"):
            assert_objects_are_basically_equal(mocked, live)

    def test_sources_absent_on_both_sides(self):
        mocked = copy.deepcopy(_customer_with_cards(StripeEmulator()))
        mocked.pop("sources")
        live = copy.deepcopy(mocked)

        assert_objects_are_basically_equal(mocked, live)

    def test_default_source_presence(self):
        mocked = _customer_with_cards(StripeEmulator())
        live = copy.deepcopy(mocked)
        live["default_source"] = None

        with pytest.raises(AssertionError, match="default_source"):
            assert_objects_are_basically_equal(mocked, live)

    def test_lists(self):
        first, second = StripeEmulator(), StripeEmulator()
        for emulator in (first, second):
            for _ in range(3):
                _charge(emulator)

        mocked = first.charges.list(ACCOUNT, {"limit": 2})
        live = second.charges.list(ACCOUNT, {"limit": 2})
        assert_objects_are_basically_equal(mocked, live)

        shorter = second.charges.list(ACCOUNT, {"limit": 1})
        with pytest.raises(AssertionError, match="length 2 != 1"):
            assert_objects_are_basically_equal(mocked, shorter)

    def test_disputes_and_refunds(self):
        first, second = StripeEmulator(), StripeEmulator()
        charges = [_charge(emulator, source="tok_createDispute") for emulator in (first, second)]

        assert_objects_are_basically_equal(
            first.disputes.retrieve(ACCOUNT, charges[0]["dispute"]),
            second.disputes.retrieve(ACCOUNT, charges[1]["dispute"]),
        )
        assert_objects_are_basically_equal(
            first.refunds.create(ACCOUNT, {"charge": charges[0]["id"]}),
            second.refunds.create(ACCOUNT, {"charge": charges[1]["id"]}),
        )

    def test_kind_mismatch_fails(self):
        emulator = StripeEmulator()
        customer = emulator.customers.create(ACCOUNT, {})
        with pytest.raises(AssertionError, match="'object'"):
            assert_objects_are_basically_equal(customer, _charge(emulator))

    @pytest.mark.parametrize("kind", ["subscription", "plan", "invoice"])
    def test_unsupported_kind(self, kind):
        with pytest.raises(UnsupportedObjectError):
            assert_objects_are_basically_equal({"object": kind}, {"object": kind})

    def test_none_fails(self):
        with pytest.raises(AssertionError, match="actual is None"):
            assert_objects_are_basically_equal(None, {"object": "charge"})


class TestErrorComparison:
    """Tests for error normalization and comparison."""

    def test_emulator_errors_match(self):
        assert_errors_are_equal(
            ResourceMissingError("No such charge: ch_1", param="id"),
            ResourceMissingError("No such charge: ch_2", param="id"),
        )

    def test_param_difference_fails(self):
        with pytest.raises(AssertionError, match="error.raw.param"):
            assert_errors_are_equal(
                ResourceMissingError("No such customer: cus_1", param="id"),
                ResourceMissingError("No such customer: cus_1", param="customer"),
            )

    def test_error_and_object(self):
        with pytest.raises(AssertionError, match="both should be errors"):
            assert_objects_are_basically_equal(
                InvalidRequestError("bad"), {"object": "charge"}
            )

    def test_stripe_sdk_error_is_normalized(self):
        message = "Your card was declined."
        live = stripe.CardError(
            message,
            None,
            "card_declined",
            http_status=402,
            json_body={
                "error": {
                    "code": "card_declined",
                    "decline_code": "generic_decline",
                    "doc_url": "https://stripe.com/docs/error-codes/card-declined",
                    "message": message,
                    "type": "card_error",
                }
            },
        )
        mocked = CardError(message, decline_code="generic_decline", charge="ch_1")

        normalized = comparable_error(live)
        assert normalized.status_code == 402
        assert normalized.raw_type == "card_error"
        assert normalized.type == "CardError"
        assert_objects_are_basically_equal(mocked, live)

    def test_thunks(self):
        emulator = StripeEmulator()

        def missing_customer():
            emulator.customers.retrieve(ACCOUNT, "cus_nonexistent")

        assert_error_thunks_are_equal(missing_customer, missing_customer)

        with pytest.raises(AssertionError, match="nothing was raised"):
            assert_error_thunks_are_equal(missing_customer, lambda: None)
