"""Tests for customers and their card sources."""

import pytest

from stripe_emulator import StripeEmulator
from stripe_emulator.exceptions import (
    InvalidRequestError,
    ResourceAlreadyExistsError,
    ResourceMissingError,
)


class TestCustomerCreate:
    """Tests for CustomerManager.create."""

    def test_create_customer(self, emulator: StripeEmulator, account_id: str):
        customer = emulator.customers.create(
            account_id,
            {"email": "test@example.com", "name": "Test User", "metadata": {"tier": 2}},
        )
        assert customer["id"].startswith("cus_")
        assert customer["object"] == "customer"
        assert customer["email"] == "test@example.com"
        assert customer["name"] == "Test User"
        assert customer["metadata"] == {"tier": "2"}
        assert customer["default_source"] is None
        assert customer["sources"]["total_count"] == 0
        assert customer["sources"]["url"] == f"/v1/customers/{customer['id']}/sources"

    def test_create_with_source(self, emulator: StripeEmulator, account_id: str):
        """Test that a source becomes the customer's default card."""
        customer = emulator.customers.create(account_id, {"source": "tok_mastercard"})

        sources = customer["sources"]
        assert sources["total_count"] == 1
        assert len(sources["data"]) == 1
        card = sources["data"][0]
        assert card["object"] == "card"
        assert card["brand"] == "MasterCard"
        assert card["last4"] == "4444"
        assert card["customer"] == customer["id"]
        assert customer["default_source"] == card["id"]

    def test_create_with_explicit_id(self, emulator: StripeEmulator, account_id: str):
        customer = emulator.customers.create(account_id, {"id": "cus_fixed"})
        assert customer["id"] == "cus_fixed"

    def test_duplicate_id_raises(self, emulator: StripeEmulator, account_id: str):
        emulator.customers.create(account_id, {"id": "cus_fixed"})

        with pytest.raises(ResourceAlreadyExistsError) as exc_info:
            emulator.customers.create(account_id, {"id": "cus_fixed"})
        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "resource_already_exists"

    def test_same_id_in_other_account(
        self, emulator: StripeEmulator, account_id: str, other_account_id: str
    ):
        emulator.customers.create(account_id, {"id": "cus_fixed"})
        customer = emulator.customers.create(other_account_id, {"id": "cus_fixed"})
        assert customer["id"] == "cus_fixed"

    def test_unknown_token_raises(self, emulator: StripeEmulator, account_id: str):
        with pytest.raises(ResourceMissingError) as exc_info:
            emulator.customers.create(account_id, {"source": "tok_nonexistent"})
        assert exc_info.value.param == "source"


class TestCustomerRetrieveUpdateList:
    """Tests for retrieve, update and list."""

    def test_retrieve(self, emulator: StripeEmulator, account_id: str, customer: dict):
        assert emulator.customers.retrieve(account_id, customer["id"]) is customer

    def test_retrieve_missing(self, emulator: StripeEmulator, account_id: str):
        with pytest.raises(ResourceMissingError) as exc_info:
            emulator.customers.retrieve(account_id, "cus_nonexistent", "customer")
        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "resource_missing"
        assert exc_info.value.param == "customer"
        assert exc_info.value.message == "No such customer: cus_nonexistent"

    def test_not_visible_from_other_account(
        self, emulator: StripeEmulator, other_account_id: str, customer: dict
    ):
        with pytest.raises(ResourceMissingError):
            emulator.customers.retrieve(other_account_id, customer["id"])
        assert emulator.customers.list(other_account_id)["data"] == []

    def test_update_fields(self, emulator: StripeEmulator, account_id: str, customer: dict):
        updated = emulator.customers.update(
            account_id,
            customer["id"],
            {"description": "VIP", "metadata": {"a": "1"}},
        )
        assert updated is customer
        assert emulator.customers.retrieve(account_id, customer["id"])["description"] == "VIP"
        assert updated["metadata"] == {"a": "1"}

    def test_update_with_source_replaces_default(
        self, emulator: StripeEmulator, account_id: str, customer: dict
    ):
        first_card = customer["default_source"]
        emulator.customers.update(account_id, customer["id"], {"source": "tok_amex"})

        assert customer["sources"]["total_count"] == 2
        assert customer["default_source"] != first_card

    def test_update_default_source_must_exist(
        self, emulator: StripeEmulator, account_id: str, customer: dict
    ):
        with pytest.raises(ResourceMissingError) as exc_info:
            emulator.customers.update(
                account_id, customer["id"], {"default_source": "card_unknown"}
            )
        assert exc_info.value.param == "default_source"

    def test_list_filter_by_email(self, emulator: StripeEmulator, account_id: str):
        emulator.customers.create(account_id, {"email": "a@example.com"})
        emulator.customers.create(account_id, {"email": "b@example.com"})
        emulator.customers.create(account_id, {"email": "a@example.com"})

        page = emulator.customers.list(account_id, {"email": "a@example.com"})
        assert page["total_count"] == 2
        assert all(c["email"] == "a@example.com" for c in page["data"])


class TestCards:
    """Tests for cards owned by customers."""

    def test_create_card(self, emulator: StripeEmulator, account_id: str, customer: dict):
        card = emulator.customers.create_card(account_id, customer["id"], {"source": "tok_discover"})

        assert card["id"].startswith("card_")
        assert card["customer"] == customer["id"]
        assert customer["sources"]["data"][-1] is card
        assert customer["sources"]["total_count"] == len(customer["sources"]["data"]) == 2

    def test_create_card_for_missing_customer(self, emulator: StripeEmulator, account_id: str):
        with pytest.raises(ResourceMissingError) as exc_info:
            emulator.cards.create(account_id, "cus_nonexistent", {"source": "tok_visa"})
        assert exc_info.value.param == "customer"

    def test_inline_card(self, emulator: StripeEmulator, account_id: str, customer: dict):
        card = emulator.cards.create(
            account_id,
            customer["id"],
            {
                "source": {
                    "object": "card",
                    "number": "378282246310005",
                    "exp_month": 4,
                    "exp_year": 2031,
                    "cvc": "1234",
                    "name": "Ada",
                    "address_zip": "12345",
                }
            },
        )
        assert card["brand"] == "American Express"
        assert card["last4"] == "0005"
        assert card["exp_month"] == 4
        assert card["exp_year"] == 2031
        assert card["name"] == "Ada"
        assert card["cvc_check"] == "unchecked"
        assert card["address_zip_check"] == "unchecked"

    def test_inline_card_without_number(
        self, emulator: StripeEmulator, account_id: str, customer: dict
    ):
        with pytest.raises(InvalidRequestError) as exc_info:
            emulator.cards.create(account_id, customer["id"], {"source": {"exp_month": 1}})
        assert exc_info.value.param == "source[number]"

    def test_inline_card_bad_expiry(
        self, emulator: StripeEmulator, account_id: str, customer: dict
    ):
        with pytest.raises(InvalidRequestError) as exc_info:
            emulator.cards.create(
                account_id,
                customer["id"],
                {"source": {"number": "4242424242424242", "exp_month": "soon"}},
            )
        assert exc_info.value.param == "source[exp_month]"
        assert exc_info.value.code == "parameter_invalid_integer"
        assert customer["sources"]["total_count"] == 1

    def test_retrieve_card_of_other_customer(
        self, emulator: StripeEmulator, account_id: str, customer: dict
    ):
        other = emulator.customers.create(account_id, {})
        with pytest.raises(ResourceMissingError):
            emulator.cards.retrieve(account_id, other["id"], customer["default_source"])

    def test_update_card(self, emulator: StripeEmulator, account_id: str, customer: dict):
        card = emulator.cards.update(
            account_id,
            customer["id"],
            customer["default_source"],
            {"name": "New Name", "exp_year": "2035", "metadata": {"k": "v"}},
        )
        assert card["name"] == "New Name"
        assert card["exp_year"] == 2035
        assert card["metadata"] == {"k": "v"}
        assert customer["sources"]["data"][0] is card

    def test_update_card_bad_expiry_changes_nothing(
        self, emulator: StripeEmulator, account_id: str, customer: dict
    ):
        card = customer["sources"]["data"][0]
        with pytest.raises(InvalidRequestError) as exc_info:
            emulator.cards.update(
                account_id,
                customer["id"],
                card["id"],
                {"name": "New Name", "exp_month": "May"},
            )
        assert exc_info.value.param == "exp_month"
        assert card["name"] is None
        assert isinstance(card["exp_month"], int)

    def test_list_cards(self, emulator: StripeEmulator, account_id: str, customer: dict):
        emulator.cards.create(account_id, customer["id"], {"source": "tok_amex"})
        other = emulator.customers.create(account_id, {"source": "tok_visa"})

        page = emulator.cards.list(account_id, customer["id"], {"limit": 1})
        assert page["total_count"] == 2
        assert page["has_more"] is True
        assert page["url"] == f"/v1/customers/{customer['id']}/sources"
        assert all(card["customer"] == customer["id"] for card in page["data"])

        rest = emulator.cards.list(
            account_id, customer["id"], {"starting_after": page["data"][0]["id"]}
        )
        assert len(rest["data"]) == 1
        assert rest["has_more"] is False
        assert other["default_source"] not in {c["id"] for c in rest["data"]}

    def test_list_cards_cursor_of_other_customer(
        self, emulator: StripeEmulator, account_id: str, customer: dict
    ):
        other = emulator.customers.create(account_id, {"source": "tok_visa"})
        with pytest.raises(ResourceMissingError) as exc_info:
            emulator.cards.list(
                account_id, customer["id"], {"starting_after": other["default_source"]}
            )
        assert exc_info.value.param == "starting_after"
