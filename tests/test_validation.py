"""Tests for trading record field validation."""

from datetime import date

import pytest

from stock_journal.records.validation import EDITABLE_FIELDS, validate_record_fields


def _fields(**overrides):
    base = {
        "trade_date": "2024-03-01",
        "stock_symbol": "msft",
        "transaction_type": "buy",
        "quantity": 3,
        "price": 410.5,
    }
    base.update(overrides)
    return base


class TestNormalization:

    def test_symbol_uppercased_and_fees_default_to_zero(self):
        v = validate_record_fields(_fields(stock_symbol="  msft "))

        assert v["stock_symbol"] == "MSFT"
        assert v["commission"] == 0
        assert v["tax"] == 0
        assert v["stock_name"] is None
        assert v["notes"] is None
        assert set(v) == set(EDITABLE_FIELDS)

    def test_blank_fee_strings_default_to_zero(self):
        v = validate_record_fields(_fields(commission="", tax="  "))
        assert v["commission"] == 0
        assert v["tax"] == 0

    def test_numeric_strings_are_parsed(self):
        v = validate_record_fields(_fields(quantity="10", price="12.25", tax="1.5"))
        assert v["quantity"] == 10
        assert v["price"] == 12.25
        assert v["tax"] == 1.5

    def test_transaction_type_case_insensitive(self):
        assert validate_record_fields(_fields(transaction_type="SELL"))["transaction_type"] == "sell"

    def test_date_objects_and_timestamps(self):
        assert validate_record_fields(_fields(trade_date=date(2023, 12, 31)))["trade_date"] == "2023-12-31"
        v = validate_record_fields(_fields(trade_date="2024-05-01T10:00:00.000Z"))
        assert v["trade_date"] == "2024-05-01"

    def test_zero_price_is_allowed(self):
        assert validate_record_fields(_fields(price=0))["price"] == 0


class TestRejections:

    @pytest.mark.parametrize(
        "overrides, code",
        [
            ({"trade_date": None}, "trade_date_required"),
            ({"trade_date": "2024-13-01"}, "trade_date_invalid"),
            ({"stock_symbol": "   "}, "stock_symbol_required"),
            ({"transaction_type": None}, "transaction_type_required"),
            ({"transaction_type": "hold"}, "invalid_transaction_type"),
            ({"quantity": None}, "quantity_required"),
            ({"quantity": 0}, "quantity_not_positive"),
            ({"quantity": -4}, "quantity_not_positive"),
            ({"quantity": "abc"}, "quantity_not_integer"),
            ({"quantity": 1.5}, "quantity_not_integer"),
            ({"price": None}, "price_required"),
            ({"price": "x"}, "price_not_numeric"),
            ({"price": -1}, "price_negative"),
            ({"price": float("nan")}, "price_not_numeric"),
            ({"commission": -0.01}, "commission_negative"),
            ({"tax": "n/a"}, "tax_not_numeric"),
        ],
    )
    def test_invalid_field(self, overrides, code):
        with pytest.raises(ValueError) as exc:
            validate_record_fields(_fields(**overrides))
        assert str(exc.value) == code
