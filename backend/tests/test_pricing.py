"""
Price parsing/formatting and catalog payload validation.
"""

from decimal import Decimal

import pytest

from carwash.models import Product, Service
from carwash.pricing import format_currency, format_price, parse_price, validate_price
from carwash.services.products_service import PRODUCT_POLICY
from carwash.services.detailing_service import SERVICE_POLICY
from carwash.validation import ValidationError, enforce_rules_catalog_item, validate_payload


class TestParsePrice:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1500,50", Decimal("1500.50")),
            ("1.500,50", Decimal("1500.50")),
            ("  250 ", Decimal("250")),
            ("99.9", Decimal("99.9")),
            ("1.500", Decimal("1500")),
            ("12.345.678", Decimal("12345678")),
            ("1.50", Decimal("1.50")),
            (1200, Decimal("1200")),
            (12.5, Decimal("12.5")),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "1,2,3", True, "NaN"])
    def test_invalid(self, raw):
        assert parse_price(raw) is None

    def test_format_parses_back(self):
        for value in (Decimal("0.01"), Decimal("1500.5"), Decimal("999999999.99")):
            assert parse_price(format_price(value)) == value


class TestValidatePrice:

    @pytest.mark.parametrize("raw", ["0", "-5", "1000000000", "10,555"])
    def test_rejects(self, raw):
        with pytest.raises(ValidationError):
            validate_price(parse_price(raw))

    def test_accepts_two_decimals(self):
        assert validate_price(Decimal("10.50")) == Decimal("10.50")


class TestFormatting:

    def test_format_price(self):
        assert format_price(Decimal("1500.5")) == "1500,50"
        assert format_price(None) is None

    def test_format_currency(self):
        assert format_currency(Decimal("1500.5")) == "$ 1.500,50"
        assert format_currency(Decimal("1234567.891")) == "$ 1.234.567,89"


class TestCatalogPayloads:

    def test_product_create_requires_name_and_price(self):
        with pytest.raises(ValidationError) as exc:
            validate_payload(model=Product, payload={"name": "Cera", "price": ""}, policy=PRODUCT_POLICY,
                             partial=False)
        assert "price" in str(exc.value)

    def test_product_price_decimal_comma(self):
        patch = validate_payload(model=Product, payload={"name": " Cera ", "price": "3200,00", "stock": "4"},
                                 policy=PRODUCT_POLICY, partial=False)
        enforce_rules_catalog_item(patch)
        assert patch == {"name": "Cera", "price": Decimal("3200.00"), "stock": 4}

    @pytest.mark.parametrize("stock", ["1.5", "1e3", 2.0, -1])
    def test_stock_must_be_non_negative_integer(self, stock):
        with pytest.raises(ValidationError):
            patch = validate_payload(model=Product, payload={"stock": stock}, policy=PRODUCT_POLICY, partial=True)
            enforce_rules_catalog_item(patch)

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            validate_payload(model=Product, payload={"id": 3}, policy=PRODUCT_POLICY, partial=True)

    @pytest.mark.parametrize("minutes,ok", [(30, True), (0, False), (1441, False)])
    def test_service_duration(self, minutes, ok):
        patch = validate_payload(model=Service, payload={"duration_minutes": minutes}, policy=SERVICE_POLICY,
                                 partial=True)
        if ok:
            enforce_rules_catalog_item(patch)
        else:
            with pytest.raises(ValidationError):
                enforce_rules_catalog_item(patch)
