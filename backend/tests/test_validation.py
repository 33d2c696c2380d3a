# Overview: Pytest coverage for payload validation, money conversion and small helpers.

import pytest

from posx.models import PaymentMethod
from posx.money import format_amount, from_cents, to_cents
from posx.time_utils import hour_label_12h, parse_iso_datetime, to_utc_z
from posx.validation import (
    MAX_PRICE_CENTS,
    Field,
    PayloadPolicy,
    ValidationError,
    coerce_int,
    coerce_money,
    validate_payload,
)

POLICY = PayloadPolicy(
    fields={
        "name": Field("name", "str", nullable=False, max_length=5),
        "price": Field("price_cents", "money", nullable=False),
        "count": Field("count", "int"),
        "active": Field("is_active", "bool"),
    },
    required_on_create=frozenset({"name", "price"}),
)


class TestMoney:

    @pytest.mark.parametrize("value, cents", [
        (2.5, 250),
        ("2.50", 250),
        (0.1 + 0.2, 30),
        (1.005, 101),
        (3, 300),
    ])
    def test_to_cents(self, value, cents):
        assert to_cents(value) == cents

    @pytest.mark.parametrize("value", [True, None, "abc", "nan", "inf", 1e30, "1e30", "-1e40"])
    def test_to_cents_rejects(self, value):
        with pytest.raises(ValueError):
            to_cents(value)

    @pytest.mark.parametrize("value", [1e30, "1e30", "10000000.00"])
    def test_coerce_money_rejects_oversized(self, value):
        with pytest.raises(ValidationError):
            coerce_money("totalAmount", value)

    def test_coerce_money_upper_bound(self):
        assert coerce_money("price", "9999999.99") == MAX_PRICE_CENTS

    def test_from_cents(self):
        assert from_cents(1234) == 12.34
        assert from_cents(None) is None

    def test_format_amount(self):
        assert format_amount(1234) == "$12.34"
        assert format_amount(None) == "$0.00"
        assert format_amount(-50) == "$-0.50"


class TestCoerceInt:

    def test_accepts(self):
        assert coerce_int("n", 3) == 3
        assert coerce_int("n", " 42 ") == 42
        assert coerce_int("n", 3.0) == 3

    @pytest.mark.parametrize("value", [True, "1.5", "1e3", "", 1.5, [1]])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_int("n", value)


class TestValidatePayload:

    def test_normalizes_to_model_attributes(self):
        patch = validate_payload(
            payload={"name": " Cola ", "price": "2.5", "count": "3", "active": "true"},
            policy=POLICY,
            partial=False,
        )
        assert patch == {"name": "Cola", "price_cents": 250, "count": 3, "is_active": True}

    def test_missing_required(self):
        with pytest.raises(ValidationError, match="Missing required fields: price"):
            validate_payload(payload={"name": "Cola"}, policy=POLICY, partial=False)

    def test_partial_skips_required(self):
        assert validate_payload(payload={"count": 1}, policy=POLICY, partial=True) == {"count": 1}

    def test_unknown_field(self):
        with pytest.raises(ValidationError, match="Field not allowed: color"):
            validate_payload(payload={"color": "red"}, policy=POLICY, partial=True)

    def test_null_on_non_nullable(self):
        with pytest.raises(ValidationError, match="name cannot be null"):
            validate_payload(payload={"name": None}, policy=POLICY, partial=True)

    def test_blank_and_long_strings(self):
        with pytest.raises(ValidationError, match="cannot be blank"):
            validate_payload(payload={"name": "   "}, policy=POLICY, partial=True)
        with pytest.raises(ValidationError, match="max length"):
            validate_payload(payload={"name": "Lemonade"}, policy=POLICY, partial=True)

    def test_bad_bool(self):
        with pytest.raises(ValidationError):
            validate_payload(payload={"active": "maybe"}, policy=POLICY, partial=True)

    def test_payload_must_be_object(self):
        with pytest.raises(ValidationError, match="Invalid JSON payload"):
            validate_payload(payload=["name"], policy=POLICY, partial=True)


class TestSmallHelpers:

    @pytest.mark.parametrize("label, method", [
        ("cash", PaymentMethod.CASH),
        (" CASH ", PaymentMethod.CASH),
        ("Member", PaymentMethod.MEMBER),
        ("qr", PaymentMethod.QR),
        ("Alipay", PaymentMethod.OTHERS),
        (None, PaymentMethod.OTHERS),
    ])
    def test_payment_method_parse(self, label, method):
        assert PaymentMethod.parse(label) is method

    @pytest.mark.parametrize("hour, label", [(0, "12:00 AM"), (9, "9:00 AM"), (12, "12:00 PM"), (23, "11:00 PM")])
    def test_hour_label(self, hour, label):
        assert hour_label_12h(hour) == label

    def test_datetimes_are_utc(self):
        parsed = parse_iso_datetime("2024-05-01T10:00:00+02:00")
        assert parsed.isoformat() == "2024-05-01T08:00:00"
        assert to_utc_z(parsed) == "2024-05-01T08:00:00Z"
