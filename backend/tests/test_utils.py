from datetime import datetime
from decimal import Decimal

import pytest

from schoolpay.config import Config, usable_secret
from schoolpay.errors import PayloadError
from schoolpay.gateways.base import as_dict, as_minor, parse_timestamp
from schoolpay.utils.academic_year import AcademicYear
from schoolpay.utils.grades import GRADE_LEVELS, GRADUATED, next_grade
from schoolpay.utils.jwt_utils import create_access_token, decode_token, get_bearer_token
from schoolpay.utils.money import major_to_minor, minor_to_major, to_money


def test_academic_year_parse_and_next():
    year = AcademicYear.parse(" 2024-2025 ")
    assert year.label == "2024-2025"
    assert year.next().label == "2025-2026"


@pytest.mark.parametrize("raw", ["2024/2025", "2024-2024", "2024-2026", "abcd-efgh", None])
def test_academic_year_rejects_malformed(raw):
    with pytest.raises(ValueError):
        AcademicYear.parse(raw)


def test_academic_year_window_is_half_open():
    start, end = AcademicYear(2024, 2025).window()
    assert start == datetime(2024, 8, 1)
    assert end == datetime(2025, 8, 1)
    assert AcademicYear(2024, 2025).window(9) == (datetime(2024, 9, 1), datetime(2025, 9, 1))


def test_minor_units_conversion():
    assert minor_to_major(5000) == Decimal("50.00")
    assert minor_to_major("1999") == Decimal("19.99")
    assert minor_to_major(1) == Decimal("0.01")
    assert major_to_minor("50") == 5000
    assert major_to_minor(19.99) == 1999


def test_to_money_rejects_garbage():
    assert to_money("12.345") == Decimal("12.35")
    with pytest.raises(ValueError):
        to_money("twelve")
    with pytest.raises(ValueError):
        minor_to_major(True)


def test_grade_sequence():
    assert next_grade("Basic 4") == "Basic 5"
    assert next_grade("JHS 3") == GRADUATED
    assert next_grade(GRADUATED) == GRADUATED
    assert next_grade("Form 9") == "Form 9"
    assert GRADE_LEVELS[0] == "Creche"


def test_timestamp_parsing():
    assert parse_timestamp("2024-10-02T09:15:00Z") == datetime(2024, 10, 2, 9, 15)
    assert parse_timestamp("2024-10-02T10:15:00+01:00") == datetime(2024, 10, 2, 9, 15)
    assert parse_timestamp(0) == datetime(1970, 1, 1)
    assert parse_timestamp(None) is None
    with pytest.raises(PayloadError):
        parse_timestamp("yesterday")


def test_as_dict_accepts_json_strings():
    assert as_dict('{"a": 1}') == {"a": 1}
    assert as_dict("[1]") == {}
    assert as_dict("{broken") == {}
    assert as_dict(None) == {}


def test_tokens():
    secret = "k" * 40
    token = create_access_token(7, secret)
    assert decode_token(token, secret)["sub"] == "7"
    assert decode_token(token, "x" * 40) is None
    assert get_bearer_token(f"Bearer {token}") == token
    assert get_bearer_token("Basic abc") is None


def test_placeholder_secrets_are_unset():
    assert usable_secret("YOUR_PAYSTACK_SECRET_KEY") == ""
    assert usable_secret("  sk_test_1 ") == "sk_test_1"
    assert usable_secret(None) == ""


def test_config_from_env():
    cfg = Config.from_env({
        "DATABASE_URL": "postgres://u:p@db/schoolpay",
        "PAYSTACK_SECRET_KEY": "sk_test_abc",
        "STRIPE_WEBHOOK_SECRET": "YOUR_STRIPE_WEBHOOK_SECRET",
        "ACADEMIC_YEAR_START_MONTH": "9",
        "CORS_ORIGINS": "https://a.example, https://b.example",
    })
    assert cfg.database_url == "postgresql://u:p@db/schoolpay"
    assert cfg.paystack_secret_key == "sk_test_abc"
    assert cfg.stripe_webhook_secret == ""
    assert cfg.academic_year_start_month == 9
    assert cfg.cors_origins == ["https://a.example", "https://b.example"]
    assert not cfg.is_production


def test_production_config_requires_secrets():
    with pytest.raises(RuntimeError):
        Config.from_env({"SCHOOLPAY_ENV": "production", "DATABASE_URL": "postgresql://db/x"})
    with pytest.raises(RuntimeError):
        Config.from_env({"SCHOOLPAY_ENV": "production", "SECRET_KEY": "s" * 32})


def test_start_month_is_validated():
    with pytest.raises(RuntimeError):
        Config.from_env({"DATABASE_URL": "sqlite://", "ACADEMIC_YEAR_START_MONTH": "13"})


def test_minor_amounts_must_be_whole():
    assert as_minor(5000) == 5000
    assert as_minor(5000.0) == 5000
    assert as_minor("5000") == 5000
    for bad in (5000.7, "5000.7", True, "abc"):
        with pytest.raises(PayloadError):
            as_minor(bad)
