import pytest

from src.edu_center.edu_center.common.datetime_utils import parse_timestamp, to_iso
from src.edu_center.edu_center.common.validators import (
    optional_number,
    parse_id,
    require_bool,
    require_iso_date,
    require_non_empty,
)
from src.edu_center.edu_center.core.exceptions import ValidationError


@pytest.mark.parametrize("value,expected", [("12", 12), (" 7 ", 7), (3, 3)])
def test_parse_id_accepts_positive_integers(value, expected):
    assert parse_id(value) == expected


@pytest.mark.parametrize("value", ["abc", "", None, "0", "-3", 0, True, "1.5"])
def test_parse_id_rejects_everything_else(value):
    with pytest.raises(ValidationError) as exc:
        parse_id(value)
    assert exc.value.message == "Invalid id format"


def test_require_non_empty_trims():
    assert require_non_empty("  Ali ", "Name") == "Ali"
    with pytest.raises(ValidationError):
        require_non_empty("   ", "Name")


def test_optional_number():
    assert optional_number(None, "Price") is None
    assert optional_number("", "Price") is None
    assert optional_number("800000", "Price") == 800000
    assert optional_number(12.5, "Price") == 12.5
    with pytest.raises(ValidationError):
        optional_number(True, "Price")


def test_require_bool_is_strict():
    assert require_bool(False, "paid") is False
    with pytest.raises(ValidationError):
        require_bool("true", "paid")


def test_require_iso_date():
    assert require_iso_date("2024-02-29", "Date") == "2024-02-29"
    with pytest.raises(ValidationError):
        require_iso_date("2023-02-29", "Date")


def test_timestamps_round_trip_in_utc():
    parsed = parse_timestamp("2023-10-25T09:00:00.000Z")

    assert parsed.utcoffset().total_seconds() == 0
    assert to_iso(parsed) == "2023-10-25T09:00:00.000Z"
    assert parse_timestamp("2023-10-25T09:00:00") == parsed
