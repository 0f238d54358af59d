"""Tests for phone number normalization."""

import pytest

from partner_notifier.utils.phone import format_phone_number


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5551234567", "+15551234567"),
        ("(555) 123-4567", "+15551234567"),
        ("555.123.4567", "+15551234567"),
        ("15551234567", "+15551234567"),
        ("447700900123", "+447700900123"),
    ],
)
def test_numbers_without_plus_are_normalized(raw, expected):
    assert format_phone_number(raw) == expected


def test_plus_numbers_pass_through_unchanged():
    assert format_phone_number("+44 20 7946 0958") == "+44 20 7946 0958"


def test_custom_country_code():
    assert format_phone_number("2079460958", country_code="44") == "+442079460958"
