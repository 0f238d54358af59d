"""Utility functions for time handling and phone number formatting."""

from .phone import format_phone_number
from .timestamps import (
    ensure_utc,
    format_document_date,
    format_timestamp,
    parse_iso_datetime,
    utc_now,
)

__all__ = [
    # Phone numbers
    "format_phone_number",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "format_timestamp",
    "format_document_date",
]
