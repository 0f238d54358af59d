"""Test helper utilities for Partner Notifier tests."""

from .fakes import (
    FakeDirectory,
    FakeMailSender,
    FakeSMSSender,
    make_contact,
    make_document,
)

__all__ = [
    "FakeDirectory",
    "FakeMailSender",
    "FakeSMSSender",
    "make_contact",
    "make_document",
]
