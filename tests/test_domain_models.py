"""Unit tests for domain models."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from partner_notifier.domain.models import ContactRecord, DocumentKind, DocumentSummary


class TestDocumentKind:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("Invoice", DocumentKind.INVOICE),
            ("invoice", DocumentKind.INVOICE),
            ("ORDER", DocumentKind.ORDER),
            ("DeliveryNote", DocumentKind.DELIVERY_NOTE),
            ("delivery_note", DocumentKind.DELIVERY_NOTE),
            ("Delivery Note", DocumentKind.DELIVERY_NOTE),
            (DocumentKind.QUOTATION, DocumentKind.QUOTATION),
        ],
    )
    def test_parse(self, value, expected):
        assert DocumentKind.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Must be one of: Invoice, Order, Quotation, DeliveryNote"):
            DocumentKind.parse("CreditNote")

    @pytest.mark.parametrize(
        "kind, collection",
        [
            (DocumentKind.INVOICE, "Invoices"),
            (DocumentKind.ORDER, "Orders"),
            (DocumentKind.QUOTATION, "Quotations"),
            (DocumentKind.DELIVERY_NOTE, "DeliveryNotes"),
        ],
    )
    def test_collection(self, kind, collection):
        assert kind.collection == collection


class TestContactRecord:
    def test_from_service_layer(self):
        contact = ContactRecord.from_service_layer(
            {
                "CardCode": "C20000",
                "CardName": "Acme Corp",
                "EmailAddress": "billing@acme.com",
                "Cellular": "5551234567",
                "Phone1": "5550000000",
            }
        )

        assert contact.code == "C20000"
        assert contact.name == "Acme Corp"
        assert contact.email == "billing@acme.com"
        assert contact.phone_number == "5551234567"

    def test_phone_used_when_no_mobile(self):
        contact = ContactRecord(code="C1", mobile="", phone="5550000000")

        assert contact.mobile is None
        assert contact.phone_number == "5550000000"

    def test_no_phone_number(self):
        contact = ContactRecord(code="C1", mobile=None, phone="  ")

        assert contact.phone_number is None

    def test_blank_email_is_none(self):
        assert ContactRecord(code="C1", email="").email is None

    def test_missing_name_defaults_to_empty(self):
        assert ContactRecord(code="C1", name=None).name == ""

    def test_code_required(self):
        with pytest.raises(ValidationError):
            ContactRecord(code="   ")

    def test_immutable(self):
        contact = ContactRecord(code="C1")

        with pytest.raises(ValidationError):
            contact.email = "new@acme.com"


class TestDocumentSummary:
    def test_from_service_layer(self):
        document = DocumentSummary.from_service_layer(
            DocumentKind.INVOICE,
            {
                "DocEntry": 15,
                "DocNum": 1001,
                "CardCode": "C20000",
                "CardName": "Acme Corp",
                "DocDate": "2024-03-15T00:00:00Z",
                "DocTotal": 1250.1,
                "DocumentStatus": "bost_Open",
            },
        )

        assert document.kind is DocumentKind.INVOICE
        assert document.entry == 15
        assert document.number == 1001
        assert document.contact_name == "Acme Corp"
        assert document.total == Decimal("1250.1")
        assert document.status == "bost_Open"

    def test_missing_total_defaults_to_zero(self):
        document = DocumentSummary(
            kind=DocumentKind.ORDER, entry=1, number=1, contact_code="C1", total=None
        )

        assert document.total == Decimal("0")

    def test_number_must_be_positive(self):
        with pytest.raises(ValidationError):
            DocumentSummary(kind=DocumentKind.ORDER, entry=1, number=0, contact_code="C1")

    def test_missing_doc_num_raises_key_error(self):
        with pytest.raises(KeyError):
            DocumentSummary.from_service_layer(DocumentKind.ORDER, {"DocEntry": 1})
