"""Tests for the HTTP API.

The app is built around a real NotificationDispatcher wired to in-memory
fakes, so these tests cover request validation, status code mapping and the
response envelopes end to end.
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from partner_notifier import __version__
from partner_notifier.api import create_app
from partner_notifier.domain.models import DocumentKind
from partner_notifier.notifications.dispatcher import NotificationDispatcher
from partner_notifier.notifications.templates import TemplateRenderer
from partner_notifier.service_layer.exceptions import ServiceLayerTimeoutError
from tests.helpers import (
    FakeDirectory,
    FakeMailSender,
    FakeSMSSender,
    make_contact,
    make_document,
)


@pytest.fixture
def directory():
    return FakeDirectory(
        contacts=[
            make_contact("C1", "Acme Corp", email="billing@acme.example", mobile="5551110001"),
            make_contact("C2", "Globex", email=None, mobile=None, phone="5552220002"),
        ],
        documents=[make_document(DocumentKind.INVOICE, 1001, "C1", "Acme Corp")],
    )


@pytest.fixture
def mail_sender():
    return FakeMailSender()


@pytest.fixture
def sms_sender():
    return FakeSMSSender()


@pytest.fixture
def dispatcher(directory, mail_sender, sms_sender):
    return NotificationDispatcher(
        directory=directory,
        mail_sender=mail_sender,
        sms_sender=sms_sender,
        template_renderer=TemplateRenderer(company_name="Acme Supplies"),
        sleep=Mock(),
    )


@pytest.fixture
def on_shutdown():
    return Mock()


@pytest.fixture
def client(dispatcher, directory, on_shutdown):
    app = create_app(dispatcher, directory=directory, on_shutdown=on_shutdown)
    with TestClient(app) as test_client:
        yield test_client


class TestServiceEndpoints:
    def test_root_describes_service(self, client):
        response = client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Partner Notifier"
        assert body["version"] == __version__
        assert body["status"] == "running"
        assert body["endpoints"]["sendEmail"] == "POST /api/email"

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["timestamp"].endswith("Z")

    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self, client):
        response = client.get("/api/health")

        assert len(response.headers["X-Request-ID"]) == 12

    def test_shutdown_hook_runs_once(self, dispatcher, on_shutdown):
        with TestClient(create_app(dispatcher, on_shutdown=on_shutdown)):
            on_shutdown.assert_not_called()

        on_shutdown.assert_called_once_with()


class TestEmailEndpoint:
    def test_send_to_partner(self, client, mail_sender):
        response = client.post(
            "/api/email",
            json={"businessPartnerCode": "C1", "subject": "Hello", "text": "Hi there"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Email sent successfully"
        assert body["data"]["recipients"] == ["billing@acme.example"]
        assert mail_sender.sent[0].text == "Hi there"

    def test_send_to_raw_address_list(self, client, mail_sender):
        response = client.post(
            "/api/email",
            json={"to": ["a@example.com", "b@example.com"], "subject": "Hello", "html": "<p>Hi</p>"},
        )

        assert response.status_code == 200
        assert mail_sender.sent[0].to == ("a@example.com", "b@example.com")

    def test_invoice_template_needs_no_body(self, client, mail_sender):
        response = client.post(
            "/api/email",
            json={
                "businessPartnerCode": "C1",
                "subject": "ignored",
                "documentType": "Invoice",
                "documentNumber": 1001,
            },
        )

        assert response.status_code == 200
        assert mail_sender.sent[0].subject == "Invoice #1001 - Acme Corp"

    @pytest.mark.parametrize(
        "payload, error",
        [
            ({"to": "a@example.com", "text": "Hi"}, "Subject is required"),
            (
                {"subject": "Hello", "text": "Hi"},
                "Either businessPartnerCode or to (email address) is required",
            ),
            ({"to": "a@example.com", "subject": "Hello"}, "Either text or html is required"),
        ],
    )
    def test_validation_errors(self, client, mail_sender, payload, error):
        response = client.post("/api/email", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}
        assert mail_sender.sent == []

    def test_unknown_document_type(self, client):
        response = client.post(
            "/api/email",
            json={"to": "a@example.com", "subject": "Hello", "text": "Hi", "documentType": "Memo"},
        )

        assert response.status_code == 400
        assert "Unknown document type 'Memo'" in response.json()["error"]

    def test_partner_not_found(self, client):
        response = client.post(
            "/api/email", json={"businessPartnerCode": "C404", "subject": "Hello", "text": "Hi"}
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Business Partner C404 not found"}

    def test_partner_without_email(self, client):
        response = client.post(
            "/api/email", json={"businessPartnerCode": "C2", "subject": "Hello", "text": "Hi"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Business Partner C2 does not have an email address"

    def test_malformed_field_type(self, client):
        response = client.post(
            "/api/email",
            json={"to": "a@example.com", "subject": "Hello", "text": "Hi", "documentNumber": "abc"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid value for documentNumber")

    def test_invalid_json(self, client):
        response = client.post(
            "/api/email", content="{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestSMSEndpoint:
    def test_send_to_partner(self, client, sms_sender):
        response = client.post("/api/sms", json={"businessPartnerCode": "C1", "message": "Hi"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "SMS sent successfully"
        assert body["data"]["sid"].startswith("SM")
        assert sms_sender.sent[0].body == "Hi"

    def test_raw_number_overrides_partner_number(self, client, sms_sender):
        response = client.post(
            "/api/sms", json={"businessPartnerCode": "C1", "to": "+15559990000", "message": "Hi"}
        )

        assert response.status_code == 200
        assert sms_sender.sent[0].to == ("+15559990000",)

    @pytest.mark.parametrize(
        "payload, error",
        [
            ({"to": "+15559990000"}, "Message is required"),
            ({"message": "Hi"}, "Either businessPartnerCode or to (phone number) is required"),
        ],
    )
    def test_validation_errors(self, client, payload, error):
        response = client.post("/api/sms", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}

    def test_channel_disabled(self, client, sms_sender, directory):
        sms_sender.enabled = False

        response = client.post("/api/sms", json={"businessPartnerCode": "C1", "message": "Hi"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "SMS service is not configured"}
        assert directory.lookup_count == 0

    def test_unexpected_error_is_500(self, directory):
        dispatcher = Mock(spec=NotificationDispatcher)
        dispatcher.send_sms.side_effect = RuntimeError("boom")

        with TestClient(create_app(dispatcher, directory=directory)) as client:
            response = client.post("/api/sms", json={"to": "+15559990000", "message": "Hi"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}


class TestDocumentNotificationEndpoint:
    def test_both_channels(self, client, mail_sender, sms_sender):
        response = client.post(
            "/api/document-notification",
            json={"businessPartnerCode": "C1", "documentType": "Invoice", "documentNumber": 1001},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Sent 2 of 2 notifications"
        assert body["data"]["email"]["success"] is True
        assert body["data"]["sms"]["success"] is True
        assert len(mail_sender.sent) == 1
        assert len(sms_sender.sent) == 1

    def test_email_only(self, client, sms_sender):
        response = client.post(
            "/api/document-notification",
            json={
                "businessPartnerCode": "C1",
                "documentType": "invoice",
                "documentNumber": 1001,
                "includeSMS": False,
            },
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Sent 1 of 1 notifications"
        assert response.json()["data"]["sms"] is None
        assert sms_sender.sent == []

    def test_nothing_attempted_is_400(self, client):
        response = client.post(
            "/api/document-notification",
            json={
                "businessPartnerCode": "C1",
                "documentType": "Invoice",
                "documentNumber": 1001,
                "includeEmail": False,
                "includeSMS": False,
            },
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Sent 0 of 0 notifications"

    def test_document_not_found(self, client):
        response = client.post(
            "/api/document-notification",
            json={"businessPartnerCode": "C1", "documentType": "Invoice", "documentNumber": 9999},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invoice 9999 not found"}

    @pytest.mark.parametrize(
        "payload, error",
        [
            ({"documentType": "Invoice", "documentNumber": 1}, "businessPartnerCode is required"),
            (
                {"businessPartnerCode": "C1", "documentNumber": 1},
                "documentType is required (Invoice, Order, Quotation, or DeliveryNote)",
            ),
            (
                {"businessPartnerCode": "C1", "documentType": "Invoice"},
                "documentNumber is required",
            ),
        ],
    )
    def test_validation_errors(self, client, payload, error):
        response = client.post("/api/document-notification", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}


class TestBulkNotificationEndpoint:
    def test_partial_success(self, client, mail_sender):
        response = client.post(
            "/api/bulk-notifications",
            json={
                "businessPartnerCodes": ["C1", "C2", "C404"],
                "subject": "Closure",
                "message": "We are closed on Friday",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Successfully sent notifications to 1 of 3 business partners"
        assert [item["businessPartnerCode"] for item in body["data"]] == ["C1", "C2", "C404"]
        assert body["data"][0]["sms"] is None
        assert len(mail_sender.sent) == 1

    def test_all_failed_still_200(self, client):
        response = client.post(
            "/api/bulk-notifications",
            json={"businessPartnerCodes": ["C404"], "subject": "Closure", "message": "Closed"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is False

    @pytest.mark.parametrize(
        "payload, error",
        [
            ({"subject": "S", "message": "M"}, "businessPartnerCodes array is required"),
            ({"businessPartnerCodes": ["C1"], "message": "M"}, "subject is required"),
            ({"businessPartnerCodes": ["C1"], "subject": "S"}, "message is required"),
        ],
    )
    def test_validation_errors(self, client, payload, error):
        response = client.post("/api/bulk-notifications", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}

    def test_codes_must_be_a_list(self, client):
        response = client.post(
            "/api/bulk-notifications",
            json={"businessPartnerCodes": "C1", "subject": "S", "message": "M"},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid value for businessPartnerCodes")


class TestBusinessPartnersEndpoint:
    def test_lists_partners_with_email(self, client):
        response = client.get("/api/business-partners")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": [
                {
                    "code": "C1",
                    "name": "Acme Corp",
                    "email": "billing@acme.example",
                    "phone": "5551110001",
                }
            ],
        }

    def test_directory_unavailable(self, dispatcher):
        with TestClient(create_app(dispatcher)) as client:
            response = client.get("/api/business-partners")

        assert response.status_code == 503

    def test_service_layer_error_is_502(self, dispatcher):
        directory = Mock()
        directory.list_contacts_with_email.side_effect = ServiceLayerTimeoutError(
            "Request timed out", url="https://sap.example.com"
        )

        with TestClient(create_app(dispatcher, directory=directory)) as client:
            response = client.get("/api/business-partners")

        assert response.status_code == 502
        assert response.json() == {"success": False, "error": "Request timed out"}
