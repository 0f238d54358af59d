"""Tests for notification messages and outcome aggregation."""

import pytest

from partner_notifier.notifications.models import (
    Attachment,
    BatchItem,
    BatchOutcome,
    DispatchOutcome,
    DocumentNotificationOutcome,
    ErrorKind,
    OutboundMessage,
)


def sent(delivery_id="id-1"):
    return DispatchOutcome.sent(delivery_id, "Email sent successfully")


def failed(error="boom"):
    return DispatchOutcome.failed(error, ErrorKind.TRANSPORT_FAILURE)


class TestOutboundMessage:
    def test_email_drops_blank_recipients_and_strips_subject(self):
        message = OutboundMessage.email(["a@example.com", "", "b@example.com"], "  Hello  ", text="Hi")

        assert message.to == ("a@example.com", "b@example.com")
        assert message.subject == "Hello"
        assert message.is_sms is False

    def test_email_without_recipients(self):
        with pytest.raises(ValueError, match="No recipients specified"):
            OutboundMessage.email(["", None], "Hello", text="Hi")

    def test_email_without_subject(self):
        with pytest.raises(ValueError, match="Subject is required"):
            OutboundMessage.email(["a@example.com"], "   ", text="Hi")

    def test_sms_has_single_destination(self):
        message = OutboundMessage.sms("+15551234567", "Your order shipped")

        assert message.to == ("+15551234567",)
        assert message.body == "Your order shipped"
        assert message.is_sms is True

    @pytest.mark.parametrize(
        "to, body, error",
        [("", "Hello", "No phone number specified"), ("+15551234567", "", "Message is required")],
    )
    def test_sms_validation(self, to, body, error):
        with pytest.raises(ValueError, match=error):
            OutboundMessage.sms(to, body)

    def test_attachment_needs_content_or_path(self):
        with pytest.raises(ValueError, match="needs content or a path"):
            Attachment(filename="invoice.pdf")

    def test_attachment_needs_filename(self):
        with pytest.raises(ValueError, match="filename is required"):
            Attachment(filename="", content=b"data")


class TestDispatchOutcome:
    def test_success_requires_delivery_id_or_message(self):
        with pytest.raises(ValueError):
            DispatchOutcome(success=True)

    def test_failure_requires_error(self):
        with pytest.raises(ValueError):
            DispatchOutcome(success=False, error="")

    def test_success_envelope_with_data(self):
        outcome = DispatchOutcome.sent(
            "<m1@acme.example>", "Email sent successfully", data={"messageId": "<m1@acme.example>"}
        )

        assert outcome.to_envelope() == {
            "success": True,
            "message": "Email sent successfully",
            "data": {"messageId": "<m1@acme.example>"},
        }

    def test_success_envelope_without_data(self):
        assert sent().to_envelope() == {"success": True, "message": "Email sent successfully"}

    def test_failure_envelope(self):
        outcome = DispatchOutcome.failed("No recipients specified", ErrorKind.VALIDATION)

        assert outcome.error_kind is ErrorKind.VALIDATION
        assert outcome.to_envelope() == {"success": False, "error": "No recipients specified"}


class TestDocumentNotificationOutcome:
    def test_counts_successes_of_attempted(self):
        outcome = DocumentNotificationOutcome(email=sent(), sms=failed(), attempted=2)

        assert outcome.succeeded == 1
        assert outcome.success is True
        assert outcome.message == "Sent 1 of 2 notifications"

    def test_nothing_attempted_is_not_success(self):
        outcome = DocumentNotificationOutcome(attempted=0)

        assert outcome.success is False
        assert outcome.to_envelope() == {
            "success": False,
            "message": "Sent 0 of 0 notifications",
            "data": {"email": None, "sms": None},
        }

    def test_hard_failure_envelope(self):
        outcome = DocumentNotificationOutcome.failed(
            "Business Partner C404 not found", ErrorKind.RECIPIENT_NOT_FOUND
        )

        assert outcome.success is False
        assert outcome.to_envelope() == {
            "success": False,
            "error": "Business Partner C404 not found",
        }

    def test_envelope_nests_channel_envelopes(self):
        outcome = DocumentNotificationOutcome(sms=sent("SM1"), attempted=1)

        envelope = outcome.to_envelope()

        assert envelope["success"] is True
        assert envelope["data"]["email"] is None
        assert envelope["data"]["sms"]["success"] is True


class TestBatchOutcome:
    def test_item_success_needs_one_channel(self):
        assert BatchItem("C1", email=failed(), sms=sent()).success is True
        assert BatchItem("C2", email=failed(), sms=failed()).success is False
        assert BatchItem("C3").success is False

    def test_batch_counts_partners(self):
        outcome = BatchOutcome(
            items=[
                BatchItem("C1", email=sent()),
                BatchItem("C2", email=failed()),
                BatchItem("C3", email=sent(), sms=failed()),
            ]
        )

        assert outcome.succeeded == 2
        assert outcome.success is True
        assert outcome.message == "Successfully sent notifications to 2 of 3 business partners"

    def test_empty_batch_is_not_success(self):
        outcome = BatchOutcome()

        assert outcome.success is False
        assert outcome.to_envelope() == {
            "success": False,
            "message": "Successfully sent notifications to 0 of 0 business partners",
            "data": [],
        }

    def test_envelope_items(self):
        outcome = BatchOutcome(items=[BatchItem("C1", email=failed("Business Partner C1 does not have an email address"))])

        assert outcome.to_envelope()["data"] == [
            {
                "businessPartnerCode": "C1",
                "email": {"success": False, "error": "Business Partner C1 does not have an email address"},
                "sms": None,
            }
        ]
