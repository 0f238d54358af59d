"""Data models and exceptions for the notification pipeline.

This module defines the requests the dispatcher accepts, the immutable
outbound message handed to a channel sender, and the outcome types that are
aggregated and returned to the HTTP layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from partner_notifier.domain.models import DocumentKind

SMS_MAX_LENGTH = 160


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class SMTPDeliveryError(NotificationError):
    """Raised when the mail relay rejects or fails to accept a message."""

    pass


class SMSDeliveryError(NotificationError):
    """Raised when the SMS gateway rejects or fails to accept a message."""

    pass


class ChannelDisabledError(NotificationError):
    """Raised when a send is attempted on a channel that was never configured."""

    pass


class ErrorKind(str, Enum):
    """Failure categories reported on a DispatchOutcome."""

    VALIDATION = "ValidationError"
    RECIPIENT_NOT_FOUND = "RecipientNotFound"
    RECIPIENT_MISSING_CHANNEL = "RecipientMissingChannel"
    DOCUMENT_NOT_FOUND = "DocumentNotFound"
    CHANNEL_DISABLED = "ChannelDisabled"
    TRANSPORT_FAILURE = "TransportFailure"


@dataclass(frozen=True)
class Attachment:
    """Email attachment, given either inline content or a file path."""

    filename: str
    content: Optional[bytes] = None
    path: Optional[str] = None
    content_type: Optional[str] = None

    def __post_init__(self):
        if not self.filename:
            raise ValueError("Attachment filename is required")
        if self.content is None and self.path is None:
            raise ValueError(f"Attachment '{self.filename}' needs content or a path")


@dataclass(frozen=True)
class OutboundMessage:
    """A fully formed message for one channel send.

    Email messages carry a subject, text and/or HTML bodies and optional
    attachments; SMS messages carry a single body and exactly one destination.
    Use the email() and sms() constructors.
    """

    to: Tuple[str, ...]
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    body: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()

    @classmethod
    def email(
        cls,
        to: Sequence[str],
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
    ) -> "OutboundMessage":
        """Build an email message.

        Raises:
            ValueError: If there are no recipients or the subject is empty
        """
        recipients = tuple(address for address in to if address)
        if not recipients:
            raise ValueError("No recipients specified")
        if not subject or not subject.strip():
            raise ValueError("Subject is required")
        return cls(
            to=recipients,
            subject=subject.strip(),
            text=text,
            html=html,
            attachments=tuple(attachments),
        )

    @classmethod
    def sms(cls, to: str, body: str) -> "OutboundMessage":
        """Build an SMS message.

        Raises:
            ValueError: If the phone number or body is empty
        """
        if not to:
            raise ValueError("No phone number specified")
        if not body:
            raise ValueError("Message is required")
        return cls(to=(to,), body=body)

    @property
    def is_sms(self) -> bool:
        return self.body is not None


@dataclass(frozen=True)
class EmailRequest:
    """Caller's request to send one email.

    Attributes:
        subject: Subject line (required)
        business_partner_code: Partner whose email address receives the message
        to: Additional raw addresses, delivered alongside the partner's
        text: Plain text body
        html: HTML body
        document_kind: Kind of the referenced document, if any
        document_number: Key of the referenced document, if any
        attachments: Files attached to the email
    """

    subject: str
    business_partner_code: Optional[str] = None
    to: Tuple[str, ...] = ()
    text: Optional[str] = None
    html: Optional[str] = None
    document_kind: Optional[DocumentKind] = None
    document_number: Optional[int] = None
    attachments: Tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class SMSRequest:
    """Caller's request to send one SMS.

    A raw ``to`` number replaces the number looked up for the partner.
    ``document_number`` is carried for log correlation only.
    """

    message: str
    business_partner_code: Optional[str] = None
    to: Optional[str] = None
    document_number: Optional[int] = None


@dataclass
class DispatchOutcome:
    """Result of one dispatch attempt over one channel.

    A successful outcome always carries a delivery id or a "sent" message;
    a failed one always carries a non-empty error.
    """

    success: bool
    delivery_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.success and not (self.delivery_id or self.message):
            raise ValueError("A successful outcome needs a delivery id or a message")
        if not self.success and not self.error:
            raise ValueError("A failed outcome needs an error")

    @classmethod
    def sent(
        cls,
        delivery_id: Optional[str],
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> "DispatchOutcome":
        return cls(success=True, delivery_id=delivery_id, message=message, data=data)

    @classmethod
    def failed(cls, error: str, kind: ErrorKind) -> "DispatchOutcome":
        return cls(success=False, error=error, error_kind=kind)

    def to_envelope(self) -> Dict[str, Any]:
        """Render the ``{success, message|error, data?}`` response envelope."""
        if not self.success:
            return {"success": False, "error": self.error}

        envelope: Dict[str, Any] = {"success": True, "message": self.message}
        if self.data is not None:
            envelope["data"] = self.data
        return envelope


def _envelope_or_none(outcome: Optional[DispatchOutcome]) -> Optional[Dict[str, Any]]:
    return outcome.to_envelope() if outcome is not None else None


@dataclass
class DocumentNotificationOutcome:
    """Aggregated result of notifying a partner about one document.

    ``attempted`` counts the channels that were requested and had a usable
    address on the partner record. A hard failure (partner or document not
    found) is reported through ``error`` with no channel outcomes.
    """

    email: Optional[DispatchOutcome] = None
    sms: Optional[DispatchOutcome] = None
    attempted: int = 0
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def failed(cls, error: str, kind: ErrorKind) -> "DocumentNotificationOutcome":
        return cls(error=error, error_kind=kind)

    @property
    def succeeded(self) -> int:
        return sum(
            1 for outcome in (self.email, self.sms) if outcome is not None and outcome.success
        )

    @property
    def success(self) -> bool:
        return self.error is None and self.succeeded > 0

    @property
    def message(self) -> str:
        return f"Sent {self.succeeded} of {self.attempted} notifications"

    def to_envelope(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"success": False, "error": self.error}
        return {
            "success": self.success,
            "message": self.message,
            "data": {
                "email": _envelope_or_none(self.email),
                "sms": _envelope_or_none(self.sms),
            },
        }


@dataclass
class BatchItem:
    """Per-recipient entry of a bulk notification."""

    business_partner_code: str
    email: Optional[DispatchOutcome] = None
    sms: Optional[DispatchOutcome] = None

    @property
    def success(self) -> bool:
        return any(
            outcome is not None and outcome.success for outcome in (self.email, self.sms)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "businessPartnerCode": self.business_partner_code,
            "email": _envelope_or_none(self.email),
            "sms": _envelope_or_none(self.sms),
        }


@dataclass
class BatchOutcome:
    """Result of a bulk notification, one item per requested partner.

    The batch succeeds when at least one partner received at least one
    message; per-item detail is kept for the caller to inspect.
    """

    items: List[BatchItem] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def success(self) -> bool:
        return self.succeeded >= 1

    @property
    def message(self) -> str:
        return (
            f"Successfully sent notifications to {self.succeeded} of "
            f"{len(self.items)} business partners"
        )

    def to_envelope(self) -> Dict[str, Union[bool, str, List[Dict[str, Any]]]]:
        return {
            "success": self.success,
            "message": self.message,
            "data": [item.to_dict() for item in self.items],
        }
