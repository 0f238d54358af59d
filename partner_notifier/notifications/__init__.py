"""Notification pipeline for business partner email and SMS messages.

This package provides:
- NotificationDispatcher: Resolves recipients, formats and sends notifications
- Outcome types: DispatchOutcome, DocumentNotificationOutcome, BatchOutcome
- TemplateRenderer: Jinja2-based document email and SMS rendering
- SMTPClient: SMTP wrapper with STARTTLS/implicit TLS support
- SMSClient: Twilio REST client
"""

from .dispatcher import Directory, MailSender, NotificationDispatcher, SMSSender
from .models import (
    SMS_MAX_LENGTH,
    Attachment,
    BatchItem,
    BatchOutcome,
    ChannelDisabledError,
    DispatchOutcome,
    DocumentNotificationOutcome,
    EmailRequest,
    ErrorKind,
    NotificationError,
    NotificationTemplateError,
    OutboundMessage,
    SMSDeliveryError,
    SMSRequest,
    SMTPDeliveryError,
)
from .sms_client import SMSClient
from .smtp_client import SMTPClient, build_sender_address, parse_recipients
from .templates import TemplateRenderer, truncate_sms

__all__ = [
    # Dispatcher and collaborator interfaces
    "NotificationDispatcher",
    "Directory",
    "MailSender",
    "SMSSender",
    # Requests, messages and outcomes
    "Attachment",
    "EmailRequest",
    "SMSRequest",
    "OutboundMessage",
    "DispatchOutcome",
    "DocumentNotificationOutcome",
    "BatchItem",
    "BatchOutcome",
    "ErrorKind",
    "SMS_MAX_LENGTH",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "SMTPDeliveryError",
    "SMSDeliveryError",
    "ChannelDisabledError",
    # Components
    "TemplateRenderer",
    "SMTPClient",
    "SMSClient",
    # Utilities
    "build_sender_address",
    "parse_recipients",
    "truncate_sms",
]
