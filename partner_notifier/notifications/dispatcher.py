"""Notification dispatcher: lookup, formatting and channel sends.

The dispatcher resolves recipients through the directory, formats
document-derived content through the template renderer and hands fully
formed messages to the mail and SMS senders. Every operation returns an
outcome object; collaborator failures are converted into failed outcomes
and never propagate to the caller.

Multi-channel and bulk operations run strictly sequentially in the order
given by the caller, with a short pause between consecutive SMS sends of a
batch to stay inside gateway rate limits.
"""

import logging
import time
from typing import Callable, List, Optional, Protocol, Sequence, Union

from partner_notifier.domain.models import ContactRecord, DocumentKind, DocumentSummary
from partner_notifier.logging import get_logger
from partner_notifier.logging.context import log_context
from partner_notifier.service_layer.exceptions import ServiceLayerError

from .models import (
    BatchItem,
    BatchOutcome,
    ChannelDisabledError,
    DispatchOutcome,
    DocumentNotificationOutcome,
    EmailRequest,
    ErrorKind,
    NotificationError,
    OutboundMessage,
    SMSRequest,
)
from .templates import TemplateRenderer

logger = get_logger(__name__, component="dispatcher")

DEFAULT_SMS_BATCH_DELAY = 0.1


class Directory(Protocol):
    """Contact and document lookup; both return None when the record is absent."""

    def get_contact(self, code: str) -> Optional[ContactRecord]: ...

    def get_document(
        self, kind: Union[DocumentKind, str], number: int
    ) -> Optional[DocumentSummary]: ...


class MailSender(Protocol):
    def send(self, message: OutboundMessage) -> str: ...


class SMSSender(Protocol):
    def is_enabled(self) -> bool: ...

    def send(self, message: OutboundMessage) -> str: ...


class NotificationDispatcher:
    """Orchestrates email and SMS notifications to business partners."""

    def __init__(
        self,
        directory: Directory,
        mail_sender: MailSender,
        sms_sender: SMSSender,
        template_renderer: Optional[TemplateRenderer] = None,
        sms_batch_delay: float = DEFAULT_SMS_BATCH_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize dispatcher.

        Args:
            directory: Contact and document lookup
            mail_sender: Mail channel sender
            sms_sender: SMS channel sender
            template_renderer: Template renderer (creates default if None)
            sms_batch_delay: Seconds to pause between consecutive SMS sends in a batch
            sleep: Sleep function (injectable for tests)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.directory = directory
        self.mail_sender = mail_sender
        self.sms_sender = sms_sender
        self.template_renderer = template_renderer or TemplateRenderer()
        self.sms_batch_delay = sms_batch_delay
        self.sleep = sleep
        self.logger = logger_instance or logger

    def send_email(self, request: EmailRequest) -> DispatchOutcome:
        """Send one email.

        The partner's address (if a code is given) is resolved first and the
        raw ``to`` addresses are appended after it; both receive the message.
        A referenced Invoice or Order document replaces the caller's subject
        and bodies with the document template.

        Returns:
            DispatchOutcome with ``{messageId, recipients}`` data on success
        """
        with log_context(channel="email", business_partner_code=request.business_partner_code):
            return self._guard("email", lambda: self._send_email(request))

    def send_sms(self, request: SMSRequest) -> DispatchOutcome:
        """Send one SMS with the caller's text, untouched.

        Fails with ChannelDisabled before any lookup when SMS is not
        configured. A raw ``to`` number replaces the partner's number.

        Returns:
            DispatchOutcome with ``{sid, to}`` data on success
        """
        with log_context(
            channel="sms",
            business_partner_code=request.business_partner_code,
            document_number=request.document_number,
        ):
            return self._guard("sms", lambda: self._send_sms(request))

    def send_document_notification(
        self,
        business_partner_code: str,
        document_kind: Union[DocumentKind, str],
        document_number: int,
        include_email: bool = True,
        include_sms: bool = True,
    ) -> DocumentNotificationOutcome:
        """Notify a partner about one document over email and/or SMS.

        The contact and the document are looked up once; a missing contact or
        document fails the whole operation. A channel is attempted only when it
        was requested and the contact has an address for it.
        """
        with log_context(
            business_partner_code=business_partner_code,
            document_number=document_number,
        ):
            try:
                return self._send_document_notification(
                    business_partner_code,
                    document_kind,
                    document_number,
                    include_email,
                    include_sms,
                )
            except ValueError as e:
                return DocumentNotificationOutcome.failed(_describe(e), ErrorKind.VALIDATION)
            except (ServiceLayerError, NotificationError) as e:
                self.logger.error(
                    f"Document notification failed: {e}",
                    extra={"event": "dispatch.document.failed", "error_type": type(e).__name__},
                )
                return DocumentNotificationOutcome.failed(_describe(e), ErrorKind.TRANSPORT_FAILURE)
            except Exception as e:
                self.logger.error(
                    f"Unexpected error in document notification: {e}",
                    exc_info=True,
                    extra={"event": "dispatch.document.failed", "error_type": type(e).__name__},
                )
                return DocumentNotificationOutcome.failed(_describe(e), ErrorKind.TRANSPORT_FAILURE)

    def send_bulk_notifications(
        self,
        business_partner_codes: Sequence[str],
        subject: str,
        message: str,
        include_email: bool = True,
        include_sms: bool = False,
    ) -> BatchOutcome:
        """Send the same subject and message to many partners, one at a time.

        Per-partner failures are recorded on that partner's item and never
        stop the batch.
        """
        batch = BatchOutcome()
        sms_pacer = _SMSPacer(self.sms_batch_delay, self.sleep)

        self.logger.info(
            f"Starting bulk notification to {len(business_partner_codes)} business partners",
            extra={
                "event": "dispatch.bulk.started",
                "recipient_count": len(business_partner_codes),
                "include_email": include_email,
                "include_sms": include_sms,
            },
        )

        for code in business_partner_codes:
            item = BatchItem(business_partner_code=code)

            if include_email:
                item.email = self.send_email(
                    EmailRequest(subject=subject, business_partner_code=code, text=message)
                )

            if include_sms:
                request = SMSRequest(message=message, business_partner_code=code)
                with log_context(channel="sms", business_partner_code=code):
                    item.sms = self._guard("sms", lambda: self._send_sms(request, sms_pacer))

            batch.items.append(item)

        self.logger.info(
            batch.message,
            extra={
                "event": "dispatch.bulk.completed",
                "succeeded": batch.succeeded,
                "total": len(batch.items),
            },
        )
        return batch

    def _send_email(self, request: EmailRequest) -> DispatchOutcome:
        recipients: List[str] = []

        if request.business_partner_code:
            contact = self.directory.get_contact(request.business_partner_code)
            failure = _check_contact(contact, request.business_partner_code, "email")
            if failure:
                return failure
            recipients.append(contact.email)

        recipients.extend(address for address in request.to if address)

        if not recipients:
            return DispatchOutcome.failed("No recipients specified", ErrorKind.VALIDATION)

        subject, text, html = request.subject, request.text, request.html

        if request.document_kind is not None and request.document_number:
            document = self.directory.get_document(request.document_kind, request.document_number)
            if document is not None:
                rendered = self.template_renderer.render_document_email(document)
                if rendered is not None:
                    subject = rendered["subject"]
                    text = rendered["text_body"]
                    html = rendered["html_body"]

        message = OutboundMessage.email(
            recipients, subject, text=text, html=html, attachments=request.attachments
        )
        return self._deliver_email(message)

    def _send_sms(
        self, request: SMSRequest, pacer: Optional["_SMSPacer"] = None
    ) -> DispatchOutcome:
        if not self.sms_sender.is_enabled():
            return DispatchOutcome.failed("SMS service is not configured", ErrorKind.CHANNEL_DISABLED)

        phone_number: Optional[str] = None

        if request.business_partner_code:
            contact = self.directory.get_contact(request.business_partner_code)
            failure = _check_contact(contact, request.business_partner_code, "sms")
            if failure:
                return failure
            phone_number = contact.phone_number

        if request.to:
            phone_number = request.to

        if not phone_number:
            return DispatchOutcome.failed("No phone number specified", ErrorKind.VALIDATION)

        return self._deliver_sms(OutboundMessage.sms(phone_number, request.message), pacer)

    def _send_document_notification(
        self,
        code: str,
        document_kind: Union[DocumentKind, str],
        document_number: int,
        include_email: bool,
        include_sms: bool,
    ) -> DocumentNotificationOutcome:
        kind = DocumentKind.parse(document_kind)

        contact = self.directory.get_contact(code)
        if contact is None:
            return DocumentNotificationOutcome.failed(
                f"Business Partner {code} not found", ErrorKind.RECIPIENT_NOT_FOUND
            )

        document = self.directory.get_document(kind, document_number)
        if document is None:
            return DocumentNotificationOutcome.failed(
                f"{kind.value} {document_number} not found", ErrorKind.DOCUMENT_NOT_FOUND
            )

        outcome = DocumentNotificationOutcome()

        if include_email and contact.email:
            outcome.attempted += 1
            with log_context(channel="email"):
                outcome.email = self._guard(
                    "email", lambda: self._deliver_document_email(contact, document)
                )

        if include_sms and contact.phone_number:
            outcome.attempted += 1
            with log_context(channel="sms"):
                outcome.sms = self._guard(
                    "sms", lambda: self._deliver_document_sms(contact, document)
                )

        self.logger.info(
            outcome.message,
            extra={
                "event": "dispatch.document.completed",
                "document_type": kind.value,
                "succeeded": outcome.succeeded,
                "attempted": outcome.attempted,
            },
        )
        return outcome

    def _deliver_document_email(
        self, contact: ContactRecord, document: DocumentSummary
    ) -> DispatchOutcome:
        rendered = self.template_renderer.render_document_email(document)
        if rendered is None:
            # Kinds without an email template go out with a bare subject line
            message = OutboundMessage.email(
                [contact.email], f"{document.kind.value} #{document.number}"
            )
        else:
            message = OutboundMessage.email(
                [contact.email],
                rendered["subject"],
                text=rendered["text_body"],
                html=rendered["html_body"],
            )
        return self._deliver_email(message)

    def _deliver_document_sms(
        self, contact: ContactRecord, document: DocumentSummary
    ) -> DispatchOutcome:
        if not self.sms_sender.is_enabled():
            return DispatchOutcome.failed("SMS service is not configured", ErrorKind.CHANNEL_DISABLED)

        body = self.template_renderer.render_document_sms(document, customer_name=contact.name)
        return self._deliver_sms(OutboundMessage.sms(contact.phone_number, body))

    def _deliver_email(self, message: OutboundMessage) -> DispatchOutcome:
        message_id = self.mail_sender.send(message)
        recipients = list(message.to)
        self.logger.info(
            "Email sent successfully",
            extra={
                "event": "dispatch.email.sent",
                "message_id": message_id,
                "recipient_count": len(recipients),
            },
        )
        return DispatchOutcome.sent(
            message_id,
            "Email sent successfully",
            data={"messageId": message_id, "recipients": recipients},
        )

    def _deliver_sms(
        self, message: OutboundMessage, pacer: Optional["_SMSPacer"] = None
    ) -> DispatchOutcome:
        if pacer is not None:
            pacer.wait()
        sid = self.sms_sender.send(message)
        self.logger.info(
            "SMS sent successfully",
            extra={"event": "dispatch.sms.sent", "sid": sid},
        )
        return DispatchOutcome.sent(
            sid, "SMS sent successfully", data={"sid": sid, "to": message.to[0]}
        )

    def _guard(self, channel: str, send: Callable[[], DispatchOutcome]) -> DispatchOutcome:
        """Run one channel dispatch, converting any raised error into a failed outcome."""
        try:
            outcome = send()
        except ValueError as e:
            outcome = DispatchOutcome.failed(_describe(e), ErrorKind.VALIDATION)
        except ChannelDisabledError as e:
            outcome = DispatchOutcome.failed(_describe(e), ErrorKind.CHANNEL_DISABLED)
        except (ServiceLayerError, NotificationError) as e:
            outcome = DispatchOutcome.failed(_describe(e), ErrorKind.TRANSPORT_FAILURE)
        except Exception as e:
            self.logger.error(
                f"Unexpected error while sending {channel}: {e}",
                exc_info=True,
                extra={"event": f"dispatch.{channel}.error", "error_type": type(e).__name__},
            )
            outcome = DispatchOutcome.failed(_describe(e), ErrorKind.TRANSPORT_FAILURE)

        if not outcome.success:
            self.logger.warning(
                f"Failed to send {channel}: {outcome.error}",
                extra={
                    "event": f"dispatch.{channel}.failed",
                    "error_kind": outcome.error_kind.value if outcome.error_kind else None,
                },
            )
        return outcome


def _check_contact(
    contact: Optional[ContactRecord], code: str, channel: str
) -> Optional[DispatchOutcome]:
    """Return a failed outcome if the contact is missing or lacks the channel's address."""
    if contact is None:
        return DispatchOutcome.failed(
            f"Business Partner {code} not found", ErrorKind.RECIPIENT_NOT_FOUND
        )
    if channel == "email" and not contact.email:
        return DispatchOutcome.failed(
            f"Business Partner {code} does not have an email address",
            ErrorKind.RECIPIENT_MISSING_CHANNEL,
        )
    if channel == "sms" and not contact.phone_number:
        return DispatchOutcome.failed(
            f"Business Partner {code} does not have a phone number",
            ErrorKind.RECIPIENT_MISSING_CHANNEL,
        )
    return None


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__


class _SMSPacer:
    """Pauses before every gateway send of a batch except the first."""

    def __init__(self, delay: float, sleep: Callable[[float], None]):
        self.delay = delay
        self.sleep = sleep
        self.sends = 0

    def wait(self) -> None:
        if self.sends and self.delay > 0:
            self.sleep(self.delay)
        self.sends += 1
