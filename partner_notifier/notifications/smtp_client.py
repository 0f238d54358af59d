"""SMTP client wrapper for the mail channel.

This module provides a thin wrapper around Python's smtplib with support
for STARTTLS and implicit TLS, authentication, attachments and proper
connection lifecycle management.
"""

import logging
import mimetypes
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid, parseaddr
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email

from partner_notifier.config.environment import EnvironmentConfig
from partner_notifier.config.models import EmailConfig

from .models import Attachment, OutboundMessage, SMTPDeliveryError

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465


class SMTPClient:
    """Mail channel sender backed by smtplib.

    Opens one connection per message. Factories can be injected so tests
    never touch the network.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        email_config: Optional[EmailConfig] = None,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP client.

        Args:
            env_config: Environment configuration with EMAIL_* settings
            email_config: Mail channel settings (defaults apply if None)
            smtp_factory: Factory for SMTP instances (for mocking)
            smtp_ssl_factory: Factory for SMTP_SSL instances (for mocking)
        """
        self.env_config = env_config
        self.email_config = email_config or EmailConfig()
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL
        self.sender = build_sender_address(env_config, self.email_config)

    @property
    def uses_implicit_tls(self) -> bool:
        return self.env_config.email_secure or self.env_config.email_port == IMPLICIT_TLS_PORT

    def send(self, message: OutboundMessage) -> str:
        """Send an email message.

        Args:
            message: Email OutboundMessage to deliver

        Returns:
            Message-ID header of the delivered message

        Raises:
            ValueError: If a recipient address is invalid
            SMTPDeliveryError: If message delivery fails
        """
        recipients = parse_recipients(message.to)
        email_message = build_email_message(message, self.sender, recipients)

        with self._connection() as smtp:
            try:
                smtp.send_message(email_message)
            except smtplib.SMTPException as e:
                error_msg = f"SMTP error during message delivery: {e}"
                logger.error(error_msg)
                raise SMTPDeliveryError(error_msg) from e

        message_id = email_message["Message-ID"]
        logger.info(
            f"Email sent successfully. MessageId: {message_id}",
            extra={"to": ", ".join(recipients), "subject": message.subject},
        )
        return message_id

    def verify_connection(self) -> bool:
        """Check that the relay accepts a connection and our credentials."""
        try:
            with self._connection() as smtp:
                smtp.noop()
        except SMTPDeliveryError as e:
            logger.error(f"Email service verification failed: {e}")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"Email service verification failed: {e}")
            return False

        logger.info("Email service connection verified")
        return True

    def _connection(self) -> "_SMTPConnection":
        return _SMTPConnection(self)

    def _open(self):
        """Connect, negotiate TLS and authenticate.

        Raises:
            SMTPDeliveryError: If any step fails
        """
        host = self.env_config.email_host
        port = self.env_config.email_port
        timeout = self.email_config.timeout
        smtp = None

        try:
            if self.uses_implicit_tls:
                logger.debug(f"Connecting to {host}:{port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    host, port, timeout=timeout, context=ssl.create_default_context()
                )
            else:
                logger.debug(f"Connecting to {host}:{port}")
                smtp = self.smtp_factory(host, port, timeout=timeout)
                if self.email_config.use_tls:
                    logger.debug("Upgrading connection with STARTTLS")
                    smtp.starttls(context=ssl.create_default_context())

            if self.env_config.email_user and self.env_config.email_password:
                logger.debug(f"Authenticating as {self.env_config.email_user}")
                smtp.login(self.env_config.email_user, self.env_config.email_password)

            return smtp

        except (smtplib.SMTPException, OSError) as e:
            if smtp is not None:
                _quit_quietly(smtp)
            kind = "SMTP" if isinstance(e, smtplib.SMTPException) else "Network"
            error_msg = f"{kind} error during SMTP connection: {e}"
            logger.error(error_msg)
            raise SMTPDeliveryError(error_msg) from e


class _SMTPConnection:
    """Context manager that always closes the SMTP connection."""

    def __init__(self, client: SMTPClient):
        self.client = client
        self.smtp = None

    def __enter__(self):
        self.smtp = self.client._open()
        return self.smtp

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.smtp is not None:
            _quit_quietly(self.smtp)
        return False


def _quit_quietly(smtp) -> None:
    try:
        smtp.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Error closing SMTP connection: {e}")


def build_email_message(
    message: OutboundMessage, sender: str, recipients: List[str]
) -> EmailMessage:
    """Convert an OutboundMessage into a MIME EmailMessage.

    The plain text body (empty when absent) is the primary part; an HTML body
    is added as an alternative. Attachments are appended last.
    """
    email_message = EmailMessage()
    email_message["Subject"] = message.subject or ""
    email_message["From"] = sender
    email_message["To"] = ", ".join(recipients)

    _, sender_address = parseaddr(sender)
    domain = sender_address.rpartition("@")[2] or None
    email_message["Message-ID"] = make_msgid(domain=domain)

    email_message.set_content(message.text or "")
    if message.html:
        email_message.add_alternative(message.html, subtype="html")

    for attachment in message.attachments:
        _add_attachment(email_message, attachment)

    return email_message


def _add_attachment(email_message: EmailMessage, attachment: Attachment) -> None:
    content = attachment.content
    if content is None:
        content = Path(attachment.path).read_bytes()

    content_type = attachment.content_type or mimetypes.guess_type(attachment.filename)[0]
    maintype, _, subtype = (content_type or "application/octet-stream").partition("/")
    email_message.add_attachment(
        content, maintype=maintype, subtype=subtype, filename=attachment.filename
    )


def parse_recipients(addresses: Iterable[str]) -> List[str]:
    """Validate email addresses, accepting comma-separated entries.

    Args:
        addresses: Addresses, each possibly a comma-separated list

    Returns:
        List of validated, normalized email addresses

    Raises:
        ValueError: If any email address is invalid or none are given
    """
    recipients = []
    for entry in addresses:
        for email in (part.strip() for part in entry.split(",")):
            if not email:
                continue
            try:
                validated = validate_email(email, check_deliverability=False)
                recipients.append(validated.normalized)
            except EmailNotValidError as e:
                raise ValueError(f"Invalid email address: '{email}' - {e}") from e

    if not recipients:
        raise ValueError("No valid email addresses found")

    return recipients


def build_sender_address(env_config: EnvironmentConfig, email_config: EmailConfig) -> str:
    """Build the 'From' address for outgoing emails.

    EMAIL_FROM is used as given when it already carries a display name;
    otherwise the configured sender name is prepended when set.

    Returns:
        Formatted sender address (e.g., "Acme Billing <billing@acme.com>")
    """
    name, address = parseaddr(env_config.email_from)
    if name or not email_config.sender_name:
        return env_config.email_from
    return f"{email_config.sender_name} <{address}>"
