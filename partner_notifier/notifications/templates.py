"""Template rendering for document notifications using Jinja2.

Email templates exist for invoices and order confirmations only; other
document kinds render no email. SMS templates cover invoices, order
confirmations and delivery notes, with a generic line for everything else.
Templated SMS bodies are capped at 160 characters.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from partner_notifier.domain.models import DocumentKind, DocumentSummary
from partner_notifier.utils.timestamps import format_document_date

from .models import SMS_MAX_LENGTH, NotificationTemplateError

logger = logging.getLogger(__name__)

ELLIPSIS = "..."

# Template name prefixes per document kind
EMAIL_TEMPLATES = {
    DocumentKind.INVOICE: "invoice",
    DocumentKind.ORDER: "order_confirmation",
}

SMS_TEMPLATES = {
    DocumentKind.INVOICE: "invoice.txt.j2",
    DocumentKind.ORDER: "order_confirmation.txt.j2",
    DocumentKind.DELIVERY_NOTE: "delivery_notification.txt.j2",
}
GENERIC_SMS_TEMPLATE = "generic.txt.j2"


def format_money(value: Any) -> str:
    """Format an amount with two decimals, rounding half up."""
    amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    return str(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def truncate_sms(body: str, limit: int = SMS_MAX_LENGTH) -> str:
    """Cap an SMS body at ``limit`` characters, ending in "..." when cut.

    Example:
        >>> len(truncate_sms("x" * 200))
        160
    """
    if len(body) <= limit:
        return body
    return body[: limit - len(ELLIPSIS)] + ELLIPSIS


class TemplateRenderer:
    """Renders document notifications from packaged Jinja2 templates.

    HTML templates are auto-escaped; plain text and SMS templates are not.
    Missing template variables raise instead of rendering blanks.
    """

    def __init__(
        self,
        company_name: str = "Your Company Name",
        email_template_dir: str = "email_templates",
        sms_template_dir: str = "sms_templates",
    ):
        """Initialize template environments.

        Args:
            company_name: Signature used in email bodies
            email_template_dir: Email template directory within this package
            sms_template_dir: SMS template directory within this package
        """
        self.company_name = company_name

        self.html_env = self._build_env(email_template_dir, autoescape=True)
        self.text_env = self._build_env(email_template_dir, autoescape=False)
        self.sms_env = self._build_env(sms_template_dir, autoescape=False)

        logger.debug(
            f"Initialized TemplateRenderer with templates from {email_template_dir} and {sms_template_dir}"
        )

    @staticmethod
    def _build_env(template_dir: str, autoescape: bool) -> Environment:
        env = Environment(
            loader=PackageLoader("partner_notifier.notifications", template_dir),
            autoescape=autoescape,
            undefined=StrictUndefined,
        )
        env.filters["money"] = format_money
        return env

    def has_email_template(self, kind: DocumentKind) -> bool:
        return kind in EMAIL_TEMPLATES

    def build_context(
        self, document: DocumentSummary, customer_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build the template context for a document.

        Args:
            document: Document being announced
            customer_name: Name to greet; defaults to the document's partner name
        """
        return {
            "customer_name": customer_name or document.contact_name,
            "document_type": document.kind.value,
            "document_number": document.number,
            "document_date": format_document_date(document.issue_date),
            "total": document.total,
            "company_name": self.company_name,
        }

    def render_document_email(
        self, document: DocumentSummary
    ) -> Optional[Dict[str, str]]:
        """Render subject and bodies for a document email.

        Returns:
            Dictionary with ``subject``, ``html_body`` and ``text_body``, or
            None when the document kind has no email template

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        prefix = EMAIL_TEMPLATES.get(document.kind)
        if prefix is None:
            return None

        context = self.build_context(document)
        try:
            subject = self.text_env.get_template(f"{prefix}_subject.j2").render(context)
            html_body = self.html_env.get_template(f"{prefix}_body.html.j2").render(context)
            text_body = self.text_env.get_template(f"{prefix}_body.txt.j2").render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

        return {
            # Subject must be a single line
            "subject": subject.strip().replace("\n", " "),
            "html_body": html_body,
            "text_body": text_body,
        }

    def render_document_sms(
        self, document: DocumentSummary, customer_name: Optional[str] = None
    ) -> str:
        """Render the SMS body announcing a document, truncated to SMS length.

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        template_name = SMS_TEMPLATES.get(document.kind, GENERIC_SMS_TEMPLATE)
        context = self.build_context(document, customer_name)

        try:
            body = self.sms_env.get_template(template_name).render(context)
        except TemplateError as e:
            error_msg = f"SMS template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

        return truncate_sms(" ".join(body.split()))
