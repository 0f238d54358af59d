"""Request bodies for the HTTP API.

Field names follow the camelCase JSON contract; Python attributes are
snake_case. Presence checks live in ``to_request()`` / ``validate_required()``
so the API can answer with the exact messages clients already rely on.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from partner_notifier.domain.models import DocumentKind
from partner_notifier.notifications.models import EmailRequest, SMSRequest

TEMPLATED_EMAIL_KINDS = (DocumentKind.INVOICE, DocumentKind.ORDER)


class EmailBody(BaseModel):
    """POST /api/email"""

    business_partner_code: Optional[str] = Field(None, alias="businessPartnerCode")
    to: Optional[Union[str, List[str]]] = None
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    document_type: Optional[str] = Field(None, alias="documentType")
    document_number: Optional[int] = Field(None, alias="documentNumber")

    model_config = {"populate_by_name": True}

    def to_request(self) -> EmailRequest:
        """Validate presence rules and build the dispatcher request.

        Raises:
            ValueError: With a client-facing message when a rule is violated
        """
        if not self.subject:
            raise ValueError("Subject is required")
        if not self.business_partner_code and not self.to:
            raise ValueError("Either businessPartnerCode or to (email address) is required")

        kind = DocumentKind.parse(self.document_type) if self.document_type else None
        templated = kind in TEMPLATED_EMAIL_KINDS and bool(self.document_number)
        if not (self.text or self.html or templated):
            raise ValueError("Either text or html is required")

        recipients = [self.to] if isinstance(self.to, str) else list(self.to or [])
        return EmailRequest(
            subject=self.subject,
            business_partner_code=self.business_partner_code or None,
            to=tuple(recipients),
            text=self.text,
            html=self.html,
            document_kind=kind,
            document_number=self.document_number,
        )


class SMSBody(BaseModel):
    """POST /api/sms"""

    business_partner_code: Optional[str] = Field(None, alias="businessPartnerCode")
    to: Optional[str] = None
    message: Optional[str] = None
    document_number: Optional[int] = Field(None, alias="documentNumber")

    model_config = {"populate_by_name": True}

    def to_request(self) -> SMSRequest:
        if not self.message:
            raise ValueError("Message is required")
        if not self.business_partner_code and not self.to:
            raise ValueError("Either businessPartnerCode or to (phone number) is required")

        return SMSRequest(
            message=self.message,
            business_partner_code=self.business_partner_code or None,
            to=self.to or None,
            document_number=self.document_number,
        )


class DocumentNotificationBody(BaseModel):
    """POST /api/document-notification"""

    business_partner_code: Optional[str] = Field(None, alias="businessPartnerCode")
    document_type: Optional[str] = Field(None, alias="documentType")
    document_number: Optional[int] = Field(None, alias="documentNumber")
    include_email: bool = Field(True, alias="includeEmail")
    include_sms: bool = Field(True, alias="includeSMS")

    model_config = {"populate_by_name": True}

    def validate_required(self) -> DocumentKind:
        """Check required fields and return the parsed document kind."""
        if not self.business_partner_code:
            raise ValueError("businessPartnerCode is required")
        if not self.document_type:
            raise ValueError(
                "documentType is required (Invoice, Order, Quotation, or DeliveryNote)"
            )
        if not self.document_number:
            raise ValueError("documentNumber is required")
        return DocumentKind.parse(self.document_type)


class BulkNotificationBody(BaseModel):
    """POST /api/bulk-notifications"""

    business_partner_codes: Optional[List[str]] = Field(None, alias="businessPartnerCodes")
    subject: Optional[str] = None
    message: Optional[str] = None
    include_email: bool = Field(True, alias="includeEmail")
    include_sms: bool = Field(False, alias="includeSMS")

    model_config = {"populate_by_name": True}

    def validate_required(self) -> None:
        if self.business_partner_codes is None:
            raise ValueError("businessPartnerCodes array is required")
        if not self.subject:
            raise ValueError("subject is required")
        if not self.message:
            raise ValueError("message is required")
