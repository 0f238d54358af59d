"""Core domain models for business partners and documents.

This module defines the snapshots the notification pipeline works with:
- DocumentKind: the document collections notifications can reference
- ContactRecord: a business partner's name and reachable addresses
- DocumentSummary: the header fields of an invoice, order, quotation or
  delivery note

Both records are immutable and fetched fresh for every request.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator


class DocumentKind(str, Enum):
    """Document kinds exposed by the Service Layer."""

    INVOICE = "Invoice"
    ORDER = "Order"
    QUOTATION = "Quotation"
    DELIVERY_NOTE = "DeliveryNote"

    @property
    def collection(self) -> str:
        """Service Layer entity set holding documents of this kind."""
        return f"{self.value}s"

    @classmethod
    def parse(cls, value: Union[str, "DocumentKind"]) -> "DocumentKind":
        """Resolve a kind from its name, case-insensitively.

        Raises:
            ValueError: If the value names no known kind
        """
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().replace(" ", "").replace("_", "").lower()
        for kind in cls:
            if kind.value.lower() == normalized:
                return kind

        allowed = ", ".join(kind.value for kind in cls)
        raise ValueError(f"Unknown document type '{value}'. Must be one of: {allowed}")


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    stripped = str(v).strip()
    return stripped or None


class ContactRecord(BaseModel):
    """Business partner contact snapshot.

    The SMS channel reaches a partner on the mobile number first and falls
    back to the primary phone.
    """

    code: str = Field(..., min_length=1, description="Business partner code (CardCode)")
    name: str = Field("", description="Display name (CardName)")
    email: Optional[str] = Field(None, description="Email address")
    mobile: Optional[str] = Field(None, description="Mobile number (Cellular)")
    phone: Optional[str] = Field(None, description="Primary phone number (Phone1)")

    model_config = {"frozen": True}

    @field_validator("code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Business partner code cannot be empty")
        return stripped

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("email", "mobile", "phone", mode="before")
    @classmethod
    def blank_addresses(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @property
    def phone_number(self) -> Optional[str]:
        """Number used for SMS: mobile, else primary phone."""
        return self.mobile or self.phone

    @classmethod
    def from_service_layer(cls, payload: Dict[str, Any]) -> "ContactRecord":
        """Build a record from a Service Layer BusinessPartners entity."""
        return cls(
            code=payload["CardCode"],
            name=payload.get("CardName"),
            email=payload.get("EmailAddress"),
            mobile=payload.get("Cellular"),
            phone=payload.get("Phone1"),
        )


class DocumentSummary(BaseModel):
    """Header fields of a marketing document."""

    kind: DocumentKind
    entry: int = Field(..., description="Internal key used for lookups (DocEntry)")
    number: int = Field(..., gt=0, description="Document number shown to partners (DocNum)")
    contact_code: str = Field(..., description="Owning business partner code")
    contact_name: str = Field("", description="Owning business partner name")
    issue_date: str = Field("", description="Document date as returned by the ERP")
    total: Decimal = Field(Decimal("0"), description="Document total")
    status: Optional[str] = Field(None, description="Document status")

    model_config = {"frozen": True}

    @field_validator("contact_name", "issue_date", mode="before")
    @classmethod
    def default_text(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("total", mode="before")
    @classmethod
    def coerce_total(cls, v: Any) -> Decimal:
        if v is None:
            return Decimal("0")
        # Route floats through str so 12.1 stays 12.1
        return Decimal(str(v))

    @classmethod
    def from_service_layer(
        cls, kind: DocumentKind, payload: Dict[str, Any]
    ) -> "DocumentSummary":
        """Build a summary from a Service Layer document entity."""
        return cls(
            kind=kind,
            entry=payload["DocEntry"],
            number=payload["DocNum"],
            contact_code=payload.get("CardCode") or "",
            contact_name=payload.get("CardName"),
            issue_date=payload.get("DocDate"),
            total=payload.get("DocTotal"),
            status=payload.get("DocumentStatus"),
        )
