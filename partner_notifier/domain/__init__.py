"""Domain models for business partners and their documents."""

from .models import ContactRecord, DocumentKind, DocumentSummary

__all__ = ["ContactRecord", "DocumentKind", "DocumentSummary"]
