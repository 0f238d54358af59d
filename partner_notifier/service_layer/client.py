"""Directory and document lookups against the Service Layer.

Implements the two lookup capabilities the dispatcher depends on:
``get_contact(code)`` and ``get_document(kind, number)``. Both return None
when the record does not exist and raise ServiceLayerError for anything else.
"""

from typing import Any, Dict, List, Optional, Union

import requests
from pydantic import ValidationError

from partner_notifier.domain.models import ContactRecord, DocumentKind, DocumentSummary
from partner_notifier.logging import get_logger

from .exceptions import ServiceLayerHTTPError, ServiceLayerResponseError
from .session import ServiceLayerSession, extract_error_detail

logger = get_logger(__name__, component="service_layer")

CONTACT_FIELDS = "CardCode,CardName,Phone1,Cellular,EmailAddress"


class ServiceLayerClient:
    """Reads business partners and documents through a ServiceLayerSession."""

    def __init__(self, session: ServiceLayerSession) -> None:
        self.session = session

    def get_contact(self, code: str) -> Optional[ContactRecord]:
        """Fetch a business partner by CardCode.

        Args:
            code: Business partner code

        Returns:
            ContactRecord, or None if no such partner exists

        Raises:
            ServiceLayerError: On transport, authentication or parsing failures
        """
        path = f"BusinessPartners('{_quote_key(code)}')"
        payload = self._get_entity(path, params={"$select": CONTACT_FIELDS})
        if payload is None:
            logger.info(
                f"Business partner {code} not found",
                extra={"event": "service_layer.contact.not_found", "business_partner_code": code},
            )
            return None

        try:
            return ContactRecord.from_service_layer(payload)
        except (KeyError, ValidationError) as e:
            raise ServiceLayerResponseError(
                f"Malformed business partner record for {code}: {e}"
            ) from e

    def get_document(
        self, kind: Union[DocumentKind, str], number: int
    ) -> Optional[DocumentSummary]:
        """Fetch a document header by kind and DocEntry.

        Args:
            kind: Document kind (or its name)
            number: Document key (DocEntry)

        Returns:
            DocumentSummary, or None if no such document exists

        Raises:
            ValueError: If kind names no known document kind
            ServiceLayerError: On transport, authentication or parsing failures
        """
        kind = DocumentKind.parse(kind)
        path = f"{kind.collection}({int(number)})"
        payload = self._get_entity(path)
        if payload is None:
            logger.info(
                f"{kind.value} {number} not found",
                extra={
                    "event": "service_layer.document.not_found",
                    "document_type": kind.value,
                    "document_number": number,
                },
            )
            return None

        try:
            return DocumentSummary.from_service_layer(kind, payload)
        except (KeyError, ValidationError) as e:
            raise ServiceLayerResponseError(
                f"Malformed {kind.value} record {number}: {e}"
            ) from e

    def list_contacts_with_email(self) -> List[ContactRecord]:
        """List business partners that have an email address on file."""
        response = self.session.request(
            "GET",
            "BusinessPartners",
            params={
                "$select": CONTACT_FIELDS,
                "$filter": "EmailAddress ne null and EmailAddress ne ''",
            },
        )
        self._raise_for_status(response)
        body = self._parse_json(response)

        records = body.get("value", []) if isinstance(body, dict) else []
        contacts = []
        for record in records:
            try:
                contacts.append(ContactRecord.from_service_layer(record))
            except (KeyError, ValidationError) as e:
                logger.warning(
                    "Skipping malformed business partner record",
                    extra={"event": "service_layer.contact.malformed", "error": str(e)},
                )
        return contacts

    def _get_entity(
        self, path: str, params: Optional[Dict[str, str]] = None
    ) -> Optional[Dict[str, Any]]:
        response = self.session.request("GET", path, params=params)
        if response.status_code == 404:
            return None

        self._raise_for_status(response)
        body = self._parse_json(response)
        if not isinstance(body, dict):
            raise ServiceLayerResponseError(
                f"Expected JSON object from {path}, got {type(body).__name__}"
            )
        return body

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        if response.status_code >= 400:
            detail = extract_error_detail(response)
            raise ServiceLayerHTTPError(
                f"HTTP {response.status_code}: {detail or response.reason}",
                status_code=response.status_code,
                url=response.url,
            )

    @staticmethod
    def _parse_json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ServiceLayerResponseError(
                f"Failed to parse JSON response from {response.url}: {e}"
            ) from e


def _quote_key(value: str) -> str:
    """Escape a string key for use inside an OData key predicate."""
    return value.replace("'", "''")
