"""Email, SMS, document and bulk notification endpoints.

Each endpoint validates its body, calls the dispatcher and maps the outcome
to a response: 200 on success, 400 for validation or delivery failures and
500 with a generic message for anything unexpected. Bulk notifications
always answer 200 with the per-partner detail.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from partner_notifier.logging import get_logger
from partner_notifier.notifications.dispatcher import NotificationDispatcher

from ..dependencies import get_dispatcher
from ..schemas import BulkNotificationBody, DocumentNotificationBody, EmailBody, SMSBody

logger = get_logger(__name__, component="api")

router = APIRouter(prefix="/api")


def bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": error})


def internal_error(endpoint: str, error: Exception) -> JSONResponse:
    logger.error(
        f"Error in {endpoint}: {error}",
        exc_info=True,
        extra={"event": "api.request.error", "endpoint": endpoint},
    )
    return JSONResponse(
        status_code=500, content={"success": False, "error": "Internal server error"}
    )


def envelope_response(envelope: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=200 if envelope["success"] else 400, content=envelope)


@router.post("/email")
def send_email(
    body: EmailBody, dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> JSONResponse:
    """Send an email to a business partner and/or raw addresses."""
    try:
        try:
            request = body.to_request()
        except ValueError as e:
            return bad_request(str(e))

        outcome = dispatcher.send_email(request)
        return envelope_response(outcome.to_envelope())
    except Exception as e:
        return internal_error("/api/email", e)


@router.post("/sms")
def send_sms(
    body: SMSBody, dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> JSONResponse:
    """Send an SMS to a business partner or a raw phone number."""
    try:
        try:
            request = body.to_request()
        except ValueError as e:
            return bad_request(str(e))

        outcome = dispatcher.send_sms(request)
        return envelope_response(outcome.to_envelope())
    except Exception as e:
        return internal_error("/api/sms", e)


@router.post("/document-notification")
def send_document_notification(
    body: DocumentNotificationBody,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Notify a business partner about a document by email and/or SMS."""
    try:
        try:
            kind = body.validate_required()
        except ValueError as e:
            return bad_request(str(e))

        outcome = dispatcher.send_document_notification(
            body.business_partner_code,
            kind,
            body.document_number,
            include_email=body.include_email,
            include_sms=body.include_sms,
        )
        return envelope_response(outcome.to_envelope())
    except Exception as e:
        return internal_error("/api/document-notification", e)


@router.post("/bulk-notifications")
def send_bulk_notifications(
    body: BulkNotificationBody,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Send the same message to several business partners."""
    try:
        try:
            body.validate_required()
        except ValueError as e:
            return bad_request(str(e))

        outcome = dispatcher.send_bulk_notifications(
            body.business_partner_codes,
            body.subject,
            body.message,
            include_email=body.include_email,
            include_sms=body.include_sms,
        )
        return JSONResponse(status_code=200, content=outcome.to_envelope())
    except Exception as e:
        return internal_error("/api/bulk-notifications", e)
