"""Business partner directory endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from partner_notifier.logging import get_logger
from partner_notifier.service_layer.client import ServiceLayerClient
from partner_notifier.service_layer.exceptions import ServiceLayerError

from ..dependencies import get_directory

logger = get_logger(__name__, component="api")

router = APIRouter(prefix="/api")


@router.get("/business-partners")
def list_business_partners(
    directory: Optional[ServiceLayerClient] = Depends(get_directory),
) -> JSONResponse:
    """List business partners that have an email address on file."""
    if directory is None:
        return JSONResponse(
            status_code=503,
            content={"success": False, "error": "Business partner directory is not available"},
        )

    try:
        contacts = directory.list_contacts_with_email()
    except ServiceLayerError as e:
        logger.error(
            f"Failed to list business partners: {e}",
            extra={"event": "api.business_partners.failed"},
        )
        return JSONResponse(status_code=502, content={"success": False, "error": str(e)})
    except Exception as e:
        logger.error(
            f"Error in /api/business-partners: {e}",
            exc_info=True,
            extra={"event": "api.request.error", "endpoint": "/api/business-partners"},
        )
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Internal server error"}
        )

    return JSONResponse(
        content={
            "success": True,
            "data": [
                {
                    "code": contact.code,
                    "name": contact.name,
                    "email": contact.email,
                    "phone": contact.phone_number,
                }
                for contact in contacts
            ],
        }
    )
