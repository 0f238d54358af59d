"""Health check and service descriptor endpoints."""

from typing import Dict

from fastapi import APIRouter

from partner_notifier import __version__
from partner_notifier.utils.timestamps import format_timestamp, utc_now

SERVICE_NAME = "Partner Notifier"

ENDPOINTS = {
    "health": "GET /api/health",
    "sendEmail": "POST /api/email",
    "sendSMS": "POST /api/sms",
    "documentNotification": "POST /api/document-notification",
    "bulkNotifications": "POST /api/bulk-notifications",
    "businessPartners": "GET /api/business-partners",
}

router = APIRouter()


@router.get("/")
def service_info() -> Dict[str, object]:
    """Describe the service and list its endpoints."""
    return {
        "name": SERVICE_NAME,
        "version": __version__,
        "status": "running",
        "endpoints": ENDPOINTS,
    }


@router.get("/api/health")
def health_check() -> Dict[str, str]:
    return {"status": "healthy", "timestamp": format_timestamp(utc_now())}
