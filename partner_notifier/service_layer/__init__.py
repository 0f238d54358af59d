"""SAP Business One Service Layer access.

    from partner_notifier.service_layer import ServiceLayerClient, ServiceLayerSession
    session = ServiceLayerSession(url, company_db, username, password)
    directory = ServiceLayerClient(session)
    contact = directory.get_contact("C20000")
"""

from .client import ServiceLayerClient
from .exceptions import (
    ServiceLayerAuthError,
    ServiceLayerError,
    ServiceLayerHTTPError,
    ServiceLayerResponseError,
    ServiceLayerTimeoutError,
)
from .session import ServiceLayerSession

__all__ = [
    "ServiceLayerClient",
    "ServiceLayerSession",
    # Exceptions
    "ServiceLayerError",
    "ServiceLayerAuthError",
    "ServiceLayerHTTPError",
    "ServiceLayerResponseError",
    "ServiceLayerTimeoutError",
]
