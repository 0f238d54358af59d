"""Custom exceptions for the SAP Business One Service Layer client."""


class ServiceLayerError(Exception):
    """Base exception for all Service Layer errors.

    Raised for failures that are not a plain "record not found"; the
    dispatcher reports them as transport failures.
    """

    pass


class ServiceLayerAuthError(ServiceLayerError):
    """Login to the Service Layer was rejected or failed."""

    pass


class ServiceLayerHTTPError(ServiceLayerError):
    """Service Layer request failed with an HTTP error or a connection error."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code, 0 when no response was received
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ServiceLayerTimeoutError(ServiceLayerError):
    """Service Layer request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class ServiceLayerResponseError(ServiceLayerError):
    """Service Layer response could not be parsed or lacked required fields."""

    pass
