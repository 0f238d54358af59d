"""Authenticated session against the SAP Business One Service Layer.

The Service Layer issues a session cookie on ``POST /Login``. The session is
established lazily on first use, re-established once when a request comes
back with HTTP 401 (expired session), and released on shutdown.
"""

import threading
from typing import Any, Dict, Optional

import requests

from partner_notifier.logging import get_logger

from .exceptions import (
    ServiceLayerAuthError,
    ServiceLayerHTTPError,
    ServiceLayerTimeoutError,
)

logger = get_logger(__name__, component="service_layer")


class ServiceLayerSession:
    """Owns the HTTP session and login state for one Service Layer company.

    Attributes:
        base_url: Service Layer root, e.g. ``https://sap:50000/b1s/v1``
        company_db: Company database to log in to
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify the server certificate
    """

    def __init__(
        self,
        base_url: str,
        company_db: str,
        username: str,
        password: str,
        timeout: int = 30,
        verify_ssl: bool = True,
        http_session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.company_db = company_db
        self.username = username
        self._password = password
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self._http = http_session or requests.Session()
        self._http.headers.update({"Content-Type": "application/json"})
        self._session_id: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def is_authenticated(self) -> bool:
        return self._session_id is not None

    def login(self) -> None:
        """Log in and store the session id (the cookie stays on the HTTP session).

        Raises:
            ServiceLayerAuthError: If the credentials are rejected or the
                server cannot be reached
        """
        url = self._url("Login")
        payload = {
            "CompanyDB": self.company_db,
            "UserName": self.username,
            "Password": self._password,
        }

        try:
            response = self._http.post(
                url, json=payload, timeout=self.timeout, verify=self.verify_ssl
            )
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Service Layer login request failed: {e}",
                extra={"event": "service_layer.login.failed", "error_type": type(e).__name__},
            )
            raise ServiceLayerAuthError(f"SAP Login failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                f"Service Layer login rejected with HTTP {response.status_code}",
                extra={
                    "event": "service_layer.login.failed",
                    "status_code": response.status_code,
                },
            )
            raise ServiceLayerAuthError(
                f"SAP Login failed: HTTP {response.status_code} {extract_error_detail(response)}".rstrip()
            )

        try:
            session_id = response.json()["SessionId"]
        except (ValueError, KeyError, TypeError) as e:
            raise ServiceLayerAuthError("SAP Login failed: response carried no SessionId") from e

        self._session_id = session_id
        logger.info(
            "Logged in to SAP Business One Service Layer",
            extra={"event": "service_layer.login", "company_db": self.company_db},
        )

    def logout(self) -> None:
        """Release the session. Failures are logged and the local state cleared."""
        with self._lock:
            if self._session_id is None:
                return

            try:
                self._http.post(
                    self._url("Logout"), timeout=self.timeout, verify=self.verify_ssl
                )
                logger.info(
                    "Logged out from SAP Business One Service Layer",
                    extra={"event": "service_layer.logout"},
                )
            except requests.exceptions.RequestException as e:
                logger.warning(
                    f"Service Layer logout failed: {e}",
                    extra={"event": "service_layer.logout.failed"},
                )
            finally:
                self._invalidate()

    def ensure_logged_in(self) -> Optional[str]:
        """Log in unless a session is already established; return the session id."""
        with self._lock:
            if self._session_id is None:
                self.login()
            return self._session_id

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Send an authenticated request, logging in again once on HTTP 401.

        Non-401 error statuses are returned to the caller untouched so it can
        decide how to treat, say, a 404.

        Raises:
            ServiceLayerAuthError: If (re-)login fails
            ServiceLayerTimeoutError: On request timeout
            ServiceLayerHTTPError: On connection errors
        """
        used_session_id = self.ensure_logged_in()
        response = self._send(method, path, params, json_data)

        if response.status_code == 401:
            logger.warning(
                "Service Layer session expired, logging in again",
                extra={"event": "service_layer.session.expired", "path": path},
            )
            with self._lock:
                # Another request may already have renewed the session
                if self._session_id in (None, used_session_id):
                    self._invalidate()
                    self.login()
            response = self._send(method, path, params, json_data)

        return response

    def close(self) -> None:
        """Log out and close the underlying HTTP connection pool."""
        self.logout()
        self._http.close()

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]],
        json_data: Optional[Dict[str, Any]],
    ) -> requests.Response:
        url = self._url(path)
        logger.debug(
            f"HTTP {method} request to {url}",
            extra={"event": "service_layer.request", "method": method, "url": url},
        )

        try:
            return self._http.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "service_layer.request.timeout", "url": url},
            )
            raise ServiceLayerTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "service_layer.request.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise ServiceLayerHTTPError(
                f"Request to {url} failed: {e}", status_code=0, url=url
            ) from e

    def _invalidate(self) -> None:
        self._session_id = None
        self._http.cookies.clear()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"


def extract_error_detail(response: requests.Response) -> str:
    """Extract the Service Layer error message from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return ""

    if not isinstance(body, dict) or not isinstance(body.get("error"), dict):
        return ""
    message = body["error"].get("message", "")
    if isinstance(message, dict):
        return str(message.get("value", ""))
    return str(message)
