"""Environment variable loading and validation.

Credentials and endpoints for the three external systems come from the
process environment (a ``.env`` file is loaded by the entry point).
"""

import os
import re
from email.utils import parseaddr
from typing import List, Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        sap_service_layer_url: str,
        sap_company_db: str,
        sap_username: str,
        sap_password: str,
        email_host: str,
        email_port: int,
        email_user: Optional[str],
        email_password: Optional[str],
        email_from: str,
        email_secure: bool = False,
        twilio_account_sid: Optional[str] = None,
        twilio_auth_token: Optional[str] = None,
        twilio_phone_number: Optional[str] = None,
        port: int = 3000,
        environment: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.sap_service_layer_url = sap_service_layer_url.rstrip("/")
        self.sap_company_db = sap_company_db
        self.sap_username = sap_username
        self.sap_password = sap_password
        self.email_host = email_host
        self.email_port = email_port
        self.email_user = email_user
        self.email_password = email_password
        self.email_from = email_from
        self.email_secure = email_secure
        self.twilio_account_sid = twilio_account_sid
        self.twilio_auth_token = twilio_auth_token
        self.twilio_phone_number = twilio_phone_number
        self.port = port
        self.environment = environment or "development"
        self.log_level = log_level

    @property
    def sms_configured(self) -> bool:
        """True when the full Twilio credential triple is present."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_phone_number
        )


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Required environment variables:
    - SAP_SERVICE_LAYER_URL, SAP_COMPANY_DB, SAP_USERNAME, SAP_PASSWORD
    - EMAIL_HOST, EMAIL_USER, EMAIL_PASSWORD, EMAIL_FROM

    Optional environment variables:
    - EMAIL_PORT: SMTP port (default 587)
    - EMAIL_SECURE: "true" for implicit TLS
    - TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER: SMS channel,
      disabled unless all three are set
    - PORT: HTTP listen port (default 3000)
    - ENVIRONMENT: environment label for logs (default "development")
    - LOG_LEVEL: override log level

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors: List[str] = []

    sap_url = os.getenv("SAP_SERVICE_LAYER_URL", "")
    sap_company_db = os.getenv("SAP_COMPANY_DB", "")
    sap_username = os.getenv("SAP_USERNAME", "")
    sap_password = os.getenv("SAP_PASSWORD", "")

    email_host = os.getenv("EMAIL_HOST", "")
    email_port_str = os.getenv("EMAIL_PORT", "587")
    email_user = os.getenv("EMAIL_USER")
    email_password = os.getenv("EMAIL_PASSWORD")
    email_from = os.getenv("EMAIL_FROM", "")
    email_secure = os.getenv("EMAIL_SECURE", "false").strip().lower() == "true"

    twilio_account_sid = os.getenv("TWILIO_ACCOUNT_SID") or None
    twilio_auth_token = os.getenv("TWILIO_AUTH_TOKEN") or None
    twilio_phone_number = os.getenv("TWILIO_PHONE_NUMBER") or None

    port_str = os.getenv("PORT", "3000")
    environment = os.getenv("ENVIRONMENT")
    log_level = os.getenv("LOG_LEVEL")

    required = {
        "SAP_SERVICE_LAYER_URL": sap_url,
        "SAP_COMPANY_DB": sap_company_db,
        "SAP_USERNAME": sap_username,
        "SAP_PASSWORD": sap_password,
        "EMAIL_HOST": email_host,
        "EMAIL_USER": email_user,
        "EMAIL_PASSWORD": email_password,
        "EMAIL_FROM": email_from,
    }
    for name, value in required.items():
        if not value:
            errors.append(f"Missing required environment variable: {name}")

    if sap_url and not sap_url.startswith(("http://", "https://")):
        errors.append(
            f"Invalid SAP_SERVICE_LAYER_URL: '{sap_url}'. Must start with http:// or https://"
        )

    email_port = _parse_port("EMAIL_PORT", email_port_str, errors)
    port = _parse_port("PORT", port_str, errors)

    if email_from:
        _, address = parseaddr(email_from)
        if not _is_valid_email(address):
            errors.append(f"Invalid email address format in EMAIL_FROM: '{email_from}'")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Ensure all SAP_* and EMAIL_* variables are set",
                "Set all three TWILIO_* variables to enable SMS",
            ],
        )

    return EnvironmentConfig(
        sap_service_layer_url=sap_url,
        sap_company_db=sap_company_db,
        sap_username=sap_username,
        sap_password=sap_password,
        email_host=email_host,
        email_port=email_port,
        email_user=email_user,
        email_password=email_password,
        email_from=email_from,
        email_secure=email_secure,
        twilio_account_sid=twilio_account_sid,
        twilio_auth_token=twilio_auth_token,
        twilio_phone_number=twilio_phone_number,
        port=port,
        environment=environment,
        log_level=log_level.upper() if log_level else None,
    )


def _parse_port(name: str, value: str, errors: List[str]) -> int:
    """Parse a TCP port, appending to errors when invalid."""
    try:
        port = int(value)
    except ValueError:
        errors.append(f"Invalid {name}: '{value}'. Must be a valid integer.")
        return 0

    if port < 1 or port > 65535:
        errors.append(f"Invalid {name}: {port}. Must be between 1 and 65535.")
    return port


def _is_valid_email(email: str) -> bool:
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return bool(re.match(pattern, email))
