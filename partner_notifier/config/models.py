"""Settings file schema models using Pydantic.

The optional YAML settings file holds non-secret tuning knobs. Every section
has defaults, so running without a settings file is valid.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class ServiceLayerConfig(BaseModel):
    """SAP Business One Service Layer connection settings."""

    timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for Service Layer calls (seconds)"
    )
    verify_ssl: bool = Field(
        True, description="Verify the Service Layer TLS certificate"
    )


class EmailConfig(BaseModel):
    """Mail channel settings."""

    use_tls: bool = Field(True, description="Upgrade plain SMTP connections with STARTTLS")
    sender_name: Optional[str] = Field(
        None, description="Display name used when EMAIL_FROM is a bare address"
    )
    timeout: int = Field(30, ge=5, le=300, description="SMTP socket timeout (seconds)")

    @field_validator("sender_name")
    @classmethod
    def strip_sender_name(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank sender name as unset."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None


class SMSConfig(BaseModel):
    """SMS channel settings."""

    batch_delay_ms: int = Field(
        100, ge=0, le=5000, description="Pause between consecutive SMS sends in a batch"
    )
    timeout: int = Field(10, ge=1, le=120, description="SMS gateway request timeout (seconds)")

    @property
    def batch_delay_seconds(self) -> float:
        return self.batch_delay_ms / 1000.0


class TemplateConfig(BaseModel):
    """Message template settings."""

    company_name: str = Field(
        "Your Company Name", min_length=1, description="Signature used in email templates"
    )

    @field_validator("company_name")
    @classmethod
    def strip_company_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("company_name cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root settings object for Partner Notifier."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    service_layer: ServiceLayerConfig = Field(
        default_factory=ServiceLayerConfig, description="Service Layer settings"
    )
    email: EmailConfig = Field(default_factory=EmailConfig, description="Email settings")
    sms: SMSConfig = Field(default_factory=SMSConfig, description="SMS settings")
    templates: TemplateConfig = Field(
        default_factory=TemplateConfig, description="Template settings"
    )
