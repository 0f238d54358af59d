"""Main entry point for the Partner Notifier service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import uvicorn

from partner_notifier import __version__
from partner_notifier.api import create_app
from partner_notifier.config.environment import EnvironmentConfig
from partner_notifier.config.exceptions import ConfigurationError
from partner_notifier.config.loader import load_config
from partner_notifier.config.models import AppConfig
from partner_notifier.logging import get_logger
from partner_notifier.logging.config import configure_logging
from partner_notifier.notifications.dispatcher import NotificationDispatcher
from partner_notifier.notifications.sms_client import SMSClient
from partner_notifier.notifications.smtp_client import SMTPClient
from partner_notifier.notifications.templates import TemplateRenderer
from partner_notifier.service_layer.client import ServiceLayerClient
from partner_notifier.service_layer.exceptions import ServiceLayerError
from partner_notifier.service_layer.session import ServiceLayerSession

logger = get_logger(__name__, component="cli")

DEFAULT_HOST = "0.0.0.0"


@dataclass
class Services:
    """Long-lived collaborators shared by all requests."""

    session: ServiceLayerSession
    directory: ServiceLayerClient
    smtp_client: SMTPClient
    sms_client: SMSClient
    dispatcher: NotificationDispatcher

    def close(self) -> None:
        """Release the Service Layer session."""
        self.session.close()


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and prepare runtime configuration.

    Args:
        config_path: Path to settings file (None to search the defaults)
        log_level_override: Log level from CLI (takes precedence)

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with the effective log level set

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    # Apply log level priority: CLI > Environment > Config
    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_services(app_config: AppConfig, env_config: EnvironmentConfig) -> Services:
    """Wire the Service Layer client, channel senders and dispatcher."""
    session = ServiceLayerSession(
        base_url=env_config.sap_service_layer_url,
        company_db=env_config.sap_company_db,
        username=env_config.sap_username,
        password=env_config.sap_password,
        timeout=app_config.service_layer.timeout,
        verify_ssl=app_config.service_layer.verify_ssl,
    )
    directory = ServiceLayerClient(session)
    smtp_client = SMTPClient(env_config, app_config.email)
    sms_client = SMSClient(env_config, app_config.sms)

    dispatcher = NotificationDispatcher(
        directory=directory,
        mail_sender=smtp_client,
        sms_sender=sms_client,
        template_renderer=TemplateRenderer(company_name=app_config.templates.company_name),
        sms_batch_delay=app_config.sms.batch_delay_seconds,
    )

    return Services(
        session=session,
        directory=directory,
        smtp_client=smtp_client,
        sms_client=sms_client,
        dispatcher=dispatcher,
    )


def run_startup_checks(services: Services) -> bool:
    """
    Test connections to the external systems.

    The Service Layer login is mandatory; mail relay and SMS problems are
    reported but do not stop the service.

    Returns:
        True if the service can start
    """
    logger.info("Testing service connections...", extra={"event": "startup.checks.started"})

    try:
        services.session.login()
    except ServiceLayerError as e:
        logger.error(
            f"SAP Service Layer connection failed: {e}",
            extra={"event": "startup.service_layer.failed"},
        )
        logger.error("Please check your SAP credentials and Service Layer URL")
        return False
    logger.info(
        "SAP Service Layer connection successful",
        extra={"event": "startup.service_layer.ok"},
    )

    if services.smtp_client.verify_connection():
        logger.info("Email service connection successful", extra={"event": "startup.email.ok"})
    else:
        logger.warning(
            "Email service connection failed - emails may not be sent",
            extra={"event": "startup.email.failed"},
        )

    if services.sms_client.is_enabled():
        logger.info("SMS service configured and ready", extra={"event": "startup.sms.ok"})
    else:
        logger.warning(
            "SMS service not configured - SMS functionality disabled",
            extra={"event": "startup.sms.disabled"},
        )

    return True


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Partner Notifier - Email and SMS notifications for SAP Business One"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings file (default: config.yaml or config/config.yaml if present)",
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Interface to bind (default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (overrides PORT)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Test connections to SAP, the mail relay and Twilio, then exit",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for Partner Notifier.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Starting Partner Notifier",
            extra={
                "event": "service.starting",
                "version": __version__,
                "environment": env_config.environment,
                "log_level": env_config.log_level,
            },
        )

        services = build_services(app_config, env_config)

        if not run_startup_checks(services):
            services.close()
            return 1

        if args.check:
            services.close()
            logger.info("Connection checks passed", extra={"event": "service.check.completed"})
            return 0

        port = args.port or env_config.port
        app = create_app(
            services.dispatcher,
            directory=services.directory,
            on_shutdown=services.close,
        )

        logger.info(
            f"Server running on port {port}",
            extra={"event": "service.listening", "host": args.host, "port": port},
        )
        uvicorn.run(app, host=args.host, port=port, log_config=None)

        uptime_seconds = time.time() - start_time
        logger.info(
            "Partner Notifier stopped",
            extra={"event": "service.stopping", "uptime_seconds": round(uptime_seconds, 2)},
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
