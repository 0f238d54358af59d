"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check settings for risky but valid values and return warnings.

    Args:
        config_dict: Raw settings dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    service_layer = config_dict.get("service_layer", {})
    if isinstance(service_layer, dict) and service_layer.get("verify_ssl") is False:
        warning_messages.append(
            "service_layer.verify_ssl is disabled; certificates will not be checked"
        )

    email = config_dict.get("email", {})
    if isinstance(email, dict) and email.get("use_tls") is False:
        warning_messages.append(
            "email.use_tls is disabled; mail will be sent over an unencrypted connection"
        )

    sms = config_dict.get("sms", {})
    if isinstance(sms, dict):
        delay = sms.get("batch_delay_ms")
        if isinstance(delay, int) and delay == 0:
            warning_messages.append(
                "sms.batch_delay_ms is 0; bulk SMS sends may hit gateway rate limits"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
