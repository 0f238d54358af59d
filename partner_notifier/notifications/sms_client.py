"""SMS channel backed by the Twilio REST API.

Messages are posted to the account's ``Messages.json`` resource with HTTP
basic auth. The channel is enabled only when the account SID, auth token and
sender number are all configured.
"""

import logging
from typing import Optional

import requests

from partner_notifier.config.environment import EnvironmentConfig
from partner_notifier.config.models import SMSConfig
from partner_notifier.utils.phone import format_phone_number

from .models import ChannelDisabledError, OutboundMessage, SMSDeliveryError

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SMSClient:
    """Twilio SMS sender.

    Attributes:
        account_sid: Twilio account SID (None when the channel is disabled)
        from_number: Sender number registered with Twilio
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        sms_config: Optional[SMSConfig] = None,
        http_session: Optional[requests.Session] = None,
    ):
        self.account_sid = env_config.twilio_account_sid
        self._auth_token = env_config.twilio_auth_token
        self.from_number = env_config.twilio_phone_number
        self.timeout = (sms_config or SMSConfig()).timeout
        self._http = http_session or requests.Session()
        self._enabled = env_config.sms_configured

        if not self._enabled:
            logger.warning(
                "Twilio credentials not configured. SMS functionality will be disabled.",
                extra={"event": "sms.disabled"},
            )

    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json"

    def send(self, message: OutboundMessage) -> str:
        """Send one SMS.

        The destination is normalized with format_phone_number before sending.

        Args:
            message: SMS OutboundMessage to deliver

        Returns:
            Twilio message SID

        Raises:
            ChannelDisabledError: If the SMS channel is not configured
            SMSDeliveryError: If the gateway rejects the message or cannot be reached
        """
        if not self._enabled:
            raise ChannelDisabledError("SMS service is not configured")

        to = format_phone_number(message.to[0])
        data = {"From": self.from_number, "To": to, "Body": message.body}

        try:
            response = self._http.post(
                self.messages_url,
                data=data,
                auth=(self.account_sid, self._auth_token),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            error_msg = f"SMS gateway timed out after {self.timeout} seconds"
            logger.error(error_msg, extra={"event": "sms.send.timeout", "to": to})
            raise SMSDeliveryError(error_msg) from e
        except requests.exceptions.RequestException as e:
            error_msg = f"SMS gateway request failed: {e}"
            logger.error(error_msg, extra={"event": "sms.send.error", "to": to})
            raise SMSDeliveryError(error_msg) from e

        if response.status_code not in (200, 201):
            error_msg = f"Twilio API returned {response.status_code}: {_error_detail(response)}"
            logger.error(
                error_msg,
                extra={"event": "sms.send.rejected", "status_code": response.status_code, "to": to},
            )
            raise SMSDeliveryError(error_msg)

        try:
            sid = response.json()["sid"]
        except (ValueError, KeyError, TypeError) as e:
            raise SMSDeliveryError("Twilio API response carried no message sid") from e

        logger.info(f"SMS sent successfully. SID: {sid}", extra={"event": "sms.sent", "to": to})
        return sid


def _error_detail(response: requests.Response) -> str:
    """Twilio error bodies carry a ``message`` field; fall back to raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text
