# SPDX-License-Identifier: GPL-3.0-only
"""SMS gateway dispatch.

Transports are plain objects offering ``send(recipient, message)`` and
``close()``. They are looked up by name in ``PROVIDERS``; new ones are added
with ``register_provider`` without touching the issuer or validator.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

import phonenumbers
import requests
from twilio.base.exceptions import TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from base_logger import get_logger
from sms_authenticator.config import GatewayConfig
from sms_authenticator.exceptions import ConfigurationError, DeliveryError
from sms_authenticator.utils import get_phonenumber_region_code, sanitize_phone_number

logger = get_logger(__name__)

GATEWAYAPI_URL = "https://gatewayapi.com/rest/mtsms"
SIMULATION_PROVIDER = "simulation"
TWILIO_ACCEPTED_STATUSES = ("accepted", "queued", "sending", "sent", "delivered")


class SmsTransport(Protocol):
    """Capability offered by every concrete SMS provider."""

    def send(self, recipient: str, message: str) -> None:
        """Send ``message`` to the sanitized ``recipient`` or raise DeliveryError."""

    def close(self) -> None:
        """Release network resources."""


PROVIDERS: Dict[str, Callable[[GatewayConfig], SmsTransport]] = {}


def register_provider(name: str) -> Callable:
    """Register a transport factory under ``name``."""

    def decorator(factory):
        PROVIDERS[name] = factory
        return factory

    return decorator


@dataclass(frozen=True)
class DeliveryRequest:
    """One outbound message, alive only for the duration of a dispatch."""

    recipient: str
    message: str


@register_provider("gatewayapi")
class GatewayApiTransport:
    """Sends SMS through GatewayAPI using token authentication."""

    requires_credential = True

    def __init__(self, config: GatewayConfig, url: str = GATEWAYAPI_URL):
        self.url = url
        self.sender_id = config.sender_id
        self.timeout = config.request_timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Token {config.provider_credential}",
                "Content-Type": "application/json",
            }
        )

    def send(self, recipient: str, message: str) -> None:
        payload = {
            "recipients": [{"msisdn": recipient}],
            "message": message,
            "sender": self.sender_id,
        }

        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as error:
            logger.error("GatewayAPI request timed out after %ss", self.timeout)
            raise DeliveryError("SMS gateway request timed out.") from error
        except requests.exceptions.RequestException as error:
            logger.error("GatewayAPI request error: %s", error)
            raise DeliveryError(f"SMS gateway request failed: {error}") from error

        logger.debug("Received response with status code: %d", response.status_code)

        if not response.ok:
            logger.error(
                "Failed to send SMS. HTTP status: %d, response body: %s",
                response.status_code,
                response.text,
            )
            raise DeliveryError(
                f"Failed to send SMS: {response.text}", response.status_code
            )

    def close(self) -> None:
        self.session.close()


@register_provider("twilio")
class TwilioTransport:
    """Sends SMS through the Twilio Messages API.

    The credential is ``"<account_sid>:<auth_token>"``.
    """

    requires_credential = True

    def __init__(self, config: GatewayConfig):
        account_sid, _, auth_token = (config.provider_credential or "").partition(":")
        if not account_sid or not auth_token:
            raise ConfigurationError(
                "Twilio credential must have the form '<account_sid>:<auth_token>'."
            )
        self.sender_id = config.sender_id
        self.client = Client(
            account_sid,
            auth_token,
            http_client=TwilioHttpClient(timeout=config.request_timeout),
        )

    def send(self, recipient: str, message: str) -> None:
        try:
            result = self.client.messages.create(
                body=message, from_=self.sender_id, to=f"+{recipient}"
            )
        except TwilioRestException as error:
            logger.error("Twilio error: %s", error)
            raise DeliveryError(error.msg, error.status) from error

        if result.status not in TWILIO_ACCEPTED_STATUSES:
            logger.error("Twilio send failed: %s", result.status)
            raise DeliveryError(f"Twilio rejected the message: {result.status}")

    def close(self) -> None:
        pass


@register_provider(SIMULATION_PROVIDER)
class SimulationTransport:
    """Logs messages instead of sending them. Development use only."""

    requires_credential = False

    def __init__(self, config: Optional[GatewayConfig] = None):
        pass

    def send(self, recipient: str, message: str) -> None:
        logger.warning(
            "***** SIMULATION MODE ***** Would send SMS to %s with text: %s",
            recipient,
            message,
        )

    def close(self) -> None:
        pass


class GatewayDispatcher:
    """Sends text messages through the configured transport.

    Delivery is attempted exactly once per call; failures surface as
    DeliveryError.
    """

    def __init__(
        self, config: GatewayConfig, transport: Optional[SmsTransport] = None
    ):
        self.config = config
        self.provider = SIMULATION_PROVIDER if config.simulation else config.provider

        if transport is None:
            factory = PROVIDERS.get(self.provider)
            if factory is None:
                raise ConfigurationError(f"Unknown SMS provider '{self.provider}'.")
            if (
                getattr(factory, "requires_credential", True)
                and not config.provider_credential
            ):
                logger.error("No credential configured for provider %s", self.provider)
                raise ConfigurationError(
                    f"SMS provider '{self.provider}' requires a credential."
                )
            transport = factory(config)

        self.transport = transport
        logger.debug("SMS dispatcher ready with provider: %s", self.provider)

    def prepare(self, phone_number: str, message: str) -> DeliveryRequest:
        """Sanitize the recipient and check it may receive codes.

        Raises:
            DeliveryError: If the number is blank, unparseable or outside the
                allowed countries.
        """
        try:
            recipient = sanitize_phone_number(phone_number)
        except ValueError as error:
            raise DeliveryError(str(error)) from error

        if self.config.allowed_countries:
            try:
                region_code, country_name = get_phonenumber_region_code(recipient)
            except phonenumbers.NumberParseException as error:
                logger.error("Unable to parse phone number: %s", error)
                raise DeliveryError(f"Invalid phone number: {error}") from error

            if region_code not in self.config.allowed_countries:
                logger.info(
                    "SMS blocked for country: %s with region: %s",
                    country_name,
                    region_code,
                )
                raise DeliveryError(f"SMS delivery not allowed to region {region_code}.")

        return DeliveryRequest(recipient=recipient, message=message)

    def send(self, phone_number: str, message: str) -> None:
        """Send ``message`` to ``phone_number``.

        Raises:
            DeliveryError: If the transport fails for any reason.
        """
        request = self.prepare(phone_number, message)
        logger.debug("Sanitized phone number: %s", request.recipient)

        try:
            self.transport.send(request.recipient, request.message)
        except DeliveryError:
            raise
        except Exception as error:
            logger.exception("Error occurred while sending SMS")
            raise DeliveryError(f"Error occurred while sending SMS: {error}") from error

        logger.info("SMS sent successfully to %s", request.recipient)

    def close(self) -> None:
        self.transport.close()


def create_dispatcher(config: GatewayConfig) -> GatewayDispatcher:
    """Build the dispatcher selected by ``config``."""
    return GatewayDispatcher(config)
