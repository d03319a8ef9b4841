# SPDX-License-Identifier: GPL-3.0-only
"""Gateway configuration.

The configuration is built once and handed to the dispatcher, issuer and
validator explicitly. ``from_env`` and ``from_mapping`` are the only places
that read ambient settings.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from base_logger import get_logger
from sms_authenticator.code_generator import CODE_PATTERN_LENGTH
from sms_authenticator.exceptions import ConfigurationError
from sms_authenticator.utils import get_bool_config, get_configs, get_list_config

logger = get_logger(__name__)

# Authenticator config map keys
CODE = "code"
CODE_LENGTH = "length"
CODE_TTL = "ttl"
SENDER_ID = "senderId"
SIMULATION_MODE = "simulation"
PROVIDER = "provider"

DEFAULT_PROVIDER = "gatewayapi"
DEFAULT_CODE_LENGTH = 5
DEFAULT_TTL_SECONDS = 300
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RETRY_DELAY_SECONDS = 2.0


def _parse_positive_int(name: str, value: Any) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as error:
        raise ConfigurationError(
            f"Configuration '{name}' must be an integer, got {value!r}."
        ) from error
    if number <= 0:
        raise ConfigurationError(f"Configuration '{name}' must be positive.")
    return number


def _parse_non_negative_float(name: str, value: Any) -> float:
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError) as error:
        raise ConfigurationError(
            f"Configuration '{name}' must be a number, got {value!r}."
        ) from error
    if number < 0:
        raise ConfigurationError(f"Configuration '{name}' must not be negative.")
    return number


@dataclass(frozen=True)
class GatewayConfig:
    """Settings for one authenticator configuration.

    Attributes:
        provider: Name of the registered SMS transport.
        provider_credential: Provider-issued API credential.
        sender_id: Sender name or number shown to the recipient.
        code_length: Accepted for compatibility; codes always follow the
            fixed 5-character pattern.
        ttl_seconds: Validity of an issued code.
        simulation: Log messages instead of sending them.
        request_timeout: Seconds to wait for the transport.
        retry_delay_seconds: Delay imposed after an invalid code.
        allowed_countries: Region codes allowed to receive codes; empty
            means no restriction.
    """

    provider: str = DEFAULT_PROVIDER
    provider_credential: Optional[str] = field(default=None, repr=False)
    sender_id: Optional[str] = None
    code_length: int = DEFAULT_CODE_LENGTH
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    simulation: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    allowed_countries: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(
            self, "code_length", _parse_positive_int(CODE_LENGTH, self.code_length)
        )
        object.__setattr__(
            self, "ttl_seconds", _parse_positive_int(CODE_TTL, self.ttl_seconds)
        )
        object.__setattr__(
            self,
            "request_timeout",
            _parse_non_negative_float("request_timeout", self.request_timeout),
        )
        object.__setattr__(
            self,
            "retry_delay_seconds",
            _parse_non_negative_float("retry_delay_seconds", self.retry_delay_seconds),
        )
        countries = self.allowed_countries
        if isinstance(countries, str):
            countries = (countries,)
        object.__setattr__(
            self,
            "allowed_countries",
            tuple(c.strip().upper() for c in countries if c.strip()),
        )
        if self.request_timeout == 0:
            raise ConfigurationError("Configuration 'request_timeout' must be positive.")
        if not self.provider:
            raise ConfigurationError("Configuration 'provider' is missing.")
        if self.code_length != CODE_PATTERN_LENGTH:
            logger.debug(
                "Configured code length %d is informational; codes are %d characters.",
                self.code_length,
                CODE_PATTERN_LENGTH,
            )

    @property
    def ttl_minutes(self) -> int:
        return self.ttl_seconds // 60

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build a configuration from environment variables."""
        credential = get_configs("SMS_PROVIDER_CREDENTIAL") or get_configs(
            "GATEWAYAPI_KEY"
        )
        return cls(
            provider=get_configs("SMS_PROVIDER", default_value=DEFAULT_PROVIDER),
            provider_credential=credential or None,
            sender_id=get_configs("SMS_SENDER_ID") or None,
            code_length=get_configs(
                "SMS_CODE_LENGTH", default_value=str(DEFAULT_CODE_LENGTH)
            ),
            ttl_seconds=get_configs(
                "SMS_CODE_TTL", default_value=str(DEFAULT_TTL_SECONDS)
            ),
            simulation=get_bool_config("SMS_SIMULATION"),
            request_timeout=get_configs(
                "SMS_REQUEST_TIMEOUT", default_value=str(DEFAULT_REQUEST_TIMEOUT)
            ),
            retry_delay_seconds=get_configs(
                "SMS_RETRY_DELAY", default_value=str(DEFAULT_RETRY_DELAY_SECONDS)
            ),
            allowed_countries=tuple(get_list_config("SMS_ALLOWED_COUNTRIES")),
        )

    @classmethod
    def from_mapping(
        cls, settings: Mapping[str, Any], credential: Optional[str] = None
    ) -> "GatewayConfig":
        """Build a configuration from an authenticator config map.

        Args:
            settings: String keyed map, e.g. ``{"length": "5", "ttl": "300"}``.
            credential: Provider credential, injected by the caller.

        Raises:
            ConfigurationError: If length or TTL are missing or malformed.
        """
        for key in (CODE_LENGTH, CODE_TTL):
            if settings.get(key) in (None, ""):
                raise ConfigurationError(f"Configuration '{key}' is missing.")

        simulation = settings.get(SIMULATION_MODE, False)
        if isinstance(simulation, str):
            simulation = simulation.strip().lower() in {"true", "1", "yes", "on"}

        return cls(
            provider=settings.get(PROVIDER) or DEFAULT_PROVIDER,
            provider_credential=credential,
            sender_id=settings.get(SENDER_ID) or None,
            code_length=settings[CODE_LENGTH],
            ttl_seconds=settings[CODE_TTL],
            simulation=bool(simulation),
        )
