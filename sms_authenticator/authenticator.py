# SPDX-License-Identifier: GPL-3.0-only
"""SMS authenticator entry point for the host flow engine."""

from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Protocol

from base_logger import get_logger
from sms_authenticator.challenge import ChallengeIssuer, TemplateRenderer
from sms_authenticator.config import GatewayConfig
from sms_authenticator.exceptions import MissingAttributeError
from sms_authenticator.gateway import GatewayDispatcher, create_dispatcher
from sms_authenticator.types import AuthenticationFlow, AuthOutcome, Outcome
from sms_authenticator.utils import utc_now
from sms_authenticator.validator import OtpValidator

logger = get_logger(__name__)

MOBILE_NUMBER_FIELD = "mobile_number"
MOBILE_NUMBER_REQUIRED_ACTION = "mobile-number-ra"


class IdentityDirectory(Protocol):
    def get_attribute(self, identity: Any, name: str) -> Optional[str]: ...


class RequiredActionRegistrar(Protocol):
    def add_required_action(self, identity: Any, action_id: str) -> None: ...


class SmsAuthenticator:
    """Second factor that texts a one-time code and checks the reply."""

    def __init__(
        self,
        config: GatewayConfig,
        directory: IdentityDirectory,
        dispatcher: Optional[GatewayDispatcher] = None,
        renderer: Optional[TemplateRenderer] = None,
        registrar: Optional[RequiredActionRegistrar] = None,
        validator: Optional[OtpValidator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.directory = directory
        self.registrar = registrar
        self.dispatcher = dispatcher or create_dispatcher(config)
        self.issuer = ChallengeIssuer(config, self.dispatcher, renderer, clock=clock)
        self.validator = validator or OtpValidator(
            clock=clock, retry_delay_seconds=config.retry_delay_seconds
        )

    def requires_user(self) -> bool:
        return True

    def get_mobile_number(self, identity: Any) -> Optional[str]:
        return self.directory.get_attribute(identity, MOBILE_NUMBER_FIELD)

    def is_applicable(self, identity: Any) -> bool:
        """Whether ``identity`` has a mobile number to receive codes."""
        return self.get_mobile_number(identity) is not None

    def set_required_actions(self, identity: Any) -> None:
        """Ask the host to collect a mobile number for ``identity``."""
        if self.registrar is None:
            logger.warning("No required action registrar configured")
            return
        self.registrar.add_required_action(identity, MOBILE_NUMBER_REQUIRED_ACTION)

    def authenticate(self, flow: AuthenticationFlow) -> AuthOutcome:
        """Issue a code for the flow's identity and present the code form."""
        mobile_number = self.get_mobile_number(flow.identity)
        if mobile_number is None:
            error = MissingAttributeError("Identity has no mobile number.")
            logger.warning("SMS step not applicable for flow %s", flow.flow_id)
            return AuthOutcome(
                Outcome.NOT_APPLICABLE, error_key=error.message_key, error=error
            )

        result = self.issuer.issue(flow, mobile_number)
        # A new challenge is stored even when delivery fails
        self.validator.delay_policy.reset(flow.flow_id)
        return result

    def action(self, flow: AuthenticationFlow, submitted_code: Optional[str]) -> AuthOutcome:
        """Check the code the user entered on the code form."""
        return self.validator.validate(flow, submitted_code)

    def close(self) -> None:
        self.dispatcher.close()


def create_authenticator(
    settings: Mapping[str, Any],
    credential: Optional[str],
    directory: IdentityDirectory,
    **kwargs,
) -> SmsAuthenticator:
    """Build an authenticator from an authenticator config map.

    Args:
        settings: Map with ``length``, ``ttl`` and optionally ``senderId``,
            ``simulation`` and ``provider``.
        credential: Provider credential, injected explicitly.
        directory: Identity attribute lookup.
        **kwargs: Passed on to SmsAuthenticator.

    Raises:
        ConfigurationError: If the settings or credential are invalid.
    """
    config = GatewayConfig.from_mapping(settings, credential)
    return SmsAuthenticator(config, directory, **kwargs)
