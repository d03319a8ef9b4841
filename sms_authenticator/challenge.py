# SPDX-License-Identifier: GPL-3.0-only
"""OTP challenge issuing."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Mapping, Optional, Protocol

from base_logger import get_logger
from sms_authenticator.code_generator import generate_code
from sms_authenticator.config import CODE, GatewayConfig
from sms_authenticator.exceptions import DeliveryError
from sms_authenticator.gateway import GatewayDispatcher
from sms_authenticator.types import CODE_FORM, AuthenticationFlow, AuthOutcome, Outcome
from sms_authenticator.utils import from_epoch_millis, to_epoch_millis, utc_now

logger = get_logger(__name__)

CODE_ISSUED_AT = "code_issued_at"
CODE_EXPIRES_AT = "code_expires_at"
SMS_TEXT_KEY = "smsAuthText"

DEFAULT_MESSAGES = {
    "en": {SMS_TEXT_KEY: "Your SMS code is {0} and is valid for {1} minutes."},
}


class TemplateRenderer(Protocol):
    def render_template(self, locale: Optional[str], key: str, *args) -> str: ...


class MessageCatalog:
    """Minimal renderer backed by ``str.format`` templates per locale."""

    def __init__(
        self,
        messages: Optional[Mapping[str, Mapping[str, str]]] = None,
        default_locale: str = "en",
    ):
        self.messages: Dict[str, Mapping[str, str]] = dict(DEFAULT_MESSAGES)
        self.messages.update(messages or {})
        self.default_locale = default_locale

    def render_template(self, locale: Optional[str], key: str, *args) -> str:
        candidates = [locale, (locale or "").split("-")[0], self.default_locale]
        for candidate in candidates:
            template = self.messages.get(candidate or "", {}).get(key)
            if template:
                return template.format(*args)
        raise KeyError(f"No message template '{key}' for locale {locale!r}")


@dataclass(frozen=True)
class OtpChallenge:
    """An issued code awaiting verification."""

    code: str
    issued_at: datetime
    ttl_seconds: int

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.ttl_seconds)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def save(self, notes) -> None:
        """Write the challenge into the flow's notes, replacing any prior one."""
        notes.set_note(CODE, self.code)
        notes.set_note(CODE_ISSUED_AT, str(to_epoch_millis(self.issued_at)))
        notes.set_note(CODE_EXPIRES_AT, str(to_epoch_millis(self.expires_at)))

    @classmethod
    def load(cls, notes) -> Optional["OtpChallenge"]:
        """Read the challenge from the flow's notes.

        Returns:
            The stored challenge, or None when notes are missing or unreadable.
        """
        code = notes.get_note(CODE)
        issued_at = notes.get_note(CODE_ISSUED_AT)
        expires_at = notes.get_note(CODE_EXPIRES_AT)
        if not code or not issued_at or not expires_at:
            return None

        try:
            issued_ms, expires_ms = int(issued_at), int(expires_at)
        except ValueError:
            logger.error("Stored challenge timestamps are not integers")
            return None

        return cls(
            code=code,
            issued_at=from_epoch_millis(issued_ms),
            ttl_seconds=(expires_ms - issued_ms) // 1000,
        )

    @staticmethod
    def clear(notes) -> None:
        for key in (CODE, CODE_ISSUED_AT, CODE_EXPIRES_AT):
            notes.remove_note(key)


class ChallengeIssuer:
    """Creates a challenge, stores it in the flow and texts the code."""

    def __init__(
        self,
        config: GatewayConfig,
        dispatcher: GatewayDispatcher,
        renderer: Optional[TemplateRenderer] = None,
        clock: Callable[[], datetime] = utc_now,
        generator: Callable[[], str] = generate_code,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.renderer = renderer or MessageCatalog()
        self.clock = clock
        self.generator = generator

    def create_challenge(self) -> OtpChallenge:
        now = self.clock()
        # Stored with millisecond precision
        now = now.replace(microsecond=now.microsecond - now.microsecond % 1000)
        return OtpChallenge(
            code=self.generator(), issued_at=now, ttl_seconds=self.config.ttl_seconds
        )

    def issue(self, flow: AuthenticationFlow, phone_number: str) -> AuthOutcome:
        """Issue a new challenge for ``flow`` and send it to ``phone_number``.

        Returns:
            CHALLENGE_PRESENTED when the SMS went out, DELIVERY_FAILED
            otherwise. The stored challenge is kept in both cases.
        """
        challenge = self.create_challenge()
        challenge.save(flow.notes)
        logger.info(
            "SMS challenge issued for flow %s, expires at %s",
            flow.flow_id,
            challenge.expires_at.isoformat(),
        )

        try:
            text = self.renderer.render_template(
                flow.locale, SMS_TEXT_KEY, challenge.code, self.config.ttl_minutes
            )
        except (KeyError, IndexError, ValueError) as render_error:
            logger.error(
                "Unable to render SMS text for flow %s: %s", flow.flow_id, render_error
            )
            error = DeliveryError(f"Unable to render SMS text: {render_error}")
            return AuthOutcome(
                Outcome.DELIVERY_FAILED, error_key=error.message_key, error=error
            )

        try:
            self.dispatcher.send(phone_number, text)
        except DeliveryError as error:
            logger.error(
                "SMS not sent for flow %s: %s", flow.flow_id, error.diagnostic
            )
            return AuthOutcome(
                Outcome.DELIVERY_FAILED, error_key=error.message_key, error=error
            )

        return AuthOutcome(Outcome.CHALLENGE_PRESENTED, form=CODE_FORM)
