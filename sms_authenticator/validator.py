# SPDX-License-Identifier: GPL-3.0-only
"""Submitted code validation with brute-force delay."""

import hmac
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from cachetools import TTLCache

from base_logger import get_logger
from sms_authenticator.challenge import OtpChallenge
from sms_authenticator.config import DEFAULT_RETRY_DELAY_SECONDS
from sms_authenticator.exceptions import (
    ExpiredCodeError,
    InvalidCodeError,
    MissingChallengeError,
)
from sms_authenticator.types import CODE_FORM, AuthenticationFlow, AuthOutcome, Outcome
from sms_authenticator.utils import utc_now

logger = get_logger(__name__)

CODE_TOO_SOON_KEY = "smsAuthCodeTooSoon"


class RetryThrottle:
    """Non-blocking delay: refuses resubmissions until a per-flow deadline.

    Deadlines live in a process-wide TTL cache keyed by flow id, so no
    request-handling thread is held while a flow waits.
    """

    def __init__(self, delay_seconds: float, maxsize: int = 10000):
        self.delay = timedelta(seconds=delay_seconds)
        self._retry_after: TTLCache = TTLCache(maxsize=maxsize, ttl=delay_seconds + 60)
        self._lock = threading.Lock()

    def check(self, flow_id: str, now: datetime) -> Optional[datetime]:
        """Return the deadline if ``flow_id`` may not submit yet."""
        with self._lock:
            retry_after = self._retry_after.get(flow_id)
        if retry_after is not None and now < retry_after:
            return retry_after
        return None

    def penalize(self, flow_id: str, now: datetime) -> Optional[datetime]:
        retry_after = now + self.delay
        with self._lock:
            self._retry_after[flow_id] = retry_after
        return retry_after

    def reset(self, flow_id: str) -> None:
        with self._lock:
            self._retry_after.pop(flow_id, None)


class BlockingDelay:
    """Sleeps after an invalid code. Only suitable for sequential hosts."""

    def __init__(
        self, delay_seconds: float, sleep: Callable[[float], None] = time.sleep
    ):
        self.delay_seconds = delay_seconds
        self.sleep = sleep

    def check(self, flow_id: str, now: datetime) -> Optional[datetime]:
        return None

    def penalize(self, flow_id: str, now: datetime) -> Optional[datetime]:
        self.sleep(self.delay_seconds)
        return None

    def reset(self, flow_id: str) -> None:
        pass


class OtpValidator:
    """Checks a submitted code against the flow's stored challenge.

    The stored challenge is only read here; it is cleared on acceptance or
    expiry and left untouched by invalid submissions.
    """

    def __init__(
        self,
        delay_policy=None,
        clock: Callable[[], datetime] = utc_now,
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS,
    ):
        self.delay_policy = delay_policy or RetryThrottle(retry_delay_seconds)
        self.clock = clock

    @staticmethod
    def verify(challenge: OtpChallenge, submitted: Optional[str], now: datetime) -> None:
        """Raise unless ``submitted`` is the challenge code and still valid.

        Raises:
            InvalidCodeError: The code does not match.
            ExpiredCodeError: The code matches but ``now >= expires_at``.
        """
        if not hmac.compare_digest(
            (submitted or "").encode("utf-8"), challenge.code.encode("utf-8")
        ):
            raise InvalidCodeError("Submitted code does not match.")
        if challenge.is_expired(now):
            raise ExpiredCodeError("Submitted code has expired.")

    def validate(self, flow: AuthenticationFlow, submitted: Optional[str]) -> AuthOutcome:
        now = self.clock()

        challenge = OtpChallenge.load(flow.notes)
        if challenge is None:
            error = MissingChallengeError("No SMS challenge stored for this flow.")
            logger.error("No SMS challenge stored for flow %s", flow.flow_id)
            return AuthOutcome(
                Outcome.MISSING_STATE, error_key=error.message_key, error=error
            )

        retry_after = self.delay_policy.check(flow.flow_id, now)
        if retry_after is not None:
            logger.warning(
                "Code resubmitted too soon for flow %s, retry after %s",
                flow.flow_id,
                retry_after.isoformat(),
            )
            return AuthOutcome(
                Outcome.THROTTLED,
                form=CODE_FORM,
                error_key=CODE_TOO_SOON_KEY,
                retry_after=retry_after,
            )

        try:
            self.verify(challenge, submitted, now)
        except ExpiredCodeError as error:
            logger.info("Expired SMS code submitted for flow %s", flow.flow_id)
            OtpChallenge.clear(flow.notes)
            self.delay_policy.reset(flow.flow_id)
            return AuthOutcome(Outcome.EXPIRED, error_key=error.message_key, error=error)
        except InvalidCodeError as error:
            if not flow.requirement.is_required:
                logger.info(
                    "Invalid SMS code on %s step for flow %s, marking attempted",
                    flow.requirement.value,
                    flow.flow_id,
                )
                return AuthOutcome(Outcome.ATTEMPTED, error=error)

            logger.warning("Invalid SMS code submitted for flow %s", flow.flow_id)
            retry_after = self.delay_policy.penalize(flow.flow_id, now)
            return AuthOutcome(
                Outcome.INVALID,
                form=CODE_FORM,
                error_key=error.message_key,
                error=error,
                retry_after=retry_after,
            )

        OtpChallenge.clear(flow.notes)
        self.delay_policy.reset(flow.flow_id)
        logger.info("SMS code accepted for flow %s", flow.flow_id)
        return AuthOutcome(Outcome.ACCEPTED)
