# SPDX-License-Identifier: GPL-3.0-only
"""Common type definitions for the authenticator."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

CODE_FORM = "login-sms"


class Requirement(Enum):
    """How the host flow treats the SMS step."""

    REQUIRED = "required"
    CONDITIONAL = "conditional"
    ALTERNATIVE = "alternative"
    DISABLED = "disabled"

    @property
    def is_required(self) -> bool:
        return self is Requirement.REQUIRED


class Outcome(Enum):
    """Signals returned to the flow controller."""

    CHALLENGE_PRESENTED = "challenge_presented"
    DELIVERY_FAILED = "delivery_failed"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    INVALID = "invalid"
    THROTTLED = "throttled"
    ATTEMPTED = "attempted"
    MISSING_STATE = "missing_state"
    NOT_APPLICABLE = "not_applicable"


TERMINAL_OUTCOMES = frozenset(
    {Outcome.ACCEPTED, Outcome.EXPIRED, Outcome.MISSING_STATE}
)


@dataclass
class AuthenticationFlow:
    """Per-flow context handed in by the host.

    ``notes`` is the host's session store for this flow and is passed by
    reference; the authenticator never keeps it between calls.
    """

    flow_id: str
    identity: Any
    notes: Any
    requirement: Requirement = Requirement.REQUIRED
    locale: Optional[str] = None


@dataclass(frozen=True)
class AuthOutcome:
    """Result of an authenticate or action call."""

    outcome: Outcome
    form: Optional[str] = None
    error_key: Optional[str] = None
    error: Optional[Exception] = None
    retry_after: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.outcome in TERMINAL_OUTCOMES

    @property
    def is_success(self) -> bool:
        return self.outcome is Outcome.ACCEPTED
