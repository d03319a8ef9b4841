# SPDX-License-Identifier: GPL-3.0-only
"""Exceptions raised by the SMS authenticator."""

from typing import Optional

USER_ERROR_MESSAGE = "Oops! Something went wrong. Please try again later."


class OTPError(Exception):
    """Base exception for all OTP related errors."""

    message_key = "smsAuthInternalError"


class ConfigurationError(OTPError):
    """Raised when length, TTL or provider credentials are missing or malformed."""


class DeliveryError(OTPError):
    """Raised when the SMS transport did not accept the message."""

    message_key = "smsAuthSmsNotSent"

    def __init__(self, diagnostic: str, status_code: Optional[int] = None):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.status_code = status_code


class ExpiredCodeError(OTPError):
    """Raised when the submitted code matched but its TTL elapsed."""

    message_key = "smsAuthCodeExpired"


class InvalidCodeError(OTPError):
    """Raised when the submitted code does not match the stored one."""

    message_key = "smsAuthCodeInvalid"


class MissingAttributeError(OTPError):
    """Raised when the identity has no mobile number to send a code to."""

    message_key = "smsAuthMissingMobileNumber"


class MissingChallengeError(OTPError):
    """Raised when no challenge is stored for the flow."""
