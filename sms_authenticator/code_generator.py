# SPDX-License-Identifier: GPL-3.0-only
"""Pronounceable one-time passcode generation."""

import secrets

CONSONANTS = "bcdfghjklmnpqrstvwxz"
VOWELS = "aeiouy"
DIGITS = "0123456789"
CODE_PATTERN_LENGTH = 5

_random = secrets.SystemRandom()


def generate_code() -> str:
    """Generate a code in the format consonant, vowel, consonant, digit, digit.

    The consonant and the digit are each repeated so the code is easy to
    read out over the phone, e.g. ``"kak44"``.

    Returns:
        Five character lower-case code.
    """
    consonant = _random.choice(CONSONANTS)
    vowel = _random.choice(VOWELS)
    digit = _random.choice(DIGITS)
    return f"{consonant}{vowel}{consonant}{digit}{digit}"
