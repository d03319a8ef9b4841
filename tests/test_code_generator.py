"""Test module for code generation."""

from sms_authenticator.code_generator import CONSONANTS, DIGITS, VOWELS, generate_code


def test_code_follows_pattern():
    """Test every code is consonant, vowel, same consonant, digit, same digit."""
    for _ in range(500):
        code = generate_code()

        assert len(code) == 5
        assert code[0] in CONSONANTS
        assert code[0] == code[2]
        assert code[1] in VOWELS
        assert code[3] in DIGITS
        assert code[3] == code[4]


def test_code_is_lowercase_without_whitespace():
    """Test codes are case stable and contain no whitespace."""
    code = generate_code()

    assert code == code.lower()
    assert code == "".join(code.split())


def test_alphabets():
    """Test alphabet sizes and that consonants exclude vowels."""
    assert len(CONSONANTS) == 20
    assert len(VOWELS) == 6
    assert not set(CONSONANTS) & set(VOWELS)


def test_codes_vary():
    """Test the generator does not repeat a single value."""
    codes = {generate_code() for _ in range(200)}
    assert len(codes) > 1
