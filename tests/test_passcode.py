import base64

import pytest

from samlogin.passcode import CODE_ALPHABET, CODE_LENGTH, PasscodeError, SteamGuardPasscodeProvider, generate_code

SECRET = base64.b64encode(b"superdupersecret").decode()


def at(timestamp):
    return SteamGuardPasscodeProvider(clock=lambda: timestamp)


@pytest.mark.parametrize("timestamp,expected", [
    (3000030, "YRGQJ"),
    (3000029, "94R9D"),
])
def test_known_steam_guard_codes(timestamp, expected):
    assert at(timestamp).generate(SECRET) == expected


def test_code_stays_the_same_within_a_period():
    assert at(3000030).generate(SECRET) == at(3000059).generate(SECRET)


def test_code_uses_steam_alphabet():
    code = at(1700000000).generate(base64.b64encode(b"0123456789abcdefghij").decode())
    assert len(code) == CODE_LENGTH
    assert set(code) <= set(CODE_ALPHABET)


def test_surrounding_whitespace_is_ignored():
    assert at(3000030).generate(f"  {SECRET}\n") == "YRGQJ"


def test_missing_secret():
    with pytest.raises(PasscodeError):
        SteamGuardPasscodeProvider().generate("")


def test_base32_secret_is_rejected():
    with pytest.raises(PasscodeError):
        SteamGuardPasscodeProvider().generate("JBSWY3DPEHPK3PX!")


def test_module_helper_uses_default_provider():
    code = generate_code(SECRET)
    assert len(code) == CODE_LENGTH
    assert set(code) <= set(CODE_ALPHABET)
