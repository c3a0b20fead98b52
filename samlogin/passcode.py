#samlogin/passcode.py
"""One-time passcodes for the code-entry step.

The flow driver only needs `generate(secret) -> code`. The default provider
hands the Steam Guard derivation to steampy: the secret is the account's
base64 `shared_secret` (as found in a .maFile) and the code is five
characters from Steam's own alphabet.
"""

import base64
import binascii
import logging
import time

from steampy import guard

logger = logging.getLogger(__name__)

# The login window draws one cell per character.
CODE_LENGTH = 5
CODE_ALPHABET = "23456789BCDFGHJKMNPQRTVWXY"


class PasscodeError(Exception):
    """The passcode could not be derived from the secret."""
    pass


class PasscodeProvider:
    def generate(self, secret):
        raise NotImplementedError


class SteamGuardPasscodeProvider(PasscodeProvider):
    def __init__(self, clock=time.time):
        self.clock = clock

    def generate(self, secret):
        if not secret:
            raise PasscodeError("No shared secret configured for this account")
        secret = secret.strip()
        try:
            base64.b64decode(secret, validate=True)
        except (binascii.Error, ValueError) as e:
            raise PasscodeError(f"Shared secret is not valid base64: {e}") from e
        try:
            return guard.generate_one_time_code(secret, int(self.clock()))
        except Exception as e:
            raise PasscodeError(f"Could not derive passcode: {e}") from e


_default_provider = SteamGuardPasscodeProvider()


def generate_code(secret):
    return _default_provider.generate(secret)
