#samlogin/states.py
"""Value types shared by the classifier, the flow driver and the orchestrator.

Nothing in here talks to the OS. A WindowHandle is just the raw native handle,
a LoginWindowState is what the classifier says the login window shows, and an
ElementSignature is the 'shape' of the login form that the classifier reads.
"""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum


class LoginWindowState(Enum):
    INVALID = "Invalid"
    LOADING = "Loading"
    SELECTION = "Selection"
    LOGIN = "Login"
    CODE = "Code"
    MOBILE_CONFIRMATION = "MobileConfirmation"
    ERROR = "Error"
    SUCCESS = "Success"

    @property
    def is_terminal(self):
        return self in (LoginWindowState.ERROR, LoginWindowState.SUCCESS)


class WaitDecision(Enum):
    """Answer from the caller when the main window takes too long."""
    SKIP = "skip"
    KEEP_WAITING = "keep_waiting"


@dataclass(frozen=True)
class WindowHandle:
    raw: int = 0

    @property
    def is_valid(self):
        return self.raw != 0

    def __bool__(self):
        return self.is_valid

    def __repr__(self):
        return f"WindowHandle(0x{self.raw:x})" if self.is_valid else "WindowHandle(INVALID)"


WindowHandle.INVALID = WindowHandle(0)


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)
    remember: bool = False


@dataclass(frozen=True)
class ElementSignature:
    """
    Per-role counts of the login document's immediate children plus the
    literal text of every label. Two signatures with the same counts and
    texts always classify the same way.
    """
    inputs: int = 0
    buttons: int = 0
    groups: int = 0
    images: int = 0
    texts: tuple = ()

    @property
    def text_count(self):
        return len(self.texts)

    @property
    def fingerprint(self):
        sig = json.dumps(
            [self.inputs, self.buttons, self.groups, self.images, list(self.texts)],
            ensure_ascii=False,
        )
        return hashlib.md5(sig.encode("utf-8")).hexdigest()

    def describe(self):
        return (f"Inputs: {self.inputs} Buttons: {self.buttons} Groups: {self.groups} "
                f"Images: {self.images} Texts: {self.text_count}")


@dataclass(frozen=True)
class LoginResult:
    state: LoginWindowState
    login_window: WindowHandle = WindowHandle.INVALID
    main_window: WindowHandle = WindowHandle.INVALID

    @property
    def succeeded(self):
        return self.state is LoginWindowState.SUCCESS
