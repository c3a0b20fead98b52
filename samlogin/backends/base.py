#samlogin/backends/base.py
"""The seams between the login state machine and the OS.

The classifier and the flow driver only ever see these interfaces. The real
implementation lives in backends/windows.py (pywinauto UIA + psutil +
pyautogui); tests plug in fakes.
"""

from enum import Enum

from samlogin.states import WindowHandle

CLIENT_PROCESS_NAME = "steam"
WEBHELPER_PROCESS_NAME = "steamwebhelper"

# Known titles, including the Chinese-market client.
LOGIN_WINDOW_TITLES = ("蒸汽平台登录",)
MAIN_WINDOW_TITLES = ("Steam", "蒸汽平台")
LOGIN_TITLE_MARKER = "Steam"

UPDATER_CLASS_NAME = "BootstrapUpdateUIClass"
UPDATER_MIN_LEFT = 312


class Role(Enum):
    DOCUMENT = "Document"
    EDIT = "Edit"
    BUTTON = "Button"
    GROUP = "Group"
    IMAGE = "Image"
    TEXT = "Text"
    OTHER = "Other"

    @classmethod
    def from_control_type(cls, control_type):
        try:
            return cls(control_type)
        except ValueError:
            return cls.OTHER


def is_login_window_title(text):
    if not text:
        return False
    return (LOGIN_TITLE_MARKER in text and len(text) > len(LOGIN_TITLE_MARKER)) \
        or text in LOGIN_WINDOW_TITLES


def is_main_window_title(text):
    return text in MAIN_WINDOW_TITLES


class Element:
    """One node of a window's accessibility tree."""

    role = Role.OTHER
    name = ""
    bounds = (0, 0, 0, 0)

    def is_enabled(self):
        raise NotImplementedError

    def children(self, role=None):
        raise NotImplementedError

    def find_first(self, role):
        raise NotImplementedError

    def find_all(self, role=None):
        raise NotImplementedError

    def find_first_child(self, role):
        """First direct child with `role`, or None. Lists the children first."""
        return next(iter(self.children(role)), None)

    def focus(self):
        raise NotImplementedError

    def invoke(self):
        raise NotImplementedError

    def set_text(self, value):
        raise NotImplementedError

    def wait_enabled(self, timeout=5.0):
        raise NotImplementedError


class Session:
    """Scoped view of one window's tree. Use through Automation.attach()."""

    def root(self):
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class Automation:
    def attach(self, window):
        """Returns a Session for `window`. Raises if the window is gone."""
        raise NotImplementedError


class Keyboard:
    def type_char(self, char):
        raise NotImplementedError


class WindowLocator:
    def find_processes(self, name):
        raise NotImplementedError

    def list_windows(self, pid):
        raise NotImplementedError

    def window_title(self, window):
        raise NotImplementedError

    def window_class_name(self, window):
        raise NotImplementedError

    def window_rect(self, window):
        """(left, top, width, height) in screen coordinates."""
        raise NotImplementedError

    def window_process_id(self, window):
        """Owning pid, 0 while the OS has not mapped the window yet."""
        raise NotImplementedError

    def process_for_pid(self, pid):
        raise NotImplementedError

    def child_processes(self, pid):
        raise NotImplementedError

    def find_login_window(self):
        for process in self.find_processes(CLIENT_PROCESS_NAME):
            for child in self.child_processes(process.pid):
                if child.name().lower().startswith(WEBHELPER_PROCESS_NAME):
                    handle = self._first_window(child.pid, is_login_window_title)
                    if handle.is_valid:
                        return handle
        return WindowHandle.INVALID

    def find_main_window(self):
        for process in self.find_processes(CLIENT_PROCESS_NAME):
            handle = self._first_window(process.pid, is_main_window_title)
            if handle.is_valid:
                return handle
        return WindowHandle.INVALID

    def _first_window(self, pid, matches):
        for window in self.list_windows(pid):
            if matches(self.window_title(window)):
                return window
        return WindowHandle.INVALID


class Backend:
    """Bundle of the three OS-facing services the oracle needs."""

    def __init__(self, locator, automation, keyboard):
        self.locator = locator
        self.automation = automation
        self.keyboard = keyboard

    def capture_window(self, window, path):
        """Saves a screenshot of `window` to `path`. Optional."""
        return None
