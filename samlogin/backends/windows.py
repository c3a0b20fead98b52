#samlogin/backends/windows.py
"""Windows Backend, we use pywinauto (UIA backend) for the accessibility tree and window handles, psutil for the process tree, pyautogui for keystrokes and mss for the error screenshot.

Every element call goes straight to UIA; nothing is cached between calls because the login window is a Chromium surface that redraws under us."""

import logging
import os

import mss
import mss.tools
import psutil
import pyautogui
from pywinauto import Desktop, findwindows, handleprops, timings

from samlogin.backends.base import (
    Automation, Backend, Element, Keyboard, Role, Session, WindowLocator,
)
from samlogin.states import WindowHandle

logger = logging.getLogger(__name__)


class UIAElement(Element):
    def __init__(self, wrapper):
        self.wrapper = wrapper

    @property
    def role(self):
        return Role.from_control_type(self.wrapper.element_info.control_type)

    @property
    def name(self):
        return self.wrapper.element_info.name or ""

    @property
    def bounds(self):
        rect = self.wrapper.rectangle()
        return (rect.left, rect.top, rect.width(), rect.height())

    def is_enabled(self):
        return self.wrapper.is_enabled()

    def children(self, role=None):
        if role is None:
            found = self.wrapper.children()
        else:
            found = self.wrapper.children(control_type=role.value)
        return [UIAElement(w) for w in found]

    def find_all(self, role=None):
        if role is None:
            found = self.wrapper.descendants()
        else:
            found = self.wrapper.descendants(control_type=role.value)
        return [UIAElement(w) for w in found]

    def find_first(self, role):
        found = self.wrapper.descendants(control_type=role.value)
        return UIAElement(found[0]) if found else None

    def focus(self):
        self.wrapper.set_focus()

    def invoke(self):
        # Groups and text links expose the Invoke pattern without being ButtonWrappers
        self.wrapper.iface_invoke.Invoke()

    def set_text(self, value):
        self.wrapper.iface_value.SetValue(value)

    def wait_enabled(self, timeout=5.0):
        timings.wait_until(timeout, 0.05, self.wrapper.is_enabled, True)


class UIASession(Session):
    def __init__(self, window):
        self._window = Desktop(backend="uia").window(handle=window.raw).wrapper_object()

    def root(self):
        return UIAElement(self._window) if self._window is not None else None

    def close(self):
        # Drop the COM references so the window can be released by UIA
        self._window = None


class UIAutomation(Automation):
    def attach(self, window):
        return UIASession(window)


class PyAutoGuiKeyboard(Keyboard):
    def __init__(self, pause=0.0):
        pyautogui.PAUSE = pause

    def type_char(self, char):
        pyautogui.write(char)


class WindowsLocator(WindowLocator):
    def find_processes(self, name):
        wanted = name.lower()
        found = []
        for process in psutil.process_iter(["name"]):
            pname = (process.info.get("name") or "").lower()
            if os.path.splitext(pname)[0] == wanted:
                found.append(process)
        return found

    def child_processes(self, pid):
        try:
            return psutil.Process(pid).children()
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.warning("Could not list children of %s: %s", pid, e)
            return []

    def list_windows(self, pid):
        handles = findwindows.find_windows(process=pid, visible_only=False, enabled_only=False)
        return [WindowHandle(h) for h in handles]

    def window_title(self, window):
        return handleprops.text(window.raw) or ""

    def window_class_name(self, window):
        return handleprops.classname(window.raw) or ""

    def window_rect(self, window):
        rect = handleprops.rectangle(window.raw)
        return (rect.left, rect.top, rect.width(), rect.height())

    def window_process_id(self, window):
        return handleprops.processid(window.raw) or 0

    def process_for_pid(self, pid):
        return psutil.Process(pid)


class WindowsBackend(Backend):
    def __init__(self):
        super().__init__(WindowsLocator(), UIAutomation(), PyAutoGuiKeyboard())
        self.sct = mss.mss()

    def capture_window(self, window, path):
        """
        Grabs the window region with mss and writes it as PNG.
        """
        left, top, width, height = self.locator.window_rect(window)
        monitor = {"top": top, "left": left, "width": width, "height": height}
        sct_img = self.sct.grab(monitor)
        mss.tools.to_png(sct_img.rgb, sct_img.size, output=path)
        return path
