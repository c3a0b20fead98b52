#samlogin/core.py
"""The login loop:

    Classify, act, classify again: every poll re-reads the login window, since the web view redraws on its own schedule.
    Fail soft: the classifier and the driver never raise, so one broken account can't take down a batch of logins.
    Explicit stops only: the loop ends on a terminal state, on the cancellation token, or when the caller answers 'skip' to the long main-window wait."""

import logging
import sys
import time

from samlogin.backends.base import UPDATER_CLASS_NAME, UPDATER_MIN_LEFT
from samlogin.classifier import SignatureClassifier
from samlogin.driver import FlowDriver
from samlogin.memory.persistence import SignatureMemory
from samlogin.passcode import SteamGuardPasscodeProvider
from samlogin.states import LoginResult, LoginWindowState, WaitDecision, WindowHandle
from samlogin.utils.logger import LoginAuditLogger
from samlogin.utils.watchdog import CANCEL_ALL, wait_for_main_window, wait_for_window_process

logger = logging.getLogger(__name__)

STATE_POLL_INTERVAL = 0.5


def keep_waiting():
    return WaitDecision.KEEP_WAITING


class LoginOracle:
    def __init__(self, backend=None, passcodes=None, log_dir="logs/audit",
                 db_path="data/signatures.db", token=CANCEL_ALL,
                 poll_interval=STATE_POLL_INTERVAL, max_polls=None, sleep=time.sleep):
        logger.info("Starting login oracle on %s", sys.platform)

        # 1. OS backend, audit trail and signature journal
        self.backend = backend if backend is not None else self._setup_backend()
        self.audit = LoginAuditLogger(log_dir)
        self.memory = SignatureMemory(db_path) if db_path else None

        # 2. The state machine itself
        self.passcodes = passcodes if passcodes is not None else SteamGuardPasscodeProvider()
        self.classifier = SignatureClassifier(self.backend.automation, journal=self.memory)
        self.driver = FlowDriver(self.backend.automation, self.backend.keyboard, self.passcodes)

        self.token = token
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.sleep = sleep

    def _setup_backend(self):
        if sys.platform != 'win32':
            raise RuntimeError("The login window can only be automated on Windows")
        from samlogin.backends.windows import WindowsBackend
        return WindowsBackend()

    @property
    def locator(self):
        return self.backend.locator

    def cancel(self):
        self.token.cancel()

    def find_login_window(self):
        return self.locator.find_login_window()

    def get_state(self, window):
        return self.classifier.classify(window)

    def wait_for_process(self, window):
        return wait_for_window_process(self.locator, window, token=self.token, sleep=self.sleep)

    def is_client_updating(self):
        window = self.locator.find_main_window()
        if not window.is_valid:
            return False
        try:
            left = self.locator.window_rect(window)[0]
            return self.locator.window_class_name(window) == UPDATER_CLASS_NAME \
                and left > UPDATER_MIN_LEFT
        except Exception as e:
            logger.warning("Could not inspect main window: %s", e)
            return False

    def wait_for_login_window(self):
        polls = 0
        while not self._should_stop(polls):
            window = self.find_login_window()
            if window.is_valid:
                return window
            polls += 1
            self.sleep(self.poll_interval)
        return WindowHandle.INVALID

    def login(self, credentials, secret=None, decide=keep_waiting):
        """
        Drives the login window from whatever it shows now to a terminal state
        and, on success, waits for the client's main window.
        """
        account = credentials.username
        self.audit.log_event(account, "Login attempt started", "START")

        window = self.wait_for_login_window()
        if not window.is_valid:
            self.audit.log_event(account, "Login window never appeared", "ABORTED")
            return LoginResult(LoginWindowState.INVALID)

        if self.wait_for_process(window) is None:
            self.audit.log_event(account, "Cancelled while waiting for the login window's process", "CANCELLED")
            return LoginResult(LoginWindowState.INVALID, window)

        state = self.drive(window, credentials, secret)
        if state is not LoginWindowState.SUCCESS:
            return LoginResult(state, window)

        main_window = wait_for_main_window(self.locator, decide, token=self.token, sleep=self.sleep)
        if main_window.is_valid:
            self.audit.log_event(account, f"Main window {main_window!r} is up", "SUCCESS")
        else:
            self.audit.log_event(account, "Stopped waiting for the main window", "SKIPPED")
        return LoginResult(LoginWindowState.SUCCESS, window, main_window)

    def drive(self, window, credentials, secret=None):
        """
        Classify/act loop for one login window. A submitted password is only
        the end of the road for accounts without a shared secret; the others
        continue through the code step. Without a secret a phone confirmation
        is left on screen until the user approves it and the window closes.
        """
        account = credentials.username
        previous = None
        awaiting_close = False
        polls = 0

        while not self._should_stop(polls):
            polls += 1
            state = self.get_state(window)
            if state is not previous:
                self.audit.log_transition(account, previous or LoginWindowState.INVALID, state)
                previous = state

            if state is LoginWindowState.ERROR:
                self._capture_error(window, account)
                return LoginWindowState.ERROR

            if awaiting_close and state in (LoginWindowState.INVALID, LoginWindowState.LOADING) \
                    and self.find_login_window() != window:
                # Login window closed on its own: password or phone approval accepted
                return LoginWindowState.SUCCESS

            if state is LoginWindowState.MOBILE_CONFIRMATION:
                awaiting_close = True

            result = self.driver.handle(window, state, credentials, secret)
            if result is not state:
                logger.info("%s: %s -> %s", account, state.value, result.value)

            if state is LoginWindowState.LOGIN and result is LoginWindowState.SUCCESS:
                awaiting_close = True
                if not secret:
                    return LoginWindowState.SUCCESS
            elif state is LoginWindowState.CODE and result is LoginWindowState.SUCCESS:
                self.audit.log_event(account, "Passcode accepted", "CODE")
                return LoginWindowState.SUCCESS

            self.sleep(self.poll_interval)

        self.audit.log_event(account, "Login loop stopped before a terminal state", "CANCELLED")
        return LoginWindowState.INVALID

    def _should_stop(self, polls):
        if self.token.is_cancelled:
            self.token.clear()
            return True
        return self.max_polls is not None and polls >= self.max_polls

    def _capture_error(self, window, account):
        path = self.audit.screenshot_path(account)
        try:
            saved = self.backend.capture_window(window, path)
        except Exception as e:
            logger.warning("Could not capture error screenshot: %s", e)
            saved = None
        message = "Login rejected by the client"
        if saved:
            message += f"\n\n![error]({saved})"
        self.audit.log_event(account, message, "ERROR")
