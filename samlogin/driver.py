#samlogin/driver.py
"""Flow Driver: one interaction per actionable login state.

Each operation opens its own accessibility session, focuses the window, does
the one thing its state calls for and returns the state the window should be
in next. Nothing here raises to the caller. UIA is racy and the login web
view redraws constantly, so any failure is logged and reported as INVALID and
the caller simply classifies again on its next poll.
"""

import logging

from samlogin.backends.base import Role
from samlogin.classifier import find_document
from samlogin.states import LoginWindowState
from samlogin.utils.watchdog import poll_until

logger = logging.getLogger(__name__)

CODE_ENTRY_PHRASE = "enter a code instead"

DIGIT_READBACK_TIMEOUT = 0.5
DIGIT_READBACK_INTERVAL = 0.01
ENABLE_TIMEOUT = 5.0


class StructureMismatch(Exception):
    """The form does not have the elements the step needs."""
    pass


def _require(elements, count, what):
    if len(elements) < count:
        raise StructureMismatch(f"expected at least {count} {what}, found {len(elements)}")
    return elements


class FlowDriver:
    def __init__(self, automation, keyboard, passcodes,
                 digit_timeout=DIGIT_READBACK_TIMEOUT,
                 digit_interval=DIGIT_READBACK_INTERVAL,
                 enable_timeout=ENABLE_TIMEOUT):
        self.automation = automation
        self.keyboard = keyboard
        self.passcodes = passcodes
        self.digit_timeout = digit_timeout
        self.digit_interval = digit_interval
        self.enable_timeout = enable_timeout

    def handle(self, window, state, credentials=None, secret=None):
        """Runs the action for `state`. Non-actionable states pass through."""
        if state is LoginWindowState.SELECTION:
            return self.select_new_account(window)
        if state is LoginWindowState.MOBILE_CONFIRMATION and secret:
            return self.switch_to_code(window)
        if state is LoginWindowState.LOGIN and credentials is not None:
            return self.enter_credentials(window, credentials)
        if state is LoginWindowState.CODE and secret:
            return self.enter_code(window, secret)
        return state

    def _document(self, session):
        root = session.root()
        if root is None:
            raise StructureMismatch("window has no accessibility root")
        root.focus()
        document = find_document(session)
        if document is None:
            raise StructureMismatch("login document not found")
        return document

    def select_new_account(self, window):
        """Selection -> Login: the last group on the account picker is 'add account'."""
        try:
            with self.automation.attach(window) as session:
                document = self._document(session)
                groups = _require(document.children(Role.GROUP), 1, "groups")
                groups[-1].invoke()
                return LoginWindowState.LOGIN
        except Exception as e:
            logger.warning("Account selection failed: %s", e)
        return LoginWindowState.INVALID

    def switch_to_code(self, window):
        """MobileConfirmation -> Code via the 'Enter a code instead' link."""
        try:
            with self.automation.attach(window) as session:
                document = self._document(session)
                for text in document.children(Role.TEXT):
                    if CODE_ENTRY_PHRASE in (text.name or "").lower():
                        text.invoke()
                        return LoginWindowState.CODE
                logger.info("No code-entry link; push confirmation is the only option")
        except Exception as e:
            logger.warning("Error switching from mobile confirmation to code entry: %s", e)
        return LoginWindowState.INVALID

    def enter_credentials(self, window, credentials):
        """
        Login -> Success | Invalid.

        Fills username and password, syncs the remember-me checkbox and
        submits. If the sign-in button is still disabled the form is
        validating, so nothing is typed and INVALID tells the caller to
        poll again.
        """
        try:
            with self.automation.attach(window) as session:
                document = self._document(session)
                children = document.children()
                inputs = _require([c for c in children if c.role is Role.EDIT], 2, "inputs")
                buttons = _require([c for c in children if c.role is Role.BUTTON], 1, "buttons")
                groups = _require([c for c in children if c.role is Role.GROUP], 1, "groups")

                sign_in = buttons[0]
                if not sign_in.is_enabled():
                    logger.info("Sign-in button not enabled yet")
                    return LoginWindowState.INVALID

                username_box, password_box = inputs[0], inputs[1]
                username_box.wait_enabled(self.enable_timeout)
                username_box.set_text(credentials.username)
                password_box.wait_enabled(self.enable_timeout)
                password_box.set_text(credentials.password)

                # The checkbox draws a tick image only while checked
                checkbox = groups[0]
                is_checked = checkbox.find_first_child(Role.IMAGE) is not None
                if credentials.remember != is_checked:
                    checkbox.focus()
                    checkbox.wait_enabled(self.enable_timeout)
                    checkbox.invoke()

                sign_in.focus()
                sign_in.wait_enabled(self.enable_timeout)
                sign_in.invoke()
                logger.info("Submitted credentials for %s", credentials.username)
                return LoginWindowState.SUCCESS
        except Exception as e:
            logger.warning("Credential entry failed: %s", e)
        return LoginWindowState.INVALID

    def enter_code(self, window, secret):
        """
        Code -> Success | Code | Invalid.

        Each digit cell is a button that turns into an editable cell once
        invoked. A digit counts as entered when the cell's text child reads
        back non-empty. Any digit failing aborts with CODE; the caller
        retries the whole code since a half-filled widget can't be trusted.
        """
        try:
            code = self.passcodes.generate(secret)
        except Exception as e:
            logger.error("Passcode unavailable, not entering code: %s", e)
            return LoginWindowState.INVALID

        try:
            with self.automation.attach(window) as session:
                document = self._document(session)
                buttons = _require(document.children(Role.BUTTON), 1, "digit cells")
                if len(code) != len(buttons):
                    raise StructureMismatch(
                        f"code has {len(code)} characters for {len(buttons)} cells")

                try:
                    for index, cell in enumerate(buttons):
                        cell.invoke()
                        self.keyboard.type_char(code[index])
                        self._wait_for_digit(cell)
                except Exception as e:
                    logger.warning("Code entry aborted at digit %s: %s", index, e)
                    return LoginWindowState.CODE

                return LoginWindowState.SUCCESS
        except Exception as e:
            logger.warning("Code entry failed: %s", e)
        return LoginWindowState.INVALID

    def _wait_for_digit(self, cell):
        def filled():
            text = cell.find_first_child(Role.TEXT)
            if text is not None and text.name:
                return text
            return None

        return poll_until(filled, self.digit_timeout, self.digit_interval)
