#samlogin/utils/watchdog.py
"""Blocking waits for the login flow.

The login window, its owning process and the client's main window all show up
asynchronously, so the flow spends most of its life in one of these loops.
Every loop takes its sleep function as a parameter so tests can run them
without real time passing, and the long ones observe a CancellationToken.
"""

import logging
import threading
import time

from samlogin.states import WaitDecision, WindowHandle

logger = logging.getLogger(__name__)

PROCESS_POLL_INTERVAL = 0.1
MAIN_WINDOW_POLL_INTERVAL = 0.1
# 600 x 100 ms: ask the caller after a minute without the main window.
MAIN_WINDOW_ESCALATION_TICKS = 600


class WatchdogTimeoutError(Exception):
    """A bounded poll ran out of time before its condition held."""
    pass


class CancellationToken:
    """
    Cross-thread 'stop waiting' flag. The wait loops check it once per tick
    and clear it after honoring it, so one cancel stops one wait.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    def clear(self):
        self._event.clear()

    @property
    def is_cancelled(self):
        return self._event.is_set()


CANCEL_ALL = CancellationToken()


def request_cancel_all():
    """Stops whichever login flow is waiting on the process-wide token."""
    CANCEL_ALL.cancel()


def poll_until(predicate, timeout, interval, clock=time.monotonic, sleep=time.sleep):
    """
    Calls predicate every `interval` seconds and returns its first truthy
    result. Raises WatchdogTimeoutError once `timeout` seconds have passed.
    """
    start = clock()
    while clock() - start < timeout:
        result = predicate()
        if result:
            return result
        sleep(interval)
    raise WatchdogTimeoutError(f"Condition not met within {timeout}s")


def wait_for_window_process(locator, window, interval=PROCESS_POLL_INTERVAL,
                            sleep=time.sleep, token=None):
    """
    Waits until the OS reports which process owns `window` and returns that
    process. The window already exists; only the pid mapping is racing, so
    there is no timeout. Returns None only when `token` is cancelled.
    """
    logger.info("Waiting for the login window's process")
    while token is None or not token.is_cancelled:
        pid = locator.window_process_id(window)
        if pid:
            try:
                return locator.process_for_pid(pid)
            except Exception as e:
                logger.debug("Process %s not ready yet: %s", pid, e)
        sleep(interval)

    token.clear()
    return None


def wait_for_main_window(locator, decide, token=CANCEL_ALL,
                         interval=MAIN_WINDOW_POLL_INTERVAL,
                         limit=MAIN_WINDOW_ESCALATION_TICKS, sleep=time.sleep):
    """
    Polls for the client's main window after a successful login.

    Every `limit` ticks without it, `decide()` is asked what to do:
    WaitDecision.SKIP gives up with an invalid handle, KEEP_WAITING starts
    another round. A cancelled token ends the wait on the next tick.
    """
    logger.info("Waiting for the main client window")
    main_window = WindowHandle.INVALID
    ticks = 0

    while not main_window.is_valid:
        if token.is_cancelled:
            logger.info("Main window wait cancelled")
            token.clear()
            return WindowHandle.INVALID

        if ticks >= limit:
            if decide() is WaitDecision.SKIP:
                logger.info("Caller skipped the main window wait after %s ticks", ticks)
                return WindowHandle.INVALID
            ticks = 0

        main_window = locator.find_main_window()
        if main_window.is_valid:
            break
        sleep(interval)
        ticks += 1

    return main_window
