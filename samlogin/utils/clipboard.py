#samlogin/utils/clipboard.py
"""The system clipboard is flaky when touched from arbitrary worker threads
(on Windows it wants one owner thread), so every clipboard call is funnelled
through one dedicated, reusable thread and the caller blocks until it is done."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pyperclip


class UIResourceExecutor:
    """Runs callables on a single long-lived worker thread."""

    def __init__(self, name="ui-resource"):
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def run(self, fn, *args, **kwargs):
        return self._pool.submit(fn, *args, **kwargs).result()

    def shutdown(self):
        self._pool.shutdown(wait=True)


_shared = None
_shared_lock = threading.Lock()


def shared_executor():
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = UIResourceExecutor()
        return _shared


def set_clipboard_text(text, executor=None):
    (executor or shared_executor()).run(pyperclip.copy, text)


def get_clipboard_text(executor=None):
    return (executor or shared_executor()).run(pyperclip.paste)
