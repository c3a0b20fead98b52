import threading
from unittest.mock import patch

from samlogin.states import LoginWindowState, WindowHandle
from samlogin.utils import clipboard
from samlogin.utils.clipboard import UIResourceExecutor, get_clipboard_text, set_clipboard_text
from samlogin.utils.logger import LoginAuditLogger
from samlogin.utils.userdata import clear_user_data

from fakes import FakeLocator


class TestUIResourceExecutor:
    def test_runs_everything_on_one_thread(self):
        executor = UIResourceExecutor()
        try:
            names = {executor.run(lambda: threading.current_thread().name) for _ in range(5)}
            assert len(names) == 1
            assert names.pop() != threading.current_thread().name
        finally:
            executor.shutdown()

    def test_propagates_result_and_errors(self):
        executor = UIResourceExecutor()
        try:
            assert executor.run(lambda a, b: a + b, 2, 3) == 5
            try:
                executor.run(lambda: 1 / 0)
            except ZeroDivisionError:
                pass
            else:
                raise AssertionError("error was not propagated")
        finally:
            executor.shutdown()

    def test_shared_executor_is_reused(self):
        assert clipboard.shared_executor() is clipboard.shared_executor()


class TestClipboard:
    def test_set_and_get_go_through_executor(self):
        executor = UIResourceExecutor()
        seen = {}
        try:
            with patch("samlogin.utils.clipboard.pyperclip") as pyperclip:
                pyperclip.copy.side_effect = lambda text: seen.update(
                    thread=threading.current_thread().name, text=text)
                pyperclip.paste.return_value = "copied"
                set_clipboard_text("hello", executor=executor)
                assert get_clipboard_text(executor=executor) == "copied"
        finally:
            executor.shutdown()
        assert seen["text"] == "hello"
        assert seen["thread"].startswith("ui-resource")


class TestClearUserData:
    def test_deletes_folder_after_login_window_closes(self, tmp_path):
        (tmp_path / "userdata" / "123").mkdir(parents=True)
        locator = FakeLocator()
        locator.login_window_sequence = [WindowHandle(0x5), WindowHandle(0x5), WindowHandle.INVALID]
        sleeps = []
        assert clear_user_data(str(tmp_path), locator, sleep_time=0.2, sleep=sleeps.append)
        assert not (tmp_path / "userdata").exists()
        assert sleeps == [0.2, 0.2]

    def test_gives_up_waiting_after_max_retry(self, tmp_path):
        (tmp_path / "userdata").mkdir()
        locator = FakeLocator()
        locator.login_window_sequence = [WindowHandle(0x5)]
        sleeps = []
        assert clear_user_data(str(tmp_path), locator, max_retry=3, sleep=sleeps.append)
        assert len(sleeps) == 3

    def test_missing_folder(self, tmp_path):
        assert not clear_user_data(str(tmp_path), FakeLocator(), sleep=lambda s: None)


class TestAuditLogger:
    def test_writes_markdown_entries(self, tmp_path):
        audit = LoginAuditLogger(str(tmp_path))
        try:
            audit.log_transition("gaben", LoginWindowState.LOGIN, LoginWindowState.CODE)
            audit.log_event("gaben", "done", "SUCCESS")
        finally:
            audit.close()
        content = (tmp_path / "audit_log.md").read_text(encoding="utf-8")
        assert "### Event: TRANSITION" in content
        assert "Login -> Code" in content
        assert "**Account:** gaben" in content

    def test_screenshot_path_is_filesystem_safe(self, tmp_path):
        audit = LoginAuditLogger(str(tmp_path))
        try:
            path = audit.screenshot_path("user/name:1")
        finally:
            audit.close()
        assert "/" not in path.rsplit(str(tmp_path), 1)[1].lstrip("/\\")
        assert path.endswith(".png")
