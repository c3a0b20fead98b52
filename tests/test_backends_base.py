import pytest

from samlogin.backends.base import Role, is_login_window_title, is_main_window_title
from samlogin.states import Credentials, LoginWindowState, WindowHandle

from fakes import FakeElement, FakeLocator, fake_process


@pytest.mark.parametrize("title,expected", [
    ("Steam Sign In", True),
    ("Sign in to Steam", True),
    ("蒸汽平台登录", True),
    ("Steam", False),
    ("", False),
    ("Friends List", False),
])
def test_login_window_titles(title, expected):
    assert is_login_window_title(title) is expected


@pytest.mark.parametrize("title,expected", [
    ("Steam", True),
    ("蒸汽平台", True),
    ("Steam Sign In", False),
    ("steam", False),
])
def test_main_window_titles(title, expected):
    assert is_main_window_title(title) is expected


def test_role_from_unknown_control_type():
    assert Role.from_control_type("Hyperlink") is Role.OTHER
    assert Role.from_control_type("Edit") is Role.EDIT


def make_locator():
    steam = fake_process(100, "steam.exe")
    helper = fake_process(200, "steamwebhelper.exe")
    other = fake_process(300, "crashhandler.exe")
    login = WindowHandle(0xA1)
    main = WindowHandle(0xB2)
    locator = FakeLocator(
        processes={"steam": [steam]},
        children={100: [other, helper]},
        windows={200: [WindowHandle(0xA0), login], 100: [WindowHandle(0xB0), main], 300: [WindowHandle(0xC0)]},
        titles={WindowHandle(0xA0): "Default IME", login: "Steam Sign In",
                WindowHandle(0xB0): "", main: "Steam", WindowHandle(0xC0): "Steam crash reporter"},
    )
    return locator, login, main


def test_find_login_window_searches_webhelper_children():
    locator, login, _ = make_locator()
    assert locator.find_login_window() == login


def test_find_main_window():
    locator, _, main = make_locator()
    assert locator.find_main_window() == main


def test_nothing_running():
    locator = FakeLocator()
    assert locator.find_login_window() == WindowHandle.INVALID
    assert locator.find_main_window() == WindowHandle.INVALID


def test_window_handle_sentinel():
    assert not WindowHandle.INVALID.is_valid
    assert WindowHandle(0x10) == WindowHandle(0x10)
    assert WindowHandle(0x10) != WindowHandle(0x11)
    assert len({WindowHandle(0x10), WindowHandle(0x10)}) == 1


def test_credentials_repr_hides_password():
    assert "hunter2" not in repr(Credentials("gaben", "hunter2"))


def test_terminal_states():
    assert {s for s in LoginWindowState if s.is_terminal} == {
        LoginWindowState.ERROR, LoginWindowState.SUCCESS}


def test_find_first_child_only_looks_at_direct_children():
    tick = FakeElement(Role.IMAGE, name="tick")
    nested = FakeElement(Role.GROUP, children=[FakeElement(Role.IMAGE, name="deep")])
    box = FakeElement(Role.GROUP, children=[nested, tick, FakeElement(Role.IMAGE)])
    assert box.find_first_child(Role.IMAGE) is tick
    assert box.find_first_child(Role.TEXT) is None
