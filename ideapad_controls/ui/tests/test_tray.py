import pytest

pystray = pytest.importorskip("pystray")

from ideapad_controls.core.config import SettingsStore
from ideapad_controls.ui import tray
from ideapad_controls.ui.switch import SwitchItem


class FakeIcon:
    HAS_NOTIFICATION = False

    def __init__(self, name, icon=None, title=None, menu=None):
        self.name = name
        self.icon = icon
        self.title = title
        self.menu = menu
        self.refreshes = 0
        self.stopped = False

    def update_menu(self):
        self.refreshes += 1

    def stop(self):
        self.stopped = True


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


@pytest.fixture
def menu(monkeypatch, settings):
    monkeypatch.setattr(tray.pystray, "Icon", FakeIcon)
    opened = []
    return tray.TrayMenu(settings, lambda: opened.append(True), lambda: None), opened


def switches(settings):
    return [
        SwitchItem("Camera Power", state=True, visible=lambda: settings.get_boolean("camera-power-option")),
        SwitchItem("Fn Lock", state=False, visible=lambda: settings.get_boolean("fn-lock-option")),
    ]


def texts(items):
    return [i.text for i in items if i is not pystray.Menu.SEPARATOR]


def test_switches_at_top_level(menu, settings):
    m, _ = menu
    m.build(switches(settings))

    items = m.icon.menu.items
    assert texts(items) == ["Camera Power", "Fn Lock", "Extension Settings", "Quit"]
    assert [i.checked for i in items[:2]] == [True, False]


def test_switches_in_submenu(menu, settings):
    settings.set("tray-location", False)
    m, _ = menu
    m.build(switches(settings))

    items = m.icon.menu.items
    assert texts(items) == ["Controls", "Extension Settings", "Quit"]
    assert texts(items[0].submenu.items) == ["Camera Power", "Fn Lock"]


def test_entries_follow_switch_state_and_visibility(menu, settings):
    m, _ = menu
    sws = switches(settings)
    m.build(sws)
    before = m.icon.refreshes

    sws[1].set_displayed_state(True)
    assert m.icon.menu.items[1].checked is True
    assert m.icon.refreshes > before

    settings.set("fn-lock-option", False)
    assert m.icon.menu.items[1].visible is False
    assert m.icon.menu.items[0].visible is True


def test_settings_button_visibility_and_action(menu, settings):
    m, opened = menu
    m.build(switches(settings))
    button = [i for i in m.icon.menu.items if i.text == "Extension Settings"][0]

    assert button.visible is True
    settings.set("settings-button", False)
    assert button.visible is False

    button(m.icon)
    assert opened == [True]


def test_destroy_stops_icon(menu, settings):
    m, _ = menu
    m.destroy()
    assert m.icon.stopped is True
