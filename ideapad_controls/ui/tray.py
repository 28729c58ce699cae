from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence

import pystray
from PIL import Image, ImageDraw

from ideapad_controls.core.config import SettingsStore
from ideapad_controls.core.notify import APP_TITLE
from ideapad_controls.ui.switch import SwitchItem

log = logging.getLogger(__name__)


def _make_icon() -> Image.Image:
    # Three slider tracks with knobs, monochrome
    img = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    d = ImageDraw.Draw(img)

    for y, knob_x in ((16, 22), (32, 42), (48, 30)):
        d.line((10, y, 54, y), fill=(255, 255, 255, 200), width=3)
        d.ellipse((knob_x - 6, y - 6, knob_x + 6, y + 6), fill=(255, 255, 255, 255))
    return img


class TrayMenu:
    """
    Tray icon holding one checked entry per option switch.

    tray-location decides placement: top level of the menu, or nested
    under a "Controls" submenu. Visibility of each entry is bound to its
    settings key and re-evaluated on update_menu().
    """

    def __init__(self, settings: SettingsStore, on_settings: Callable[[], None], on_quit: Callable[[], None]) -> None:
        self.settings = settings
        self.on_settings = on_settings
        self.on_quit = on_quit
        self.icon = pystray.Icon("ideapad-controls", _make_icon(), APP_TITLE)

    def build(self, switches: Sequence[SwitchItem]) -> None:
        for sw in switches:
            sw.changed = self.update_menu

        entries = [self._switch_entry(sw) for sw in switches]
        if self.settings.get_boolean("tray-location"):
            top = list(entries)
        else:
            top = [pystray.MenuItem("Controls", pystray.Menu(*entries))]

        self.icon.menu = pystray.Menu(
            *top,
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(
                "Extension Settings",
                lambda _icon, _item: self.on_settings(),
                visible=lambda _item: self.settings.get_boolean("settings-button"),
            ),
            pystray.MenuItem("Quit", lambda _icon, _item: self.on_quit()),
        )
        self.update_menu()

    def _switch_entry(self, sw: SwitchItem) -> pystray.MenuItem:
        return pystray.MenuItem(
            sw.label,
            lambda _icon, _item: sw.activate(),
            checked=lambda _item: sw.get_displayed_state(),
            visible=lambda _item: sw.visible,
        )

    def update_menu(self) -> None:
        try:
            self.icon.update_menu()
        except Exception as e:
            log.debug("Menu refresh skipped: %s", e)

    def run(self, stop_flag: threading.Event) -> None:
        try:
            self.icon.run()
        except Exception as e:
            # Tray backends can be fragile; do not leave the loop running.
            log.error("Tray backend crashed: %s", e)
        finally:
            stop_flag.set()

    def destroy(self) -> None:
        self.icon.stop()
