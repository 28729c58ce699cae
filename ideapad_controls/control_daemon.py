from __future__ import annotations

import argparse
import asyncio
import logging
import subprocess
import threading
from pathlib import Path
from typing import List, Optional

from ideapad_controls.core.config import SettingsStore, parse_bool, parse_value
from ideapad_controls.core.notify import LogNotifier, TrayNotifier
from ideapad_controls.core.options import get_supported_options, read_option
from ideapad_controls.core.toggle import ToggleController
from ideapad_controls.core.types import Notifier, Option
from ideapad_controls.core.writer import PrivilegedWriter
from ideapad_controls.ui.switch import SwitchItem
try:
    from ideapad_controls.ui.tray import TrayMenu
except Exception:
    TrayMenu = None

log = logging.getLogger("ideapad_controls")

SETTINGS_POLL_S = 1.0


class IdeapadControls:
    """
    Application lifecycle.

    enable() discovers the options once and builds the menu; a change of
    tray-location tears the switches down and rebuilds them. disable()
    undoes everything enable() did.
    """

    def __init__(self, settings: SettingsStore, writer: PrivilegedWriter, loop: asyncio.AbstractEventLoop) -> None:
        self.settings = settings
        self.writer = writer
        self.loop = loop
        self.stop_flag = threading.Event()

        self.tray = None
        self.notifier: Notifier = LogNotifier()
        self.supported_options: List[Option] = []
        self.switches: List[SwitchItem] = []
        self.controllers: List[ToggleController] = []
        self._listeners: List[int] = []

    def enable(self) -> None:
        self.supported_options = get_supported_options(self.settings.get_string("sysfs-path"))

        if TrayMenu is not None:
            self.tray = TrayMenu(self.settings, self.open_preferences, self.quit)
            self.notifier = TrayNotifier(self.tray.icon)
        else:
            log.warning("Tray unavailable (missing backend), running headless")

        self.update_location()

        self._listeners = [
            self.settings.connect("tray-location", lambda _k, _v: self.update_location()),
            self.settings.connect(None, self._on_setting_changed),
        ]

    def disable(self) -> None:
        for handler_id in self._listeners:
            self.settings.disconnect(handler_id)
        self._listeners = []

        self._destroy_controls()
        if self.tray is not None:
            self.tray.destroy()
            self.tray = None
        self.supported_options = []

    def update_location(self) -> None:
        self._destroy_controls()
        self.add_options_to_menu()
        if self.tray is not None:
            self.tray.build(self.switches)

    def add_options_to_menu(self) -> None:
        serialize = self.settings.get_boolean("serialize-writes")
        for option in self.supported_options:
            switch = SwitchItem(option.name, visible=lambda key=option.config_key: self.settings.get_boolean(key))
            controller = ToggleController(
                option, switch, self.settings, self.writer, self.notifier,
                loop=self.loop, serialize=serialize,
            )
            controller.refresh()
            self.switches.append(switch)
            self.controllers.append(controller)

    def _destroy_controls(self) -> None:
        for controller in self.controllers:
            controller.close()
        self.controllers = []
        self.switches = []

    def _on_setting_changed(self, key: str, _value) -> None:
        if key == "serialize-writes":
            self.update_location()
        elif self.tray is not None:
            self.tray.update_menu()

    def open_preferences(self) -> threading.Thread:
        path = self.settings.path
        if not path.exists():
            self.settings.save()
        # xdg-open may block until the editor exits; wait for it off the tray thread
        t = threading.Thread(target=_open_file, args=(path,), daemon=True)
        t.start()
        return t

    def quit(self) -> None:
        self.stop_flag.set()

    async def watch_settings(self) -> None:
        """Reload the settings file whenever it changes on disk."""
        last = _mtime(self.settings.path)
        while not self.stop_flag.is_set():
            await asyncio.sleep(SETTINGS_POLL_S)
            cur = _mtime(self.settings.path)
            if cur != last:
                last = cur
                log.info("Settings file changed, reloading")
                self.settings.reload()


def _mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def _open_file(path: Path) -> None:
    try:
        subprocess.run(["xdg-open", str(path)], check=False)
    except OSError as e:
        log.error("Could not open %s: %s", path, e)


def cancel_pending(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel writes still in flight so the loop can close cleanly."""
    pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
    if not pending:
        return
    log.info("Cancelling %d pending write(s)", len(pending))
    for task in pending:
        task.cancel()
    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))


# ============================================================
# command line
# ============================================================

def run(settings: SettingsStore) -> int:
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    app = IdeapadControls(settings, PrivilegedWriter(), loop)
    app.enable()

    log.info("Ideapad Controls started (%d options)", len(app.supported_options))

    if app.tray is not None:
        t_tray = threading.Thread(target=app.tray.run, args=(app.stop_flag,), daemon=True)
        t_tray.start()

    try:
        loop.run_until_complete(app.watch_settings())
    except KeyboardInterrupt:
        app.stop_flag.set()
        log.info("exiting")
    finally:
        app.disable()
        cancel_pending(loop)
        loop.close()
    return 0


def list_options(settings: SettingsStore) -> int:
    sysfs_path = settings.get_string("sysfs-path")
    options = get_supported_options(sysfs_path)
    if not options:
        print(f"No supported options under {sysfs_path}")
        return 1
    for option in options:
        state = "on" if read_option(sysfs_path, option.file_name) else "off"
        print(f"{option.id:<20} {option.name:<20} {state}")
    return 0


def config_command(settings: SettingsStore, key: Optional[str], value: Optional[str]) -> int:
    if key is None:
        for k, v in settings.items():
            print(f"{k} = {v}")
        return 0
    try:
        if value is None:
            print(settings.get(key))
        else:
            settings.set(key, parse_value(key, value))
    except KeyError:
        print(f"Unknown setting: {key}")
        return 1
    except ValueError as e:
        print(e)
        return 1
    return 0


def set_option(settings: SettingsStore, option_id: str, value: str) -> int:
    options = {o.id: o for o in get_supported_options(settings.get_string("sysfs-path"))}
    if option_id not in options:
        print(f"Unsupported option: {option_id}")
        return 1
    try:
        desired = parse_bool(value)
    except ValueError:
        print(f"Expected on or off, got {value!r}")
        return 1

    option = options[option_id]
    switch = SwitchItem(option.name, state=desired)
    controller = ToggleController(option, switch, settings, PrivilegedWriter(), LogNotifier())
    try:
        ok = asyncio.run(controller.request_toggle(desired))
    finally:
        controller.close()
    return 0 if ok else 1


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ideapad-controls", description="Tray toggles for Ideapad driver options")
    parser.add_argument("--settings", type=Path, default=None, help="settings file (default ~/.config/ideapad-controls/settings.json)")
    parser.add_argument("--debug", action="store_true", help="verbose logging")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="run the tray (default)")
    sub.add_parser("list", help="show supported options and their values")

    p_config = sub.add_parser("config", help="show or change settings")
    p_config.add_argument("key", nargs="?")
    p_config.add_argument("value", nargs="?")

    p_set = sub.add_parser("set", help="switch one option on or off")
    p_set.add_argument("option")
    p_set.add_argument("value")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="[IdeapadControls] %(levelname)s %(name)s: %(message)s",
    )
    settings = SettingsStore(args.settings)

    if args.command == "list":
        return list_options(settings)
    if args.command == "config":
        return config_command(settings, args.key, args.value)
    if args.command == "set":
        return set_option(settings, args.option, args.value)
    return run(settings)


if __name__ == "__main__":
    raise SystemExit(main())
