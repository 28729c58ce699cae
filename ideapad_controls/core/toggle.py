from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from ideapad_controls.core.config import SettingsStore
from ideapad_controls.core.notify import APP_TITLE
from ideapad_controls.core.options import option_path, read_option
from ideapad_controls.core.types import Notifier, Option, ToggleWidget, WriteOutcome
from ideapad_controls.core.writer import PrivilegedWriter

log = logging.getLogger(__name__)

_CONFIG_KEYS = ("sysfs-path", "use-pkexec", "send-success-notifications")


class ToggleController:
    """
    Keeps one switch in line with one driver file.

    Each user flip re-reads the file, writes only when the file disagrees,
    and puts the switch back to the file's value if the write fails. The
    switch is a cache: it may be stale, the file is never assumed.

    Overlapping toggles of the same option race by default and the last
    write to finish wins. serialize=True queues them per option instead.
    """

    def __init__(
        self,
        option: Option,
        widget: ToggleWidget,
        settings: SettingsStore,
        writer: PrivilegedWriter,
        notifier: Notifier,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        serialize: bool = False,
    ) -> None:
        self.option = option
        self.widget = widget
        self.settings = settings
        self.writer = writer
        self.notifier = notifier
        self.loop = loop

        self.config = settings.snapshot()
        self._lock = asyncio.Lock() if serialize else None
        self._pending: Set["asyncio.Future[bool]"] = set()
        self._handler = settings.connect(None, self._on_setting_changed)

        widget.on_user_toggled(self._on_user_toggled)

    def read(self) -> bool:
        return read_option(self.config.sysfs_path, self.option.file_name)

    def refresh(self) -> None:
        self.widget.set_displayed_state(self.read())

    def close(self) -> None:
        self.settings.disconnect(self._handler)

    async def request_toggle(self, desired: bool) -> bool:
        """Bring the file to `desired`. Returns False if the write failed."""
        if self._lock is None:
            return await self._sync(desired)
        async with self._lock:
            return await self._sync(desired)

    async def _sync(self, desired: bool) -> bool:
        config = self.config
        actual = read_option(config.sysfs_path, self.option.file_name)
        if desired == actual:
            return True

        path = option_path(config.sysfs_path, self.option.file_name)
        outcome = await self.writer.write(path, desired, escalate=config.use_pkexec)

        if outcome is WriteOutcome.SUCCESS:
            if self.config.send_success_notifications:
                verb = "Enabled" if desired else "Disabled"
                self.notifier.notify(APP_TITLE, f"{verb} {self.option.name}")
            return True

        # never leave the switch claiming a state the file does not have
        self.widget.set_displayed_state(actual)
        verb = "enable" if desired else "disable"
        self.notifier.notify(APP_TITLE, f"Failed to {verb} {self.option.name}")
        return False

    # --------------------------------------------------------
    # callbacks
    # --------------------------------------------------------

    def _on_user_toggled(self, state: bool) -> None:
        desired = bool(state)
        if self.loop is None:
            log.error("No event loop for %s, ignoring toggle", self.option.id)
            self.refresh()
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self.loop:
            fut = self.loop.create_task(self.request_toggle(desired))
        else:
            # tray callbacks arrive on the tray thread
            fut = asyncio.run_coroutine_threadsafe(self.request_toggle(desired), self.loop)

        self._pending.add(fut)
        fut.add_done_callback(self._on_done)

    def _on_done(self, fut) -> None:
        self._pending.discard(fut)
        if fut.cancelled():
            return
        e = fut.exception()
        if e is not None:
            log.error("Toggle of %s crashed: %s", self.option.id, e)

    def _on_setting_changed(self, key: str, _value) -> None:
        if key in _CONFIG_KEYS:
            self.config = self.settings.snapshot()
