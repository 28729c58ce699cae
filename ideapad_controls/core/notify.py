from __future__ import annotations

import logging

log = logging.getLogger(__name__)

APP_TITLE = "Ideapad Controls"


class LogNotifier:
    """Notification sink for headless use: messages only go to the log."""

    def notify(self, title: str, body: str) -> None:
        log.info("%s: %s", title, body)


class TrayNotifier:
    """Shows notifications through the tray icon when the backend can."""

    def __init__(self, icon) -> None:
        self.icon = icon

    def notify(self, title: str, body: str) -> None:
        if not getattr(self.icon, "HAS_NOTIFICATION", False):
            log.info("%s: %s", title, body)
            return
        try:
            self.icon.notify(body, title)
        except Exception as e:
            # no notification daemon, or backend refused
            log.warning("Could not show notification %r: %s", body, e)
