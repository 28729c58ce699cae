from __future__ import annotations

from threading import Lock
from typing import Callable, List, Optional


class SwitchItem:
    """
    On/off menu entry, independent of the tray backend.

    activate() flips the displayed state first and only then tells the
    listeners, so listeners always see the state the user asked for.
    `changed` is called whenever the displayed state moves.
    """

    def __init__(self, label: str, state: bool = False, visible: Optional[Callable[[], bool]] = None) -> None:
        self.label = label
        self._state = bool(state)
        self._visible = visible
        self._lock = Lock()
        self._callbacks: List[Callable[[bool], None]] = []
        self.changed: Optional[Callable[[], None]] = None

    @property
    def visible(self) -> bool:
        return True if self._visible is None else bool(self._visible())

    def get_displayed_state(self) -> bool:
        with self._lock:
            return self._state

    def set_displayed_state(self, state: bool) -> None:
        with self._lock:
            self._state = bool(state)
        self._changed()

    def on_user_toggled(self, callback: Callable[[bool], None]) -> None:
        self._callbacks.append(callback)

    def activate(self) -> None:
        with self._lock:
            self._state = not self._state
            state = self._state
        self._changed()
        for cb in list(self._callbacks):
            cb(state)

    def _changed(self) -> None:
        if self.changed is not None:
            self.changed()
