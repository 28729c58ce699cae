"""
Ideapad Controls core contracts

Options, encoded states and the small interfaces the controller talks to.
Everything here is toolkit-free so the controller can be driven from tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol


# ============================================================
# Options (driver files → menu entries)
# ============================================================

@dataclass(frozen=True)
class Option:
    """
    One binary hardware feature backed by a single driver file.

    Only the identifier is stored; display name, settings key and
    file name are derived from it.
    """
    id: str

    @property
    def name(self) -> str:
        return " ".join(word.capitalize() for word in self.id.split("_"))

    @property
    def config_key(self) -> str:
        return f"{self.id.lower().replace('_', '-')}-option"

    @property
    def file_name(self) -> str:
        return self.id


class OptionState(str, Enum):
    ENABLED = "1"
    DISABLED = "0"

    @classmethod
    def encode(cls, value: bool) -> str:
        return (cls.ENABLED if value else cls.DISABLED).value

    @classmethod
    def decode(cls, text: str) -> bool:
        # anything but a clean "1" counts as disabled
        return text.strip() == cls.ENABLED.value


class WriteOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    WRITE_FAILED = "WRITE_FAILED"


# ============================================================
# Settings snapshot handed to controllers
# ============================================================

@dataclass(frozen=True)
class ToggleConfig:
    sysfs_path: str
    use_pkexec: bool = True
    send_success_notifications: bool = True


# ============================================================
# Collaborators (UI switch, notification sink)
# ============================================================

class ToggleWidget(Protocol):
    """A switch the user can flip. Emits after its displayed state changed."""

    def get_displayed_state(self) -> bool: ...

    def set_displayed_state(self, state: bool) -> None: ...

    def on_user_toggled(self, callback: Callable[[bool], None]) -> None: ...


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None: ...
