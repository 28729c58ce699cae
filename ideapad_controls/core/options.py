from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

from ideapad_controls.core.types import Option, OptionState

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Binary attributes exposed by the ideapad_acpi driver, in menu order.
KNOWN_OPTIONS = (
    "camera_power",
    "conservation_mode",
    "fn_lock",
    "touchpad",
    "usb_charging",
)


def option_path(device_path: PathLike, option_id: str) -> Path:
    return Path(device_path) / option_id


def read_option(device_path: PathLike, option_id: str) -> bool:
    """
    Read an option file and decode it.

    Unreadable or undecodable files count as disabled; the cause only
    shows up in the log.
    """
    path = option_path(device_path, option_id)
    try:
        contents = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.error("Could not read %s: %s", option_id, e)
        return False
    return OptionState.decode(contents)


def get_supported_options(device_path: PathLike) -> List[Option]:
    root = Path(device_path)
    if not root.is_dir():
        log.warning("Device path %s does not exist, no options available", root)
        return []

    supported = [Option(option_id) for option_id in KNOWN_OPTIONS if (root / option_id).is_file()]
    log.info("Supported options: %s", ", ".join(o.id for o in supported) or "none")
    return supported
