import logging

from ideapad_controls.core.options import KNOWN_OPTIONS, get_supported_options, option_path, read_option
from ideapad_controls.core.types import Option, OptionState


def test_derived_names():
    o = Option("camera_power")
    assert o.name == "Camera Power"
    assert o.config_key == "camera-power-option"
    assert o.file_name == "camera_power"

    # every underscore becomes a hyphen, not just the first
    assert Option("usb_charging_mode").config_key == "usb-charging-mode-option"
    assert Option("fn_lock").name == "Fn Lock"
    assert Option("touchpad").name == "Touchpad"


def test_state_encoding():
    assert OptionState.encode(True) == "1"
    assert OptionState.encode(False) == "0"
    assert OptionState.decode("1\n") is True
    assert OptionState.decode("  0 ") is False
    assert OptionState.decode("2") is False
    assert OptionState.decode("") is False


def test_read_option_trims(tmp_path):
    (tmp_path / "camera_power").write_text("1\n", encoding="utf-8")
    (tmp_path / "fn_lock").write_text("0\n", encoding="utf-8")
    assert read_option(tmp_path, "camera_power") is True
    assert read_option(tmp_path, "fn_lock") is False


def test_read_option_accepts_string_root_with_trailing_slash(tmp_path):
    (tmp_path / "touchpad").write_text("1", encoding="utf-8")
    assert read_option(str(tmp_path) + "/", "touchpad") is True
    assert option_path(str(tmp_path) + "/", "touchpad") == tmp_path / "touchpad"


def test_missing_file_reads_disabled(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert read_option(tmp_path, "camera_power") is False
    assert "Could not read camera_power" in caplog.text


def test_garbage_and_undecodable_read_disabled(tmp_path):
    (tmp_path / "camera_power").write_text("yes", encoding="utf-8")
    (tmp_path / "fn_lock").write_bytes(b"\xff\xfe")
    assert read_option(tmp_path, "camera_power") is False
    assert read_option(tmp_path, "fn_lock") is False


def test_deleted_file_reads_disabled(tmp_path):
    f = tmp_path / "conservation_mode"
    f.write_text("1", encoding="utf-8")
    assert read_option(tmp_path, "conservation_mode") is True
    f.unlink()
    assert read_option(tmp_path, "conservation_mode") is False


def test_discovery_keeps_table_order(tmp_path):
    for name in ("usb_charging", "camera_power", "fan_mode", "touchpad"):
        (tmp_path / name).write_text("0", encoding="utf-8")

    ids = [o.id for o in get_supported_options(tmp_path)]
    assert ids == ["camera_power", "touchpad", "usb_charging"]
    assert all(i in KNOWN_OPTIONS for i in ids)


def test_discovery_missing_dir(tmp_path):
    assert get_supported_options(tmp_path / "nope") == []
