from ideapad_controls.ui.switch import SwitchItem


def test_activate_flips_before_emitting():
    sw = SwitchItem("Camera Power", state=False)
    seen = []
    sw.on_user_toggled(lambda state: seen.append((state, sw.get_displayed_state())))

    sw.activate()
    sw.activate()
    assert seen == [(True, True), (False, False)]


def test_programmatic_set_does_not_emit():
    sw = SwitchItem("Camera Power")
    seen, refreshed = [], []
    sw.on_user_toggled(seen.append)
    sw.changed = lambda: refreshed.append(sw.get_displayed_state())

    sw.set_displayed_state(True)
    assert seen == []
    assert refreshed == [True]


def test_visibility_binding():
    flags = {"camera-power-option": True}
    sw = SwitchItem("Camera Power", visible=lambda: flags["camera-power-option"])
    assert sw.visible is True
    flags["camera-power-option"] = False
    assert sw.visible is False
    assert SwitchItem("Touchpad").visible is True
