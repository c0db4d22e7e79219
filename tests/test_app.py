import matplotlib
import matplotlib.pyplot as plt

from graphcalc.app import APP_KEYS, release_default_keys


def test_tool_keys_are_freed_from_matplotlib_defaults():
    with matplotlib.rc_context():
        release_default_keys()
        bound = {k.lower() for name in plt.rcParams if name.startswith("keymap.") for k in plt.rcParams[name]}
        assert not bound & APP_KEYS
        # unrelated defaults survive
        assert "ctrl+w" in plt.rcParams["keymap.quit"]


def test_defaults_restored_outside_context():
    with matplotlib.rc_context():
        release_default_keys()
    assert "f" in plt.rcParams["keymap.fullscreen"]
