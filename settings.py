"""Persistent preferences for Dice Duel.

Stores the default target score and computer pacing speed in
~/.dice_duel_settings.json. Only preferences live here, never game state.
"""

import json
import logging
from pathlib import Path

from game_engine import DEFAULT_TARGET_SCORE, parse_target_score
from round_engine import SPEED_PRESETS

logger = logging.getLogger(__name__)

DEFAULTS = {
    "target_score": DEFAULT_TARGET_SCORE,
    "speed": "normal",
}


def _default_path():
    """Return the default path for the settings file."""
    return Path.home() / ".dice_duel_settings.json"


def _clean(key, value):
    """Coerce a stored value to something usable, falling back to the default."""
    if key == "target_score":
        return parse_target_score(value)
    if key == "speed":
        return value if value in SPEED_PRESETS else DEFAULTS["speed"]
    return value


def load_settings(path=None):
    """Load preferences from JSON. Returns DEFAULTS on missing/corrupt files.

    Missing keys get default values, unknown keys are dropped and bad
    values (a negative target, an unknown speed) are replaced by defaults.
    """
    path = Path(path) if path is not None else _default_path()
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        return dict(DEFAULTS)
    except (json.JSONDecodeError, OSError):
        logger.warning("Ignoring unreadable settings file %s", path)
        return dict(DEFAULTS)
    if not isinstance(data, dict):
        return dict(DEFAULTS)
    return {key: _clean(key, data.get(key, default)) for key, default in DEFAULTS.items()}


def save_settings(settings, path=None):
    """Write the known preference keys to JSON. Write errors are logged and ignored."""
    path = Path(path) if path is not None else _default_path()
    known = {key: settings.get(key, default) for key, default in DEFAULTS.items()}
    try:
        path.write_text(json.dumps(known, indent=2))
    except OSError:
        logger.warning("Could not save settings to %s", path, exc_info=True)
