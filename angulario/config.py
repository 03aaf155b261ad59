"""Configuration management for the angle game."""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

from .game import ModeFlags

logger = logging.getLogger(__name__)

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
_TRUE = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not an integer")
        return None


def _same_kind(value, default) -> bool:
    """Whether a saved value fits a field whose default is ``default``."""
    if default is None:
        return value is None or (isinstance(value, int) and not isinstance(value, bool))
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, type(default))


@dataclass
class GameConfig:
    """Presentation settings plus the mode flags and engine knobs they drive."""

    # Display (presentation only, never affects the engine)
    dark_mode: bool = False
    line_thickness: int = 3
    func1_color: str = "#dc3232"
    func2_color: str = "#3264dc"

    # Mode flags
    unitary_mode: bool = False
    acute_angles_only: bool = False
    easy_interval: bool = True

    # Engine
    seed: Optional[int] = None
    integration_steps: int = 200
    plot_samples: int = 200
    max_attempts: int = 1000

    settings_path: Path = field(
        default_factory=lambda: Path(os.getenv("ANGULARIO_SETTINGS", "./angulario-settings.json"))
    )

    @classmethod
    def from_env(cls) -> "GameConfig":
        """Create config from environment variables."""
        default = cls()
        return cls(
            dark_mode=_env_flag("ANGULARIO_DARK_MODE", default.dark_mode),
            unitary_mode=_env_flag("ANGULARIO_UNITARY", default.unitary_mode),
            acute_angles_only=_env_flag("ANGULARIO_ACUTE", default.acute_angles_only),
            easy_interval=_env_flag("ANGULARIO_EASY_INTERVAL", default.easy_interval),
            seed=_env_int("ANGULARIO_SEED"),
            max_attempts=_env_int("ANGULARIO_MAX_ATTEMPTS") or default.max_attempts,
        )

    @classmethod
    def from_file(cls, path: Path) -> "GameConfig":
        """
        Load saved settings over the defaults. Unknown keys are ignored; a
        missing or unreadable file gives the defaults.
        """
        path = Path(path)
        if not path.exists():
            return cls(settings_path=path)
        try:
            saved = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return cls(settings_path=path)
        if not isinstance(saved, dict):
            logger.warning(f"Ignoring settings in {path}: expected an object")
            return cls(settings_path=path)

        known = {f.name for f in fields(cls)} - {"settings_path"}
        unknown = set(saved) - known
        if unknown:
            logger.debug(f"Ignoring unknown settings: {sorted(unknown)}")
        default = cls()
        values = {}
        for key in sorted(known & set(saved)):
            if _same_kind(saved[key], getattr(default, key)):
                values[key] = saved[key]
            else:
                logger.warning(f"Ignoring setting {key}={saved[key]!r} in {path}: wrong type")
        return cls(settings_path=path, **values)

    def to_file(self, path: Optional[Path] = None) -> Path:
        """Save settings as JSON and return the path written."""
        path = Path(path or self.settings_path)
        data = asdict(self)
        data.pop("settings_path")
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    def mode_flags(self) -> ModeFlags:
        return ModeFlags(
            is_unitary=self.unitary_mode,
            acute_only=self.acute_angles_only,
            easy_interval=self.easy_interval,
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of warnings."""
        warnings = []

        for name in ("func1_color", "func2_color"):
            if not _COLOR_RE.match(str(getattr(self, name))):
                warnings.append(f"{name} is not a #rrggbb colour: {getattr(self, name)!r}")
        if str(self.func1_color).lower() == str(self.func2_color).lower():
            warnings.append("Both functions use the same colour")
        if self.line_thickness <= 0:
            warnings.append(f"line_thickness must be positive, got {self.line_thickness}")
        if self.integration_steps < 2 or self.integration_steps % 2:
            warnings.append(f"integration_steps should be an even number >= 2, got {self.integration_steps}")
        if self.plot_samples < 2:
            warnings.append(f"plot_samples must be at least 2, got {self.plot_samples}")
        if self.max_attempts < 1:
            warnings.append(f"max_attempts must be positive, got {self.max_attempts}")

        return warnings
