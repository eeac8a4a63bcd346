"""
settings.py

Persistent settings management for InfiniCanvas.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/infinicanvas/settings.toml
    - macOS: ~/Library/Application Support/infinicanvas/settings.toml
    - Linux: ~/.config/infinicanvas/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "infinicanvas"

log = logging.getLogger(__name__)

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasZoomSettings:
    """Zoom behavior settings.

    Defaults:
        min_scale: 0.01
        max_scale: 100.0
        wheel_sensitivity: 0.001
        step_factor: 1.15
    """
    min_scale: float = 0.01            # Default: 0.01 (1%)
    max_scale: float = 100.0           # Default: 100.0 (10000%)
    wheel_sensitivity: float = 0.001   # Default: 0.001 per wheel delta unit
    step_factor: float = 1.15          # Default: 1.15 (15% per zoom in/out step)


@dataclass
class CanvasHandleSettings:
    """Resize handle settings.

    Defaults:
        size: 8.0
        hit_distance: 10.0
        border_color: "#4A90D9"
        fill_color: "#FFFFFF"
    """
    size: float = 8.0                 # Default: 8.0 pixels
    hit_distance: float = 10.0        # Default: 10.0 pixels (divided by scale)
    border_color: str = "#4A90D9"     # Default: blue
    fill_color: str = "#FFFFFF"       # Default: white


@dataclass
class CanvasShapeSettings:
    """Shape geometry settings.

    Defaults:
        min_size: 10.0
        default_kind: "rectangle"
    """
    min_size: float = 10.0             # Default: 10.0 world units
    default_kind: str = "rectangle"    # Default: rectangle | ellipse | triangle


@dataclass
class CanvasStyleSettings:
    """Default style for newly drawn shapes.

    Defaults:
        fill_color: "#4A90D9"
        stroke_color: "#2A6BB8"
        stroke_width: 2.0
        opacity: 1.0
    """
    fill_color: str = "#4A90D9"     # Default: blue
    stroke_color: str = "#2A6BB8"   # Default: dark blue
    stroke_width: float = 2.0       # Default: 2.0 pixels
    opacity: float = 1.0            # Default: fully opaque


@dataclass
class CanvasSelectionSettings:
    """Selection appearance settings.

    Defaults:
        outline_color: "#4A90D9"
    """
    outline_color: str = "#4A90D9"  # Default: blue


@dataclass
class CanvasSettings:
    """All canvas-related settings."""
    zoom: CanvasZoomSettings = field(default_factory=CanvasZoomSettings)
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)
    shapes: CanvasShapeSettings = field(default_factory=CanvasShapeSettings)
    style: CanvasStyleSettings = field(default_factory=CanvasStyleSettings)
    selection: CanvasSelectionSettings = field(default_factory=CanvasSelectionSettings)


# =============================================================================
# Grid Settings
# =============================================================================

@dataclass
class GridSettings:
    """Adaptive background grid settings.

    Defaults:
        pattern: "grid"
        base_size: 50.0
        min_size: 10.0
        max_size: 2000.0
        intervals: 5
        min_sub_pixels: 5.0
        always_show_sub: False
        main_color: "#C8C8C8CC"
        sub_color: "#DCDCDC80"
        main_line_width: 1.0
        sub_line_width: 0.5
        dot_radius: 1.5
        max_dots: 10000
    """
    pattern: str = "grid"               # Default: grid | dots
    base_size: float = 50.0             # Default: 50 world units at scale 1
    min_size: float = 10.0              # Default: 10 world units
    max_size: float = 2000.0            # Default: 2000 world units
    intervals: int = 5                  # Default: 5 sub-cells per main cell
    min_sub_pixels: float = 5.0         # Default: 5 pixels before a level is drawn
    always_show_sub: bool = False       # Default: False (gate on min_sub_pixels)
    main_color: str = "#C8C8C8CC"       # Default: light gray, 80% alpha
    sub_color: str = "#DCDCDC80"        # Default: lighter gray, 50% alpha
    main_line_width: float = 1.0        # Default: 1.0 pixel
    sub_line_width: float = 0.5         # Default: 0.5 pixel
    dot_radius: float = 1.5             # Default: 1.5 pixels
    max_dots: int = 10000               # Default: 10000 dots per level


@dataclass
class AxesSettings:
    """Coordinate axes settings.

    Defaults:
        target_tick_pixels: 80.0
        display_mode: "origin"
        axis_color: "#646464E6"
        tick_color: "#505050CC"
        label_color: "#3C3C3C"
        axis_width: 2.0
        tick_length: 6.0
        label_padding: 4.0
        font_size: 8
    """
    target_tick_pixels: float = 80.0    # Default: 80 pixels between labeled ticks
    display_mode: str = "origin"        # Default: origin | fixed
    axis_color: str = "#646464E6"       # Default: gray
    tick_color: str = "#505050CC"       # Default: dark gray
    label_color: str = "#3C3C3C"        # Default: near black
    axis_width: float = 2.0             # Default: 2.0 pixels
    tick_length: float = 6.0            # Default: 6.0 pixels
    label_padding: float = 4.0          # Default: 4.0 pixels
    font_size: int = 8                  # Default: 8 points


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        background_color: Canvas background color.
        canvas: Canvas-related settings.
        grid: Background grid settings.
        axes: Coordinate axes settings.
    """
    background_color: str = "#FFFFFF"  # Default: white

    # Nested settings categories
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    grid: GridSettings = field(default_factory=GridSettings)
    axes: AxesSettings = field(default_factory=AxesSettings)


def _merge_section(target: Any, data: Dict[str, Any]) -> None:
    """Copy known keys from a TOML table onto a settings dataclass.

    Unknown keys are ignored. Values whose type does not match the default
    are ignored too, so a hand-edited file cannot break the canvas.
    """
    for f in fields(target):
        if f.name not in data:
            continue
        current = getattr(target, f.name)
        value = data[f.name]
        if is_dataclass(current):
            if isinstance(value, dict):
                _merge_section(current, value)
            continue
        if isinstance(current, bool):
            if isinstance(value, bool):
                setattr(target, f.name, value)
        elif isinstance(current, float):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(target, f.name, float(value))
        elif isinstance(current, int):
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(target, f.name, value)
        elif isinstance(current, str):
            if isinstance(value, str):
                setattr(target, f.name, value)


def _section_to_dict(section: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in fields(section):
        value = getattr(section, f.name)
        out[f.name] = _section_to_dict(value) if is_dataclass(value) else value
    return out


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory, overriding the platform default.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        if settings_dir is None:
            settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            # If file is corrupted or unreadable, return defaults
            log.warning("Ignoring unreadable settings file %s: %s", self.settings_file, e)
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        general = data.get("general", {})
        if isinstance(general, dict):
            bg = general.get("background_color")
            if isinstance(bg, str):
                settings.background_color = bg

        for name in ("canvas", "grid", "axes"):
            section = data.get(name)
            if isinstance(section, dict):
                _merge_section(getattr(settings, name), section)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        # Ensure directory exists
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "general": {
                "background_color": s.background_color,
            },
            "canvas": _section_to_dict(s.canvas),
            "grid": _section_to_dict(s.grid),
            "axes": _section_to_dict(s.axes),
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        return tomli_w.dumps(self._to_toml_dict())

    def reset_to_defaults(self) -> None:
        """Replace in-memory settings with defaults (does not save)."""
        self.settings = AppSettings()

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
