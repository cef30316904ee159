"""
Configuration management for ffbatch.

Handles:
- XDG Base Directory compliance
- TOML/INI configuration file loading
- Config dataclass with all options
- Configuration merging (system -> user -> CLI)
- Automatic script mode detection
"""

import configparser
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

# -------------------- DEFAULTS --------------------

DEFAULT_SRC_DIR = "src"
DEFAULT_DST_DIR = "dst"
DEFAULT_FFMPEG_ARGS = "-c:v libx264 -preset medium -crf 18 -c:a aac -b:a 192k"
DEFAULT_FILE_EXT = "mp4"
DEFAULT_PROGRESS_DIR = "/tmp/ffmpeg_progress"


# -------------------- SCRIPT MODE DETECTION --------------------


def is_script_mode() -> bool:
    """
    Detect if output should be plain (no colors, no live progress).

    Returns True if:
    - stdout is not a TTY (piped or redirected)
    - NO_COLOR environment variable is set
    - FFBATCH_SCRIPT_MODE environment variable is set
    """
    try:
        if not sys.stdout.isatty():
            return True
    except Exception:
        return True

    if os.getenv("NO_COLOR") or os.getenv("FFBATCH_SCRIPT_MODE"):
        return True

    return False


# Try TOML support (Python 3.11+ or tomli package)
try:
    import tomllib  # Python 3.11+

    TOML_AVAILABLE = True
except ImportError:
    try:
        import tomli as tomllib  # pip install tomli

        TOML_AVAILABLE = True
    except ImportError:
        TOML_AVAILABLE = False


# -------------------- XDG DIRECTORIES --------------------


def get_xdg_config_home() -> Path:
    """Get XDG config home directory."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def get_xdg_state_home() -> Path:
    """Get XDG state home directory."""
    return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))


def get_app_dirs() -> Dict[str, Path]:
    """Return all application directories, creating them if needed."""
    dirs = {
        "config": get_xdg_config_home() / "ffbatch",
        "state": get_xdg_state_home() / "ffbatch",
        "logs": get_xdg_state_home() / "ffbatch" / "logs",
    }
    for d in dirs.values():
        d.mkdir(parents=True, exist_ok=True)
    return dirs


# -------------------- CONFIGURATION DATACLASS --------------------


@dataclass
class Config:
    """All configuration options for ffbatch."""

    # Directories (None = prompt / default)
    src_dir: Optional[str] = None
    dst_dir: Optional[str] = None

    # Encoder settings
    ffmpeg_args: Optional[str] = None
    file_ext: Optional[str] = None
    hwaccel: bool = True
    hwaccel_name: str = "cuda"

    # Status channel location
    progress_dir: str = DEFAULT_PROGRESS_DIR

    # Debug/test
    debug: bool = False
    dryrun: bool = False

    # UI settings
    progress: bool = True
    color: bool = True
    prompt: bool = True
    bar_width: int = 40
    poll_interval: float = 0.3

    def apply_script_mode(self) -> None:
        """
        Disable terminal drawing when running in script mode.

        Disables:
        - progress: No progress bars
        - color: No ANSI colors

        Prompts depend on stdin instead, see cli.main.
        """
        if is_script_mode():
            self.progress = False
            self.color = False

    def apply_defaults(self) -> None:
        """Fill unset directory/encoder values with the built-in defaults."""
        if not self.src_dir:
            self.src_dir = DEFAULT_SRC_DIR
        if not self.dst_dir:
            self.dst_dir = DEFAULT_DST_DIR
        if not self.ffmpeg_args:
            self.ffmpeg_args = DEFAULT_FFMPEG_ARGS
        if not self.file_ext:
            self.file_ext = DEFAULT_FILE_EXT

    @classmethod
    def for_library(cls, **kwargs) -> "Config":
        """
        Create a Config instance for library usage.

        Progress bars, colors and prompts are off; user overrides win.

        Example:
            >>> config = Config.for_library(src_dir="in", dst_dir="out")
        """
        defaults: Dict[str, Any] = {
            "progress": False,
            "color": False,
            "prompt": False,
        }
        defaults.update(kwargs)
        cfg = cls(**defaults)
        cfg.apply_defaults()
        return cfg


# -------------------- CONFIG FILE LOADING --------------------


def _parse_ini_value(value: str):
    """Parse INI value: bool, int, float, or string."""
    v = value.strip()
    if not v:
        return ""
    if v.lower() in ("true", "yes", "on"):
        return True
    if v.lower() in ("false", "no", "off"):
        return False
    try:
        return int(v)
    except ValueError:
        pass
    try:
        return float(v)
    except ValueError:
        pass
    return v


# Values that are always read as plain text
STRING_KEYS = {
    ("paths", "src_dir"),
    ("paths", "dst_dir"),
    ("paths", "progress_dir"),
    ("encoding", "args"),
    ("encoding", "file_ext"),
    ("encoding", "hwaccel_name"),
}


def _load_ini_config(path: Path) -> Dict[str, Any]:
    """Load INI file and convert to nested dict."""
    cp = configparser.ConfigParser(interpolation=None)
    cp.read(path)
    result: Dict[str, Any] = {}
    for section in cp.sections():
        result[section] = {}
        for key, value in cp.items(section):
            if (section, key) in STRING_KEYS:
                result[section][key] = value.strip()
            else:
                result[section][key] = _parse_ini_value(value)
    return result


def _load_single_config(config_dir: Path) -> Dict[str, Any]:
    """Load config from a single directory (TOML or INI file)."""
    toml_path = config_dir / "config.toml"
    ini_path = config_dir / "config.ini"

    if TOML_AVAILABLE and toml_path.exists():
        try:
            with toml_path.open("rb") as f:
                return dict(tomllib.load(f))
        except Exception as e:
            print(f"Warning: Failed to load {toml_path}: {e}", file=sys.stderr)
            return {}
    elif ini_path.exists():
        try:
            return _load_ini_config(ini_path)
        except Exception as e:
            print(f"Warning: Failed to load {ini_path}: {e}", file=sys.stderr)
            return {}
    return {}


def _deep_merge_dicts(base: dict, override: dict) -> dict:
    """Deep merge two dicts, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def load_config_file(config_dir: Path, system_dir: Path = Path("/etc/ffbatch")) -> dict:
    """
    Load config with priority:
    1. User config: ~/.config/ffbatch/config.toml (highest priority)
    2. System config: /etc/ffbatch/config.toml (lowest priority, optional)
    """
    system_config = {}
    if system_dir.exists():
        system_config = _load_single_config(system_dir)

    user_config = _load_single_config(config_dir)

    if system_config and user_config:
        return _deep_merge_dicts(system_config, user_config)
    return user_config or system_config or {}


def apply_config_to_args(file_config: dict, cfg: Config) -> None:
    """
    Apply file config values to a Config instance.

    Values already changed from their defaults (i.e. given on the CLI)
    are left alone, so CLI arguments keep priority over config files.
    """
    default_cfg = Config()

    mappings = {
        ("paths", "src_dir"): "src_dir",
        ("paths", "dst_dir"): "dst_dir",
        ("paths", "progress_dir"): "progress_dir",
        ("encoding", "args"): "ffmpeg_args",
        ("encoding", "file_ext"): "file_ext",
        ("encoding", "hwaccel"): "hwaccel",
        ("encoding", "hwaccel_name"): "hwaccel_name",
        ("ui", "progress"): "progress",
        ("ui", "color"): "color",
        ("ui", "prompt"): "prompt",
        ("ui", "poll_interval"): "poll_interval",
    }

    for (section, key), attr_name in mappings.items():
        if section in file_config and key in file_config[section]:
            current_val = getattr(cfg, attr_name)
            if current_val != getattr(default_cfg, attr_name):
                continue
            value = file_config[section][key]
            if (section, key) in STRING_KEYS:
                value = str(value)
            setattr(cfg, attr_name, value)
