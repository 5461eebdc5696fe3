import os
import pathlib
import sys
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml
from platformdirs import user_data_dir

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "ledger_path": "",  # Empty means: discover from the workspace root.
    "quality": 100,  # Default compression quality, 0 lowest, 100 highest.
    "backup": True,  # Keep a *.kuma_origin.* copy of every compressed original.
    "verbose": False,
    "log_file": "",  # Empty means no file logging.
    "pngquant_path": "pngquant",  # Executable used for PNG quantization.
}

# Configuration file paths
USER_CONFIG_DIR = pathlib.Path("~/.config/kuma_imagemin").expanduser()
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yaml"
LOCAL_CONFIG_PATH = pathlib.Path(".kumarc.yaml")  # Project-level config

# Workspace discovery for the ledger document
PROJECT_MARKERS: Tuple[str, ...] = ("pyproject.toml", "package.json", ".git")
WORKSPACE_LEDGER_NAME = ".kuma-imagemin.json"
APP_DATA_DIR = pathlib.Path(user_data_dir("kuma_imagemin", "kuma"))
APP_DATA_LEDGER_NAME = "ledger.json"

# Source descriptions
SOURCE_DEFAULT = "application default"
SOURCE_USER_CONFIG = f"user global config file ({USER_CONFIG_PATH})"
SOURCE_LOCAL_CONFIG = f"local project config file ({LOCAL_CONFIG_PATH})"
SOURCE_ENV_VAR = "environment variable"
SOURCE_OVERRIDE = "runtime override"
SOURCE_CLI = "command-line argument"

ENV_VAR_PREFIX = "KUMA_IMAGEMIN_"


def find_workspace_root(
    start: Optional[pathlib.Path] = None, markers: Optional[Iterable[str]] = None
) -> Optional[pathlib.Path]:
    """Return the nearest ancestor of ``start`` holding one of ``markers``."""
    current = (start or pathlib.Path.cwd()).expanduser().resolve()
    markers = tuple(PROJECT_MARKERS if markers is None else markers)
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in markers):
            return candidate
    return None


def resolve_ledger_path(
    configured: Optional[str] = None, start: Optional[pathlib.Path] = None
) -> pathlib.Path:
    """Decide where the ledger document lives.

    An explicit ``configured`` path wins. Otherwise the ledger sits at the
    workspace root (nearest ancestor with a project marker), falling back to
    the platform application-data directory.
    """
    if configured:
        return pathlib.Path(configured).expanduser().resolve()
    root = find_workspace_root(start)
    if root is not None:
        return root / WORKSPACE_LEDGER_NAME
    return APP_DATA_DIR / APP_DATA_LEDGER_NAME


def _coerce(key: str, value: Any) -> Any:
    """Cast ``value`` to the type of ``DEFAULT_CONFIG[key]``. Raises ``ValueError``."""
    original_type = type(DEFAULT_CONFIG[key])
    if value is None and original_type is str:
        return ""
    if isinstance(value, original_type) and not (
        original_type is int and isinstance(value, bool)
    ):
        return value
    if original_type is bool:
        text = str(value).lower()
        if text in ("true", "1", "yes", "on"):
            return True
        if text in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"'{value}' is not a boolean")
    if original_type is int:
        return int(str(value))
    return original_type(value)


class Config:
    def __init__(self):
        self._config: Dict[str, Any] = {}
        self._sources: Dict[str, str] = {}

        self._load_defaults()
        self._load_file(USER_CONFIG_PATH, SOURCE_USER_CONFIG)
        self._load_file(LOCAL_CONFIG_PATH, SOURCE_LOCAL_CONFIG)
        self._load_env_vars()
        # CLI overrides are applied by the CLI through update_from_cli

    def _load_defaults(self):
        for key, value in DEFAULT_CONFIG.items():
            self._config[key] = value
            self._sources[key] = SOURCE_DEFAULT

    def _load_file(self, path: pathlib.Path, source: str) -> None:
        if not path.exists():
            return
        try:
            with open(path, "r") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Error loading config '{path}': {e}", file=sys.stderr)
            return
        if loaded is None:
            return
        if not isinstance(loaded, dict):
            print(f"Warning: config file '{path}' does not contain a mapping.", file=sys.stderr)
            return
        for key, value in loaded.items():
            if key not in DEFAULT_CONFIG:
                print(f"Warning: ignoring unknown key '{key}' in '{path}'.", file=sys.stderr)
                continue
            try:
                self._config[key] = _coerce(key, value)
            except ValueError:
                print(
                    f"Warning: invalid value {value!r} for '{key}' in '{path}', keeping {self._config[key]!r}.",
                    file=sys.stderr,
                )
                continue
            self._sources[key] = source

    def _load_env_vars(self):
        for key in DEFAULT_CONFIG.keys():
            env_var_name = ENV_VAR_PREFIX + key.upper()
            env_var_value_str = os.getenv(env_var_name)
            if env_var_value_str is None:
                continue
            try:
                actual_value = _coerce(key, env_var_value_str)
            except ValueError:
                print(
                    f"Warning: Could not cast env var {env_var_name} value '{env_var_value_str}' to type {type(DEFAULT_CONFIG[key]).__name__}. Ignoring it.",
                    file=sys.stderr,
                )
                continue
            self._config[key] = actual_value
            self._sources[key] = f"{SOURCE_ENV_VAR} ({env_var_name})"

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_default(self, key: str) -> Any:
        return DEFAULT_CONFIG.get(key)

    def get_all_keys(self):
        return list(DEFAULT_CONFIG.keys())

    def set(self, key: str, value: Any, source: str = SOURCE_OVERRIDE) -> bool:
        """Set ``key`` and persist it to the user config file."""
        if key not in DEFAULT_CONFIG:
            print(
                f"Error: Configuration key '{key}' is not a recognized setting. Allowed keys are: {', '.join(DEFAULT_CONFIG.keys())}",
                file=sys.stderr,
            )
            return False

        try:
            value = _coerce(key, value)
        except ValueError:
            print(
                f"Error: Invalid value format for '{key}'. Cannot convert '{value}' to {type(DEFAULT_CONFIG[key]).__name__}.",
                file=sys.stderr,
            )
            return False

        self._config[key] = value
        self._sources[key] = source

        user_config_data = {}
        if USER_CONFIG_PATH.exists():
            try:
                with open(USER_CONFIG_PATH, "r") as f:
                    loaded_config = yaml.safe_load(f)
                    if isinstance(loaded_config, dict):
                        user_config_data = loaded_config
            except (OSError, yaml.YAMLError) as e:
                print(f"Error reading user config before set: {e}", file=sys.stderr)

        user_config_data[key] = value

        try:
            USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
            with open(USER_CONFIG_PATH, "w") as f:
                yaml.safe_dump(user_config_data, f)
            return True
        except OSError as e:
            print(f"Error writing to user config: {e}", file=sys.stderr)
            return False

    def get_with_source(self, key: str) -> Optional[Tuple[Any, str]]:
        if key in self._config:
            return self._config[key], self._sources.get(key, "Unknown")
        elif key in DEFAULT_CONFIG:
            return DEFAULT_CONFIG[key], SOURCE_DEFAULT
        return None

    def get_all_with_sources(self) -> Dict[str, Tuple[Any, str]]:
        all_data = {}
        for key in DEFAULT_CONFIG.keys():
            all_data[key] = (
                self._config.get(key, DEFAULT_CONFIG[key]),
                self._sources.get(key, SOURCE_DEFAULT),
            )
        return all_data

    def update_from_cli(self, key: str, value: Any):
        if value is None:
            return
        if key in DEFAULT_CONFIG:
            value = _coerce(key, value)
        self._config[key] = value
        self._sources[key] = SOURCE_CLI

    def ledger_path(self, start: Optional[pathlib.Path] = None) -> pathlib.Path:
        return resolve_ledger_path(self.get("ledger_path"), start)
