import os
import pathlib
import sys
import yaml
from typing import Any, Dict, List, Optional, Tuple

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "promptr_path": "~/.local/share/promptr",  # Store directory, tilde will be expanded.
    "user_id": "local",  # Owner used by CLI commands.
    "default_tool": "Unknown",  # Tool recorded when a prompt is saved without one.
    "allowed_origin": "",  # CORS origin. Empty echoes the request origin or "*".
    "verbose": False,
    "log_file": None,  # None means no file logging.
}

# Configuration file paths
USER_CONFIG_DIR = pathlib.Path("~/.config/promptr").expanduser()
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yaml"
LOCAL_CONFIG_PATH = pathlib.Path(".promptr.yaml")  # Project-level config

# Source descriptions
SOURCE_DEFAULT = "application default"
SOURCE_USER_CONFIG = f"user global config file ({USER_CONFIG_PATH})"
SOURCE_LOCAL_CONFIG = f"local project config file ({LOCAL_CONFIG_PATH})"
SOURCE_ENV_VAR = "environment variable"
SOURCE_OVERRIDE = "runtime override"

ENV_VAR_PREFIX = "PROMPTR_"

_PATH_KEYS = ("promptr_path",)


def _expand_path(value: str) -> str:
    return str(pathlib.Path(value).expanduser().resolve())


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

    def _load_file(self, path: pathlib.Path, source: str):
        if not path.exists():
            return
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Error loading config '{path}': {e}", file=sys.stderr)
            return
        if data and isinstance(data, dict):
            for key, value in data.items():
                if key in DEFAULT_CONFIG:
                    self._config[key] = value
                    self._sources[key] = source
        elif data is not None:
            print(
                f"Warning: config file '{path}' does not contain a valid dictionary.",
                file=sys.stderr,
            )

    def _load_env_vars(self):
        for key in DEFAULT_CONFIG.keys():
            env_var_name = ENV_VAR_PREFIX + key.upper()
            env_var_value_str = os.getenv(env_var_name)
            if env_var_value_str is None:
                continue
            default_value = DEFAULT_CONFIG[key]
            try:
                if isinstance(default_value, bool):
                    actual_value = env_var_value_str.lower() in ("true", "1", "yes")
                elif isinstance(default_value, int):
                    actual_value = int(env_var_value_str)
                elif isinstance(default_value, float):
                    actual_value = float(env_var_value_str)
                elif key in _PATH_KEYS and env_var_value_str:
                    actual_value = _expand_path(env_var_value_str)
                else:
                    actual_value = env_var_value_str
            except ValueError:
                print(
                    f"Warning: Could not cast env var {env_var_name} value '{env_var_value_str}' to type {type(default_value)}. Using string value.",
                    file=sys.stderr,
                )
                actual_value = env_var_value_str
            self._config[key] = actual_value
            self._sources[key] = f"{SOURCE_ENV_VAR} ({env_var_name})"

    def get(self, key: str, default: Any = None) -> Any:
        value = self._config.get(key, default)
        if key in _PATH_KEYS and isinstance(value, str) and value:
            return _expand_path(value)
        return value

    def get_all_keys(self) -> List[str]:
        return list(DEFAULT_CONFIG.keys())

    def set(self, key: str, value: Any, source: str = SOURCE_OVERRIDE) -> bool:
        """Set ``key`` for this instance and persist it to the user config file."""
        if key not in DEFAULT_CONFIG:
            print(
                f"Error: Configuration key '{key}' is not a recognized setting. Allowed keys are: {', '.join(DEFAULT_CONFIG.keys())}",
                file=sys.stderr,
            )
            return False

        original_type = type(DEFAULT_CONFIG[key])

        if isinstance(value, str):
            try:
                if original_type is bool:
                    value = value.lower() in ("true", "1", "yes", "on")
                elif original_type is int:
                    value = int(value)
                elif original_type is float:
                    value = float(value)
            except ValueError:
                print(
                    f"Error: Invalid value format for '{key}'. Cannot convert '{value}' to {original_type}.",
                    file=sys.stderr,
                )
                return False
        elif DEFAULT_CONFIG[key] is not None and not isinstance(value, original_type):
            print(
                f"Error: Invalid type for '{key}'. Expected {original_type}, got {type(value)}.",
                file=sys.stderr,
            )
            return False

        self._config[key] = value
        self._sources[key] = source

        user_config_data: Dict[str, Any] = {}
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
        default_value = DEFAULT_CONFIG.get(key)
        if default_value is not None and not isinstance(value, type(default_value)):
            original_type = type(default_value)
            try:
                if original_type is bool:
                    value = str(value).lower() in ("true", "1", "yes")
                else:
                    value = original_type(value)
            except ValueError:
                print(
                    f"Warning: CLI value for '{key}' ('{value}') could not be cast to {original_type}. Using as is.",
                    file=sys.stderr,
                )
        self._config[key] = value
        self._sources[key] = "command-line argument"

    def validate(self) -> bool:
        for key, default_value in DEFAULT_CONFIG.items():
            if key not in self._config:
                print(f"Validation Error: Missing configuration key: {key}", file=sys.stderr)
                return False
            if default_value is None:
                continue

            current_value = self._config[key]
            expected_type = type(default_value)
            if isinstance(current_value, expected_type):
                continue
            try:
                if expected_type is bool:
                    current_value = str(current_value).lower() in ("true", "1", "yes", "on")
                else:
                    current_value = expected_type(str(current_value))
            except ValueError:
                print(
                    f"Validation Error: Key '{key}' has value '{self._config[key]}' of type {type(self._config[key])}, expected {expected_type}.",
                    file=sys.stderr,
                )
                return False
            self._config[key] = current_value
        return True
