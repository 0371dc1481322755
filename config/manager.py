from pathlib import Path
from typing import Dict, Any, Optional, List, Callable
from config.types import CREDENTIAL_ENV_VARS, FlowkitSettings
import logging
import os


FALSE_VALUES = {"false", "0", "no", "off"}


class EnvironmentManager:
    """
    Environment manager that collects FlowKit settings from .env files and
    the process environment, and hands them to the engine as FlowkitSettings.
    """

    _instance = None

    # Default settings with their types
    DEFAULT_SETTINGS = {
        # Flow document
        "flow_file_path": ("flow.yaml", str),
        # Default target model when a request does not name one
        "llm_provider": (None, str),
        # Security switch for external_command validation
        "allow_external_commands": (True, bool),
        "external_command_timeout": (30.0, float),
        # Backend HTTP calls
        "backend_request_timeout": (60.0, float),
    }

    # Create mapping dynamically - each setting can be set via its uppercase env var
    ENV_MAPPING = {setting.upper(): setting for setting in DEFAULT_SETTINGS.keys()}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize environment with default values"""
        self.env_variables: Dict[str, str] = {}
        self.credentials: Dict[str, str] = {}
        self._providers: List[Callable[[], Dict[str, Any]]] = []
        self.settings: Dict[str, Any] = {}
        self.env_file: Optional[Path] = None
        self.logger = logging.getLogger(__name__)

        # Initialize settings with default values
        for key, (default_value, _) in self.DEFAULT_SETTINGS.items():
            self.settings[key] = default_value

        self._load_from_env_file()

    def _get_git_root(self) -> Optional[Path]:
        """Try to determine the git root directory

        Returns:
            Path to the git root directory or None if not found
        """
        current_dir = Path.cwd()

        dir_to_check = current_dir
        for _ in range(10):  # Limit the search depth
            git_dir = dir_to_check / ".git"
            if git_dir.exists() and git_dir.is_dir():
                return dir_to_check

            parent_dir = dir_to_check.parent
            if parent_dir == dir_to_check:  # Reached the root
                break
            dir_to_check = parent_dir

        return None

    def _convert_value(self, value: Any, target_type: type) -> Any:
        """Convert string value to target type"""
        if not isinstance(value, str):
            return target_type(value)
        if target_type == bool:
            # Only an explicit false-equivalent turns a switch off
            return value.strip().lower() not in FALSE_VALUES
        return target_type(value)

    def _apply_variable(self, key: str, value: str) -> None:
        """Route one environment variable into settings or credentials"""
        self.env_variables[key] = value

        if key in self.ENV_MAPPING:
            setting_name = self.ENV_MAPPING[key]
            _, target_type = self.DEFAULT_SETTINGS[setting_name]
            try:
                self.settings[setting_name] = self._convert_value(value, target_type)
            except ValueError:
                self.logger.warning(
                    f"Ignoring invalid value for {key}: {value!r} (expected {target_type.__name__})"
                )
            return

        for family, env_var in CREDENTIAL_ENV_VARS.items():
            if key == env_var:
                self.credentials[family] = value
                break

    def _load_from_env_file(self):
        """Find and load variables from a .env file"""
        env_file_paths = [Path.cwd() / ".env"]

        git_root = self._get_git_root()
        if git_root:
            env_file_paths.append(git_root / ".env")

        # Try additional common locations - safely handle home directory
        try:
            env_file_paths.append(Path.home() / ".env")
        except (RuntimeError, OSError):
            # Skip home directory if it can't be determined
            pass

        # Load from the first .env file found
        for env_path in env_file_paths:
            if env_path.exists() and env_path.is_file():
                self.logger.info(f"Loading environment from: {env_path}")
                self._parse_env_file(env_path)
                self.env_file = env_path
                return

        self.logger.debug(
            "No .env file found, tried: "
            + ", ".join(str(p) for p in env_file_paths)
        )

    def _parse_env_file(self, env_file_path: Path):
        """Parse a .env file and load variables"""
        try:
            with open(env_file_path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        key = key.strip()
                        value = value.strip()

                        # Remove quotes if present
                        if (value.startswith('"') and value.endswith('"')) or (
                            value.startswith("'") and value.endswith("'")
                        ):
                            value = value[1:-1]

                        self._apply_variable(key, value)
        except OSError as e:
            self.logger.warning(f"Error parsing .env file {env_file_path}: {e}")

    def register_provider(self, provider: Callable[[], Dict[str, Any]]):
        """Register a provider function that returns additional settings"""
        self._providers.append(provider)
        return self

    def load(self):
        """Load all environment information"""
        # OS environment overrides the .env file
        for key, value in os.environ.items():
            self._apply_variable(key, value)

        # Call all registered providers
        for provider in self._providers:
            try:
                additional_data = provider()
            except Exception as e:
                self.logger.warning(f"Error from settings provider: {e}")
                continue

            for key, value in additional_data.get("settings", {}).items():
                if key in self.settings:
                    self.update_setting(key, value)
            for family, value in additional_data.get("credentials", {}).items():
                self.credentials[family] = value

        return self

    def get_setting(self, name: str, default: Any = None) -> Any:
        """Get a setting value by name"""
        return self.settings.get(name, default)

    def update_setting(self, name: str, value: Any) -> Any:
        """Set one setting, converting it to the declared type

        A value of None restores the default.

        Raises:
            KeyError: If the setting is unknown
            ValueError: If the value cannot be converted
        """
        if name not in self.DEFAULT_SETTINGS:
            raise KeyError(f"Unknown setting: {name}")
        if value is None:
            return self.reset_setting(name)
        _, target_type = self.DEFAULT_SETTINGS[name]
        converted = self._convert_value(value, target_type)
        self.settings[name] = converted
        return converted

    def reset_setting(self, name: str) -> Any:
        """Restore one setting to its default value"""
        if name not in self.DEFAULT_SETTINGS:
            raise KeyError(f"Unknown setting: {name}")
        default_value, _ = self.DEFAULT_SETTINGS[name]
        self.settings[name] = default_value
        return default_value

    def is_external_commands_allowed(self) -> bool:
        """Check whether external_command validation may spawn processes"""
        return bool(self.get_setting("allow_external_commands", True))

    def get_flow_file_path(self) -> str:
        """Get the path of the flow document"""
        return self.get_setting("flow_file_path", "flow.yaml")

    def to_settings(self) -> FlowkitSettings:
        """Snapshot the current configuration for the engine"""
        return FlowkitSettings(
            flow_file_path=self.get_flow_file_path(),
            llm_provider=self.get_setting("llm_provider") or None,
            allow_external_commands=self.is_external_commands_allowed(),
            external_command_timeout=self.get_setting("external_command_timeout"),
            backend_request_timeout=self.get_setting("backend_request_timeout"),
            credentials=dict(self.credentials),
        )


# Create singleton instance
env_manager = EnvironmentManager()
