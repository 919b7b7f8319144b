# config_utils.py - YAML Configuration System for Medici
"""
Medici configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Environment variables (MEDICI_API_URL, MEDICI_DATA_PATH, etc.)
2. medici.yaml in project root
3. ~/.medici/config.yaml (global defaults)
4. Credentials file (API_URL / API_KEY only, when still unset)

Usage:
    from medici.config_utils import get_config

    config = get_config()
    print(config.data_path)
    print(config.api_url)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from medici.errors import ConfigurationError
from medici.security_utils import CredentialError, load_credentials_file

DEFAULT_DATA_DIR = "data"
DEFAULT_TIMEOUT = 30.0
CONFIG_FILE_NAME = "medici.yaml"


def default_credential_file() -> Path:
    return Path.home() / ".medici" / "credentials.txt"


def global_config_file() -> Path:
    return Path.home() / ".medici" / "config.yaml"


@dataclass
class MediciConfig:
    """Complete Medici configuration"""
    # Dataset
    data_path: Optional[Path] = None

    # Remote store connection
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    credential_file: Optional[Path] = None
    timeout: float = DEFAULT_TIMEOUT

    # Paths (resolved at load time)
    project_root: Optional[Path] = None

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)

    def resolved_data_path(self) -> Path:
        """data_path, relative paths taken from the project root"""
        path = Path(self.data_path) if self.data_path else Path(DEFAULT_DATA_DIR)
        if not path.is_absolute() and self.project_root:
            path = self.project_root / path
        return path


class ConfigLoader:
    """Load configuration from multiple sources"""

    KNOWN_KEYS = {"data_path", "api_url", "api_key", "credential_file", "timeout"}

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config = MediciConfig(project_root=self.project_dir)

    def load(self) -> MediciConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_yaml_config()
        self._load_env_vars()

        self._resolve_credentials()

        return self.config

    def _load_global_config(self):
        path = global_config_file()
        if path.exists():
            self._load_yaml_file(path, "global")

    def _load_yaml_config(self):
        path = self.project_dir / CONFIG_FILE_NAME
        if path.exists():
            self._load_yaml_file(path, CONFIG_FILE_NAME)

    def _load_yaml_file(self, path: Path, source_name: str):
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                message=f"Failed to parse {path}",
                suggestion="Fix the YAML syntax or remove the file",
                context={"file": str(path)},
                cause=e,
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"{path.name} must contain a mapping of settings",
                context={"file": str(path), "found": type(data).__name__},
            )

        if "data_path" in data:
            self._set("data_path", Path(data["data_path"]).expanduser(), source_name)
        if "api_url" in data:
            self._set("api_url", data["api_url"], source_name)
        if "api_key" in data:
            self._set("api_key", data["api_key"], source_name)
        if "credential_file" in data:
            self._set("credential_file", Path(data["credential_file"]).expanduser(), source_name)
        if "timeout" in data:
            self._set("timeout", self._parse_timeout(data["timeout"], source_name), source_name)

        # Store any extra settings
        for key, value in data.items():
            if key not in self.KNOWN_KEYS:
                self.config.extra[key] = value

    def _load_env_vars(self):
        """Load from environment variables (highest priority)"""
        if os.environ.get("MEDICI_DATA_PATH"):
            self._set("data_path", Path(os.environ["MEDICI_DATA_PATH"]), "env:MEDICI_DATA_PATH")

        if os.environ.get("MEDICI_API_URL"):
            self._set("api_url", os.environ["MEDICI_API_URL"], "env:MEDICI_API_URL")

        if os.environ.get("MEDICI_API_KEY"):
            self._set("api_key", os.environ["MEDICI_API_KEY"], "env:MEDICI_API_KEY")

        if os.environ.get("MEDICI_CREDENTIAL_FILE"):
            self._set("credential_file", Path(os.environ["MEDICI_CREDENTIAL_FILE"]), "env:MEDICI_CREDENTIAL_FILE")

        if os.environ.get("MEDICI_TIMEOUT"):
            self._set("timeout", self._parse_timeout(os.environ["MEDICI_TIMEOUT"], "MEDICI_TIMEOUT"),
                      "env:MEDICI_TIMEOUT")

    def _resolve_credentials(self):
        """Fill api_url/api_key from the credentials file if not set directly"""
        if self.config.api_url and self.config.api_key:
            return  # Already have credentials

        cred_file = self.config.credential_file or default_credential_file()
        if not cred_file.exists():
            return

        try:
            api_url, api_key = load_credentials_file(cred_file)
        except CredentialError as e:
            raise ConfigurationError(
                message="Failed to load remote store credentials",
                context={"credential_file": str(cred_file)},
                cause=e,
            )

        if not self.config.api_url and api_url:
            self._set("api_url", api_url, f"credentials:{cred_file.name}")
        if not self.config.api_key and api_key:
            self._set("api_key", api_key, f"credentials:{cred_file.name}")

    def _set(self, attr: str, value: Any, source: str):
        setattr(self.config, attr, value)
        self.config._sources[attr] = source

    @staticmethod
    def _parse_timeout(value: Any, source: str) -> float:
        try:
            timeout = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                message=f"Invalid timeout {value!r}",
                suggestion="Use a number of seconds, e.g. timeout: 30",
                context={"source": source},
                cause=e,
            )
        if timeout <= 0:
            raise ConfigurationError(
                message=f"Timeout must be positive, got {timeout}",
                context={"source": source},
            )
        return timeout


# ============================================================================
# Public API
# ============================================================================

def get_config(project_dir: Optional[Path] = None) -> MediciConfig:
    """
    Get complete Medici configuration.

    Args:
        project_dir: Project directory (defaults to cwd)

    Returns:
        MediciConfig with all settings resolved
    """
    loader = ConfigLoader(project_dir)
    return loader.load()


def create_config_template(include_comments: bool = True) -> str:
    """
    Generate a medici.yaml template.

    Returns:
        YAML string ready to write to file
    """
    if include_comments:
        return '''# Medici Configuration File

# Directory holding one <course>.json file per course
data_path: data

# Remote store connection
# Option 1: Reference a credentials file (recommended)
credential_file: ~/.medici/credentials.txt

# Option 2: Inline credentials (less secure)
# api_url: https://medici.example.com/api
# api_key: your_api_token_here

# Seconds to wait for the remote store
timeout: 30
'''
    else:
        return '''data_path: data
credential_file: ~/.medici/credentials.txt
timeout: 30
'''
