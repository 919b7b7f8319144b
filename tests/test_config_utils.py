# tests/test_config_utils.py
"""
Tests for config_utils.py - Configuration loading with YAML support
"""
from pathlib import Path

import pytest
import yaml

from medici.config_utils import (
    ConfigLoader,
    MediciConfig,
    create_config_template,
    get_config,
)
from medici.errors import ConfigurationError


class TestMediciConfig:
    """Tests for MediciConfig dataclass"""

    def test_default_values(self):
        config = MediciConfig()

        assert config.data_path is None
        assert config.api_url is None
        assert config.timeout == 30.0

    def test_default_data_path_under_project(self, tmp_path):
        config = MediciConfig(project_root=tmp_path)
        assert config.resolved_data_path() == tmp_path / "data"

    def test_absolute_data_path_kept(self, tmp_path):
        config = MediciConfig(project_root=tmp_path / "project", data_path=tmp_path / "elsewhere")
        assert config.resolved_data_path() == tmp_path / "elsewhere"


class TestConfigLoader:
    """Tests for the layered loader"""

    def test_project_yaml(self, tmp_path):
        (tmp_path / "medici.yaml").write_text(
            "data_path: questions\napi_url: https://example.com/api\napi_key: secret\ntimeout: 5\n"
        )

        config = get_config(tmp_path)

        assert config.resolved_data_path() == tmp_path / "questions"
        assert config.api_url == "https://example.com/api"
        assert config.api_key == "secret"
        assert config.timeout == 5.0
        assert config._sources["api_key"] == "medici.yaml"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        (tmp_path / "medici.yaml").write_text("api_url: https://yaml.example.com\n")
        monkeypatch.setenv("MEDICI_API_URL", "https://env.example.com")

        config = get_config(tmp_path)

        assert config.api_url == "https://env.example.com"
        assert config._sources["api_url"] == "env:MEDICI_API_URL"

    def test_yaml_overrides_global(self, tmp_path, isolated_home):
        (isolated_home / ".medici").mkdir()
        (isolated_home / ".medici" / "config.yaml").write_text("data_path: global\ntimeout: 10\n")
        (tmp_path / "medici.yaml").write_text("data_path: local\n")

        config = get_config(tmp_path)

        assert config.data_path == Path("local")
        assert config.timeout == 10.0

    def test_credentials_file_fills_missing_values(self, tmp_path):
        cred = tmp_path / "creds.txt"
        cred.write_text('API_URL = "https://cred.example.com/api/"\nAPI_KEY = "tok123"\n')
        cred.chmod(0o600)
        (tmp_path / "medici.yaml").write_text(f"credential_file: {cred}\napi_key: from-yaml\n")

        config = get_config(tmp_path)

        assert config.api_url == "https://cred.example.com/api"
        assert config.api_key == "from-yaml"

    def test_default_credentials_file(self, tmp_path, isolated_home):
        (isolated_home / ".medici").mkdir()
        cred = isolated_home / ".medici" / "credentials.txt"
        cred.write_text("API_URL: https://home.example.com\nAPI_KEY: abc\n")
        cred.chmod(0o600)

        config = get_config(tmp_path)

        assert config.api_url == "https://home.example.com"
        assert config.api_key == "abc"

    def test_extra_settings(self, tmp_path):
        (tmp_path / "medici.yaml").write_text("custom_setting: 1\n")
        assert get_config(tmp_path).extra == {"custom_setting": 1}

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "medici.yaml").write_text("data_path: [unclosed\n")
        with pytest.raises(ConfigurationError):
            get_config(tmp_path)

    def test_non_mapping_yaml(self, tmp_path):
        (tmp_path / "medici.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            get_config(tmp_path)

    @pytest.mark.parametrize("value", ["soon", "0", "-1"])
    def test_invalid_timeout(self, tmp_path, monkeypatch, value):
        monkeypatch.setenv("MEDICI_TIMEOUT", value)
        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load()


class TestConfigTemplate:

    @pytest.mark.parametrize("include_comments", [True, False])
    def test_template_is_valid_yaml(self, include_comments):
        data = yaml.safe_load(create_config_template(include_comments))
        assert data["data_path"] == "data"
        assert data["timeout"] == 30
