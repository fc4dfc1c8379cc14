"""
Unit tests for configuration models and loading.

Why: Misconfiguration should fail at startup with a clear error, and a
     missing file should not stop the tool from running on defaults.

What: Tests AppConfig defaults, validation, environment substitution and
      ConfigurationLoader file discovery.

How: Loads dictionaries and YAML files written to a temporary directory.
"""

from pathlib import Path

import pytest

from prtriage.config import (
    AppConfig,
    ConfigurationFileError,
    ConfigurationLoader,
    ConfigurationValidationError,
    LogLevel,
    load_config,
)


class TestAppConfig:
    """Test configuration models."""

    def test_defaults(self) -> None:
        config = AppConfig()

        assert config.system.log_level is LogLevel.INFO
        assert config.cache.ttl_seconds == 300
        assert config.refresh.interval_seconds == 300
        assert config.github.graphql_url == "https://api.github.com/graphql"
        assert config.auth.token_env_var == "GITHUB_TOKEN"
        assert config.notifications.enabled
        assert config.sharing.ticket_url_template is None

    def test_env_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        Why: Paths and endpoints differ per machine
        What: Tests ${VAR} and ${VAR:default} are substituted before validation
        How: Sets one variable and leaves another unset with a default
        """
        monkeypatch.setenv("PRTRIAGE_STATE", "/tmp/state.json")
        monkeypatch.delenv("PRTRIAGE_TTL", raising=False)

        config = ConfigurationLoader().load_from_dict(
            {
                "storage": {"path": "${PRTRIAGE_STATE}"},
                "cache": {"ttl_seconds": "${PRTRIAGE_TTL:120}"},
            }
        )

        assert config.storage.path == "/tmp/state.json"
        assert config.cache.ttl_seconds == 120

    def test_missing_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PRTRIAGE_MISSING", raising=False)

        with pytest.raises(ConfigurationValidationError):
            ConfigurationLoader().load_from_dict({"storage": {"path": "${PRTRIAGE_MISSING}"}})

    @pytest.mark.parametrize(
        "data",
        [
            {"unknown_section": {}},
            {"cache": {"ttl": 5}},
            {"refresh": {"interval_seconds": 0}},
            {"github": {"graphql_url": "ftp://example.com"}},
            {"sharing": {"ticket_url_template": "https://tracker.example/browse/"}},
        ],
    )
    def test_invalid_values(self, data: dict) -> None:
        with pytest.raises(ConfigurationValidationError) as exc_info:
            ConfigurationLoader().load_from_dict(data)

        assert exc_info.value.validation_errors


class TestConfigurationLoader:
    """Test file loading and discovery."""

    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "system:\n  log_level: DEBUG\nrefresh:\n  interval_seconds: 60\n"
        )
        loader = ConfigurationLoader()

        config = loader.load_from_file(path)

        assert config.system.log_level is LogLevel.DEBUG
        assert config.refresh.interval_seconds == 60
        assert loader.config_file_path == path.resolve()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert ConfigurationLoader().load_from_file(path) == AppConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationFileError):
            ConfigurationLoader().load_from_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("system: [unclosed")

        with pytest.raises(ConfigurationFileError):
            ConfigurationLoader().load_from_file(path)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationFileError):
            ConfigurationLoader().load_from_file(path)

    def test_discovery_order(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        Why: A project-local file should override the user-wide one
        What: Tests ./prtriage.yaml wins over PRTRIAGE_CONFIG_PATH
        How: Creates both and changes into the temporary directory
        """
        env_file = tmp_path / "env.yaml"
        env_file.write_text("cache:\n  ttl_seconds: 10\n")
        monkeypatch.setenv("PRTRIAGE_CONFIG_PATH", str(env_file))
        monkeypatch.chdir(tmp_path)

        assert ConfigurationLoader().find_config_file() == env_file

        (tmp_path / "prtriage.yaml").write_text("cache:\n  ttl_seconds: 20\n")

        assert load_config().cache.ttl_seconds == 20

    def test_defaults_when_nothing_found(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PRTRIAGE_CONFIG_PATH", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        loader = ConfigurationLoader()

        assert loader.load() == AppConfig()
        assert loader.config_file_path is None
