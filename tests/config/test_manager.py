"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from honorer.config import ConfigurationLoader, ConfigurationManager, HonorerSettings
from honorer.errors import ConfigurationError


class TestHonorerSettings:
    def test_defaults(self):
        settings = HonorerSettings()

        assert settings.debug is False
        assert settings.auto_init is True
        assert settings.format_response is True
        assert settings.middleware_scope == "global"
        assert settings.log_level == "INFO"

    def test_log_level_normalized(self):
        assert HonorerSettings(log_level="debug").log_level == "DEBUG"

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            HonorerSettings(middleware_scope="everywhere")
        with pytest.raises(ValidationError):
            HonorerSettings(log_level="loud")
        with pytest.raises(ValidationError):
            HonorerSettings(unknown=True)

    def test_assignment_is_validated(self):
        settings = HonorerSettings()

        with pytest.raises(ValidationError):
            settings.log_level = "loud"


class TestConfigurationLoader:
    def setup_method(self):
        self.loader = ConfigurationLoader()

    def test_deep_merge(self):
        base = {"a": 1, "nested": {"x": 1, "y": 2}}
        override = {"nested": {"y": 3}, "b": 2}

        merged = self.loader.merge_configs(base, override)

        assert merged == {"a": 1, "b": 2, "nested": {"x": 1, "y": 3}}
        assert base["nested"]["y"] == 2

    def test_yaml_and_json(self, tmp_path):
        yaml_file = tmp_path / "config.yaml"
        json_file = tmp_path / "config.json"
        yaml_file.write_text(yaml.safe_dump({"debug": True}))
        json_file.write_text('{"log_level": "debug"}')

        assert self.loader.load(yaml_file) == {"debug": True}
        assert self.loader.load(json_file) == {"log_level": "debug"}
        assert self.loader.load_multiple([yaml_file, tmp_path / "missing.yaml", json_file]) == {
            "debug": True,
            "log_level": "debug",
        }

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert self.loader.load(path) == {}

    def test_invalid_files(self, tmp_path):
        broken = tmp_path / "broken.yaml"
        broken.write_text("debug: [unclosed")
        listing = tmp_path / "list.yaml"
        listing.write_text("- one\n- two\n")
        bad_json = tmp_path / "bad.json"
        bad_json.write_text("{")

        for path in (broken, listing, bad_json):
            with pytest.raises(ConfigurationError) as exc_info:
                self.loader.load(path)
            assert exc_info.value.error_code == "CONFIG_INVALID_FILE"

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("debug = true")

        with pytest.raises(ConfigurationError, match="Unsupported"):
            self.loader.load(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            self.loader.load_yaml(tmp_path / "nope.yaml")


class TestConfigurationManager:
    def make_manager(self, tmp_path, environ=None, **paths):
        return ConfigurationManager(
            user_config_path=paths.get("user", tmp_path / "user.yaml"),
            project_config_path=paths.get("project", tmp_path / "project.yaml"),
            command_config_path=paths.get("command"),
            environ=environ or {},
        )

    def test_defaults_without_files(self, tmp_path):
        assert self.make_manager(tmp_path).load_settings() == HonorerSettings()

    def test_layering(self, tmp_path):
        (tmp_path / "user.yaml").write_text(yaml.safe_dump({"debug": True, "log_level": "WARNING"}))
        (tmp_path / "project.yaml").write_text(yaml.safe_dump({"log_level": "ERROR", "auto_init": False}))
        command = tmp_path / "command.yaml"
        command.write_text(yaml.safe_dump({"auto_init": True, "middleware_scope": "module"}))

        settings = self.make_manager(
            tmp_path,
            environ={"HONORER_LOG_LEVEL": "debug", "HONORER_FORMAT_RESPONSE": "false"},
            command=command,
        ).load_settings()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.auto_init is True
        assert settings.middleware_scope == "module"
        assert settings.format_response is False

    def test_unknown_environment_variables_ignored(self, tmp_path):
        manager = self.make_manager(tmp_path, environ={"HONORER_SHOUT": "yes", "OTHER_DEBUG": "true"})

        assert manager.load_configuration() == {}

    def test_env_value_conversion(self, tmp_path):
        manager = self.make_manager(tmp_path)

        assert manager._convert_env_value("TRUE") is True
        assert manager._convert_env_value("3") == 3
        assert manager._convert_env_value("0.5") == 0.5
        assert manager._convert_env_value("info") == "info"

    def test_missing_command_config(self, tmp_path):
        manager = self.make_manager(tmp_path, command=tmp_path / "missing.yaml")

        with pytest.raises(ConfigurationError, match="not found"):
            manager.load_settings()

    def test_invalid_configuration(self, tmp_path):
        (tmp_path / "project.yaml").write_text(yaml.safe_dump({"middleware_scope": "everywhere"}))

        with pytest.raises(ConfigurationError) as exc_info:
            self.make_manager(tmp_path).load_settings()

        assert isinstance(exc_info.value.cause, ValidationError)
        assert any("middleware_scope" in s for s in exc_info.value.context.suggestions)

    def test_settings_cached_until_reload(self, tmp_path):
        project = tmp_path / "project.yaml"
        project.write_text(yaml.safe_dump({"debug": False}))
        manager = self.make_manager(tmp_path)

        first = manager.load_settings()
        project.write_text(yaml.safe_dump({"debug": True}))

        assert manager.load_settings() is first
        assert manager.reload().debug is True
