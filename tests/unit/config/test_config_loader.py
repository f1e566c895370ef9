"""Unit tests for config.config_loader module."""

import pytest
from unittest.mock import patch

from notemark.config.config_loader import ConfigLoader
from notemark.config.errors import ConfigError, ConfigFilesystemError
from notemark.config.models import WorkerConfig


class TestLoad:
    """Test cases for ConfigLoader.load."""

    def test_load_overrides_defaults(self, tmp_path):
        config_file = tmp_path / "worker.yaml"
        config_file.write_text("max_attempts: 5\nbatch_size: 2\noutput_dir: /data/out\n")

        config = ConfigLoader.load(str(config_file))

        assert config.max_attempts == 5
        assert config.batch_size == 2
        assert config.output_dir == "/data/out"
        assert config.base_delay_seconds == 1.0

    def test_empty_file_gives_defaults(self, tmp_path):
        config_file = tmp_path / "worker.yaml"
        config_file.write_text("")
        assert ConfigLoader.load(str(config_file)) == WorkerConfig()

    def test_integer_delays_become_floats(self, tmp_path):
        config_file = tmp_path / "worker.yaml"
        config_file.write_text("base_delay_seconds: 2\nmax_delay_seconds: 10\n")
        config = ConfigLoader.load(str(config_file))
        assert config.base_delay_seconds == 2.0
        assert isinstance(config.base_delay_seconds, float)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigFilesystemError) as exc_info:
            ConfigLoader.load(str(tmp_path / "missing.yaml"))
        assert "not found" in str(exc_info.value)

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "worker.yaml"
        config_file.write_text("max_attempts: [1\n")
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))
        assert "Invalid YAML syntax" in str(exc_info.value)

    def test_non_mapping(self, tmp_path):
        config_file = tmp_path / "worker.yaml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            ConfigLoader.load(str(config_file))


class TestFromDict:
    """Test cases for ConfigLoader.from_dict validation."""

    @pytest.mark.parametrize("values, field", [
        ({"max_attempts": 0}, "max_attempts"),
        ({"max_attempts": "3"}, "max_attempts"),
        ({"batch_size": True}, "batch_size"),
        ({"base_delay_seconds": -1}, "base_delay_seconds"),
        ({"processing_timeout_seconds": 0}, "processing_timeout_seconds"),
        ({"output_dir": "  "}, "output_dir"),
        ({"include_front_matter": "yes"}, "include_front_matter"),
        ({"base_delay_seconds": 10, "max_delay_seconds": 5}, "max_delay_seconds"),
    ])
    def test_invalid_values_name_the_field(self, values, field):
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.from_dict(values)
        assert exc_info.value.config_field == field

    def test_unknown_field(self):
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.from_dict({"retries": 3})
        assert "retries" in str(exc_info.value)


class TestSave:
    """Test cases for ConfigLoader.save."""

    def test_save_then_load(self, tmp_path):
        config = WorkerConfig(max_attempts=7, dead_letter_prefix="dlq")
        path = tmp_path / "nested" / "worker.yaml"

        ConfigLoader.save(str(path), config)

        assert path.read_text().startswith("output_dir: ./notemark-output\nmax_attempts: 7\n")
        assert ConfigLoader.load(str(path)) == config

    def test_save_permission_error(self, tmp_path):
        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigFilesystemError) as exc_info:
                ConfigLoader.save(str(tmp_path / "worker.yaml"), WorkerConfig())
        assert exc_info.value.operation == "write"


class TestFromEnv:
    """Test cases for ConfigLoader.from_env."""

    def test_overrides_from_environment(self):
        environ = {
            "NOTEMARK_MAX_ATTEMPTS": "4",
            "NOTEMARK_BASE_DELAY_SECONDS": "0.5",
            "NOTEMARK_OUTPUT_DIR": "/tmp/out",
            "UNRELATED": "x",
        }
        config = ConfigLoader.from_env(environ=environ)
        assert config.max_attempts == 4
        assert config.base_delay_seconds == 0.5
        assert config.output_dir == "/tmp/out"

    def test_keeps_base_values(self):
        base = WorkerConfig(batch_size=3)
        config = ConfigLoader.from_env(base, environ={"NOTEMARK_MAX_ATTEMPTS": "2"})
        assert config.batch_size == 3
        assert config.max_attempts == 2

    def test_empty_values_are_ignored(self):
        assert ConfigLoader.from_env(environ={"NOTEMARK_BATCH_SIZE": ""}) == WorkerConfig()

    def test_invalid_number(self):
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.from_env(environ={"NOTEMARK_BATCH_SIZE": "many"})
        assert exc_info.value.config_field == "batch_size"

    def test_environment_values_are_validated(self):
        with pytest.raises(ConfigError):
            ConfigLoader.from_env(environ={"NOTEMARK_MAX_ATTEMPTS": "0"})

    def test_loads_dotenv_when_reading_os_environ(self, monkeypatch):
        monkeypatch.setenv("NOTEMARK_BATCH_SIZE", "6")
        with patch("notemark.config.config_loader.load_dotenv") as mock_load:
            config = ConfigLoader.from_env()
        mock_load.assert_called_once()
        assert config.batch_size == 6
