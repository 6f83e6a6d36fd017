"""Tests for the click command surface."""

import yaml
from click.testing import CliRunner

from lmchat.config import PROJECT_CONFIG_NAME, Config, default_presets
from lmchat.main import apply_cli_overrides, cli


class TestConfigCommand:

    def test_show(self, tmp_dir, isolated_home):
        result = CliRunner().invoke(cli, ["config", "-d", str(tmp_dir)])
        assert result.exit_code == 0
        assert "Configuration" in result.output
        assert "lmstudio" in result.output

    def test_set_valid_value(self, tmp_dir, isolated_home, sample_config_data):
        path = tmp_dir / PROJECT_CONFIG_NAME
        with open(path, "w") as f:
            yaml.dump(sample_config_data, f)

        result = CliRunner().invoke(cli, ["config", "-d", str(tmp_dir), "set", "exit-command", "bye"])
        assert result.exit_code == 0
        assert "exit-command = bye" in result.output
        with open(path) as f:
            assert yaml.safe_load(f)["exit-command"] == "bye"

    def test_set_invalid_value(self, tmp_dir, isolated_home):
        result = CliRunner().invoke(cli, ["config", "-d", str(tmp_dir), "set", "theme", "neon"])
        assert result.exit_code == 2
        assert "Must be one of" in result.output

    def test_set_unknown_key(self, tmp_dir, isolated_home):
        result = CliRunner().invoke(cli, ["config", "-d", str(tmp_dir), "set", "colour", "red"])
        assert result.exit_code == 2

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output


class TestCliOverrides:

    def _config(self):
        return Config(models=default_presets())

    def test_adhoc_model_reads_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
        config = self._config()
        preset = apply_cli_overrides(config, model="openai/gpt-4o")
        assert config.active_model == "_cli"
        assert preset.model == "openai/gpt-4o"
        assert preset.api_key is None
        assert preset.resolve_api_key() == "sk-from-env"

    def test_explicit_key_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
        preset = apply_cli_overrides(self._config(), model="openai/gpt-4o", api_key="sk-flag")
        assert preset.resolve_api_key() == "sk-flag"

    def test_named_preset_selected(self):
        config = self._config()
        preset = apply_cli_overrides(config, model="ollama", api_base="http://box:11434")
        assert config.active_model == "ollama"
        assert "_cli" not in config.models
        assert preset.api_base == "http://box:11434"

    def test_verbose_flag(self):
        config = self._config()
        apply_cli_overrides(config, verbose=True)
        assert config.verbose is True
