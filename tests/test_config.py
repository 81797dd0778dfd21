import pytest

from chatrelay.config import (
    CONFIG_ENV_VAR,
    ConfigError,
    RelayConfig,
    config_path,
    load_config,
    save_config,
)


class TestRelayConfig:

    def test_defaults(self):
        config = RelayConfig()
        assert config.default_model == "gemini"
        assert config.model_aliases == {"gemini": "gemini-pro"}
        assert config.primer_reply == "好的"
        assert config.follow_up_prompt == "prompt: research in english，respond in Chinese"
        assert config.safety_threshold == "BLOCK_NONE"
        assert len(config.safety_categories) == 4
        assert "gemini-2.0-flash" in config.tool_models
        assert config.speech.sample_rate_hertz == 16000

    def test_from_dict_merges_nested(self):
        config = RelayConfig.from_dict({"timeout": "30", "speech": {"language_code": "zh-CN"}})
        assert config.timeout == 30
        assert config.speech.language_code == "zh-CN"
        assert config.speech.encoding == "LINEAR16"
        assert config.raw["speech"]["sample_rate_hertz"] == 16000

    def test_from_dict_adds_alias(self):
        config = RelayConfig.from_dict({"model_aliases": {"flash": "gemini-2.0-flash"}})
        assert config.model_aliases == {"gemini": "gemini-pro", "flash": "gemini-2.0-flash"}


class TestLoadConfig:

    def test_missing_file_returns_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yml")
        assert config == RelayConfig()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "relay.yml"
        path.write_text("default_model: gemini-2.0-flash\nlog_level: DEBUG\n", encoding="utf-8")
        config = load_config(path)
        assert config.default_model == "gemini-2.0-flash"
        assert config.log_level == "DEBUG"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "relay.yml"
        path.write_text("default_model: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "relay.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yml"
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert config_path() == path

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "relay.yml"
        save_config(RelayConfig.from_dict({"primer_reply": "OK"}), path)
        assert load_config(path).primer_reply == "OK"
