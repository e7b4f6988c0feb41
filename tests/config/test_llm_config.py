# LLM 設定のテスト

import pytest

from src.config.llm_config import LLMConfig


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ANTHROPIC_API_KEY", "CLAUDE_MODEL", "LEXSEARCH_USE_LLM"):
        monkeypatch.delenv(name, raising=False)


class TestEnvironment:
    """環境変数からの読み込み"""

    def test_without_env(self):
        config = LLMConfig()
        assert config.api_key is None
        assert config.model_name == "claude-sonnet-4-5-20250929"
        assert config.is_configured is False

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
        config = LLMConfig()
        assert config.api_key == "sk-env"
        assert config.is_configured is True

    def test_explicit_api_key_wins(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
        assert LLMConfig(api_key="sk-explicit").api_key == "sk-explicit"

    def test_model_override(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_MODEL", "claude-haiku-4-5")
        assert LLMConfig().model_name == "claude-haiku-4-5"

    @pytest.mark.parametrize("value", ["0", "false", "OFF", " no "])
    def test_llm_can_be_disabled(self, monkeypatch, value):
        monkeypatch.setenv("LEXSEARCH_USE_LLM", value)
        config = LLMConfig(api_key="sk-test")
        assert config.enabled is False
        assert config.is_configured is False

    def test_other_values_keep_llm_enabled(self, monkeypatch):
        monkeypatch.setenv("LEXSEARCH_USE_LLM", "1")
        assert LLMConfig(api_key="sk-test").is_configured is True

    def test_api_key_not_in_repr(self):
        assert "sk-secret" not in repr(LLMConfig(api_key="sk-secret"))


class TestValidate:
    def test_valid(self):
        LLMConfig(api_key="sk-test").validate()

    def test_missing_api_key(self):
        with pytest.raises(ValueError, match="APIキーが設定されていません"):
            LLMConfig().validate()

    @pytest.mark.parametrize(
        "kwargs, field_name",
        [
            ({"max_tokens": 0}, "max_tokens"),
            ({"temperature": 1.5}, "temperature"),
            ({"temperature": -0.1}, "temperature"),
            ({"request_timeout_seconds": 0}, "request_timeout_seconds"),
            ({"max_retries": -1}, "max_retries"),
        ],
    )
    def test_out_of_range(self, kwargs, field_name):
        with pytest.raises(ValueError, match=field_name):
            LLMConfig(api_key="sk-test", **kwargs).validate()
