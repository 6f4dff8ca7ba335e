from dataclasses import fields
from types import MappingProxyType

from repo_spec_agent.config import (
    FILE_EXTENSIONS,
    FRAMEWORKS,
    STATUS_DESCRIPTIONS,
    AnalyzerConfig,
    AnalyzerSettings,
    get_settings,
)


class TestAnalyzerConfig:
    def test_tables_are_factory_defaults(self):
        for config_field in fields(AnalyzerConfig):
            assert not isinstance(config_field.default, MappingProxyType), config_field.name

    def test_default_tables(self):
        config = AnalyzerConfig()
        assert config.frameworks is FRAMEWORKS
        assert config.extensions is FILE_EXTENSIONS
        assert config.status_descriptions is STATUS_DESCRIPTIONS
        assert config.settings == AnalyzerSettings()

    def test_extensions_for_framework_family(self):
        config = AnalyzerConfig()
        assert config.extensions_for("laravel") == (".php",)
        assert config.extensions_for(None) == config.all_extensions()
        assert config.extensions_for("rails") == config.all_extensions()

    def test_status_description(self):
        config = AnalyzerConfig()
        assert config.status_description(404) == "Recurso no encontrado"
        assert config.status_description("418") == "HTTP 418"


class TestGetSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("REPO_SPEC_AGENT_AI_MODEL", raising=False)
        monkeypatch.delenv("REPO_SPEC_AGENT_AI_ENABLED", raising=False)
        settings = get_settings()
        assert settings.max_scan_depth == 5
        assert settings.default_branch == "main"
        assert settings.ai_model is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("REPO_SPEC_AGENT_AI_MODEL", "gpt-4o")
        monkeypatch.setenv("REPO_SPEC_AGENT_AI_CHUNK_SIZE", "2")
        monkeypatch.setenv("REPO_SPEC_AGENT_MAX_DEPTH", "not-a-number")
        settings = get_settings()
        assert settings.ai_model == "gpt-4o"
        assert settings.ai_chunk_size == 2
        assert settings.max_scan_depth == 5

    def test_ai_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("REPO_SPEC_AGENT_AI_MODEL", "gpt-4o")
        monkeypatch.setenv("REPO_SPEC_AGENT_AI_ENABLED", "false")
        assert get_settings().ai_model is None
