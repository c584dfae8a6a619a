"""Unit tests for the provider factory, model strings and settings."""
from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from src.chat_orchestrator.config import DEFAULT_SERVICE_URLS, OrchestratorSettings
from src.llm_bridge import (
    GeminiProvider,
    LLMConfig,
    LLMConfigurationError,
    OpenAIProvider,
    ProviderName,
    UnknownProviderError,
    create_provider,
    get_configured_providers,
    is_provider_configured,
    parse_model_string,
)


class TestParseModelString(unittest.TestCase):
    def test_provider_and_model(self) -> None:
        cfg = parse_model_string("openai:gpt-4o-mini")
        self.assertEqual(cfg.provider, ProviderName.OPENAI)
        self.assertEqual(cfg.model, "gpt-4o-mini")
        self.assertEqual(cfg.temperature, 0.7)

    def test_bare_model_keeps_provider(self) -> None:
        cfg = parse_model_string("gemini-2.5-flash")
        self.assertEqual(cfg.provider, ProviderName.GEMINI)
        self.assertEqual(cfg.model, "gemini-2.5-flash")

    def test_empty_returns_defaults(self) -> None:
        self.assertEqual(parse_model_string(None), LLMConfig())

    def test_empty_model_after_provider(self) -> None:
        with self.assertRaises(LLMConfigurationError):
            parse_model_string("openai:")
        with self.assertRaises(LLMConfigurationError):
            parse_model_string("gemini:  ")

    def test_unknown_provider(self) -> None:
        with self.assertRaises(UnknownProviderError):
            parse_model_string("ollama:llama3.2")


class TestCreateProvider(unittest.TestCase):
    def test_creates_each_vendor(self) -> None:
        openai_provider = create_provider(LLMConfig(provider=ProviderName.OPENAI, model="gpt-4o-mini"), {"openai": "sk"})
        self.assertIsInstance(openai_provider, OpenAIProvider)
        gemini_provider = create_provider(LLMConfig(), {"gemini": "g"})
        self.assertIsInstance(gemini_provider, GeminiProvider)
        self.assertEqual(gemini_provider.get_config().model, "gemini-2.5-pro")

    def test_missing_key(self) -> None:
        with patch.dict(os.environ, {"GEMINI_API_KEY": ""}):
            with self.assertRaises(LLMConfigurationError):
                create_provider(LLMConfig(), {})

    def test_configured_providers(self) -> None:
        with patch.dict(os.environ, {"GEMINI_API_KEY": "", "OPENAI_API_KEY": ""}):
            self.assertEqual(get_configured_providers({"openai": "sk"}), ["openai"])
            self.assertFalse(is_provider_configured("gemini", {}))


class TestOrchestratorSettings(unittest.TestCase):
    def test_from_env(self) -> None:
        env = {
            "LLM_MODEL": "openai:gpt-4o-mini",
            "OPENAI_API_KEY": "sk",
            "ACCOUNT_SERVICE_URL": "http://accounts:9000/api/v1",
            "MAX_TOOL_ROUNDS": "4",
            "SESSION_TTL_SECONDS": "60",
        }
        with patch.dict(os.environ, env):
            settings = OrchestratorSettings.from_env()
        self.assertEqual(settings.llm.provider, ProviderName.OPENAI)
        self.assertEqual(settings.api_keys["openai"], "sk")
        self.assertEqual(settings.service_urls["accountService"], "http://accounts:9000/api/v1")
        self.assertEqual(settings.service_urls["atmService"], DEFAULT_SERVICE_URLS["atmService"])
        self.assertEqual(settings.max_tool_rounds, 4)
        self.assertEqual(settings.session_ttl_seconds, 60)

    def test_defaults(self) -> None:
        settings = OrchestratorSettings()
        self.assertEqual(settings.max_tool_rounds, 10)
        self.assertEqual(settings.session_ttl_seconds, 9000)
        self.assertEqual(settings.max_history_length, 100)
        self.assertEqual(settings.llm.provider, ProviderName.GEMINI)


if __name__ == "__main__":
    unittest.main()
