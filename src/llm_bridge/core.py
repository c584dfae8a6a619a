"""Provider factory: builds the provider that matches an LLM configuration."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from .config import DEFAULT_LLM_CONFIG, LLMConfig
from .errors import LLMConfigurationError, UnknownProviderError
from .models import ProviderName
from .providers import GeminiProvider, LLMProvider, OpenAIProvider

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS: dict[ProviderName, str] = {
    ProviderName.OPENAI: "OPENAI_API_KEY",
    ProviderName.GEMINI: "GEMINI_API_KEY",
}


def _provider_name(provider: ProviderName | str) -> ProviderName:
    try:
        return ProviderName(provider)
    except ValueError as exc:
        raise UnknownProviderError(provider) from exc


def parse_model_string(model: str | None, base: LLMConfig | None = None) -> LLMConfig:
    """
    Resolve a model string into an LLMConfig.

    Expected formats:
    - "provider:model_name" (e.g. "openai:gpt-4o-mini", "gemini:gemini-2.5-flash")
    - "model_name" (no colon) → model of the base configuration's provider.
    """
    cfg = base or DEFAULT_LLM_CONFIG
    if not model or not model.strip():
        return cfg.model_copy()
    if ":" in model:
        provider_name, raw_model = model.split(":", 1)
        provider = _provider_name(provider_name.strip().lower())
        if not raw_model.strip():
            raise LLMConfigurationError(f"Model name missing in {model!r}; expected 'provider:model'")
        return cfg.merged(provider=provider, model=raw_model.strip())
    return cfg.merged(model=model.strip())


def _api_key(provider: ProviderName, api_keys: Mapping[str, str] | None) -> str:
    if api_keys and api_keys.get(provider.value):
        return api_keys[provider.value]
    return os.getenv(API_KEY_ENV_VARS[provider], "")


def create_provider(config: LLMConfig, api_keys: Mapping[str, str] | None = None) -> LLMProvider:
    """Instantiate the provider for ``config.provider``; a missing API key is a configuration error."""
    provider = _provider_name(config.provider)
    api_key = _api_key(provider, api_keys)
    if not api_key:
        raise LLMConfigurationError(f"{API_KEY_ENV_VARS[provider]} not configured. Check your .env file.")
    logger.info("Creating %s provider for model %s", provider.value, config.model)
    if provider is ProviderName.OPENAI:
        return OpenAIProvider(config, api_key=api_key)
    return GeminiProvider(config, api_key=api_key)


def is_provider_configured(provider: ProviderName | str, api_keys: Mapping[str, str] | None = None) -> bool:
    return bool(_api_key(_provider_name(provider), api_keys))


def get_configured_providers(api_keys: Mapping[str, str] | None = None) -> list[str]:
    return [p.value for p in ProviderName if is_provider_configured(p, api_keys)]
