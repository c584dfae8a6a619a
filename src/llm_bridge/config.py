from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .models import ProviderName


class LLMConfig(BaseModel):
    """Model selection and sampling parameters for one provider instance."""

    provider: ProviderName = Field(
        default=ProviderName.GEMINI,
        description="Vendor that serves the model.",
    )
    model: str = Field(
        default="gemini-2.5-pro",
        description="Model name as understood by the vendor.",
    )
    temperature: float | None = 0.7
    max_tokens: int | None = 8192
    top_p: float | None = 0.95
    top_k: int | None = None
    stop_sequences: list[str] | None = None

    def merged(self, **overrides: Any) -> LLMConfig:
        """Return a copy with ``overrides`` applied; unspecified fields are kept."""
        data = self.model_dump()
        data.update(overrides)
        return LLMConfig.model_validate(data)


DEFAULT_LLM_CONFIG = LLMConfig()
