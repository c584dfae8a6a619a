"""Orchestrator configuration: paths, loop and session defaults, environment settings."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from main_config import DEFAULT_SYSTEM_PROMPT_PATH as _DEFAULT_SYSTEM_PROMPT_PATH

from src.llm_bridge import LLMConfig, parse_model_string

load_dotenv()

DEFAULT_SYSTEM_PROMPT_PATH = Path(_DEFAULT_SYSTEM_PROMPT_PATH)

DEFAULT_MODEL = "gemini:gemini-2.5-pro"
MAX_TOOL_ROUNDS = 10
DEPTH_EXCEEDED_MESSAGE = "I apologize, but I encountered too many tool calls. Please try again."

SESSION_TTL_SECONDS = 150 * 60
MAX_HISTORY_LENGTH = 100
SESSION_SWEEP_INTERVAL_SECONDS = 5 * 60

DEFAULT_SERVICE_URLS: dict[str, str] = {
    "atmService": "http://localhost:8085/api/v1",
    "accountService": "http://localhost:8084/api/v1",
    "transactionService": "http://localhost:8083/api/v1",
    "analysisService": "http://localhost:8051/api/v1",
}

_SERVICE_URL_ENV_VARS = {
    "atmService": "ATM_SERVICE_URL",
    "accountService": "ACCOUNT_SERVICE_URL",
    "transactionService": "TRANSACTION_SERVICE_URL",
    "analysisService": "ANALYSIS_SERVICE_URL",
}


class OrchestratorSettings(BaseModel):
    """Runtime settings for the chat service, read from the environment by ``from_env``."""

    llm: LLMConfig = Field(default_factory=lambda: parse_model_string(DEFAULT_MODEL))
    gemini_api_key: str = ""
    openai_api_key: str = ""
    service_urls: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SERVICE_URLS))
    service_timeout_seconds: float = 15.0
    max_tool_rounds: int = Field(default=MAX_TOOL_ROUNDS, ge=1)
    session_ttl_seconds: float = Field(default=SESSION_TTL_SECONDS, gt=0)
    max_history_length: int = Field(default=MAX_HISTORY_LENGTH, ge=1)
    session_sweep_interval_seconds: float = Field(default=SESSION_SWEEP_INTERVAL_SECONDS, gt=0)

    @property
    def api_keys(self) -> dict[str, str]:
        return {"gemini": self.gemini_api_key, "openai": self.openai_api_key}

    @classmethod
    def from_env(cls) -> OrchestratorSettings:
        """
        Relevant environment variables: ``LLM_MODEL`` ("provider:model"),
        ``GEMINI_API_KEY``, ``OPENAI_API_KEY``, ``ATM_SERVICE_URL``,
        ``ACCOUNT_SERVICE_URL``, ``TRANSACTION_SERVICE_URL``,
        ``ANALYSIS_SERVICE_URL``, ``SERVICE_TIMEOUT_SECONDS``,
        ``MAX_TOOL_ROUNDS``, ``SESSION_TTL_SECONDS``, ``MAX_HISTORY_LENGTH``.
        """
        service_urls = {
            key: os.getenv(env_var, DEFAULT_SERVICE_URLS[key])
            for key, env_var in _SERVICE_URL_ENV_VARS.items()
        }
        return cls(
            llm=parse_model_string(os.getenv("LLM_MODEL", DEFAULT_MODEL)),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            service_urls=service_urls,
            service_timeout_seconds=float(os.getenv("SERVICE_TIMEOUT_SECONDS", "15")),
            max_tool_rounds=int(os.getenv("MAX_TOOL_ROUNDS", str(MAX_TOOL_ROUNDS))),
            session_ttl_seconds=float(os.getenv("SESSION_TTL_SECONDS", str(SESSION_TTL_SECONDS))),
            max_history_length=int(os.getenv("MAX_HISTORY_LENGTH", str(MAX_HISTORY_LENGTH))),
        )
