"""Run the FastAPI app for the bank chat assistant."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.chat_orchestrator import (
    ConversationOrchestrator,
    LoopOptions,
    OrchestratorSettings,
    ServiceClient,
    SessionStore,
    ToolRegistry,
    register_banking_tools,
)
from src.llm_bridge import create_provider
from src.routers import chat_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = OrchestratorSettings.from_env()
    provider = create_provider(settings.llm, api_keys=settings.api_keys)

    service_client = ServiceClient(settings.service_urls, timeout_seconds=settings.service_timeout_seconds)
    registry = ToolRegistry()
    register_banking_tools(registry, service_client)

    sessions = SessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        max_history_length=settings.max_history_length,
        sweep_interval_seconds=settings.session_sweep_interval_seconds,
    )
    app.state.orchestrator = ConversationOrchestrator(
        provider,
        registry,
        sessions,
        LoopOptions(max_tool_rounds=settings.max_tool_rounds),
    )
    logger.info("Chat orchestrator ready (%s:%s)", settings.llm.provider.value, settings.llm.model)

    async with sessions:
        try:
            yield
        finally:
            await service_client.aclose()


app = FastAPI(title="Bank Chat Assistant", version="0.1.0", lifespan=lifespan)
app.include_router(chat_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
