"""Chat router: one orchestrated turn per request, plus session inspection."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from src.chat_orchestrator import ConversationOrchestrator
from src.llm_bridge import Message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    """Request body for POST /chat."""

    message: str = Field(..., min_length=1, description="User message")
    session_id: str | None = Field(None, description="Optional session id to continue")
    user_id: str | None = Field(None, description="User identifier forwarded to banking services")
    email: str | None = Field(None, description="User e-mail forwarded to banking services")


class UsageResponse(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """Response for POST /chat."""

    session_id: str
    reply: str
    usage: UsageResponse
    rounds: int = 0
    last_tool_result: dict[str, Any] | None = None


class SessionResponse(BaseModel):
    """Response for GET /chat/sessions/{session_id}."""

    session_id: str
    provider: str
    created_at: float
    last_activity_at: float
    message_count: int
    history: list[Message]


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    return request.app.state.orchestrator


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    """Run the model/tool loop for one user message and return the assistant reply."""
    session_id = request.session_id or str(uuid.uuid4())
    metadata = {"email": request.email} if request.email else {}
    try:
        result = await orchestrator.process_message(
            session_id,
            request.message,
            user_id=request.user_id,
            metadata=metadata,
        )
    except Exception as e:
        logger.exception("Message processing failed for session %s", session_id)
        raise HTTPException(status_code=500, detail="Message processing failed") from e
    return ChatResponse(
        session_id=result.session_id,
        reply=result.text,
        usage=UsageResponse(**asdict(result.usage)),
        rounds=result.rounds,
        last_tool_result=result.last_tool_result,
    )


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    session = orchestrator.get_session(session_id)
    history = orchestrator.get_history(session_id)
    if session is None or history is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionResponse(
        session_id=session.session_id,
        provider=session.provider.value,
        created_at=session.created_at,
        last_activity_at=session.last_activity_at,
        message_count=len(session.native_history),
        history=history,
    )


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> None:
    if not orchestrator.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
