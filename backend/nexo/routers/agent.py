"""
Agent Router
============

HTTP endpoints for the NEXO conversational analytics agent.

Related files:
- nexo/services/analysis_service.py: Runs the agent loop and persists the turn pair
- nexo/services/history_service.py: Chat history store
- nexo/agent/llm.py: OpenAIChatModel (overridable through get_chat_model)
- nexo/main.py: Exception handlers that render {error, details?}

Endpoints:
- POST /api/agent/analyze: Ask a question, get an answer plus the tool data
- GET /api/agent/history: Most recent turns, oldest first
- DELETE /api/agent/history: Wipe the conversation
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from nexo.agent.exceptions import ModelInvocationError
from nexo.agent.llm import ChatModel, OpenAIChatModel
from nexo.database import get_db
from nexo.deps import Settings, get_current_user, get_settings
from nexo.models import User
from nexo.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ChatTurnOut,
    ClearHistoryResponse,
    ErrorResponse,
)
from nexo.services.analysis_service import AnalysisService
from nexo.services.history_service import ChatHistoryStore
from nexo.telemetry import set_user_context

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/agent",
    tags=["agent"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        500: {"model": ErrorResponse, "description": "Processing failure"},
    },
)

INVALID_QUERY_MESSAGE = "Query inválida. Forneça uma pergunta válida."


def get_chat_model(settings: Settings = Depends(get_settings)) -> ChatModel:
    """Language model used by the agent. Tests override this dependency."""
    try:
        return OpenAIChatModel.from_settings(settings)
    except ValueError as exc:
        logger.error(f"[AGENT] Chat model unavailable: {exc}")
        raise ModelInvocationError(str(exc)) from exc


def get_valid_query(payload: AnalyzeRequest) -> str:
    """Trimmed question; blank or missing queries are a 400 before any model work."""
    query = (payload.query or "").strip()
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_QUERY_MESSAGE)
    return query


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Ask NEXO a question about the sales data",
)
async def analyze(
    current_user: User = Depends(get_current_user),
    query: str = Depends(get_valid_query),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    model: ChatModel = Depends(get_chat_model),
):
    """
    POST /api/agent/analyze

    Runs the tool-calling agent loop for one question. The question and the
    answer are saved to the chat history only when the analysis succeeds.
    """
    set_user_context(user_id=str(current_user.id), email=current_user.email)
    logger.info(f"[AGENT] /analyze from {current_user.email}")
    service = AnalysisService(db, model=model, settings=settings)
    result = await service.analyze(query)
    return AnalyzeResponse(success=True, **result)


@router.get(
    "/history",
    response_model=List[ChatTurnOut],
    response_model_exclude_none=True,
    summary="List recent chat turns",
)
def list_history(
    limit: Optional[int] = Query(default=None, ge=1, le=500, description="Number of turns to return"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    """GET /api/agent/history - most recent `limit` turns, oldest first."""
    turns = ChatHistoryStore(db).list_turns(limit or settings.HISTORY_DEFAULT_LIMIT)
    return [turn.to_dict() for turn in turns]


@router.delete(
    "/history",
    response_model=ClearHistoryResponse,
    summary="Clear the chat history",
)
def clear_history(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """DELETE /api/agent/history - removes every turn."""
    deleted = ChatHistoryStore(db).clear()
    logger.info(f"[AGENT] History cleared by {current_user.email} ({deleted} turns)")
    return ClearHistoryResponse(success=True, message="Histórico limpo com sucesso")
