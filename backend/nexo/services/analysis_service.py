"""
Analysis Service
================

High-level orchestrator for one NEXO question: run the agent loop, then
persist the question and the answer as a pair.

Related files:
- nexo/agent/nodes.py: agent_loop (model <-> tools)
- nexo/agent/tools.py: ToolRegistry
- nexo/services/sales_queries.py: Data access behind the tools
- nexo/services/history_service.py: Chat history persistence
- nexo/routers/agent.py: HTTP endpoint

Design:
- Dependencies (session, model, settings) are injected, never global
- Nothing is persisted when the model call fails
- The user turn and agent turn are written in one transaction

Usage:
    service = AnalysisService(db, model=OpenAIChatModel.from_settings(settings))
    result = await service.analyze("Quais clientes estão inativos há mais de 90 dias?")
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from nexo.agent.llm import ChatModel
from nexo.agent.nodes import agent_loop
from nexo.agent.prompts import resolve_system_prompt
from nexo.agent.tools import ToolRegistry
from nexo.deps import Settings, get_settings
from nexo.services.history_service import ChatHistoryStore, ChatTurn
from nexo.services.sales_queries import SalesQueryService
from nexo.utils.serialization import convert_decimals_to_floats

logger = logging.getLogger(__name__)


class AnalysisService:
    """
    Question -> agent answer -> chat history.

    Called by: nexo/routers/agent.py
    """

    def __init__(
        self,
        db: Session,
        model: ChatModel,
        settings: Optional[Settings] = None,
        registry: Optional[ToolRegistry] = None,
    ):
        self.db = db
        self.model = model
        self.settings = settings or get_settings()
        self.registry = registry or ToolRegistry(SalesQueryService(db))
        self.history = ChatHistoryStore(db)

    async def analyze(self, query: str) -> Dict[str, Any]:
        """
        Answer a natural language question about the sales data.

        Returns:
            Dict with:
                - analysis: Answer text
                - data: Collected tool results (tool name -> last result)
                - iterations: Model round-trips used
                - timestamp: ISO8601 completion time

        Raises:
            ModelInvocationError: The language model call failed
            HistoryPersistenceError: The answer could not be saved
        """
        start_time = time.time()
        logger.info(f"[ANALYZE] Question: '{query[:100]}'")

        result = await agent_loop(
            query=query,
            model=self.model,
            registry=self.registry,
            system_prompt=resolve_system_prompt(self.settings),
            max_iterations=self.settings.AGENT_MAX_ITERATIONS,
        )
        data = convert_decimals_to_floats(result.data)

        self.history.append_turns(
            [
                ChatTurn(role="user", content=query),
                ChatTurn(role="agent", content=result.response, data=data or None),
            ]
        )

        logger.info(
            f"[ANALYZE] Done in {int((time.time() - start_time) * 1000)}ms "
            f"({result.iterations} iterations, tools={list(data)})"
        )
        return {
            "analysis": result.response,
            "data": data,
            "iterations": result.iterations,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
