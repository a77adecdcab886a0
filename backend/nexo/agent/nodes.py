"""
Agent Loop
==========

Free-form tool-calling loop that turns one question into one answer.

WHY THIS FILE EXISTS
--------------------
The model decides which tools to call; this module runs the bounded
conversation around that decision:

    Init -> AwaitingModel -> (ExecutingTools -> AwaitingModel)* -> Done

1. Seed the transcript with the system prompt and the user's question
2. Send transcript + tool declarations to the model
3. If the model asks for tools: run each one, record its result (or its
   error) in the transcript and in the collected data, then ask again
4. Stop when the model answers without tool calls, or after
   MAX_ITERATIONS model round-trips

GUARDRAILS
----------
- At most MAX_ITERATIONS calls to the model per question
- A failing tool becomes {"error": ...} for the model; the loop continues
- A failing model call is fatal (ModelInvocationError propagates, no retry)
- No state survives the call: every question starts a fresh transcript

RELATED FILES
-------------
- nexo/agent/llm.py: ChatModel interface + OpenAI adapter
- nexo/agent/tools.py: ToolRegistry (declarations + dispatch)
- nexo/agent/prompts.py: Persona prompt and fallback text
- nexo/services/analysis_service.py: Runs the loop and persists history
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from nexo.agent.llm import ChatModel, ToolCall
from nexo.agent.prompts import AGENT_SYSTEM_PROMPT, FALLBACK_RESPONSE
from nexo.agent.tools import ToolRegistry

logger = logging.getLogger(__name__)


# Guardrails for the agent loop
MAX_ITERATIONS = 5


@dataclass
class AgentResult:
    """
    Output of one agent loop run.

    FIELDS:
        response: User-facing answer text
        data: CollectedData - tool name -> that tool's last result
        iterations: Number of model round-trips performed
        tool_calls_made: Execution log (tool, args, success, duration_ms)
    """
    response: str
    data: Dict[str, Any] = field(default_factory=dict)
    iterations: int = 0
    tool_calls_made: List[Dict[str, Any]] = field(default_factory=list)


def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    """Model arguments are JSON text; anything unparsable becomes {}."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"[AGENT] Could not parse tool arguments: {raw[:200]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _assistant_tool_message(content: Optional[str], tool_calls: List[ToolCall]) -> Dict[str, Any]:
    """Assistant turn announcing the tool calls, as chat completions expects it."""
    return {
        "role": "assistant",
        "content": content,
        "tool_calls": [
            {
                "id": tc.id,
                "type": "function",
                "function": {
                    "name": tc.name,
                    "arguments": tc.arguments,
                },
            }
            for tc in tool_calls
        ],
    }


async def execute_tool_async(
    registry: ToolRegistry,
    tool_name: str,
    tool_args: Dict[str, Any],
) -> Any:
    """
    Run one tool off the event loop.

    WHY: Tools are blocking DB queries, so they go to a worker thread.
    """
    return await asyncio.to_thread(registry.dispatch, tool_name, tool_args)


async def agent_loop(
    query: str,
    model: ChatModel,
    registry: ToolRegistry,
    system_prompt: str = AGENT_SYSTEM_PROMPT,
    max_iterations: int = MAX_ITERATIONS,
) -> AgentResult:
    """
    Answer `query` by letting `model` call tools from `registry`.

    RETURNS:
        AgentResult with the final answer and the collected tool data.

    RAISES:
        ModelInvocationError: The model call failed (not retried).
    """
    logger.info(f"[AGENT] Starting agent loop: {query[:100]}...")

    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": query},
    ]
    declarations = registry.declarations()

    collected_data: Dict[str, Any] = {}
    tool_calls_made: List[Dict[str, Any]] = []
    latest_content: Optional[str] = None
    iteration = 0

    while iteration < max_iterations:
        iteration += 1
        logger.info(f"[AGENT] Iteration {iteration}/{max_iterations}")

        turn = await model.submit(messages, declarations)
        if turn.content:
            latest_content = turn.content

        # If no tool calls, the model is ready to answer
        if not turn.wants_tools:
            logger.info(f"[AGENT] LLM ready to answer (iteration {iteration})")
            return AgentResult(
                response=turn.content or latest_content or FALLBACK_RESPONSE,
                data=collected_data,
                iterations=iteration,
                tool_calls_made=tool_calls_made,
            )

        messages.append(_assistant_tool_message(turn.content, turn.tool_calls))

        # Sequential, in request order: tool messages must follow their calls
        for tool_call in turn.tool_calls:
            tool_name = tool_call.name
            tool_args = _parse_arguments(tool_call.arguments)
            logger.info(f"[AGENT] Executing tool: {tool_name}({tool_args})")

            start_time = time.time()
            try:
                result = await execute_tool_async(registry, tool_name, tool_args)
                success = not (isinstance(result, dict) and "error" in result)
            except Exception as e:
                logger.exception(f"[AGENT] Tool {tool_name} failed: {e}")
                result = {"error": str(e)}
                success = False

            tool_calls_made.append(
                {
                    "tool": tool_name,
                    "args": tool_args,
                    "success": success,
                    "duration_ms": int((time.time() - start_time) * 1000),
                }
            )
            collected_data[tool_name] = result

            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": tool_call.id,
                    "content": json.dumps(result, default=str, ensure_ascii=False),
                }
            )

    # Max iterations reached
    logger.warning(f"[AGENT] Max iterations ({max_iterations}) reached")
    return AgentResult(
        response=latest_content or FALLBACK_RESPONSE,
        data=collected_data,
        iterations=iteration,
        tool_calls_made=tool_calls_made,
    )
