"""
Language Model Interface
========================

The narrow seam between the agent loop and whatever model answers it.

WHY THIS FILE EXISTS
--------------------
The agent loop only needs one operation: send the transcript plus the tool
declarations, get back either a final text or a list of tool calls. Keeping
that behind `ChatModel.submit` means:
- The loop's state machine does not depend on OpenAI response shapes
- Tests drive the loop with a scripted fake instead of the network

The transcript itself uses the chat-completions message format
(system/user/assistant/tool dicts), which is what the OpenAI adapter sends
as-is.

RELATED FILES
-------------
- nexo/agent/nodes.py: The agent loop (only caller of submit)
- nexo/deps.py: Settings (model name, temperature, max tokens, timeout)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from nexo.agent.exceptions import ModelInvocationError
from nexo.deps import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    """A single tool request from the model. `arguments` is raw JSON text."""
    id: str
    name: str
    arguments: str = "{}"


@dataclass
class ModelTurn:
    """
    One model response.

    WHAT: Either final text (no tool_calls) or a batch of tool requests,
    optionally with some accompanying text.
    """
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    finish_reason: Optional[str] = None

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


class ChatModel(Protocol):
    """Anything that can take one agent round-trip."""

    async def submit(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
    ) -> ModelTurn:
        ...


def get_async_openai_client(settings: Optional[Settings] = None) -> AsyncOpenAI:
    """Get async OpenAI client for non-blocking API calls.

    WHY: The sync client blocks the event loop, preventing FastAPI
    from handling other requests during the API calls.
    """
    settings = settings or get_settings()
    if not settings.OPENAI_API_KEY:
        raise ValueError(
            "OPENAI_API_KEY not configured. "
            "Set it in your .env file or environment."
        )
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.OPENAI_TIMEOUT_SECONDS)


class OpenAIChatModel:
    """
    ChatModel backed by OpenAI chat completions with function calling.

    USAGE:
        model = OpenAIChatModel.from_settings(get_settings())
        turn = await model.submit(messages, registry.declarations())
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIChatModel":
        return cls(
            client=get_async_openai_client(settings),
            model=settings.OPENAI_MODEL,
            temperature=settings.AGENT_TEMPERATURE,
            max_tokens=settings.AGENT_MAX_TOKENS,
        )

    async def submit(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
    ) -> ModelTurn:
        """
        Send the transcript and let the model choose tools on its own.

        RAISES:
            ModelInvocationError: Transport, timeout, rate-limit or API failure
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                tools=tools,
                tool_choice="auto",  # LLM decides
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as exc:
            logger.error(f"[LLM] OpenAI call failed: {exc}")
            raise ModelInvocationError(f"Falha ao consultar o modelo de linguagem: {exc}") from exc

        if not response.choices:
            raise ModelInvocationError("Resposta vazia do modelo de linguagem")

        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=tc.function.arguments or "{}",
            )
            for tc in (message.tool_calls or [])
        ]
        return ModelTurn(
            content=message.content,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
        )
