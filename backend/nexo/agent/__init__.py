"""
NEXO Analytics Agent
====================

Tool-calling agent that answers commercial questions from live sales data.

ARCHITECTURE
------------
```
User Question
    |
    v
agent_loop (nodes.py)
    |-- ChatModel.submit (llm.py): transcript + tool declarations
    |-- ToolRegistry.dispatch (tools.py): run the requested queries
    |-- repeat until the model answers (max 5 round-trips)
    |
    v
AgentResult(response, data)
```

USAGE
-----
```python
from nexo.agent import agent_loop, ToolRegistry, OpenAIChatModel

result = await agent_loop(question, model, ToolRegistry(SalesQueryService(db)))
```

RELATED FILES
-------------
- nexo/services/sales_queries.py: Data access behind the tools
- nexo/services/analysis_service.py: Runs the loop and persists history
- nexo/routers/agent.py: HTTP endpoints
"""

from nexo.agent.llm import ChatModel, ModelTurn, OpenAIChatModel, ToolCall
from nexo.agent.nodes import MAX_ITERATIONS, AgentResult, agent_loop
from nexo.agent.tools import TOOL_DESCRIPTORS, ToolDescriptor, ToolRegistry, get_tool_names

__all__ = [
    "agent_loop",
    "AgentResult",
    "MAX_ITERATIONS",
    "ChatModel",
    "ModelTurn",
    "ToolCall",
    "OpenAIChatModel",
    "ToolRegistry",
    "ToolDescriptor",
    "TOOL_DESCRIPTORS",
    "get_tool_names",
]
