"""
NEXO Exceptions
===============

Custom exception types for the analytics agent and its collaborators.

WHY THIS FILE EXISTS
--------------------
The agent pipeline has four failure modes that are handled differently:
- Store query failures inside a tool (reported back to the model as data)
- A client or salesperson id that does not exist (404 on the REST routes)
- Language-model call failures (fatal for the whole request, HTTP 500)
- Chat history write failures (HTTP 500 after the answer was computed)

RELATED FILES
-------------
- nexo/services/sales_queries.py: Raises DataAccessError / ClientNotFoundError
- nexo/services/dashboard_service.py: Raises SalespersonNotFoundError
- nexo/agent/llm.py: Raises ModelInvocationError
- nexo/services/history_service.py: Raises HistoryPersistenceError
- nexo/agent/nodes.py: Converts tool failures into {"error": ...} results
- nexo/routers/agent.py: Maps the rest to HTTP responses
"""

from typing import Optional


class NexoError(Exception):
    """
    Base exception for all NEXO errors.

    USAGE:
        try:
            result = await service.analyze(query)
        except NexoError as e:
            return {"error": e.message}
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DataAccessError(NexoError):
    """
    A query against the commercial store failed.

    The message always carries the underlying store error so the model (and
    the logs) can tell what went wrong.
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class RecordNotFoundError(DataAccessError):
    """A lookup by id matched no row. Rendered as 404 by the API."""


class ClientNotFoundError(RecordNotFoundError):
    """No client matches the requested id."""

    def __init__(self, cliente_id: int):
        super().__init__(f"Cliente não encontrado: {cliente_id}", operation="client_potential")
        self.cliente_id = cliente_id


class SalespersonNotFoundError(RecordNotFoundError):
    def __init__(self, vendedor_id: int):
        super().__init__(f"Vendedor não encontrado: {vendedor_id}", operation="salesperson")
        self.vendedor_id = vendedor_id


class ModelInvocationError(NexoError):
    """
    The language-model call failed (network, timeout, rate limit, bad key).

    Never retried by the agent loop; nothing is persisted for the attempt.
    """

    def __init__(self, message: str, iteration: Optional[int] = None):
        super().__init__(message)
        self.iteration = iteration


class HistoryPersistenceError(NexoError):
    """Appending to or clearing the chat history failed."""
