"""
Agent Tools - Tool Registry
===========================

The fixed catalog of data-retrieval tools the NEXO agent may call.

WHY THIS FILE EXISTS
--------------------
The language model never touches the database directly. It can only ask for
one of the tools declared here, by name, with JSON arguments. This module:
- Declares each tool's name, description and JSON-schema parameters
- Renders those declarations in OpenAI function-calling format
- Dispatches a (name, arguments) pair to the matching query

Unknown tool names are not exceptions: they produce an error *result* that
goes back to the model, which can then recover or explain the gap.

SECURITY NOTE
-------------
Every tool maps to a fixed SalesQueryService method. Arguments only ever
become bound filter values; no SQL is built from model output.

RELATED FILES
-------------
- nexo/services/sales_queries.py: What these tools call
- nexo/agent/nodes.py: Agent loop that executes tool calls
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from nexo.models import ClienteStatusEnum
from nexo.services.sales_queries import SalesQueryService

logger = logging.getLogger(__name__)


ToolHandler = Callable[[SalesQueryService, Dict[str, Any]], Any]


@dataclass(frozen=True)
class ToolDescriptor:
    """One declared capability: what the model sees plus what we run."""
    name: str
    description: str
    parameters: Dict[str, Any]
    handler: ToolHandler

    def to_openai(self) -> Dict[str, Any]:
        """Function-calling declaration for chat.completions `tools=`."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


# =============================================================================
# TOOL HANDLERS
# =============================================================================
# Each handler applies the tool's own defaults, since arguments arrive exactly
# as the model produced them (possibly missing or null).

def _clients_by_criteria(queries: SalesQueryService, args: Dict[str, Any]) -> Any:
    return queries.clients_by_criteria(
        regiao=args.get("regiao"),
        status=args.get("status"),
        dias_sem_compra=args.get("dias_sem_compra"),
        familia_produtos=args.get("familia_produtos"),
        limite=args.get("limite") or 20,
    )


def _client_potential(queries: SalesQueryService, args: Dict[str, Any]) -> Any:
    cliente_id = args.get("cliente_id")
    if cliente_id is None:
        raise ValueError("Parâmetro obrigatório ausente: cliente_id")
    return queries.client_potential(
        cliente_id=int(cliente_id),
        familia_produtos=args.get("familia_produtos"),
    )


def _inactive_clients(queries: SalesQueryService, args: Dict[str, Any]) -> Any:
    return queries.inactive_clients(
        dias_minimos=args.get("dias_minimos") or 60,
        limite=args.get("limite") or 20,
    )


def _period_sales_analysis(queries: SalesQueryService, args: Dict[str, Any]) -> Any:
    return queries.period_sales_analysis(dias_atras=args.get("dias_atras") or 30)


def _products_by_family(queries: SalesQueryService, args: Dict[str, Any]) -> Any:
    return queries.products_by_family(
        familia=args.get("familia"),
        categoria=args.get("categoria"),
    )


# =============================================================================
# TOOL DECLARATIONS
# =============================================================================

TOOL_DESCRIPTORS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="clients_by_criteria",
        description=(
            "Busca clientes com filtros específicos (região, status, dias sem compra, "
            "família de produtos), ordenados pelo maior potencial"
        ),
        parameters={
            "type": "object",
            "properties": {
                "regiao": {
                    "type": "string",
                    "description": "Região geográfica do cliente (ex: Zona da Mata, Metropolitana, Vale do Rio Doce)",
                },
                "status": {
                    "type": "string",
                    "enum": [s.value for s in ClienteStatusEnum],
                    "description": "Status do cliente",
                },
                "dias_sem_compra": {
                    "type": "integer",
                    "description": "Filtrar clientes sem compras há mais de X dias",
                },
                "familia_produtos": {
                    "type": "string",
                    "description": "Família de produtos de interesse (ex: AHX-440, Ferramentas de Corte)",
                },
                "limite": {
                    "type": "integer",
                    "default": 20,
                    "description": "Número máximo de clientes a retornar",
                },
            },
        },
        handler=_clients_by_criteria,
    ),
    ToolDescriptor(
        name="client_potential",
        description="Calcula o potencial de vendas para um cliente específico baseado em histórico e perfil",
        parameters={
            "type": "object",
            "properties": {
                "cliente_id": {
                    "type": "integer",
                    "description": "ID do cliente",
                },
                "familia_produtos": {
                    "type": "string",
                    "description": "Família de produtos para análise de potencial",
                },
            },
            "required": ["cliente_id"],
        },
        handler=_client_potential,
    ),
    ToolDescriptor(
        name="inactive_clients",
        description="Identifica clientes inativos (sem pedidos há X dias) priorizados por risco",
        parameters={
            "type": "object",
            "properties": {
                "dias_minimos": {
                    "type": "integer",
                    "default": 60,
                    "description": "Número mínimo de dias sem compra",
                },
                "limite": {
                    "type": "integer",
                    "default": 20,
                    "description": "Número máximo de clientes a retornar",
                },
            },
        },
        handler=_inactive_clients,
    ),
    ToolDescriptor(
        name="period_sales_analysis",
        description="Análise completa de vendas em período específico com ranking de produtos e clientes",
        parameters={
            "type": "object",
            "properties": {
                "dias_atras": {
                    "type": "integer",
                    "default": 30,
                    "description": "Número de dias para análise retroativa",
                },
            },
        },
        handler=_period_sales_analysis,
    ),
    ToolDescriptor(
        name="products_by_family",
        description="Busca produtos por família ou categoria",
        parameters={
            "type": "object",
            "properties": {
                "familia": {
                    "type": "string",
                    "description": "Família de produtos (ex: Ferramentas de Corte)",
                },
                "categoria": {
                    "type": "string",
                    "description": "Categoria (ex: Premium, Standard, Economy)",
                },
            },
        },
        handler=_products_by_family,
    ),
]


def get_tool_names() -> List[str]:
    """Declared tool names, in declaration order."""
    return [tool.name for tool in TOOL_DESCRIPTORS]


class ToolRegistry:
    """
    Declarations + dispatch over a SalesQueryService.

    USAGE:
        registry = ToolRegistry(SalesQueryService(db))
        declarations = registry.declarations()        # for the model
        result = registry.dispatch("inactive_clients", {"dias_minimos": 90})
    """

    def __init__(self, queries: SalesQueryService, tools: Optional[List[ToolDescriptor]] = None):
        self.queries = queries
        self._tools: Dict[str, ToolDescriptor] = {t.name: t for t in (tools or TOOL_DESCRIPTORS)}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        return list(self._tools)

    def declarations(self) -> List[Dict[str, Any]]:
        """All tools in OpenAI function-calling format, in declaration order."""
        return [tool.to_openai() for tool in self._tools.values()]

    def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> Any:
        """
        Run the tool called `name` with the model's raw arguments.

        RETURNS:
            The tool's result, or {"error": ...} when the name is unknown.

        RAISES:
            Whatever the underlying query raises (the agent loop turns it
            into an error result for the model).
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.warning(f"[TOOLS] Unknown tool requested: {name}")
            return {"error": f"Ferramenta {name} não encontrada"}

        logger.info(f"[TOOLS] {name}({arguments or {}})")
        return tool.handler(self.queries, arguments or {})
