"""Pydantic schemas for request/response payloads."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_serializer


class AnalyzeRequest(BaseModel):
    """Payload for asking NEXO a question."""

    # Blank or missing queries are rejected by the router with a 400
    query: Optional[str] = Field(
        default=None,
        description="Natural language question about the sales data",
        examples=["Quais clientes estão inativos há mais de 90 dias?"],
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "query": "Analise o potencial do cliente 12 na família de fresas"
            }
        }
    }


class AnalyzeResponse(BaseModel):
    """Answer produced by the agent loop."""

    success: bool = Field(default=True, description="Always true on 200")
    analysis: str = Field(description="Answer text (markdown, pt-BR)")
    data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Tool name -> that tool's last result",
    )
    iterations: int = Field(default=0, description="Model round-trips used")
    timestamp: str = Field(description="ISO8601 completion time")


class ChatTurnOut(BaseModel):
    """One chat history entry."""

    id: str
    role: Literal["user", "agent", "system"]
    content: str
    timestamp: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class ClearHistoryResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status", examples=["ok"])
    service: str = Field(description="Service name", examples=["NEXO MG Tools"])
    timestamp: str = Field(description="Server time (ISO8601)")
    environment: str = Field(description="Deployment environment", examples=["development"])


class RankingItem(BaseModel):
    nome: str
    valor: float
    percentual: Optional[float] = None


class PeriodRange(BaseModel):
    inicio: date
    fim: date


class DashboardKPIs(BaseModel):
    """Headline numbers for the dashboard cards."""

    totalClientes: int
    clientesAtivos: int
    clientesInativos: int = Field(description="Clients without a purchase for 60+ days")
    cotacoesAbertas: float = Field(description="Sum of open quotations")
    receitaMensal: float = Field(description="Revenue in the selected period")
    receitaAnterior: float = Field(description="Revenue in the previous period of equal length")
    topProdutos: List[RankingItem]
    topClientes: List[RankingItem]
    periodo: PeriodRange


class ClienteOut(BaseModel):
    """Client record as exposed by the catalog endpoints."""

    id: int
    nome: str
    grupo: Optional[str] = None
    potencial: Optional[Decimal] = None
    entrada_pedidos: Optional[date] = None
    orcamento_aberto: Optional[Decimal] = None
    meta: Optional[Decimal] = None
    ultima_compra: Optional[date] = None
    ultima_visita: Optional[date] = None
    valor_testes: Optional[Decimal] = None
    maquinario: Optional[str] = None
    material_usinado: Optional[str] = None
    tipo_servico: Optional[str] = None
    familia_produtos: Optional[str] = None
    status: Optional[str] = None
    regiao: Optional[str] = None
    vendedor_id: Optional[int] = None

    @field_serializer("potencial", "orcamento_aberto", "meta", "valor_testes")
    def serialize_money(self, v: Optional[Decimal]) -> Optional[float]:
        return float(v) if v is not None else None

    model_config = {"from_attributes": True}


class ProdutoOut(BaseModel):
    id: int
    nome: str
    familia: Optional[str] = None
    categoria: Optional[str] = None
    descricao: Optional[str] = None
    preco_base: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    @field_serializer("preco_base")
    def serialize_price(self, v: Optional[Decimal]) -> Optional[float]:
        return float(v) if v is not None else None

    model_config = {"from_attributes": True}


class VendasPorVendedorItem(BaseModel):
    vendedor: str
    vendas: float = Field(description="Revenue of completed orders in the period")


class RevenuePoint(BaseModel):
    """One point of the revenue series: a day, an ISO week or a month."""

    data: str = Field(examples=["2026-06-01", "2026-S23", "2026-06"])
    receita: float


class VendedorOut(BaseModel):
    id: int
    nome: str
    email: str
    telefone: Optional[str] = None
    regiao_atuacao: Optional[str] = None
    meta_mensal: Optional[Decimal] = None
    comissao_percentual: Optional[Decimal] = None
    status: Optional[str] = None
    data_contratacao: Optional[date] = None

    @field_serializer("meta_mensal", "comissao_percentual")
    def serialize_decimal(self, v: Optional[Decimal]) -> Optional[float]:
        return float(v) if v is not None else None

    model_config = {"from_attributes": True}


class VendedorResumo(BaseModel):
    id: int
    nome: str
    email: str
    regiao_atuacao: Optional[str] = None


class PerformanceStats(BaseModel):
    vendas_totais: float
    meta_mensal: float
    atingimento_meta: float = Field(description="Sales as a percentage of the monthly target")
    comissao_estimada: float
    clientes_ativos: int
    total_pedidos: int


class VendedorPerformance(BaseModel):
    """Performance card of one salesperson (completed orders only)."""

    vendedor: VendedorResumo
    performance: PerformanceStats


class NomeRef(BaseModel):
    """Name of a related record embedded in an order."""

    nome: str

    model_config = {"from_attributes": True}


class PedidoOut(BaseModel):
    """Order with the names of its client, product and salesperson."""

    id: int
    cliente_id: Optional[int] = None
    produto_id: Optional[int] = None
    vendedor_id: Optional[int] = None
    valor: Decimal
    data_pedido: date
    status: Optional[str] = None
    cliente: Optional[NomeRef] = None
    produto: Optional[NomeRef] = None
    vendedor: Optional[NomeRef] = None

    @field_serializer("valor")
    def serialize_valor(self, v: Decimal) -> float:
        return float(v)

    model_config = {"from_attributes": True}
