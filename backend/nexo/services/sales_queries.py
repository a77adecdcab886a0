"""
Sales Queries
=============

Parameterized read queries against the commercial store. These are the
data access functions behind the agent's tools.

Related files:
- nexo/agent/tools.py: Tool registry that exposes these queries to the model
- nexo/models.py: Cliente, Produto, Pedido
- nexo/agent/exceptions.py: DataAccessError, ClientNotFoundError

Design:
- One method per question the agent can ask of the data
- Every store failure rolls the session back and becomes a DataAccessError
  carrying the driver message; a query either fully succeeds or raises
- Results are plain dicts/lists (floats, ISO dates) ready for json.dumps
- `today` is injectable so date-window logic is deterministic in tests

Usage:
    queries = SalesQueryService(db)
    inativos = queries.inactive_clients(dias_minimos=90, limite=10)
"""

from __future__ import annotations

import calendar
import logging
import math
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nexo.agent.exceptions import ClientNotFoundError, DataAccessError
from nexo.models import Cliente, Pedido, Produto
from nexo.utils.serialization import model_to_dict

logger = logging.getLogger(__name__)


# Inactivity thresholds (days without a purchase)
PRIORITY_HIGH_DAYS = 90
PRIORITY_MEDIUM_DAYS = 60

# Trend bands: recent window vs prior window
TREND_GROWTH_FACTOR = 1.1
TREND_DECLINE_FACTOR = 0.9
TREND_WINDOW_MONTHS = 3
POTENTIAL_ORDER_HISTORY = 12

TOP_RANKING_SIZE = 5
UNKNOWN_NAME = "Desconhecido"


def classify_priority(dias_sem_compra: int) -> str:
    """Map days without a purchase to a follow-up priority.

    Boundaries are strict: 91+ days is `alto`, 61-90 is `medio`.
    """
    if dias_sem_compra > PRIORITY_HIGH_DAYS:
        return "alto"
    if dias_sem_compra > PRIORITY_MEDIUM_DAYS:
        return "medio"
    return "baixo"


def classify_trend(valor_recente: float, valor_anterior: float) -> str:
    """Compare the recent purchase window against the one before it.

    A zero prior window never yields `decrescente`; any positive recent
    value against it is `crescente`.
    """
    if valor_recente > valor_anterior * TREND_GROWTH_FACTOR:
        return "crescente"
    if valor_recente < valor_anterior * TREND_DECLINE_FACTOR:
        return "decrescente"
    return "estavel"


def percent_variation(atual: float, anterior: float) -> float:
    """Percent change from `anterior` to `atual`; 0 when there is no baseline."""
    if anterior > 0:
        return ((atual - anterior) / anterior) * 100
    return 0.0


def subtract_months(value: date, months: int) -> date:
    """Calendar-aware month subtraction (clamps to the last day of month)."""
    month_index = value.month - 1 - months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class SalesQueryService:
    """
    Read-only queries over clients, products and orders.

    WHAT: Each public method answers one commercial question.

    WHY: The agent must only reach the store through a narrow, validated
    set of filters. No raw SQL is ever built from model output.
    """

    def __init__(self, db: Session, today: Optional[date] = None):
        """
        PARAMETERS:
            db: SQLAlchemy session
            today: Reference date for day/month windows (defaults to date.today())
        """
        self.db = db
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def clients_by_criteria(
        self,
        regiao: Optional[str] = None,
        status: Optional[str] = None,
        dias_sem_compra: Optional[int] = None,
        familia_produtos: Optional[str] = None,
        limite: int = 20,
    ) -> List[Dict[str, Any]]:
        """
        Clients matching every supplied filter, highest potential first.

        PARAMETERS:
            regiao: Exact region name
            status: Exact client status (ativo, inativo, contato, teste, expansao)
            dias_sem_compra: Only clients whose last purchase is older than N days
            familia_produtos: Case-insensitive substring of the product family
            limite: Maximum rows returned

        RETURNS:
            List of client dicts (empty when nothing matches)
        """
        logger.info(
            f"[QUERIES] clients_by_criteria: regiao={regiao}, status={status}, "
            f"dias_sem_compra={dias_sem_compra}, familia={familia_produtos}, limite={limite}"
        )
        try:
            query = self.db.query(Cliente)

            if regiao:
                query = query.filter(Cliente.regiao == regiao)
            if status:
                query = query.filter(Cliente.status == status)
            if familia_produtos:
                query = query.filter(Cliente.familia_produtos.ilike(f"%{familia_produtos}%"))
            if dias_sem_compra:
                data_limite = self.today - timedelta(days=int(dias_sem_compra))
                query = query.filter(Cliente.ultima_compra < data_limite)

            clientes = (
                query.order_by(Cliente.potencial.desc().nulls_last(), Cliente.id)
                .limit(int(limite or 20))
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._store_failure(exc, "Erro ao buscar clientes", "clients_by_criteria") from exc

        return [model_to_dict(c) for c in clientes]

    def inactive_clients(self, dias_minimos: int = 60, limite: int = 20) -> List[Dict[str, Any]]:
        """
        Clients without purchases for more than `dias_minimos` days, most
        stale first, each tagged with `dias_sem_compra` and `prioridade`.
        """
        logger.info(f"[QUERIES] inactive_clients: dias_minimos={dias_minimos}, limite={limite}")
        data_limite = self.today - timedelta(days=int(dias_minimos))
        try:
            clientes = (
                self.db.query(Cliente)
                .filter(Cliente.ultima_compra < data_limite)
                .order_by(Cliente.ultima_compra.asc(), Cliente.id)
                .limit(int(limite))
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._store_failure(exc, "Erro ao buscar clientes inativos", "inactive_clients") from exc

        resultado = []
        for cliente in clientes:
            dias = self._days_since(cliente.ultima_compra)
            registro = model_to_dict(cliente)
            registro["dias_sem_compra"] = dias
            registro["prioridade"] = classify_priority(dias)
            resultado.append(registro)
        return resultado

    def client_potential(self, cliente_id: int, familia_produtos: Optional[str] = None) -> Dict[str, Any]:
        """
        Purchase profile and trend for one client.

        Looks at the client's 12 most recent orders and compares the last
        3 months against the 3 months before them.

        RAISES:
            ClientNotFoundError: No client with this id
            DataAccessError: Store failure
        """
        logger.info(f"[QUERIES] client_potential: cliente_id={cliente_id}, familia={familia_produtos}")
        try:
            cliente = self.db.query(Cliente).filter(Cliente.id == int(cliente_id)).first()
        except SQLAlchemyError as exc:
            raise self._store_failure(exc, "Erro ao buscar cliente", "client_potential") from exc
        if cliente is None:
            raise ClientNotFoundError(cliente_id)

        try:
            pedidos = (
                self.db.query(Pedido)
                .filter(Pedido.cliente_id == cliente.id)
                .order_by(Pedido.data_pedido.desc(), Pedido.id.desc())
                .limit(POTENTIAL_ORDER_HISTORY)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._store_failure(exc, "Erro ao buscar pedidos", "client_potential") from exc

        total_compras = len(pedidos)
        valor_total = sum(float(p.valor or 0) for p in pedidos)
        ticket_medio = valor_total / total_compras if total_compras > 0 else 0.0

        inicio_recente = subtract_months(self.today, TREND_WINDOW_MONTHS)
        inicio_anterior = subtract_months(inicio_recente, TREND_WINDOW_MONTHS)
        valor_recente = sum(float(p.valor or 0) for p in pedidos if p.data_pedido >= inicio_recente)
        valor_anterior = sum(
            float(p.valor or 0)
            for p in pedidos
            if inicio_anterior <= p.data_pedido < inicio_recente
        )

        return {
            "cliente": model_to_dict(cliente),
            "total_compras": total_compras,
            "valor_total": valor_total,
            "ticket_medio": ticket_medio,
            "potencial_estimado": float(cliente.potencial or 0),
            "valor_recente": valor_recente,
            "valor_anterior": valor_anterior,
            "tendencia": classify_trend(valor_recente, valor_anterior),
            "familia_produtos": cliente.familia_produtos,
            "familia_analisada": familia_produtos,
            "maquinario": cliente.maquinario,
            "material_usinado": cliente.material_usinado,
        }

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def products_by_family(
        self,
        familia: Optional[str] = None,
        categoria: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Products filtered by exact family and/or category, ordered by name."""
        logger.info(f"[QUERIES] products_by_family: familia={familia}, categoria={categoria}")
        try:
            query = self.db.query(Produto)
            if familia:
                query = query.filter(Produto.familia == familia)
            if categoria:
                query = query.filter(Produto.categoria == categoria)
            produtos = query.order_by(Produto.nome.asc()).all()
        except SQLAlchemyError as exc:
            raise self._store_failure(exc, "Erro ao buscar produtos", "products_by_family") from exc

        return [model_to_dict(p) for p in produtos]

    # ------------------------------------------------------------------
    # Sales analysis
    # ------------------------------------------------------------------

    def period_sales_analysis(self, dias_atras: int = 30) -> Dict[str, Any]:
        """
        Revenue over the trailing `dias_atras` days against the equal-length
        window right before it, plus the top 5 products and clients.

        RETURNS:
            Dict with periodo, faturamento_total, faturamento_anterior,
            variacao_percentual, top_produtos, top_clientes
        """
        dias_atras = int(dias_atras)
        logger.info(f"[QUERIES] period_sales_analysis: dias_atras={dias_atras}")
        data_inicio = self.today - timedelta(days=dias_atras)
        data_anterior = data_inicio - timedelta(days=dias_atras)

        try:
            faturamento_total = self._sum_orders(Pedido.data_pedido >= data_inicio)
            faturamento_anterior = self._sum_orders(
                Pedido.data_pedido >= data_anterior,
                Pedido.data_pedido < data_inicio,
            )

            produto_nome = func.coalesce(Produto.nome, UNKNOWN_NAME).label("nome")
            produto_valor = func.sum(Pedido.valor).label("valor")
            top_produtos = (
                self.db.query(produto_nome, produto_valor)
                .select_from(Pedido)
                .outerjoin(Produto, Pedido.produto_id == Produto.id)
                .filter(Pedido.data_pedido >= data_inicio)
                .group_by(produto_nome)
                .order_by(produto_valor.desc())
                .limit(TOP_RANKING_SIZE)
                .all()
            )

            cliente_nome = func.coalesce(Cliente.nome, UNKNOWN_NAME).label("nome")
            cliente_valor = func.sum(Pedido.valor).label("valor")
            top_clientes = (
                self.db.query(cliente_nome, cliente_valor)
                .select_from(Pedido)
                .outerjoin(Cliente, Pedido.cliente_id == Cliente.id)
                .filter(Pedido.data_pedido >= data_inicio)
                .group_by(cliente_nome)
                .order_by(cliente_valor.desc())
                .limit(TOP_RANKING_SIZE)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._store_failure(exc, "Erro ao analisar vendas", "period_sales_analysis") from exc

        return {
            "periodo": f"Últimos {dias_atras} dias",
            "faturamento_total": faturamento_total,
            "faturamento_anterior": faturamento_anterior,
            "variacao_percentual": percent_variation(faturamento_total, faturamento_anterior),
            "top_produtos": [
                {"nome": row.nome, "valor": float(row.valor or 0), "variacao": 0}
                for row in top_produtos
            ],
            "top_clientes": [
                {"nome": row.nome, "valor": float(row.valor or 0)}
                for row in top_clientes
            ],
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _store_failure(self, exc: SQLAlchemyError, message: str, operation: str) -> DataAccessError:
        """Roll back the failed statement and wrap the driver error.

        PostgreSQL leaves the transaction aborted after an error, and the
        session is shared with later tools and the history write.
        """
        logger.error(f"[QUERIES] {operation} failed: {exc}")
        self.db.rollback()
        return DataAccessError(f"{message}: {exc}", operation=operation)

    def _sum_orders(self, *conditions) -> float:
        total = self.db.query(func.coalesce(func.sum(Pedido.valor), 0)).filter(*conditions).scalar()
        return float(total or 0)

    def _days_since(self, value: Optional[date]) -> int:
        """Whole days elapsed since `value`, rounded up."""
        if value is None:
            return 0
        elapsed = abs((self.today - value).total_seconds()) / 86400
        return int(math.ceil(elapsed))
