"""
Dashboard KPI Service
=====================

Headline numbers for the commercial dashboard: client base, open quotations,
revenue for the selected period vs the previous one, and top products and
clients. Also the per-salesperson views: completed sales in a period and
the performance card of one salesperson against their monthly target.

Related files:
- nexo/routers/dashboard.py: KPIs, sales by salesperson, revenue evolution
- nexo/routers/catalog.py: GET /api/vendedores/{id}/performance
- nexo/services/sales_queries.py: Shares the inactivity threshold and ranking size
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from nexo.agent.exceptions import SalespersonNotFoundError
from nexo.models import Cliente, ClienteStatusEnum, Pedido, PedidoStatusEnum, Produto, Vendedor
from nexo.services.sales_queries import PRIORITY_MEDIUM_DAYS, TOP_RANKING_SIZE, UNKNOWN_NAME

logger = logging.getLogger(__name__)


PERIOD_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
}
DEFAULT_PERIOD = "30d"

# Revenue evolution granularity, by window length in days
DAILY_MAX_DAYS = 31
WEEKLY_MAX_DAYS = 180


@dataclass
class DateWindow:
    """Current and previous reporting windows (all bounds inclusive)."""
    inicio: date
    fim: date
    anterior_inicio: date
    anterior_fim: date


def resolve_window(
    periodo: Optional[str] = None,
    data_inicio: Optional[date] = None,
    data_fim: Optional[date] = None,
    today: Optional[date] = None,
) -> DateWindow:
    """
    Turn a preset period (7d, 30d, 90d, 1y) or an explicit date range into
    the current window and the equal-length window right before it.
    """
    today = today or date.today()

    if data_inicio and data_fim:
        if data_fim < data_inicio:
            raise ValueError("data_fim deve ser posterior a data_inicio")
        span = (data_fim - data_inicio).days
        anterior_fim = data_inicio - timedelta(days=1)
        return DateWindow(
            inicio=data_inicio,
            fim=data_fim,
            anterior_inicio=anterior_fim - timedelta(days=span),
            anterior_fim=anterior_fim,
        )

    if periodo == "1y":
        try:
            inicio = today.replace(year=today.year - 1)
        except ValueError:
            # Feb 29th
            inicio = today.replace(year=today.year - 1, day=28)
    else:
        inicio = today - timedelta(days=PERIOD_DAYS.get(periodo or DEFAULT_PERIOD, 30))

    span = (today - inicio).days
    return DateWindow(
        inicio=inicio,
        fim=today,
        anterior_inicio=inicio - timedelta(days=span),
        anterior_fim=inicio - timedelta(days=1),
    )


class DashboardService:
    """KPI aggregation for the dashboard cards."""

    def __init__(self, db: Session, today: Optional[date] = None):
        self.db = db
        self.today = today or date.today()

    def get_kpis(
        self,
        periodo: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> Dict[str, Any]:
        window = resolve_window(periodo, data_inicio, data_fim, today=self.today)
        logger.info(f"[DASHBOARD] KPIs for {window.inicio} -> {window.fim}")

        total_clientes = self.db.query(func.count(Cliente.id)).scalar() or 0
        clientes_ativos = (
            self.db.query(func.count(Cliente.id))
            .filter(Cliente.status == ClienteStatusEnum.ativo.value)
            .scalar()
            or 0
        )
        limite_inatividade = self.today - timedelta(days=PRIORITY_MEDIUM_DAYS)
        clientes_inativos = (
            self.db.query(func.count(Cliente.id))
            .filter(Cliente.ultima_compra < limite_inatividade)
            .scalar()
            or 0
        )
        cotacoes_abertas = float(
            self.db.query(func.coalesce(func.sum(Cliente.orcamento_aberto), 0)).scalar() or 0
        )

        in_window = (Pedido.data_pedido >= window.inicio, Pedido.data_pedido <= window.fim)
        receita_periodo = self._revenue(*in_window)
        receita_anterior = self._revenue(
            Pedido.data_pedido >= window.anterior_inicio,
            Pedido.data_pedido <= window.anterior_fim,
        )

        produto_nome = func.coalesce(Produto.nome, UNKNOWN_NAME).label("nome")
        produto_valor = func.sum(Pedido.valor).label("valor")
        top_produtos = (
            self.db.query(produto_nome, produto_valor)
            .select_from(Pedido)
            .outerjoin(Produto, Pedido.produto_id == Produto.id)
            .filter(*in_window)
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
            .filter(*in_window)
            .group_by(cliente_nome)
            .order_by(cliente_valor.desc())
            .limit(TOP_RANKING_SIZE)
            .all()
        )

        return {
            "totalClientes": int(total_clientes),
            "clientesAtivos": int(clientes_ativos),
            "clientesInativos": int(clientes_inativos),
            "cotacoesAbertas": cotacoes_abertas,
            "receitaMensal": receita_periodo,
            "receitaAnterior": receita_anterior,
            "topProdutos": [
                {
                    "nome": row.nome,
                    "valor": float(row.valor or 0),
                    "percentual": (float(row.valor or 0) / receita_periodo) * 100 if receita_periodo > 0 else 0,
                }
                for row in top_produtos
            ],
            "topClientes": [
                {"nome": row.nome, "valor": float(row.valor or 0)}
                for row in top_clientes
            ],
            "periodo": {
                "inicio": window.inicio.isoformat(),
                "fim": window.fim.isoformat(),
            },
        }

    def sales_by_salesperson(
        self,
        periodo: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """Completed-order revenue per salesperson in the current window.

        Every salesperson is listed, with 0 when they sold nothing.
        """
        window = resolve_window(periodo, data_inicio, data_fim, today=self.today)
        logger.info(f"[DASHBOARD] Sales by salesperson for {window.inicio} -> {window.fim}")

        vendas = func.coalesce(func.sum(Pedido.valor), 0).label("vendas")
        rows = (
            self.db.query(Vendedor.nome, vendas)
            .outerjoin(
                Pedido,
                and_(
                    Pedido.vendedor_id == Vendedor.id,
                    Pedido.status == PedidoStatusEnum.concluido.value,
                    Pedido.data_pedido >= window.inicio,
                    Pedido.data_pedido <= window.fim,
                ),
            )
            .group_by(Vendedor.id, Vendedor.nome)
            .order_by(Vendedor.nome, Vendedor.id)
            .all()
        )
        return [{"vendedor": row.nome, "vendas": float(row.vendas or 0)} for row in rows]

    def revenue_evolution(
        self,
        periodo: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Revenue over the current window as a time series, oldest first.

        Granularity follows the window length:
            <= 31 days:  one point per day ("2026-06-01"), zero-filled
            <= 180 days: one point per ISO week with orders ("2026-S23")
            longer:      one point per month with orders ("2026-06")
        """
        window = resolve_window(periodo, data_inicio, data_fim, today=self.today)
        logger.info(f"[DASHBOARD] Revenue evolution for {window.inicio} -> {window.fim}")

        receita = func.sum(Pedido.valor).label("receita")
        rows = (
            self.db.query(Pedido.data_pedido, receita)
            .filter(Pedido.data_pedido >= window.inicio, Pedido.data_pedido <= window.fim)
            .group_by(Pedido.data_pedido)
            .order_by(Pedido.data_pedido)
            .all()
        )
        por_dia = {row.data_pedido: float(row.receita or 0) for row in rows}

        span = (window.fim - window.inicio).days
        if span <= DAILY_MAX_DAYS:
            return [
                {"data": dia.isoformat(), "receita": por_dia.get(dia, 0.0)}
                for dia in (window.inicio + timedelta(days=i) for i in range(span + 1))
            ]

        buckets: Dict[str, float] = {}
        for dia, valor in por_dia.items():
            if span <= WEEKLY_MAX_DAYS:
                iso = dia.isocalendar()
                chave = f"{iso[0]}-S{iso[1]:02d}"
            else:
                chave = f"{dia.year}-{dia.month:02d}"
            buckets[chave] = buckets.get(chave, 0.0) + valor
        return [{"data": chave, "receita": valor} for chave, valor in buckets.items()]

    def salesperson_performance(self, vendedor_id: int) -> Dict[str, Any]:
        """
        Results of one salesperson over all their completed orders.

        RAISES:
            SalespersonNotFoundError: No salesperson with this id
        """
        vendedor = self.db.query(Vendedor).filter(Vendedor.id == vendedor_id).first()
        if vendedor is None:
            raise SalespersonNotFoundError(vendedor_id)

        vendas_totais, total_pedidos = (
            self.db.query(func.coalesce(func.sum(Pedido.valor), 0), func.count(Pedido.id))
            .filter(
                Pedido.vendedor_id == vendedor.id,
                Pedido.status == PedidoStatusEnum.concluido.value,
            )
            .one()
        )
        clientes_ativos = (
            self.db.query(func.count(Cliente.id))
            .filter(Cliente.vendedor_id == vendedor.id, Cliente.status == ClienteStatusEnum.ativo.value)
            .scalar()
            or 0
        )

        vendas_totais = float(vendas_totais or 0)
        meta_mensal = float(vendedor.meta_mensal or 0)
        comissao_percentual = float(vendedor.comissao_percentual or 0)

        return {
            "vendedor": {
                "id": vendedor.id,
                "nome": vendedor.nome,
                "email": vendedor.email,
                "regiao_atuacao": vendedor.regiao_atuacao,
            },
            "performance": {
                "vendas_totais": vendas_totais,
                "meta_mensal": meta_mensal,
                "atingimento_meta": (vendas_totais / meta_mensal) * 100 if meta_mensal > 0 else 0.0,
                "comissao_estimada": vendas_totais * comissao_percentual / 100,
                "clientes_ativos": int(clientes_ativos),
                "total_pedidos": int(total_pedidos or 0),
            },
        }

    def _revenue(self, *conditions) -> float:
        total = self.db.query(func.coalesce(func.sum(Pedido.valor), 0)).filter(*conditions).scalar()
        return float(total or 0)
