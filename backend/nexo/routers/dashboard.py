"""
Dashboard Router
================

KPI cards, sales per salesperson and the revenue chart of the commercial
dashboard. All three share the period selection: a preset (`periodo`) or
an explicit `data_inicio` + `data_fim` range, which takes precedence.

Related files:
- nexo/services/dashboard_service.py: Aggregation queries
- nexo/schemas.py: DashboardKPIs, VendasPorVendedorItem, RevenuePoint
"""

import logging
from datetime import date
from typing import Callable, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nexo.agent.exceptions import DataAccessError
from nexo.database import get_db
from nexo.deps import get_current_user
from nexo.models import User
from nexo.schemas import DashboardKPIs, RevenuePoint, VendasPorVendedorItem
from nexo.services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

Periodo = Literal["7d", "30d", "90d", "1y"]


def _run_report(report: Callable, operation: str, periodo, data_inicio, data_fim):
    """Run one DashboardService report, mapping a bad range to 400."""
    try:
        return report(periodo, data_inicio, data_fim)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SQLAlchemyError as exc:
        logger.error(f"[DASHBOARD] {operation} query failed: {exc}")
        raise DataAccessError(f"Erro ao buscar dados do dashboard: {exc}", operation=operation) from exc


@router.get("/kpis", response_model=DashboardKPIs)
def get_kpis(
    periodo: Periodo = Query(default="30d", description="Preset period"),
    data_inicio: Optional[date] = Query(default=None, description="Custom range start (YYYY-MM-DD)"),
    data_fim: Optional[date] = Query(default=None, description="Custom range end (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    GET /api/dashboard/kpis

    Revenue is compared against the period of equal length right before it.
    """
    return _run_report(DashboardService(db).get_kpis, "dashboard_kpis", periodo, data_inicio, data_fim)


@router.get("/vendas-por-vendedor", response_model=List[VendasPorVendedorItem])
def get_vendas_por_vendedor(
    periodo: Periodo = Query(default="30d"),
    data_inicio: Optional[date] = Query(default=None),
    data_fim: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Completed-order revenue per salesperson in the period."""
    return _run_report(
        DashboardService(db).sales_by_salesperson, "sales_by_salesperson", periodo, data_inicio, data_fim
    )


@router.get("/evolucao-receita", response_model=List[RevenuePoint])
def get_evolucao_receita(
    periodo: Periodo = Query(default="30d"),
    data_inicio: Optional[date] = Query(default=None),
    data_fim: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Revenue series for the chart: daily, weekly or monthly by window length."""
    return _run_report(
        DashboardService(db).revenue_evolution, "revenue_evolution", periodo, data_inicio, data_fim
    )
