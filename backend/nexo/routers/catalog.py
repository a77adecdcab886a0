"""Read-only listings of clients, products, orders and salespeople."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from nexo.agent.exceptions import ClientNotFoundError, DataAccessError, SalespersonNotFoundError
from nexo.database import get_db
from nexo.deps import get_current_user
from nexo.models import Cliente, Pedido, Produto, User, Vendedor
from nexo.schemas import ClienteOut, PedidoOut, ProdutoOut, VendedorOut, VendedorPerformance
from nexo.services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/clientes", response_model=List[ClienteOut])
def list_clientes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All clients ordered by name."""
    return db.query(Cliente).order_by(Cliente.nome).all()


@router.get("/clientes/{cliente_id}", response_model=ClienteOut)
def get_cliente(
    cliente_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cliente = db.query(Cliente).filter(Cliente.id == cliente_id).first()
    if not cliente:
        raise ClientNotFoundError(cliente_id)
    return cliente


@router.get("/produtos", response_model=List[ProdutoOut])
def list_produtos(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All products ordered by name."""
    return db.query(Produto).order_by(Produto.nome).all()


@router.get("/pedidos", response_model=List[PedidoOut])
def list_pedidos(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All orders, newest first, with client, product and salesperson names."""
    return (
        db.query(Pedido)
        .options(joinedload(Pedido.cliente), joinedload(Pedido.produto), joinedload(Pedido.vendedor))
        .order_by(Pedido.data_pedido.desc(), Pedido.id.desc())
        .all()
    )


@router.get("/vendedores", response_model=List[VendedorOut])
def list_vendedores(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All salespeople ordered by name."""
    return db.query(Vendedor).order_by(Vendedor.nome).all()


@router.get("/vendedores/{vendedor_id}", response_model=VendedorOut)
def get_vendedor(
    vendedor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    vendedor = db.query(Vendedor).filter(Vendedor.id == vendedor_id).first()
    if not vendedor:
        raise SalespersonNotFoundError(vendedor_id)
    return vendedor


@router.get("/vendedores/{vendedor_id}/performance", response_model=VendedorPerformance)
def get_vendedor_performance(
    vendedor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    GET /api/vendedores/{id}/performance

    Completed sales, target attainment, estimated commission, active clients
    and order count for one salesperson.
    """
    try:
        return DashboardService(db).salesperson_performance(vendedor_id)
    except SQLAlchemyError as exc:
        logger.error(f"[DASHBOARD] Performance query failed for salesperson {vendedor_id}: {exc}")
        raise DataAccessError(f"Erro ao buscar performance: {exc}", operation="salesperson_performance") from exc
