"""Pytest configuration for NEXO tests

WHAT: Provides shared fixtures for service, agent-loop and HTTP endpoint tests
WHY: Ensures consistent test setup, database isolation, and a scripted model
     instead of the network
REFERENCES:
    - nexo/main.py: FastAPI application
    - nexo/database.py: Database configuration
    - nexo/deps.py: Dependency injection
    - nexo/agent/llm.py: ChatModel interface the fake implements
"""

import os
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure backend is in path
BACKEND_ROOT = Path(__file__).resolve().parents[2]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# Set test environment (before any nexo import reads it)
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "test-api-key")

from nexo import models  # noqa: E402
from nexo.agent.llm import ModelTurn  # noqa: E402


TODAY = date.today()


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def test_db_engine():
    """In-memory SQLite shared by every thread (TestClient and tool workers)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(bind=engine)

    yield engine

    models.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Business Data Fixtures
# ============================================================================

@pytest.fixture
def seeded_db(test_db_session) -> Session:
    """
    Small commercial dataset, dated relative to today.

    Clients (ultima_compra):
        1 Metalúrgica Alfa     Sul      ativo    300k   10 days ago
        2 Usinagem Beta        Sudeste  inativo  150k   91 days ago
        3 Indústria Gama       Sul      contato   80k   75 days ago
        4 Ferramentaria Delta  Sudeste  ativo    None   90 days ago

    Orders: Alfa 5000 (10d) + 3000 (20d) + 2000 (45d), Beta 1000 (91d),
    Gama 4000 (75d).
    """
    db = test_db_session

    vendedor = models.Vendedor(nome="Carlos Mendes", email="carlos@mgtools.com.br", regiao_atuacao="Sul")
    db.add(vendedor)
    db.flush()

    clientes = [
        models.Cliente(
            nome="Metalúrgica Alfa", regiao="Sul", status="ativo", potencial=Decimal("300000"),
            ultima_compra=TODAY - timedelta(days=10), familia_produtos="Fresas",
            orcamento_aberto=Decimal("10000"), maquinario="Centro de Usinagem Romi D800",
            material_usinado="Aço 1045", vendedor_id=vendedor.id,
        ),
        models.Cliente(
            nome="Usinagem Beta", regiao="Sudeste", status="inativo", potencial=Decimal("150000"),
            ultima_compra=TODAY - timedelta(days=91), familia_produtos="Brocas",
            orcamento_aberto=Decimal("5000"),
        ),
        models.Cliente(
            nome="Indústria Gama", regiao="Sul", status="contato", potencial=Decimal("80000"),
            ultima_compra=TODAY - timedelta(days=75), familia_produtos="Fresas e Insertos",
            orcamento_aberto=Decimal("0"),
        ),
        models.Cliente(
            nome="Ferramentaria Delta", regiao="Sudeste", status="ativo", potencial=None,
            ultima_compra=TODAY - timedelta(days=90), familia_produtos="Machos",
            orcamento_aberto=Decimal("2500"),
        ),
    ]
    db.add_all(clientes)

    produtos = [
        models.Produto(nome="Fresa de Topo 10mm", familia="Fresas", categoria="Fresamento", preco_base=Decimal("420")),
        models.Produto(nome="Broca Metal Duro 8mm", familia="Brocas", categoria="Furação", preco_base=Decimal("310")),
        models.Produto(nome="Inserto CNMG 120408", familia="Insertos", categoria="Torneamento", preco_base=Decimal("48")),
    ]
    db.add_all(produtos)
    db.flush()

    alfa, beta, gama, _ = clientes
    fresa, broca, inserto = produtos
    db.add_all([
        models.Pedido(cliente_id=alfa.id, produto_id=fresa.id, valor=Decimal("5000"), data_pedido=TODAY - timedelta(days=10)),
        models.Pedido(cliente_id=alfa.id, produto_id=broca.id, valor=Decimal("3000"), data_pedido=TODAY - timedelta(days=20)),
        models.Pedido(cliente_id=alfa.id, produto_id=fresa.id, valor=Decimal("2000"), data_pedido=TODAY - timedelta(days=45)),
        models.Pedido(cliente_id=beta.id, produto_id=inserto.id, valor=Decimal("1000"), data_pedido=TODAY - timedelta(days=91)),
        models.Pedido(cliente_id=gama.id, produto_id=fresa.id, valor=Decimal("4000"), data_pedido=TODAY - timedelta(days=75)),
    ])
    db.commit()
    return db


# ============================================================================
# Model Fixtures
# ============================================================================

class FakeChatModel:
    """
    Scripted ChatModel.

    Returns the given turns in order (repeating the last one when the script
    runs out) and records a snapshot of every transcript it was sent.
    """

    def __init__(self, turns: List[ModelTurn], error: Optional[Exception] = None):
        self.turns = list(turns)
        self.error = error
        self.calls: List[List[Dict[str, Any]]] = []
        self.tools_seen: List[List[Dict[str, Any]]] = []

    async def submit(self, messages, tools) -> ModelTurn:
        self.calls.append([dict(m) for m in messages])
        self.tools_seen.append(tools)
        if self.error is not None:
            raise self.error
        if len(self.turns) > 1:
            return self.turns.pop(0)
        return self.turns[0]


def text_turn(content: str) -> ModelTurn:
    return ModelTurn(content=content, finish_reason="stop")


@pytest.fixture
def make_model():
    """Factory for scripted models: make_model([turn, ...], error=None)."""
    return FakeChatModel


@pytest.fixture
def fake_model():
    """Model that answers immediately without tools."""
    return FakeChatModel([text_turn("Resposta de teste")])


# ============================================================================
# Application & Client Fixtures
# ============================================================================

@pytest.fixture
def app(seeded_db, fake_model):
    """FastAPI test application with the test session and the fake model."""
    from nexo.database import get_db
    from nexo.main import create_app
    from nexo.routers.agent import get_chat_model

    test_app = create_app()

    def override_get_db():
        yield seeded_db

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_chat_model] = lambda: fake_model
    return test_app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


# ============================================================================
# Authentication Fixtures
# ============================================================================

@pytest.fixture
def test_user(seeded_db) -> models.User:
    user = models.User(email="gerente@mgtools.com.br", nome="Gerente Comercial", role="gerente")
    seeded_db.add(user)
    seeded_db.commit()
    return user


@pytest.fixture
def auth_headers(test_user) -> Dict[str, str]:
    from nexo.security import create_access_token

    token = create_access_token(test_user.email)
    return {"Authorization": f"Bearer {token}"}
