"""SQLAlchemy ORM models and enums.

This module mirrors the commercial store used by NEXO: salespeople
(`vendedores`), clients (`clientes`), products (`produtos`), orders
(`pedidos`), the staff accounts that may use the API (`users`) and the
persisted conversation with the agent (`chat_history`).

Column names follow the store's Portuguese schema so that rows can be
returned to the language model without translation.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base, relationship


# Single Base used by the entire application
Base = declarative_base()


# Enums ---------------------------------------------------------

class ClienteStatusEnum(str, enum.Enum):
    ativo = "ativo"
    inativo = "inativo"
    contato = "contato"
    teste = "teste"
    expansao = "expansao"


class PedidoStatusEnum(str, enum.Enum):
    """Order lifecycle. Only `concluido` orders count toward salesperson results."""
    pendente = "pendente"
    concluido = "concluido"
    cancelado = "cancelado"


class ChatRoleEnum(str, enum.Enum):
    """Author of a persisted chat turn.

    `system` is reserved for error/status turns.
    """
    user = "user"
    agent = "agent"
    system = "system"


class RoleEnum(str, enum.Enum):
    admin = "admin"
    gerente = "gerente"
    vendedor = "vendedor"


# Core models ----------------------------------------------------

class Vendedor(Base):
    """Vendedor is a salesperson responsible for a portfolio of clients."""
    __tablename__ = "vendedores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    telefone = Column(String(50), nullable=True)
    regiao_atuacao = Column(String(100), nullable=True)
    meta_mensal = Column(Numeric(10, 2), nullable=True)
    comissao_percentual = Column(Numeric(5, 2), nullable=True)
    status = Column(String(50), nullable=True)
    data_contratacao = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    clientes = relationship("Cliente", back_populates="vendedor")
    pedidos = relationship("Pedido", back_populates="vendedor")

    def __str__(self):
        return self.nome


class User(Base):
    """User is a staff member allowed to access the API.

    The id is the identity provider's UUID; authentication itself happens
    upstream and we only resolve the caller by email (JWT subject).
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    nome = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default=RoleEnum.vendedor.value)
    vendedor_id = Column(Integer, ForeignKey("vendedores.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __str__(self):
        return self.email


class Cliente(Base):
    """Cliente is a business customer.

    `ultima_compra` drives inactivity detection and `potencial` the default
    ordering of client searches.
    """
    __tablename__ = "clientes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(255), nullable=False)
    grupo = Column(String(100), nullable=True)
    potencial = Column(Numeric(10, 2), nullable=True)
    entrada_pedidos = Column(Date, nullable=True)
    orcamento_aberto = Column(Numeric(10, 2), default=0)
    meta = Column(Numeric(10, 2), nullable=True)
    ultima_compra = Column(Date, nullable=True, index=True)
    ultima_visita = Column(Date, nullable=True)
    valor_testes = Column(Numeric(10, 2), default=0)
    maquinario = Column(String(255), nullable=True)
    material_usinado = Column(String(255), nullable=True)
    tipo_servico = Column(String(255), nullable=True)
    familia_produtos = Column(String(255), nullable=True)
    status = Column(String(50), nullable=True)
    regiao = Column(String(100), nullable=True)
    vendedor_id = Column(Integer, ForeignKey("vendedores.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendedor = relationship("Vendedor", back_populates="clientes")
    pedidos = relationship("Pedido", back_populates="cliente", cascade="all, delete-orphan")

    def __str__(self):
        return self.nome


class Produto(Base):
    __tablename__ = "produtos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(255), nullable=False)
    familia = Column(String(100), nullable=True)
    categoria = Column(String(100), nullable=True)
    descricao = Column(Text, nullable=True)
    preco_base = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    pedidos = relationship("Pedido", back_populates="produto")

    def __str__(self):
        return self.nome


class Pedido(Base):
    """Pedido is a single order line: one client, one product, one value."""
    __tablename__ = "pedidos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=True, index=True)
    produto_id = Column(Integer, ForeignKey("produtos.id", ondelete="SET NULL"), nullable=True)
    vendedor_id = Column(Integer, ForeignKey("vendedores.id"), nullable=True)
    valor = Column(Numeric(10, 2), nullable=False)
    data_pedido = Column(Date, nullable=False, index=True)
    status = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    cliente = relationship("Cliente", back_populates="pedidos")
    produto = relationship("Produto", back_populates="pedidos")
    vendedor = relationship("Vendedor", back_populates="pedidos")

    def __str__(self):
        return f"Pedido {self.id} - {self.data_pedido}"


class ChatHistory(Base):
    """ChatHistory stores one turn of the conversation with the agent.

    Rows are append-only: the API never edits a turn, it can only wipe the
    whole table. `data` holds the agent's collected tool results as JSON text.
    """
    __tablename__ = "chat_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    data = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __str__(self):
        return f"{self.role}: {self.content[:50]}"
