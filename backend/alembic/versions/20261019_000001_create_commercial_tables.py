"""Create commercial store and chat history tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 09:00:00.000000

WHAT:
    Creates the tables NEXO reads and writes:
    - vendedores: Salespeople
    - users: Staff accounts resolved from the JWT subject
    - clientes: Business customers (status, region, last purchase, potential)
    - produtos: Product catalog grouped by family
    - pedidos: Orders (client, product, value, date)
    - chat_history: Persisted user/agent turns

WHY:
    The agent's tools query clientes/pedidos/produtos directly and the
    history endpoints need an append-only turn log.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_000001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'vendedores',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('telefone', sa.String(50), nullable=True),
        sa.Column('regiao_atuacao', sa.String(100), nullable=True),
        sa.Column('meta_mensal', sa.Numeric(10, 2), nullable=True),
        sa.Column('comissao_percentual', sa.Numeric(5, 2), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('data_contratacao', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('vendedor_id', sa.Integer(), sa.ForeignKey('vendedores.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'clientes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('grupo', sa.String(100), nullable=True),
        sa.Column('potencial', sa.Numeric(10, 2), nullable=True),
        sa.Column('entrada_pedidos', sa.Date(), nullable=True),
        sa.Column('orcamento_aberto', sa.Numeric(10, 2), nullable=True),
        sa.Column('meta', sa.Numeric(10, 2), nullable=True),
        sa.Column('ultima_compra', sa.Date(), nullable=True),
        sa.Column('ultima_visita', sa.Date(), nullable=True),
        sa.Column('valor_testes', sa.Numeric(10, 2), nullable=True),
        sa.Column('maquinario', sa.String(255), nullable=True),
        sa.Column('material_usinado', sa.String(255), nullable=True),
        sa.Column('tipo_servico', sa.String(255), nullable=True),
        sa.Column('familia_produtos', sa.String(255), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('regiao', sa.String(100), nullable=True),
        sa.Column('vendedor_id', sa.Integer(), sa.ForeignKey('vendedores.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    # Inactivity scans filter on last purchase
    op.create_index('ix_clientes_ultima_compra', 'clientes', ['ultima_compra'])

    op.create_table(
        'produtos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('familia', sa.String(100), nullable=True),
        sa.Column('categoria', sa.String(100), nullable=True),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('preco_base', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'pedidos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('cliente_id', sa.Integer(), sa.ForeignKey('clientes.id', ondelete='CASCADE'), nullable=True),
        sa.Column('produto_id', sa.Integer(), sa.ForeignKey('produtos.id', ondelete='SET NULL'), nullable=True),
        sa.Column('vendedor_id', sa.Integer(), sa.ForeignKey('vendedores.id'), nullable=True),
        sa.Column('valor', sa.Numeric(10, 2), nullable=False),
        sa.Column('data_pedido', sa.Date(), nullable=False),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_pedidos_cliente_id', 'pedidos', ['cliente_id'])
    op.create_index('ix_pedidos_data_pedido', 'pedidos', ['data_pedido'])

    op.create_table(
        'chat_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('data', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('chat_history')
    op.drop_index('ix_pedidos_data_pedido', table_name='pedidos')
    op.drop_index('ix_pedidos_cliente_id', table_name='pedidos')
    op.drop_table('pedidos')
    op.drop_table('produtos')
    op.drop_index('ix_clientes_ultima_compra', table_name='clientes')
    op.drop_table('clientes')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('vendedores')
