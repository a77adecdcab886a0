"""
Demo data seed script for LOCAL/DEV databases.
Creates salespeople, clients, products and a year of orders so the agent
and the dashboard have something realistic to analyse.

SAFE TO RE-RUN:
- Skips everything when clients already exist (use --force to add anyway)
- Only INSERTs, never deletes

Data shape:
- 4 salespeople, one per region
- ~40 clients with a mix of statuses and purchase recency
  (some active, some 60-90 days silent, some 90+ days silent)
- ~20 products across 5 families
- 12 months of orders, with the most recent quarter slightly up for some
  clients and down for others (so trends are not all "estavel")

Usage:
    cd backend
    python -m nexo.seed_demo
    python -m nexo.seed_demo --force
"""

import argparse
import logging
import random
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from nexo.database import get_sync_session
from nexo import models

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

RANDOM_SEED = 42
CLIENTS_PER_REGION = 10
ORDER_HISTORY_DAYS = 365
DEMO_USER_EMAIL = "demo@mgtools.com.br"

VENDEDORES = [
    {"nome": "Carlos Mendes", "email": "carlos@mgtools.com.br", "regiao_atuacao": "Sul", "meta_mensal": 180_000},
    {"nome": "Fernanda Lima", "email": "fernanda@mgtools.com.br", "regiao_atuacao": "Sudeste", "meta_mensal": 250_000},
    {"nome": "Ricardo Souza", "email": "ricardo@mgtools.com.br", "regiao_atuacao": "Centro-Oeste", "meta_mensal": 120_000},
    {"nome": "Juliana Rocha", "email": "juliana@mgtools.com.br", "regiao_atuacao": "Nordeste", "meta_mensal": 100_000},
]

# family -> [(product name, category, base price)]
PRODUTOS = {
    "Fresas": [
        ("Fresa de Topo Metal Duro 10mm", "Fresamento", 420),
        ("Fresa Esférica 6mm", "Fresamento", 380),
        ("Fresa de Desbaste 16mm", "Fresamento", 690),
        ("Fresa de Faceamento 50mm", "Fresamento", 1850),
    ],
    "Brocas": [
        ("Broca Metal Duro 8mm", "Furação", 310),
        ("Broca Intercambiável 20mm", "Furação", 1450),
        ("Broca de Centro HSS", "Furação", 85),
        ("Broca Escalonada 12mm", "Furação", 520),
    ],
    "Insertos": [
        ("Inserto CNMG 120408", "Torneamento", 48),
        ("Inserto WNMG 080408", "Torneamento", 52),
        ("Inserto de Rosca 16ER", "Rosqueamento", 65),
        ("Inserto APKT 1604", "Fresamento", 44),
    ],
    "Machos": [
        ("Macho M8 Máquina", "Rosqueamento", 120),
        ("Macho M12 Laminador", "Rosqueamento", 180),
        ("Macho M6 Helicoidal", "Rosqueamento", 95),
    ],
    "Suportes": [
        ("Suporte de Torneamento PCLNR", "Torneamento", 780),
        ("Mandril Hidráulico HSK63", "Fixação", 2900),
        ("Pinça ER32", "Fixação", 140),
        ("Cabeçote de Mandrilar", "Mandrilamento", 4200),
    ],
}

GRUPOS = ["Automotivo", "Agrícola", "Moldes e Matrizes", "Óleo e Gás", "Usinagem Geral"]
MAQUINARIOS = ["Centro de Usinagem Romi D800", "Torno CNC Mazak QT200", "Centro Horizontal DMG", "Torno Convencional"]
MATERIAIS = ["Aço 1045", "Aço Inox 304", "Ferro Fundido", "Alumínio 6061", "Aço Ferramenta H13"]
SERVICOS = ["Produção seriada", "Ferramentaria", "Manutenção", "Protótipos"]

# (status, range of days since last purchase)
PERFIS = [
    (models.ClienteStatusEnum.ativo.value, (1, 45)),
    (models.ClienteStatusEnum.ativo.value, (1, 30)),
    (models.ClienteStatusEnum.expansao.value, (5, 40)),
    (models.ClienteStatusEnum.teste.value, (20, 59)),
    (models.ClienteStatusEnum.contato.value, (61, 90)),
    (models.ClienteStatusEnum.inativo.value, (91, 240)),
]


# =============================================================================
# SEEDING
# =============================================================================

def seed_vendedores(db: Session) -> list:
    vendedores = []
    for data in VENDEDORES:
        vendedor = models.Vendedor(
            nome=data["nome"],
            email=data["email"],
            regiao_atuacao=data["regiao_atuacao"],
            meta_mensal=Decimal(data["meta_mensal"]),
            comissao_percentual=Decimal("3.50"),
            status="ativo",
            data_contratacao=date.today() - timedelta(days=random.randint(400, 2000)),
        )
        db.add(vendedor)
        vendedores.append(vendedor)
    db.flush()
    return vendedores


def seed_produtos(db: Session) -> list:
    produtos = []
    for familia, items in PRODUTOS.items():
        for nome, categoria, preco in items:
            produto = models.Produto(
                nome=nome,
                familia=familia,
                categoria=categoria,
                descricao=f"{nome} para {categoria.lower()}",
                preco_base=Decimal(preco),
            )
            db.add(produto)
            produtos.append(produto)
    db.flush()
    return produtos


def seed_clientes(db: Session, vendedores: list) -> list:
    today = date.today()
    clientes = []
    for vendedor in vendedores:
        for i in range(CLIENTS_PER_REGION):
            status, (min_days, max_days) = random.choice(PERFIS)
            potencial = Decimal(random.randrange(20_000, 400_000, 5_000))
            cliente = models.Cliente(
                nome=f"{random.choice(['Metalúrgica', 'Usinagem', 'Indústria', 'Ferramentaria'])} "
                     f"{vendedor.regiao_atuacao} {i + 1:02d}",
                grupo=random.choice(GRUPOS),
                potencial=potencial,
                entrada_pedidos=today - timedelta(days=random.randint(400, 1500)),
                orcamento_aberto=Decimal(random.randrange(0, 60_000, 500)),
                meta=potencial * Decimal("0.6"),
                ultima_compra=today - timedelta(days=random.randint(min_days, max_days)),
                ultima_visita=today - timedelta(days=random.randint(3, 120)),
                valor_testes=Decimal(random.randrange(0, 8_000, 250)),
                maquinario=random.choice(MAQUINARIOS),
                material_usinado=random.choice(MATERIAIS),
                tipo_servico=random.choice(SERVICOS),
                familia_produtos=random.choice(list(PRODUTOS)),
                status=status,
                regiao=vendedor.regiao_atuacao,
                vendedor_id=vendedor.id,
            )
            db.add(cliente)
            clientes.append(cliente)
    db.flush()
    return clientes


def seed_pedidos(db: Session, clientes: list, produtos: list) -> int:
    """Orders up to each client's ultima_compra, denser for high-potential clients."""
    count = 0
    history_start = date.today() - timedelta(days=ORDER_HISTORY_DAYS)
    for cliente in clientes:
        n_orders = max(2, int(float(cliente.potencial) / 25_000))
        growth = random.choice([0.7, 1.0, 1.3])
        span = max((cliente.ultima_compra - history_start).days, 1)
        order_days = sorted(random.randint(0, span) for _ in range(n_orders - 1)) + [span]
        for offset in order_days:
            data_pedido = history_start + timedelta(days=offset)
            produto = random.choice(produtos)
            # Recent quarter scaled by `growth` so trends vary
            factor = growth if (cliente.ultima_compra - data_pedido).days < 90 else 1.0
            quantidade = random.randint(2, 30)
            valor = Decimal(float(produto.preco_base) * quantidade * factor).quantize(Decimal("0.01"))
            db.add(models.Pedido(
                cliente_id=cliente.id,
                produto_id=produto.id,
                vendedor_id=cliente.vendedor_id,
                valor=valor,
                data_pedido=data_pedido,
                status=models.PedidoStatusEnum.concluido.value,
            ))
            count += 1
    return count


def seed(db: Session, force: bool = False) -> None:
    existing = db.query(models.Cliente).count()
    if existing and not force:
        logger.info(f"[SEED] {existing} clients already present, skipping (use --force)")
        return

    random.seed(RANDOM_SEED)
    vendedores = seed_vendedores(db)
    produtos = seed_produtos(db)
    clientes = seed_clientes(db, vendedores)
    pedidos = seed_pedidos(db, clientes, produtos)

    if not db.query(models.User).filter(models.User.email == DEMO_USER_EMAIL).first():
        db.add(models.User(email=DEMO_USER_EMAIL, nome="Demo MG Tools", role=models.RoleEnum.gerente.value))

    db.commit()
    logger.info(
        f"[SEED] Created {len(vendedores)} vendedores, {len(produtos)} produtos, "
        f"{len(clientes)} clientes, {pedidos} pedidos"
    )


def main():
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Seed NEXO demo data")
    parser.add_argument("--force", action="store_true", help="Insert even if clients already exist")
    args = parser.parse_args()

    with get_sync_session() as db:
        seed(db, force=args.force)


if __name__ == "__main__":
    main()
