"""Tests for dashboard KPIs and the catalog listings.

REFERENCES:
  - nexo/services/dashboard_service.py
  - nexo/tests/conftest.py: seeded_db dataset
  - nexo/routers/dashboard.py
  - nexo/routers/catalog.py
"""

import re
from datetime import date, timedelta
from decimal import Decimal

import pytest

from nexo import models
from nexo.agent.exceptions import SalespersonNotFoundError
from nexo.services.dashboard_service import DashboardService, resolve_window


TODAY = date.today()


@pytest.fixture
def equipe(seeded_db):
    """
    Two salespeople on top of seeded_db.

    Carlos (target 20k, 5% commission) owns Alfa and its three orders, all
    completed, plus a pending 9000 order 3 days ago. Ana has no orders.
    """
    carlos = seeded_db.query(models.Vendedor).filter_by(nome="Carlos Mendes").one()
    carlos.meta_mensal = Decimal("20000")
    carlos.comissao_percentual = Decimal("5")
    ana = models.Vendedor(nome="Ana Souza", email="ana@mgtools.com.br", regiao_atuacao="Sudeste")
    seeded_db.add(ana)

    alfa = seeded_db.query(models.Cliente).filter_by(nome="Metalúrgica Alfa").one()
    for pedido in alfa.pedidos:
        pedido.vendedor_id = carlos.id
        pedido.status = models.PedidoStatusEnum.concluido.value
    seeded_db.add(models.Pedido(
        cliente_id=alfa.id, vendedor_id=carlos.id, valor=Decimal("9000"),
        data_pedido=TODAY - timedelta(days=3), status=models.PedidoStatusEnum.pendente.value,
    ))
    seeded_db.commit()
    return carlos, ana


class TestResolveWindow:

    def test_preset_period(self):
        window = resolve_window("30d", today=date(2026, 6, 30))

        assert window.inicio == date(2026, 5, 31)
        assert window.fim == date(2026, 6, 30)
        assert window.anterior_fim == date(2026, 5, 30)
        assert window.anterior_inicio == date(2026, 5, 1)

    def test_one_year(self):
        window = resolve_window("1y", today=date(2026, 6, 30))
        assert window.inicio == date(2025, 6, 30)

    def test_leap_day_one_year(self):
        window = resolve_window("1y", today=date(2028, 2, 29))
        assert window.inicio == date(2027, 2, 28)

    def test_custom_range_takes_precedence(self):
        window = resolve_window("7d", date(2026, 3, 1), date(2026, 3, 10), today=date(2026, 6, 30))

        assert (window.inicio, window.fim) == (date(2026, 3, 1), date(2026, 3, 10))
        assert (window.anterior_inicio, window.anterior_fim) == (date(2026, 2, 19), date(2026, 2, 28))

    def test_inverted_range(self):
        with pytest.raises(ValueError):
            resolve_window(None, date(2026, 3, 10), date(2026, 3, 1))


class TestDashboardService:

    def test_kpis(self, seeded_db):
        kpis = DashboardService(seeded_db, today=TODAY).get_kpis("30d")

        assert kpis["totalClientes"] == 4
        assert kpis["clientesAtivos"] == 2
        assert kpis["clientesInativos"] == 3
        assert kpis["cotacoesAbertas"] == 17500.0
        assert kpis["receitaMensal"] == 8000.0
        assert kpis["receitaAnterior"] == 2000.0

    def test_top_products_share(self, seeded_db):
        kpis = DashboardService(seeded_db, today=TODAY).get_kpis("30d")

        assert kpis["topProdutos"] == [
            {"nome": "Fresa de Topo 10mm", "valor": 5000.0, "percentual": 62.5},
            {"nome": "Broca Metal Duro 8mm", "valor": 3000.0, "percentual": 37.5},
        ]
        assert kpis["topClientes"] == [{"nome": "Metalúrgica Alfa", "valor": 8000.0}]

    def test_empty_period(self, test_db_session):
        kpis = DashboardService(test_db_session, today=TODAY).get_kpis("7d")

        assert kpis["totalClientes"] == 0
        assert kpis["receitaMensal"] == 0.0
        assert kpis["topProdutos"] == []


class TestSalesBySalesperson:

    def test_only_completed_orders_in_window(self, seeded_db, equipe):
        result = DashboardService(seeded_db, today=TODAY).sales_by_salesperson("30d")

        assert result == [
            {"vendedor": "Ana Souza", "vendas": 0.0},
            {"vendedor": "Carlos Mendes", "vendas": 8000.0},
        ]

    def test_wider_window(self, seeded_db, equipe):
        result = DashboardService(seeded_db, today=TODAY).sales_by_salesperson("90d")

        assert result[1] == {"vendedor": "Carlos Mendes", "vendas": 10000.0}


class TestRevenueEvolution:

    def test_daily_points_are_zero_filled(self, seeded_db):
        serie = DashboardService(seeded_db, today=TODAY).revenue_evolution("30d")

        assert len(serie) == 31
        assert serie[0]["data"] == (TODAY - timedelta(days=30)).isoformat()
        assert serie[-1] == {"data": TODAY.isoformat(), "receita": 0.0}
        por_data = {p["data"]: p["receita"] for p in serie}
        assert por_data[(TODAY - timedelta(days=10)).isoformat()] == 5000.0
        assert por_data[(TODAY - timedelta(days=20)).isoformat()] == 3000.0
        assert sum(por_data.values()) == 8000.0

    def test_weekly_buckets(self, seeded_db):
        serie = DashboardService(seeded_db, today=TODAY).revenue_evolution("90d")

        assert all(re.fullmatch(r"\d{4}-S\d{2}", p["data"]) for p in serie)
        assert len(serie) == 4
        assert sum(p["receita"] for p in serie) == 14000.0

    def test_monthly_buckets(self, seeded_db):
        serie = DashboardService(seeded_db, today=TODAY).revenue_evolution("1y")

        assert all(re.fullmatch(r"\d{4}-\d{2}", p["data"]) for p in serie)
        assert [p["data"] for p in serie] == sorted(p["data"] for p in serie)
        assert sum(p["receita"] for p in serie) == 15000.0

    def test_custom_range(self, seeded_db):
        inicio = TODAY - timedelta(days=12)

        serie = DashboardService(seeded_db, today=TODAY).revenue_evolution(None, inicio, TODAY)

        assert len(serie) == 13
        assert sum(p["receita"] for p in serie) == 5000.0


class TestSalespersonPerformance:

    def test_performance(self, seeded_db, equipe):
        carlos, _ = equipe

        result = DashboardService(seeded_db, today=TODAY).salesperson_performance(carlos.id)

        assert result["vendedor"] == {
            "id": carlos.id,
            "nome": "Carlos Mendes",
            "email": "carlos@mgtools.com.br",
            "regiao_atuacao": "Sul",
        }
        assert result["performance"] == {
            "vendas_totais": 10000.0,
            "meta_mensal": 20000.0,
            "atingimento_meta": 50.0,
            "comissao_estimada": 500.0,
            "clientes_ativos": 1,
            "total_pedidos": 3,
        }

    def test_without_target_or_orders(self, seeded_db, equipe):
        _, ana = equipe

        performance = DashboardService(seeded_db, today=TODAY).salesperson_performance(ana.id)["performance"]

        assert performance["vendas_totais"] == 0.0
        assert performance["atingimento_meta"] == 0.0
        assert performance["total_pedidos"] == 0

    def test_unknown_salesperson(self, seeded_db):
        with pytest.raises(SalespersonNotFoundError):
            DashboardService(seeded_db, today=TODAY).salesperson_performance(9999)


class TestDashboardRoute:

    def test_kpis_endpoint(self, client, auth_headers):
        response = client.get("/api/dashboard/kpis?periodo=30d", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["receitaMensal"] == 8000.0
        assert body["periodo"]["fim"] == TODAY.isoformat()

    def test_custom_range(self, client, auth_headers):
        inicio = (TODAY - timedelta(days=50)).isoformat()
        fim = (TODAY - timedelta(days=40)).isoformat()

        response = client.get(
            f"/api/dashboard/kpis?data_inicio={inicio}&data_fim={fim}", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["receitaMensal"] == 2000.0

    def test_inverted_range_is_400(self, client, auth_headers):
        inicio = TODAY.isoformat()
        fim = (TODAY - timedelta(days=5)).isoformat()

        response = client.get(
            f"/api/dashboard/kpis?data_inicio={inicio}&data_fim={fim}", headers=auth_headers
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_unknown_period_is_400(self, client, auth_headers):
        response = client.get("/api/dashboard/kpis?periodo=2w", headers=auth_headers)

        assert response.status_code == 400

    def test_requires_auth(self, client):
        assert client.get("/api/dashboard/kpis").status_code == 401

    def test_sales_by_salesperson_endpoint(self, client, auth_headers, equipe):
        response = client.get("/api/dashboard/vendas-por-vendedor?periodo=30d", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == [
            {"vendedor": "Ana Souza", "vendas": 0.0},
            {"vendedor": "Carlos Mendes", "vendas": 8000.0},
        ]

    def test_revenue_evolution_endpoint(self, client, auth_headers):
        response = client.get("/api/dashboard/evolucao-receita?periodo=7d", headers=auth_headers)

        assert response.status_code == 200
        serie = response.json()
        assert len(serie) == 8
        assert all(p["receita"] == 0.0 for p in serie)

    def test_revenue_evolution_inverted_range_is_400(self, client, auth_headers):
        inicio = TODAY.isoformat()
        fim = (TODAY - timedelta(days=5)).isoformat()

        response = client.get(
            f"/api/dashboard/evolucao-receita?data_inicio={inicio}&data_fim={fim}", headers=auth_headers
        )

        assert response.status_code == 400


class TestCatalogRoutes:

    def test_list_clients_by_name(self, client, auth_headers):
        response = client.get("/api/clientes", headers=auth_headers)

        assert response.status_code == 200
        nomes = [c["nome"] for c in response.json()]
        assert nomes == sorted(nomes)
        assert len(nomes) == 4

    def test_get_client(self, client, auth_headers):
        clientes = client.get("/api/clientes", headers=auth_headers).json()
        alfa = next(c for c in clientes if c["nome"] == "Metalúrgica Alfa")

        response = client.get(f"/api/clientes/{alfa['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["potencial"] == 300000.0

    def test_missing_client_is_404(self, client, auth_headers):
        response = client.get("/api/clientes/9999", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Cliente não encontrado: 9999"}

    def test_list_products(self, client, auth_headers):
        response = client.get("/api/produtos", headers=auth_headers)

        assert response.status_code == 200
        assert [p["nome"] for p in response.json()] == [
            "Broca Metal Duro 8mm",
            "Fresa de Topo 10mm",
            "Inserto CNMG 120408",
        ]

    def test_list_orders_newest_first_with_names(self, client, auth_headers):
        response = client.get("/api/pedidos", headers=auth_headers)

        assert response.status_code == 200
        pedidos = response.json()
        assert len(pedidos) == 5
        assert [p["valor"] for p in pedidos] == [5000.0, 3000.0, 2000.0, 4000.0, 1000.0]
        assert pedidos[0]["cliente"] == {"nome": "Metalúrgica Alfa"}
        assert pedidos[0]["produto"] == {"nome": "Fresa de Topo 10mm"}
        assert pedidos[0]["vendedor"] is None
        assert pedidos[0]["data_pedido"] == (TODAY - timedelta(days=10)).isoformat()

    def test_list_salespeople_by_name(self, client, auth_headers, equipe):
        response = client.get("/api/vendedores", headers=auth_headers)

        assert response.status_code == 200
        vendedores = response.json()
        assert [v["nome"] for v in vendedores] == ["Ana Souza", "Carlos Mendes"]
        assert vendedores[1]["meta_mensal"] == 20000.0

    def test_get_salesperson(self, client, auth_headers, equipe):
        carlos, _ = equipe

        response = client.get(f"/api/vendedores/{carlos.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "carlos@mgtools.com.br"

    def test_missing_salesperson_is_404(self, client, auth_headers):
        response = client.get("/api/vendedores/9999", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Vendedor não encontrado: 9999"}

    def test_salesperson_performance(self, client, auth_headers, equipe):
        carlos, _ = equipe

        response = client.get(f"/api/vendedores/{carlos.id}/performance", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["vendedor"]["nome"] == "Carlos Mendes"
        assert body["performance"]["atingimento_meta"] == 50.0
        assert body["performance"]["comissao_estimada"] == 500.0

    def test_performance_of_missing_salesperson_is_404(self, client, auth_headers):
        response = client.get("/api/vendedores/9999/performance", headers=auth_headers)

        assert response.status_code == 404

    def test_catalog_requires_auth(self, client):
        assert client.get("/api/pedidos").status_code == 401
        assert client.get("/api/vendedores").status_code == 401
