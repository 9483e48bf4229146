"""Pytest configuration and fixtures."""

import os
from decimal import Decimal

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("FINANCE_API_URL", "http://localhost:8000")
os.environ.setdefault("FINANCE_API_TOKEN", "test-token")

from dre_engine.models import AccountNode, AccountType, PeriodSnapshot, ReportSummary  # noqa: E402


@pytest.fixture
def account_records():
    """Flat account-plan listing, children listed after their parents."""
    return [
        {"id": 1, "name": "Receita Bruta", "description": None, "parent_id": None, "type": 1},
        {"id": 2, "name": "Receita de Vendas", "description": None, "parent_id": 1, "type": 1},
        {"id": 3, "name": "Deduções da Receita Bruta", "description": None, "parent_id": 1, "type": 1},
        {"id": 4, "name": "Impostos sobre Vendas", "description": None, "parent_id": 3, "type": None},
        {"id": 5, "name": "Devoluções de Vendas", "description": None, "parent_id": 3, "type": None},
        {"id": 6, "name": "Custos (CMV/CSV)", "description": None, "parent_id": None, "type": 2},
        {"id": 7, "name": "Compras de Mercadorias", "description": None, "parent_id": 6, "type": None},
        {"id": 9, "name": "Despesas Operacionais", "description": None, "parent_id": None, "type": 2},
    ]


def make_tree(totals: dict[int, Decimal]) -> list[AccountNode]:
    """Root A (id=1) with child B (id=2), totals taken from ``totals``."""
    nodes = [
        AccountNode(id=1, name="A", type=AccountType.REVENUE, total=totals.get(1, Decimal("0"))),
    ]
    if 2 in totals:
        nodes[0].children.append(
            AccountNode(
                id=2,
                name="B",
                parent_id=1,
                type=AccountType.EXPENSE,
                total=totals[2],
            )
        )
    return nodes


@pytest.fixture
def january_snapshot():
    return PeriodSnapshot(
        period_key="2025-01",
        period_label="Jan 2025",
        tree=make_tree({1: Decimal("1000"), 2: Decimal("-400")}),
        summary=ReportSummary(
            gross_revenue=Decimal("1100"),
            deductions=Decimal("-100"),
            net_revenue=Decimal("1000"),
            cost_of_goods=Decimal("-400"),
            gross_profit=Decimal("600"),
            operating_expenses=Decimal("-200"),
            operating_profit=Decimal("400"),
            other_income_expenses=Decimal("0"),
            net_profit=Decimal("400"),
            gross_margin=Decimal("60"),
            operating_margin=Decimal("40"),
            net_margin=Decimal("40"),
        ),
    )


@pytest.fixture
def february_snapshot():
    return PeriodSnapshot(
        period_key="2025-02",
        period_label="Fev 2025",
        tree=make_tree({1: Decimal("1200"), 2: Decimal("-300")}),
        summary=ReportSummary(
            gross_revenue=Decimal("1300"),
            deductions=Decimal("-100"),
            net_revenue=Decimal("1200"),
            cost_of_goods=Decimal("-300"),
            gross_profit=Decimal("900"),
            operating_expenses=Decimal("-300"),
            operating_profit=Decimal("600"),
            other_income_expenses=Decimal("50"),
            net_profit=Decimal("650"),
            gross_margin=Decimal("75"),
            operating_margin=Decimal("50"),
            net_margin=Decimal("54.1666"),
        ),
    )


@pytest.fixture
def dre_payload():
    """Report body for one month, keyed roots out of order as the API sends them."""
    return {
        "success": True,
        "summary": {
            "receita_bruta": 2975000,
            "deducoes": -330000,
            "receita_liquida": 2645000,
            "cmv_csv": -1400000,
            "lucro_bruto": 1245000,
            "despesas_operacionais": -784500,
            "lucro_operacional": 460500,
            "outras_receitas_despesas": 17000,
            "lucro_liquido": 477500,
            "margem_bruta": 47.1,
            "margem_operacional": 17.4,
            "margem_liquida": 18.1,
        },
        "dre": {
            "0": {
                "id": 1,
                "name": "Receita Bruta",
                "description": None,
                "parent_id": None,
                "type": 1,
                "created_at": "2025-09-10T20:07:51.000000Z",
                "total": 2975000,
                "children": [
                    {
                        "id": 2,
                        "name": "Receita de Vendas",
                        "description": None,
                        "parent_id": 1,
                        "type": 1,
                        "total": 2975000,
                        "children": [],
                    }
                ],
            },
            "2": {
                "id": 9,
                "name": "Despesas Operacionais",
                "description": None,
                "parent_id": None,
                "type": 2,
                "total": -784500,
                "children": [],
            },
            "1": {
                "id": 6,
                "name": "Custos da Mercadoria/Serviço Vendido (CMV/CSV)",
                "description": None,
                "parent_id": None,
                "type": 2,
                "total": -355987.02,
                "children": [],
            },
        },
    }


@pytest.fixture
def tree_factory():
    """Build the two-node A/B tree with per-node totals."""
    return make_tree
