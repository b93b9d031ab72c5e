import sys
from decimal import Decimal
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

from Rebalancer.python_scripts.asset_allocation import (
    AssetAllocation,
    GroupHolding,
    Portfolio,
    StockHolding,
)


def stock(name, symbol, weight, current_value, target_value, current_shares, target_shares, **flags):
    return AssetAllocation(
        name=name,
        expected_weight=Decimal(weight),
        current_value=Decimal(current_value),
        target_value=Decimal(target_value),
        holding=StockHolding(symbol, Decimal(current_shares), Decimal(target_shares)),
        **flags,
    )


def group(name, weight, current_value, target_value, assets, **flags):
    return AssetAllocation(
        name=name,
        expected_weight=Decimal(weight),
        current_value=Decimal(current_value),
        target_value=Decimal(target_value),
        holding=GroupHolding(tuple(assets)),
        **flags,
    )


@pytest.fixture
def usd_portfolio():
    return Portfolio(
        currency="USD",
        total_value=Decimal("10000"),
        free_assets=Decimal("500"),
        min_free_assets=Decimal("500"),
        assets=(stock("Index Fund", "VOO", "1.0", "9000", "10000", "10", "12"),),
    )


@pytest.fixture
def nested_portfolio():
    return Portfolio(
        currency="RUB",
        total_value=Decimal("100000"),
        free_assets=Decimal("2000"),
        assets=(
            group("Stocks", "0.6", "58000", "60000", [
                stock("Total Market", "VTI", "0.5", "30000", "30000", "10", "10"),
                stock("Emerging Markets", "IEMG", "0.5", "28000", "30000", "7.9", "8",
                      sell_blocked=True),
            ]),
            group("Bonds", "0.4", "40000", "40000", [
                stock("Treasury", "TLT", "1.0", "40000", "38000", "10", "9.5",
                      buy_blocked=True),
            ]),
        ),
    )


@pytest.fixture
def portfolio_document():
    return {
        "currency": "EUR",
        "total_value": "5000",
        "free_assets": "250.5",
        "min_free_assets": "200",
        "as_of": "2025-03-26",
        "assets": [
            {
                "name": "Equities",
                "expected_weight": "1",
                "current_value": "4749.5",
                "target_value": "4749.5",
                "group": [
                    {
                        "name": "World",
                        "expected_weight": "0.75",
                        "current_value": "3600",
                        "target_value": "3600",
                        "stock": {"symbol": "IWDA", "current_shares": "40", "target_shares": "40"},
                    },
                    {
                        "name": "Small Caps",
                        "expected_weight": "0.25",
                        "current_value": "1149.5",
                        "target_value": "1149.5",
                        "buy_blocked": True,
                        "stock": {"symbol": "WSML", "current_shares": "121", "target_shares": "121"},
                    },
                ],
            },
        ],
    }
