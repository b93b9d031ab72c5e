# python_scripts/portfolio_loader.py

# MARK: - Version 1.2
# MARK: - History
# - 1.0: Initial loader building the allocation tree from a JSON document.
# - 1.0 -> 1.1: Accept decimal strings and an optional as_of valuation date.
# - 1.1 -> 1.2: Reject NaN, Infinity and amounts too large to display.

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dateutil.parser import parse as parse_date
from jsonschema import validate, ValidationError

from Rebalancer.python_scripts.asset_allocation import (
    AssetAllocation,
    GroupHolding,
    Portfolio,
    StockHolding,
)

logger = logging.getLogger("rebalancer.portfolio_loader")

DECIMAL_PATTERN = r"^[+-]?(\d+(\.\d*)?|\.\d+)$"

# Amounts at or above 10**18 can't be rounded for display.
MAX_AMOUNT_EXPONENT = 17

AMOUNT: Dict[str, Any] = {
    "type": ["number", "string"],
    "pattern": DECIMAL_PATTERN,
}

PORTFOLIO_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "definitions": {
        "amount": AMOUNT,
        "asset": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "expected_weight": {"$ref": "#/definitions/amount"},
                "current_value": {"$ref": "#/definitions/amount"},
                "target_value": {"$ref": "#/definitions/amount"},
                "buy_blocked": {"type": "boolean"},
                "sell_blocked": {"type": "boolean"},
                "stock": {
                    "type": "object",
                    "properties": {
                        "symbol": {"type": "string", "minLength": 1},
                        "current_shares": {"$ref": "#/definitions/amount"},
                        "target_shares": {"$ref": "#/definitions/amount"},
                    },
                    "required": ["symbol", "current_shares", "target_shares"],
                },
                "group": {
                    "type": "array",
                    "items": {"$ref": "#/definitions/asset"},
                },
            },
            "required": ["name", "expected_weight", "current_value", "target_value"],
            "oneOf": [
                {"required": ["stock"], "not": {"required": ["group"]}},
                {"required": ["group"], "not": {"required": ["stock"]}},
            ],
        },
    },
    "properties": {
        "currency": {"type": "string", "minLength": 1},
        "total_value": {"$ref": "#/definitions/amount"},
        "free_assets": {"$ref": "#/definitions/amount"},
        "min_free_assets": {"$ref": "#/definitions/amount"},
        "as_of": {"type": "string"},
        "assets": {
            "type": "array",
            "items": {"$ref": "#/definitions/asset"},
        },
    },
    "required": ["currency", "total_value", "free_assets", "assets"],
}


class PortfolioFormatError(ValueError):
    """Raised when a portfolio document doesn't describe a valid allocation tree."""


def validate_portfolio_data(data: Any) -> None:
    try:
        validate(data, PORTFOLIO_SCHEMA)
    except ValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise PortfolioFormatError(f"Invalid portfolio at {path}: {e.message}") from e


def _parse_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise PortfolioFormatError(f"Invalid decimal value: {value!r}") from e

    if not result.is_finite():
        raise PortfolioFormatError(f"Non-finite decimal value: {value!r}")
    if result and result.adjusted() > MAX_AMOUNT_EXPONENT:
        raise PortfolioFormatError(f"Decimal value is out of range: {value!r}")
    return result


def _reject_constant(name: str):
    raise PortfolioFormatError(f"Unsupported JSON constant: {name}")


def _parse_as_of(value: Optional[str]):
    if value is None:
        return None
    try:
        return parse_date(value)
    except (ValueError, OverflowError) as e:
        raise PortfolioFormatError(f"Invalid as_of date: {value!r}") from e


def _parse_asset(data: Mapping[str, Any]) -> AssetAllocation:
    if "stock" in data:
        stock = data["stock"]
        holding = StockHolding(
            symbol=stock["symbol"],
            current_shares=_parse_decimal(stock["current_shares"]),
            target_shares=_parse_decimal(stock["target_shares"]),
        )
    else:
        holding = GroupHolding(tuple(_parse_asset(sub) for sub in data["group"]))

    return AssetAllocation(
        name=data["name"],
        expected_weight=_parse_decimal(data["expected_weight"]),
        current_value=_parse_decimal(data["current_value"]),
        target_value=_parse_decimal(data["target_value"]),
        holding=holding,
        buy_blocked=data.get("buy_blocked", False),
        sell_blocked=data.get("sell_blocked", False),
    )


def parse_portfolio(data: Mapping[str, Any]) -> Portfolio:
    """Validate ``data`` against ``PORTFOLIO_SCHEMA`` and build the allocation tree.

    Only the document structure is checked. Weights and values are taken as
    computed by the rebalancing step and are not normalized here.
    """
    validate_portfolio_data(data)

    return Portfolio(
        currency=data["currency"],
        total_value=_parse_decimal(data["total_value"]),
        free_assets=_parse_decimal(data["free_assets"]),
        min_free_assets=_parse_decimal(data.get("min_free_assets", 0)),
        assets=tuple(_parse_asset(asset) for asset in data["assets"]),
        as_of=_parse_as_of(data.get("as_of")),
    )


def _count_assets(assets) -> int:
    total = 0
    for asset in assets:
        total += 1
        if isinstance(asset.holding, GroupHolding):
            total += _count_assets(asset.holding.assets)
    return total


def load_portfolio(path: Union[str, Path]) -> Portfolio:
    path = Path(path)
    logger.info(f"Loading portfolio from {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(
                f, parse_float=Decimal, parse_int=Decimal, parse_constant=_reject_constant
            )
        except json.JSONDecodeError as e:
            raise PortfolioFormatError(f"{path} is not valid JSON: {e}") from e

    portfolio = parse_portfolio(data)
    logger.info(
        f"Loaded {_count_assets(portfolio.assets)} assets in {portfolio.currency}, "
        f"total value {portfolio.total_value}, as of {portfolio.as_of or 'unknown'}"
    )
    return portfolio


__all__ = [
    "PORTFOLIO_SCHEMA",
    "PortfolioFormatError",
    "validate_portfolio_data",
    "parse_portfolio",
    "load_portfolio",
]
