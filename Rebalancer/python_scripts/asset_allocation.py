"""Read-only model of a portfolio allocation tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class StockHolding:
    symbol: str
    current_shares: Decimal
    target_shares: Decimal


@dataclass(frozen=True)
class GroupHolding:
    assets: Tuple["AssetAllocation", ...] = ()


Holding = Union[StockHolding, GroupHolding]


@dataclass(frozen=True)
class AssetAllocation:
    """A node of the allocation tree.

    ``expected_weight`` is relative to the parent's expected value. Group values
    are expected to be pre-aggregated from the children by whoever built the tree.
    """

    name: str
    expected_weight: Decimal
    current_value: Decimal
    target_value: Decimal
    holding: Holding
    buy_blocked: bool = False
    sell_blocked: bool = False

    @property
    def is_stock(self) -> bool:
        return isinstance(self.holding, StockHolding)

    @property
    def is_group(self) -> bool:
        return isinstance(self.holding, GroupHolding)

    def full_name(self) -> str:
        if isinstance(self.holding, StockHolding):
            return f"{self.name} ({self.holding.symbol})"
        return self.name


@dataclass(frozen=True)
class Portfolio:
    currency: str
    total_value: Decimal
    free_assets: Decimal
    min_free_assets: Decimal = Decimal(0)
    assets: Tuple[AssetAllocation, ...] = field(default_factory=tuple)
    as_of: Optional[datetime] = None


__all__ = ["StockHolding", "GroupHolding", "Holding", "AssetAllocation", "Portfolio"]
