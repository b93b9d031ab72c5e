"""Render a portfolio allocation tree as a colorized text report.

Every node shows its current weight and value, the target it is being
rebalanced to (only when that differs from the current value) and the expected
weight assigned by the allocation policy. Weights are relative to the parent's
expected value, so the denominator shrinks as the tree is walked down.
"""

from __future__ import annotations

import logging
import sys
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, TextIO, Union

from colorama import Fore, Style

from Rebalancer.python_scripts.asset_allocation import (
    AssetAllocation,
    GroupHolding,
    Portfolio,
    StockHolding,
)

logger = logging.getLogger("rebalancer.formatting")

BULLET = "•"
ARROW = "→"
INFINITY_SYMBOL = "∞"
SHARES_SYMBOL = "s"

# Returned by get_weight() when the expected value is zero.
INFINITE_WEIGHT = Decimal("Infinity")

# Share counts are displayed as signed 32-bit integers.
MAX_SHARE_COUNT = 2 ** 31 - 1
MIN_SHARE_COUNT = -(2 ** 31)

Number = Union[Decimal, int, float, str]


class ShareCountError(ValueError):
    """Raised when a share count can't be represented as a display integer."""


class PlainStyler:
    """Leaves text unchanged. Used for ``--no-color`` output and in tests."""

    def name(self, text: str) -> str:
        return text

    def restriction(self, text: str) -> str:
        return text

    def buy(self, text: str) -> str:
        return text

    def sell(self, text: str) -> str:
        return text


class AnsiStyler(PlainStyler):
    """Wraps text in ANSI escape sequences via colorama."""

    def _paint(self, style: str, text: str) -> str:
        return f"{style}{text}{Style.RESET_ALL}"

    def name(self, text: str) -> str:
        return self._paint(Style.BRIGHT, text)

    def restriction(self, text: str) -> str:
        return self._paint(Fore.BLUE, text)

    def buy(self, text: str) -> str:
        return self._paint(Fore.GREEN, text)

    def sell(self, text: str) -> str:
        return self._paint(Fore.RED, text)


DEFAULT_STYLER = AnsiStyler()


def colorify_name(name: str) -> str:
    return DEFAULT_STYLER.name(name)


def colorify_restriction(message: str) -> str:
    return DEFAULT_STYLER.restriction(message)


def colorify_buy(message: str) -> str:
    return DEFAULT_STYLER.buy(message)


def colorify_sell(message: str) -> str:
    return DEFAULT_STYLER.sell(message)


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def get_weight(asset_value: Number, expected_total_value: Number) -> Decimal:
    """Return ``asset_value`` as a fraction of ``expected_total_value``.

    A zero denominator yields ``INFINITE_WEIGHT``: an asset that isn't expected
    to hold anything is shown as infinitely over-allocated.
    """
    asset_value = _to_decimal(asset_value)
    expected_total_value = _to_decimal(expected_total_value)

    if expected_total_value == 0:
        return INFINITE_WEIGHT
    return asset_value / expected_total_value


def format_weight(weight: Number) -> str:
    weight = _to_decimal(weight)
    if weight == INFINITE_WEIGHT:
        return INFINITY_SYMBOL

    percent = (weight * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{percent}%"


def format_cash(currency: str, amount: Number) -> str:
    """Format ``amount`` rounded to whole units with thousands separators.

    USD gets a ``$`` prefix, RUB a ``₽`` suffix and any other currency its code,
    e.g. ``"1,235 EUR"``.
    """
    rounded = int(_to_decimal(amount).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    value = f"{rounded:,}"

    if currency == "USD":
        return f"${value}"
    if currency == "RUB":
        return f"{value}₽"
    return f"{value} {currency}"


def format_shares(shares: int, with_sign: bool = False) -> str:
    if with_sign:
        return f"{shares:+}{SHARES_SYMBOL}"
    return f"{shares}{SHARES_SYMBOL}"


def to_share_count(shares: Number, asset_name: Optional[str] = None) -> int:
    """Truncate a decimal share count toward zero.

    Raises ``ShareCountError`` instead of silently misreporting a position when
    the count is not finite or doesn't fit the display range.
    """
    shares = _to_decimal(shares)
    label = f" of {asset_name}" if asset_name else ""

    if not shares.is_finite():
        raise ShareCountError(f"Invalid share count{label}: {shares}")

    count = int(shares)
    if not MIN_SHARE_COUNT <= count <= MAX_SHARE_COUNT:
        raise ShareCountError(f"Share count{label} is out of range: {shares}")
    return count


def render_asset(
    asset: AssetAllocation,
    expected_total_value: Decimal,
    currency: str,
    depth: int = 0,
    styler: Optional[PlainStyler] = None,
) -> List[str]:
    """Return report lines for ``asset`` and, for groups, all of its descendants."""
    styler = styler or DEFAULT_STYLER
    expected_value = expected_total_value * asset.expected_weight
    holding = asset.holding

    line = f"{BULLET:>{depth * 2 + 1}} {styler.name(asset.full_name())}"

    if asset.buy_blocked:
        line += f" {styler.restriction('[buy blocked]')}"
    if asset.sell_blocked:
        line += f" {styler.restriction('[sell blocked]')}"

    line += " -"

    if isinstance(holding, StockHolding):
        current_shares = to_share_count(holding.current_shares, asset.full_name())
        line += f" {format_shares(current_shares)}"

    current_weight = format_weight(get_weight(asset.current_value, expected_total_value))
    line += f" {current_weight} ({format_cash(currency, asset.current_value)})"

    if asset.target_value != asset.current_value:
        if isinstance(holding, StockHolding):
            colorify = styler.buy if holding.target_shares > holding.current_shares else styler.sell

            shares_change = (
                to_share_count(holding.target_shares, asset.full_name())
                - to_share_count(holding.current_shares, asset.full_name())
            )
            value_change = asset.target_value - asset.current_value

            changes = (
                f"{format_shares(shares_change, with_sign=True)} "
                f"({format_cash(currency, abs(value_change))})"
            )
            line += f" {colorify(changes)}"

        target_weight = format_weight(get_weight(asset.target_value, expected_total_value))
        line += f" {ARROW} {target_weight} ({format_cash(currency, asset.target_value)})"

    line += (
        f" / {format_weight(asset.expected_weight)}"
        f" ({format_cash(currency, expected_value)})"
    )

    logger.debug(f"Rendered {asset.full_name()} at depth {depth}")

    if isinstance(holding, GroupHolding):
        lines = [line + ":"]
        for sub_asset in holding.assets:
            lines.extend(render_asset(sub_asset, expected_value, currency, depth + 1, styler))
        return lines

    return [line]


def render_portfolio(portfolio: Portfolio, styler: Optional[PlainStyler] = None) -> List[str]:
    """Return the full tree report followed by the total value summary."""
    styler = styler or DEFAULT_STYLER
    currency = portfolio.currency
    expected_assets_value = portfolio.total_value - portfolio.min_free_assets

    lines: List[str] = []
    for asset in portfolio.assets:
        lines.extend(render_asset(asset, expected_assets_value, currency, 0, styler))

    lines.append("")
    lines.append(f"{styler.name('Total value')}: {format_cash(currency, portfolio.total_value)}")
    lines.append(f"{styler.name('Free assets')}: {format_cash(currency, portfolio.free_assets)}")

    logger.info(
        f"Rendered {len(portfolio.assets)} top-level assets in {len(lines)} lines, "
        f"expected assets value {expected_assets_value} {currency}"
    )
    return lines


def print_portfolio(
    portfolio: Portfolio,
    file: Optional[TextIO] = None,
    styler: Optional[PlainStyler] = None,
) -> None:
    # TODO: flat mode
    out = file or sys.stdout
    for line in render_portfolio(portfolio, styler):
        print(line, file=out)


__all__ = [
    "INFINITE_WEIGHT",
    "ShareCountError",
    "PlainStyler",
    "AnsiStyler",
    "colorify_name",
    "colorify_restriction",
    "colorify_buy",
    "colorify_sell",
    "get_weight",
    "format_weight",
    "format_cash",
    "format_shares",
    "to_share_count",
    "render_asset",
    "render_portfolio",
    "print_portfolio",
]
