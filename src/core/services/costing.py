"""
Costing math and the two costing strategies.

Layer-pure: integers in, integers out. Rounding is applied only to the
final division of each formula, as floor(x + 1/2), so the same inputs give
the same figures whether they come from the fast path or from a replay.
"""

from dataclasses import dataclass
from typing import Protocol

from src.core.entities.inventory import InventoryAggregate, Lot


def div_round(numerator: int, denominator: int) -> int:
    """Integer division rounded half up (floor(n/d + 1/2)); d must be positive."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def weighted_average(
    current_avg: int, current_total: int, unit_price: int, quantity: int
) -> int:
    """Moving average after adding `quantity` units at `unit_price`."""
    new_total = current_total + quantity
    if new_total <= 0:
        return 0
    if current_total == 0:
        return unit_price
    return div_round(current_avg * current_total + unit_price * quantity, new_total)


def expense_per_unit(total_expenses: int, total_units: int) -> int:
    """Average expense per unit; 0 when nothing was purchased."""
    if total_units <= 0:
        return 0
    return div_round(total_expenses, total_units)


def profit_rate(sale_price: int, unit_cost: int) -> float:
    """Margin over cost as a percentage with two decimals; 0 for zero cost."""
    if unit_cost <= 0:
        return 0.0
    basis_points = div_round((sale_price - unit_cost) * 10000, unit_cost)
    return basis_points / 100


@dataclass(frozen=True)
class SaleFigures:
    """Derived figures of a sale against a cost basis."""

    profit: int
    profit_rate: float
    expenses: int


def sale_figures(
    sale_price: int, quantity: int, unit_cost: int, unit_expense: int
) -> SaleFigures:
    return SaleFigures(
        profit=(sale_price - unit_cost) * quantity,
        profit_rate=profit_rate(sale_price, unit_cost),
        expenses=unit_expense * quantity,
    )


def apply_purchase(
    aggregate: InventoryAggregate, quantity: int, unit_price: int, expenses: int = 0
) -> InventoryAggregate:
    """Return a copy of the aggregate with a purchase folded in."""
    new_total_purchased = aggregate.total_purchased + quantity
    new_total_expenses = aggregate.total_expenses + expenses
    return aggregate.model_copy(
        update={
            "quantity": aggregate.quantity + quantity,
            "avg_purchase_price": weighted_average(
                aggregate.avg_purchase_price,
                aggregate.total_purchased,
                unit_price,
                quantity,
            ),
            "total_purchased": new_total_purchased,
            "total_purchase_cost": aggregate.total_purchase_cost + unit_price * quantity,
            "total_expenses": new_total_expenses,
            "avg_expense_per_unit": expense_per_unit(
                new_total_expenses, new_total_purchased
            ),
        }
    )


@dataclass(frozen=True)
class CostBasis:
    """Unit cost and unit expense charged against a sale or withdrawal."""

    unit_cost: int
    unit_expense: int


class CostingStrategy(Protocol):
    """One variant per costing policy; never mixed on one item."""

    lot_id: int | None

    def cost_basis(self, quantity: int) -> CostBasis: ...


class AverageCosting:
    """Cost basis is the aggregate's running weighted average."""

    lot_id: int | None = None

    def __init__(self, aggregate: InventoryAggregate):
        self._aggregate = aggregate

    def cost_basis(self, quantity: int) -> CostBasis:
        return CostBasis(
            unit_cost=self._aggregate.avg_purchase_price,
            unit_expense=self._aggregate.avg_expense_per_unit,
        )


class LotCosting:
    """Cost basis is the recorded cost of one specific lot."""

    def __init__(self, lot: Lot):
        self._lot = lot
        self.lot_id = lot.id

    def cost_basis(self, quantity: int) -> CostBasis:
        return CostBasis(unit_cost=self._lot.unit_cost, unit_expense=self._lot.unit_expense)
