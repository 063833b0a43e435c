"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.compensation import CompensationPlan
from src.core.services.costing import (
    AverageCosting,
    CostBasis,
    CostingStrategy,
    LotCosting,
    SaleFigures,
    apply_purchase,
    div_round,
    expense_per_unit,
    profit_rate,
    sale_figures,
    weighted_average,
)
from src.core.services.costing_resolver import CostingResolver
from src.core.services.locks import (
    KeyedLock,
    get_folder_locks,
    get_inventory_locks,
    reset_inventory_locks,
)
from src.core.services.lot_numbers import LotNumberAllocator, next_lot_number
from src.core.services.reconciliation import ReconciliationEngine, ReplayPlan

__all__ = [
    # Costing
    "AverageCosting",
    "CostBasis",
    "CostingStrategy",
    "LotCosting",
    "SaleFigures",
    "apply_purchase",
    "div_round",
    "expense_per_unit",
    "profit_rate",
    "sale_figures",
    "weighted_average",
    "CostingResolver",
    # Lots
    "LotNumberAllocator",
    "next_lot_number",
    # Reconciliation
    "ReconciliationEngine",
    "ReplayPlan",
    # Concurrency
    "KeyedLock",
    "get_folder_locks",
    "get_inventory_locks",
    "reset_inventory_locks",
    "CompensationPlan",
]
