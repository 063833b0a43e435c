"""Reconcile Inventory Use Case: rebuild an aggregate from its ledger on demand."""

from src.application.dto.responses import InventoryResponse
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.inventory import InventoryAggregate

logger = get_logger(__name__)


class ReconcileInventoryUseCase(LedgerUseCase):
    """Repair drift between an aggregate and its ledger. Running it twice changes nothing."""

    async def execute(self, inventory_id: int) -> InventoryAggregate:
        logger.info("reconcile_started", inventory_id=inventory_id)
        engine = await self._get_engine()

        async with self._hold(inventory_id):
            aggregate = await engine.reconcile(inventory_id)

        logger.info(
            "reconcile_complete",
            inventory_id=inventory_id,
            quantity=aggregate.quantity,
            avg_purchase_price=aggregate.avg_purchase_price,
        )
        return aggregate

    def to_response(self, aggregate: InventoryAggregate) -> InventoryResponse:
        return InventoryResponse.from_entity(aggregate)
