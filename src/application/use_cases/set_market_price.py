"""Set Market Price Use Case: record a price-feed value on an aggregate."""

from src.application.dto.requests import SetMarketPriceRequest
from src.application.dto.responses import InventoryResponse
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.inventory import InventoryAggregate

logger = get_logger(__name__)


class SetMarketPriceUseCase(LedgerUseCase):
    """
    Store the market price used to value stock on hand.

    Quantity and costs are untouched; replay never rewrites the price.
    """

    async def execute(
        self, inventory_id: int, request: SetMarketPriceRequest
    ) -> InventoryAggregate:
        inv_store = await self._get_inventory_store()

        async with self._hold(inventory_id):
            aggregate = await inv_store.set_market_price(inventory_id, request.market_price)

        logger.info(
            "market_price_updated",
            inventory_id=inventory_id,
            market_price=aggregate.market_price,
            avg_purchase_price=aggregate.avg_purchase_price,
        )
        return aggregate

    def to_response(self, aggregate: InventoryAggregate) -> InventoryResponse:
        return InventoryResponse.from_entity(aggregate)
