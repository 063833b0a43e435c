"""Lot number allocation (L-YYYYMMDD-NNN)."""

from datetime import date

from src.config import get_logger
from src.core.entities.inventory import Lot
from src.core.exceptions import DatabaseError
from src.core.interfaces.inventory_store import IInventoryStore

logger = get_logger(__name__)


def day_prefix(prefix: str, day: date) -> str:
    return f"{prefix}-{day:%Y%m%d}-"


def next_lot_number(
    latest: str | None, prefix: str, day: date, digits: int = 3
) -> str:
    """Next number for the day: one past the highest existing sequence."""
    base = day_prefix(prefix, day)
    sequence = 1
    if latest and latest.startswith(base):
        tail = latest[len(base):]
        if tail.isdigit():
            sequence = int(tail) + 1
    return f"{base}{sequence:0{digits}d}"


class LotNumberAllocator:
    """Creates lots under fresh numbers, retrying on a number collision."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        prefix: str = "L",
        digits: int = 3,
        retries: int = 3,
    ):
        self._inventory = inventory_store
        self.prefix = prefix
        self.digits = digits
        self.retries = retries

    async def create_lot(self, lot: Lot) -> Lot:
        """Persist `lot` under the next free number for its purchase date."""
        last_error: DatabaseError | None = None

        for attempt in range(1, max(self.retries, 1) + 1):
            latest = await self._inventory.get_latest_lot_number(
                day_prefix(self.prefix, lot.purchase_date)
            )
            number = next_lot_number(
                latest, self.prefix, lot.purchase_date, self.digits
            )
            try:
                return await self._inventory.create_lot(
                    lot.model_copy(update={"lot_number": number})
                )
            except DatabaseError as e:
                last_error = e
                logger.warning(
                    "lot_number_conflict",
                    lot_number=number,
                    attempt=attempt,
                )

        assert last_error is not None
        raise last_error
