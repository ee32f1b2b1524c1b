# grocery_pos/services/cancellation_service.py
import logging
from ..errors import NotFound
from ..models.order import CancellationResult, OrderLine, OrderStatus
from .stock_service import StockLedger


class CancellationService:
    def __init__(self, db):
        self.db = db
        self.stock = StockLedger()
        self.logger = logging.getLogger(__name__)

    async def cancel_order(self, order_id: int) -> CancellationResult:
        """Cancel a DRAFT or PAID order; a PAID one gets its stock back.

        Takes the same order lock as payments. Cancelling an already
        cancelled order succeeds without changing anything.
        """
        async with self.db.transaction() as session:
            order = await session.get_order(order_id, lock=True)
            if not order:
                raise NotFound(order_id)

            previous = OrderStatus(order['status'])
            if previous == OrderStatus.CANCELLED:
                self.logger.info(f"Order {order_id} already cancelled")
                return CancellationResult(
                    order_id=order_id,
                    previous_status=previous,
                    stock_restored=False,
                )

            restored = previous == OrderStatus.PAID
            if restored:
                lines = [OrderLine.model_validate(l) for l in await session.get_order_lines(order_id)]
                await self.stock.restore_for(session, order_id, lines)

            await session.set_order_status(order_id, OrderStatus.CANCELLED.value)

        self.logger.info(f"Order {order_id} cancelled (was {previous.value})")
        return CancellationResult(
            order_id=order_id,
            previous_status=previous,
            stock_restored=restored,
        )
