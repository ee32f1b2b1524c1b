# grocery_pos/services/stock_service.py
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable
from ..models.order import OrderLine

class StockLedger:
    """Moves on-hand quantities for settled and reversed orders.

    All deltas of one order go to the store as one batch so a failure
    cannot leave some lines adjusted and others not.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def deltas_for(lines: Iterable[OrderLine], sign: int) -> Dict[int, Decimal]:
        """Sum line quantities per item, signed"""
        deltas: Dict[int, Decimal] = defaultdict(Decimal)
        for line in lines:
            deltas[line.item_id] += line.qty * sign
        return dict(deltas)

    async def apply(self, session, order_id: int, lines: Iterable[OrderLine], sign: int):
        deltas = self.deltas_for(lines, sign)
        updated = await session.adjust_stock(deltas)

        action = "decremented" if sign < 0 else "restored"
        self.logger.info(f"Stock {action} for order {order_id}: {len(deltas)} item(s)")

        # oversell is allowed, negative stock is only reported
        for row in updated:
            if row['quantity'] < 0:
                self.logger.warning(
                    f"Item {row['item_id']} stock is negative ({row['quantity']}) after order {order_id}"
                )

    async def decrement_for(self, session, order_id: int, lines: Iterable[OrderLine]):
        await self.apply(session, order_id, lines, -1)

    async def restore_for(self, session, order_id: int, lines: Iterable[OrderLine]):
        await self.apply(session, order_id, lines, 1)
