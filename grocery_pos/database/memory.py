# grocery_pos/database/memory.py
import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Set
from ..errors import PersistenceFailure


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryDatabase:
    """Process-local store with the same session contract as Database.

    Order locks are per-order asyncio.Lock objects held until the
    transaction ends. Writes are applied in place and undone in reverse
    order when the transaction block raises.
    """

    def __init__(self):
        self.items: Dict[int, Dict[str, Any]] = {}
        self.orders: Dict[int, Dict[str, Any]] = {}
        self.order_lines: Dict[int, List[Dict[str, Any]]] = {}
        self.payments: List[Dict[str, Any]] = []
        self.invoices: Dict[int, Dict[str, Any]] = {}
        self._order_ids = itertools.count(1)
        self._payment_ids = itertools.count(1)
        self._order_locks: Dict[int, asyncio.Lock] = {}
        self._failures: Set[str] = set()
        self.logger = logging.getLogger(__name__)

    async def connect(self):
        self.logger.info("Using in-memory store")

    async def close(self):
        pass

    async def ping(self) -> bool:
        async with self.transaction() as session:
            return await session.ping()

    def add_item(self, item_id: int, name: str, cost: Decimal, quantity: Decimal = Decimal(0)):
        """Seed a catalog item"""
        self.items[item_id] = {
            'item_id': item_id,
            'name': name,
            'cost': Decimal(cost),
            'quantity': Decimal(quantity),
        }

    def stock_of(self, item_id: int) -> Decimal:
        return self.items[item_id]['quantity']

    def fail_next(self, operation: str):
        """Make the next call of a session operation raise PersistenceFailure"""
        self._failures.add(operation)

    def _check_failure(self, operation: str):
        if operation in self._failures:
            self._failures.discard(operation)
            raise PersistenceFailure(f"Storage failure during {operation}")

    def _lock_for(self, order_id: int) -> asyncio.Lock:
        if order_id not in self._order_locks:
            self._order_locks[order_id] = asyncio.Lock()
        return self._order_locks[order_id]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemorySession"]:
        session = InMemorySession(self)
        try:
            yield session
        except BaseException:
            session.rollback()
            raise
        finally:
            session.release_locks()


class InMemorySession:
    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self._undo: List[Callable[[], None]] = []
        self._held: List[asyncio.Lock] = []

    async def _io(self, operation: str):
        # yield like a driver round-trip so concurrent sessions interleave
        await asyncio.sleep(0)
        self.db._check_failure(operation)

    def rollback(self):
        while self._undo:
            self._undo.pop()()

    def release_locks(self):
        while self._held:
            self._held.pop().release()

    async def ping(self) -> bool:
        await self._io('ping')
        return True

    async def fetch_items(self, item_ids: Iterable[int]) -> List[Dict[str, Any]]:
        await self._io('fetch_items')
        return [dict(self.db.items[i]) for i in set(item_ids) if i in self.db.items]

    async def adjust_stock(self, deltas: Dict[int, Decimal]) -> List[Dict[str, Any]]:
        await self._io('adjust_stock')
        updated = []
        for item_id, delta in deltas.items():
            item = self.db.items.get(item_id)
            if item is None:
                continue
            item['quantity'] += delta
            self._undo.append(lambda item=item, delta=delta: item.__setitem__('quantity', item['quantity'] - delta))
            updated.append({'item_id': item_id, 'quantity': item['quantity']})
        return updated

    async def insert_order(self, values: Dict[str, Any]) -> Dict[str, Any]:
        await self._io('insert_order')
        order_id = next(self.db._order_ids)
        row = {
            'order_id': order_id,
            'customer_id': values.get('customer_id'),
            'cashier_user_id': values['cashier_user_id'],
            'status': values['status'],
            'subtotal': values['subtotal'],
            'discount_amount': values['discount_amount'],
            'tax_amount': values['tax_amount'],
            'total_amount': values['total_amount'],
            'notes': values.get('notes'),
            'created_at': _now(),
            'updated_at': None,
        }
        self.db.orders[order_id] = row
        self._undo.append(lambda: self.db.orders.pop(order_id, None))
        return dict(row)

    async def insert_order_lines(self, order_id: int, lines: List[Dict[str, Any]]) -> None:
        await self._io('insert_order_lines')
        self.db.order_lines[order_id] = [dict(line) for line in lines]
        self._undo.append(lambda: self.db.order_lines.pop(order_id, None))

    async def get_order(self, order_id: int, lock: bool = False) -> Optional[Dict[str, Any]]:
        if lock and order_id in self.db.orders:
            order_lock = self.db._lock_for(order_id)
            if order_lock not in self._held:
                await order_lock.acquire()
                self._held.append(order_lock)
        await self._io('get_order')
        row = self.db.orders.get(order_id)
        return dict(row) if row else None

    async def get_order_lines(self, order_id: int) -> List[Dict[str, Any]]:
        await self._io('get_order_lines')
        return [dict(line) for line in self.db.order_lines.get(order_id, [])]

    async def set_order_status(self, order_id: int, status: str) -> None:
        await self._io('set_order_status')
        row = self.db.orders[order_id]
        previous = (row['status'], row['updated_at'])
        row['status'] = status
        row['updated_at'] = _now()

        def undo():
            row['status'], row['updated_at'] = previous
        self._undo.append(undo)

    async def insert_payment(self, order_id: int, method: str, amount: Decimal,
                             txn_ref: Optional[str]) -> Dict[str, Any]:
        await self._io('insert_payment')
        row = {
            'payment_id': next(self.db._payment_ids),
            'order_id': order_id,
            'method': method,
            'amount': amount,
            'txn_ref': txn_ref,
            'created_at': _now(),
        }
        self.db.payments.append(row)
        self._undo.append(lambda: self.db.payments.remove(row))
        return dict(row)

    async def get_payments(self, order_id: int) -> List[Dict[str, Any]]:
        await self._io('get_payments')
        return [dict(p) for p in self.db.payments if p['order_id'] == order_id]

    async def sum_payments(self, order_id: int) -> Decimal:
        await self._io('sum_payments')
        return sum((p['amount'] for p in self.db.payments if p['order_id'] == order_id), Decimal(0))

    async def get_invoice(self, order_id: int) -> Optional[Dict[str, Any]]:
        await self._io('get_invoice')
        row = self.db.invoices.get(order_id)
        return dict(row) if row else None

    async def insert_invoice(self, order_id: int, invoice_number: str) -> bool:
        await self._io('insert_invoice')
        if order_id in self.db.invoices:
            return False
        self.db.invoices[order_id] = {
            'order_id': order_id,
            'invoice_number': invoice_number,
            'created_at': _now(),
        }
        self._undo.append(lambda: self.db.invoices.pop(order_id, None))
        return True
