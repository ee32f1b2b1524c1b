# grocery_pos/database/database.py
import asyncpg
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional
from ..config import Config
from ..errors import PersistenceFailure

STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class Database:
    """asyncpg pool plus transactional sessions for the billing tables"""

    def __init__(self, dsn: Optional[str] = None):
        self.dsn = dsn or Config.DATABASE_URL
        self.pool: Optional[asyncpg.Pool] = None
        self.logger = logging.getLogger(__name__)

    async def connect(self):
        """Open the pool and apply pending migrations"""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=Config.DB_POOL_MIN,
                max_size=Config.DB_POOL_MAX
            )

            await self._run_migrations()

            self.logger.info("Connected to database")
        except Exception as e:
            self.logger.error(f"Database connection failed: {e}")
            raise

    async def close(self):
        if self.pool:
            await self.pool.close()
            self.logger.info("Database connection closed")

    async def ping(self) -> bool:
        async with self.transaction() as session:
            return await session.ping()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["PostgresSession"]:
        """One atomic unit: commits when the block exits cleanly, rolls back otherwise"""
        if not self.pool:
            raise PersistenceFailure("Database is not connected")

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    yield PostgresSession(conn)
        except STORAGE_ERRORS as e:
            self.logger.error(f"Transaction rolled back: {e}", exc_info=True)
            raise PersistenceFailure(f"Storage failure: {e}") from e

    async def _run_migrations(self):
        """Apply *.sql files from migrations/ in name order, once each"""
        try:
            migrations_path = Path(__file__).parent / "migrations"

            async with self.pool.acquire() as conn:
                await conn.execute("""
                    CREATE TABLE IF NOT EXISTS migrations (
                        id SERIAL PRIMARY KEY,
                        name VARCHAR(255) NOT NULL,
                        applied_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                for migration_file in sorted(migrations_path.glob("*.sql")):
                    migration_name = migration_file.name

                    is_applied = await conn.fetchval(
                        "SELECT COUNT(*) FROM migrations WHERE name = $1",
                        migration_name
                    )

                    if not is_applied:
                        async with conn.transaction():
                            await conn.execute(migration_file.read_text())
                            await conn.execute(
                                "INSERT INTO migrations (name) VALUES ($1)",
                                migration_name
                            )

                        self.logger.info(f"Migration {migration_name} applied")

        except Exception as e:
            self.logger.error(f"Migrations failed: {e}")
            raise


class PostgresSession:
    """Queries bound to one connection inside an open transaction"""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def ping(self) -> bool:
        return await self.conn.fetchval("SELECT 1") == 1

    # ---- catalog / stock --------------------------------------------------

    async def fetch_items(self, item_ids: Iterable[int]) -> List[Dict[str, Any]]:
        rows = await self.conn.fetch("""
            SELECT item_id, name, cost, quantity
            FROM items
            WHERE item_id = ANY($1::int[])
        """, list(item_ids))
        return [dict(row) for row in rows]

    async def adjust_stock(self, deltas: Dict[int, Decimal]) -> List[Dict[str, Any]]:
        """Apply every per-item delta in a single statement, returning new quantities"""
        if not deltas:
            return []
        item_ids = sorted(deltas)
        # item rows are always locked in item_id order
        await self.conn.fetch("""
            SELECT item_id FROM items
            WHERE item_id = ANY($1::int[])
            ORDER BY item_id
            FOR UPDATE
        """, item_ids)
        rows = await self.conn.fetch("""
            UPDATE items AS i
            SET quantity = i.quantity + d.delta
            FROM unnest($1::int[], $2::numeric[]) AS d(item_id, delta)
            WHERE i.item_id = d.item_id
            RETURNING i.item_id, i.quantity
        """, item_ids, [deltas[i] for i in item_ids])
        return [dict(row) for row in rows]

    # ---- orders -------------------------------------------------------------

    async def insert_order(self, values: Dict[str, Any]) -> Dict[str, Any]:
        row = await self.conn.fetchrow("""
            INSERT INTO orders (
                customer_id, cashier_user_id, status, subtotal,
                discount_amount, tax_amount, total_amount, notes
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING *
        """,
            values.get('customer_id'),
            values['cashier_user_id'],
            values['status'],
            values['subtotal'],
            values['discount_amount'],
            values['tax_amount'],
            values['total_amount'],
            values.get('notes')
        )
        return dict(row)

    async def insert_order_lines(self, order_id: int, lines: List[Dict[str, Any]]) -> None:
        await self.conn.executemany("""
            INSERT INTO order_items (
                order_id, item_id, item_name_snapshot, qty, unit_price, line_total
            ) VALUES ($1, $2, $3, $4, $5, $6)
        """, [
            (order_id, line['item_id'], line['item_name_snapshot'],
             line['qty'], line['unit_price'], line['line_total'])
            for line in lines
        ])

    async def get_order(self, order_id: int, lock: bool = False) -> Optional[Dict[str, Any]]:
        """Read an order header; lock=True holds its row until the transaction ends"""
        query = "SELECT * FROM orders WHERE order_id = $1"
        if lock:
            query += " FOR UPDATE"
        row = await self.conn.fetchrow(query, order_id)
        return dict(row) if row else None

    async def get_order_lines(self, order_id: int) -> List[Dict[str, Any]]:
        rows = await self.conn.fetch("""
            SELECT item_id, item_name_snapshot, qty, unit_price, line_total
            FROM order_items
            WHERE order_id = $1
            ORDER BY order_item_id
        """, order_id)
        return [dict(row) for row in rows]

    async def set_order_status(self, order_id: int, status: str) -> None:
        await self.conn.execute("""
            UPDATE orders
            SET status = $1, updated_at = CURRENT_TIMESTAMP
            WHERE order_id = $2
        """, status, order_id)

    # ---- payments -----------------------------------------------------------

    async def insert_payment(self, order_id: int, method: str, amount: Decimal,
                             txn_ref: Optional[str]) -> Dict[str, Any]:
        row = await self.conn.fetchrow("""
            INSERT INTO payments (order_id, method, amount, txn_ref)
            VALUES ($1, $2, $3, $4)
            RETURNING *
        """, order_id, method, amount, txn_ref)
        return dict(row)

    async def get_payments(self, order_id: int) -> List[Dict[str, Any]]:
        rows = await self.conn.fetch("""
            SELECT * FROM payments
            WHERE order_id = $1
            ORDER BY payment_id
        """, order_id)
        return [dict(row) for row in rows]

    async def sum_payments(self, order_id: int) -> Decimal:
        return await self.conn.fetchval(
            "SELECT COALESCE(SUM(amount), 0) FROM payments WHERE order_id = $1",
            order_id
        )

    # ---- invoices -----------------------------------------------------------

    async def get_invoice(self, order_id: int) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow(
            "SELECT * FROM invoices WHERE order_id = $1", order_id
        )
        return dict(row) if row else None

    async def insert_invoice(self, order_id: int, invoice_number: str) -> bool:
        """Insert unless a row for the order exists; False means someone else won"""
        inserted = await self.conn.fetchval("""
            INSERT INTO invoices (order_id, invoice_number)
            VALUES ($1, $2)
            ON CONFLICT (order_id) DO NOTHING
            RETURNING invoice_id
        """, order_id, invoice_number)
        return inserted is not None


def create_database(dsn: Optional[str] = None):
    """Pick the store from the DSN: memory:// for the in-process one, else PostgreSQL"""
    dsn = dsn or Config.DATABASE_URL
    if not dsn:
        raise ValueError("No DATABASE_URL set in environment")
    if dsn.startswith("memory://"):
        from .memory import InMemoryDatabase
        return InMemoryDatabase()
    return Database(dsn)
