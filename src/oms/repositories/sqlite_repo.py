from __future__ import annotations

import shutil
import sqlite3
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterable, Optional
from uuid import UUID

from oms.domain.errors import (
    InvalidOrderRequestError,
    MalformedPersistedStateError,
    NotFoundError,
    ReferentialInconsistencyError,
)
from oms.domain.models import (
    STATUS_COMPLETED,
    STATUS_CREATED,
    STATUS_IN_PROGRESS,
    OrderCreateRequest,
    OrderDetail,
    OrderItemDetail,
    OrderStatus,
    OrderSummary,
    Product,
    Service,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_db_ts(value: datetime) -> str:
    # naive datetimes are taken as UTC already
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(sep=" ", timespec="microseconds")


def _from_db_ts(value: str) -> datetime:
    return datetime.fromisoformat(str(value)).replace(tzinfo=timezone.utc)


def _money(value) -> Decimal:
    return Decimal(str(value))


def _placeholders(n: int) -> str:
    return ",".join("?" * n)


class SqliteRepository:
    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        migrations = [
            (1, self._migration_v1_base),
            (2, self._migration_v2_seed_statuses),
        ]

        conn = self._conn()
        backup_path = None
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            pending = [(version, migration) for version, migration in migrations if version > current_version]
            if not pending:
                conn.commit()
                return

            # nothing has been written to the main file yet, the copy is the pre-migration state
            backup_path = self._create_pre_migration_backup()
            for version, migration in pending:
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S%f')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS order_status (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS service (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL
        )
        """
        )

        # amounts are kept as text so they round-trip through Decimal unchanged
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS product (
            id TEXT PRIMARY KEY,
            service_id TEXT NOT NULL,
            name TEXT NOT NULL,
            unit_cost TEXT NOT NULL CHECK(CAST(unit_cost AS REAL) >= 0),
            unit_price TEXT NOT NULL CHECK(CAST(unit_price AS REAL) >= 0),
            FOREIGN KEY(service_id) REFERENCES service(id)
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS orders (
            id TEXT PRIMARY KEY,
            reseller_id TEXT NOT NULL,
            customer_id TEXT NOT NULL,
            status_id TEXT NOT NULL,
            created_date TEXT NOT NULL,
            FOREIGN KEY(status_id) REFERENCES order_status(id)
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS order_item (
            id TEXT PRIMARY KEY,
            order_id TEXT NOT NULL,
            product_id TEXT NOT NULL,
            service_id TEXT NOT NULL,
            quantity INTEGER CHECK(quantity IS NULL OR quantity > 0),
            FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE,
            FOREIGN KEY(product_id) REFERENCES product(id),
            FOREIGN KEY(service_id) REFERENCES service(id)
        )
        """
        )

        cur.execute("CREATE INDEX IF NOT EXISTS idx_orders_created ON orders(created_date)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_order_item_order ON order_item(order_id)")

    def _migration_v2_seed_statuses(self, cur: sqlite3.Cursor) -> None:
        for name in (STATUS_CREATED, STATUS_IN_PROGRESS, STATUS_COMPLETED):
            cur.execute(
                "INSERT OR IGNORE INTO order_status (id, name) VALUES (?, ?)",
                (str(uuid.uuid4()), name),
            )

    # ---------- Reference data ----------
    def add_status(self, name: str) -> UUID:
        status_id = uuid.uuid4()
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("INSERT INTO order_status (id, name) VALUES (?, ?)", (str(status_id), name))
            conn.commit()
        finally:
            conn.close()
        return status_id

    def list_statuses(self) -> list[OrderStatus]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT id, name FROM order_status ORDER BY name")
        rows = cur.fetchall()
        conn.close()
        return [OrderStatus(id=UUID(r[0]), name=str(r[1])) for r in rows]

    def get_status_by_name(self, name: str) -> Optional[OrderStatus]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT id, name FROM order_status WHERE name = ?", (name,))
        r = cur.fetchone()
        conn.close()
        if not r:
            return None
        return OrderStatus(id=UUID(r[0]), name=str(r[1]))

    def status_exists(self, status_id: UUID) -> bool:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT 1 FROM order_status WHERE id = ? LIMIT 1", (str(status_id),))
        row = cur.fetchone()
        conn.close()
        return row is not None

    def add_service(self, name: str) -> UUID:
        service_id = uuid.uuid4()
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("INSERT INTO service (id, name) VALUES (?, ?)", (str(service_id), name))
            conn.commit()
        finally:
            conn.close()
        return service_id

    def get_service_by_id(self, service_id: UUID) -> Optional[Service]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT id, name FROM service WHERE id = ?", (str(service_id),))
        r = cur.fetchone()
        conn.close()
        if not r:
            return None
        return Service(id=UUID(r[0]), name=str(r[1]))

    def add_product(self, service_id: UUID, name: str, unit_cost: Decimal, unit_price: Decimal) -> UUID:
        product_id = uuid.uuid4()
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO product (id, service_id, name, unit_cost, unit_price)
                VALUES (?, ?, ?, ?, ?)
            """,
                (str(product_id), str(service_id), name, str(unit_cost), str(unit_price)),
            )
            conn.commit()
        finally:
            conn.close()
        return product_id

    def list_products(self) -> list[Product]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, service_id, name, unit_cost, unit_price
            FROM product
            ORDER BY name
        """
        )
        rows = cur.fetchall()
        conn.close()
        return [
            Product(
                id=UUID(r[0]),
                service_id=UUID(r[1]),
                name=str(r[2]),
                unit_cost=_money(r[3]),
                unit_price=_money(r[4]),
            )
            for r in rows
        ]

    def all_products_exist(self, product_ids: Iterable[UUID]) -> bool:
        wanted = {str(pid) for pid in product_ids}
        if not wanted:
            return True
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            f"SELECT COUNT(*) FROM product WHERE id IN ({_placeholders(len(wanted))})",
            tuple(wanted),
        )
        found = int(cur.fetchone()[0])
        conn.close()
        return found == len(wanted)

    # ---------- Orders ----------
    def order_exists(self, order_id: UUID) -> bool:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT 1 FROM orders WHERE id = ? LIMIT 1", (str(order_id),))
        row = cur.fetchone()
        conn.close()
        return row is not None

    def list_orders(self, status_name: Optional[str] = None) -> list[OrderSummary]:
        sql = """
            SELECT o.id, o.reseller_id, o.customer_id, o.status_id, s.name, o.created_date,
                   i.id, i.quantity, p.unit_cost, p.unit_price
            FROM orders o
            JOIN order_status s ON s.id = o.status_id
            LEFT JOIN order_item i ON i.order_id = o.id
            LEFT JOIN product p ON p.id = i.product_id
        """
        params: tuple = ()
        if status_name is not None:
            sql += " WHERE s.name = ?"
            params = (status_name,)
        sql += " ORDER BY o.created_date DESC, o.id ASC"

        conn = self._conn()
        cur = conn.cursor()
        cur.execute(sql, params)
        rows = cur.fetchall()
        conn.close()

        headers: dict[str, tuple] = {}
        totals: dict[str, list] = {}
        for r in rows:
            oid = str(r[0])
            if oid not in headers:
                headers[oid] = r[:6]
                totals[oid] = [0, Decimal("0"), Decimal("0")]
            item_id = r[6]
            if item_id is None:
                continue
            qty = self._require_quantity(item_id, r[7])
            acc = totals[oid]
            acc[0] += 1
            acc[1] += qty * _money(r[8])
            acc[2] += qty * _money(r[9])

        return [
            OrderSummary(
                id=UUID(h[0]),
                reseller_id=UUID(h[1]),
                customer_id=UUID(h[2]),
                status_id=UUID(h[3]),
                status_name=str(h[4]),
                created_date=_from_db_ts(h[5]),
                item_count=totals[oid][0],
                total_cost=totals[oid][1],
                total_price=totals[oid][2],
            )
            for oid, h in headers.items()
        ]

    def get_order_detail(self, order_id: UUID) -> OrderDetail:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            SELECT o.id, o.reseller_id, o.customer_id, o.status_id, s.name, o.created_date
            FROM orders o
            JOIN order_status s ON s.id = o.status_id
            WHERE o.id = ?
        """,
            (str(order_id),),
        )
        h = cur.fetchone()
        if not h:
            conn.close()
            raise NotFoundError(f"Order {order_id} not found.")

        cur.execute(
            """
            SELECT i.id, i.order_id, i.product_id, p.name, i.service_id, sv.name,
                   i.quantity, p.unit_cost, p.unit_price
            FROM order_item i
            JOIN product p ON p.id = i.product_id
            JOIN service sv ON sv.id = i.service_id
            WHERE i.order_id = ?
            ORDER BY p.name, i.id
        """,
            (str(order_id),),
        )
        rows = cur.fetchall()
        conn.close()

        items = []
        for r in rows:
            qty = self._require_quantity(r[0], r[6])
            unit_cost = _money(r[7])
            unit_price = _money(r[8])
            items.append(
                OrderItemDetail(
                    id=UUID(r[0]),
                    order_id=UUID(r[1]),
                    product_id=UUID(r[2]),
                    product_name=str(r[3]),
                    service_id=UUID(r[4]),
                    service_name=str(r[5]),
                    quantity=qty,
                    unit_cost=unit_cost,
                    unit_price=unit_price,
                    total_cost=unit_cost * qty,
                    total_price=unit_price * qty,
                )
            )

        return OrderDetail(
            id=UUID(h[0]),
            reseller_id=UUID(h[1]),
            customer_id=UUID(h[2]),
            status_id=UUID(h[3]),
            status_name=str(h[4]),
            created_date=_from_db_ts(h[5]),
            items=tuple(items),
            total_cost=sum((it.total_cost for it in items), Decimal("0")),
            total_price=sum((it.total_price for it in items), Decimal("0")),
        )

    def update_order_status(self, order_id: UUID, status_id: UUID) -> None:
        conn = self._conn()
        cur = conn.cursor()
        try:
            cur.execute("UPDATE orders SET status_id = ? WHERE id = ?", (str(status_id), str(order_id)))
            if cur.rowcount == 0:
                conn.rollback()
                raise NotFoundError(f"Order {order_id} not found.")
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ReferentialInconsistencyError(f"Status {status_id} does not exist.") from exc
        finally:
            conn.close()

    def create_order_with_items(
        self,
        request: OrderCreateRequest,
        clock: Callable[[], datetime] = utc_now,
    ) -> UUID:
        """Insert the order and all of its items in a single transaction.

        Each item's service id is copied from its product. Returns the new order id.
        """
        items = list(request.items)
        if not items:
            raise InvalidOrderRequestError("An order needs at least one item.")
        bad = [str(it.product_id) for it in items if int(it.quantity) <= 0]
        if bad:
            raise InvalidOrderRequestError(f"Quantity must be >= 1 for products: {', '.join(bad)}")

        order_id = uuid.uuid4()
        conn = self._conn()
        cur = conn.cursor()
        try:
            cur.execute("BEGIN")
            wanted = {str(it.product_id) for it in items}
            cur.execute(
                f"SELECT id, service_id FROM product WHERE id IN ({_placeholders(len(wanted))})",
                tuple(wanted),
            )
            service_by_product = {str(r[0]): str(r[1]) for r in cur.fetchall()}
            missing = sorted(wanted - set(service_by_product))
            if missing:
                raise ReferentialInconsistencyError(f"Products not found: {', '.join(missing)}")

            cur.execute(
                """
                INSERT INTO orders (id, reseller_id, customer_id, status_id, created_date)
                VALUES (?, ?, ?, ?, ?)
            """,
                (
                    str(order_id),
                    str(request.reseller_id),
                    str(request.customer_id),
                    str(request.status_id),
                    _to_db_ts(clock()),
                ),
            )

            for it in items:
                pid = str(it.product_id)
                cur.execute(
                    """
                    INSERT INTO order_item (id, order_id, product_id, service_id, quantity)
                    VALUES (?, ?, ?, ?, ?)
                """,
                    (str(uuid.uuid4()), str(order_id), pid, service_by_product[pid], int(it.quantity)),
                )

            conn.commit()
            return order_id
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ReferentialInconsistencyError(f"Order could not be stored: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def create_order(
        self,
        request: OrderCreateRequest,
        clock: Callable[[], datetime] = utc_now,
    ) -> OrderDetail:
        order_id = self.create_order_with_items(request, clock=clock)
        return self.get_order_detail(order_id)

    # ---------- Profit ----------
    def completed_order_profits(self, status_name: str = STATUS_COMPLETED) -> list[tuple[datetime, Decimal]]:
        """Per-order profit for every order in ``status_name``, at current product pricing.

        Items without a quantity count as zero here, unlike the list and detail reads.
        """
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            SELECT o.id, o.created_date, i.id, i.quantity, p.unit_cost, p.unit_price
            FROM orders o
            JOIN order_status s ON s.id = o.status_id
            LEFT JOIN order_item i ON i.order_id = o.id
            LEFT JOIN product p ON p.id = i.product_id
            WHERE s.name = ?
            ORDER BY o.created_date, o.id
        """,
            (status_name,),
        )
        rows = cur.fetchall()
        conn.close()

        profits: dict[str, list] = {}
        for oid, created, item_id, qty, cost, price in rows:
            acc = profits.setdefault(str(oid), [_from_db_ts(created), Decimal("0")])
            if item_id is None:
                continue
            acc[1] += int(qty or 0) * (_money(price) - _money(cost))
        return [(created, profit) for created, profit in profits.values()]

    @staticmethod
    def _require_quantity(item_id, quantity) -> int:
        if quantity is None:
            raise MalformedPersistedStateError(f"Order item {item_id} has no quantity.")
        return int(quantity)
