import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@dataclass(frozen=True)
class Catalog:
    created_id: uuid.UUID
    in_progress_id: uuid.UUID
    completed_id: uuid.UUID
    service_id: uuid.UUID
    product_id: uuid.UUID


def seed_catalog(repo) -> Catalog:
    statuses = {s.name: s.id for s in repo.list_statuses()}
    service_id = repo.add_service("Email")
    product_id = repo.add_product(service_id, "100GB Mailbox", Decimal("0.8"), Decimal("0.9"))
    return Catalog(
        created_id=statuses["Created"],
        in_progress_id=statuses["In Progress"],
        completed_id=statuses["Completed"],
        service_id=service_id,
        product_id=product_id,
    )


def add_order(repo, catalog: Catalog, quantity, status_id=None, created_date=None, order_id=None) -> uuid.UUID:
    """Insert an order with a single item straight into the tables, bypassing the service."""
    order_id = order_id or uuid.uuid4()
    created = created_date or datetime.now(timezone.utc)
    created_text = created.astimezone(timezone.utc).replace(tzinfo=None).isoformat(sep=" ", timespec="microseconds")

    conn = repo._conn()
    cur = conn.cursor()
    cur.execute(
        "INSERT INTO orders (id, reseller_id, customer_id, status_id, created_date) VALUES (?, ?, ?, ?, ?)",
        (str(order_id), str(uuid.uuid4()), str(uuid.uuid4()), str(status_id or catalog.created_id), created_text),
    )
    cur.execute(
        "INSERT INTO order_item (id, order_id, product_id, service_id, quantity) VALUES (?, ?, ?, ?, ?)",
        (str(uuid.uuid4()), str(order_id), str(catalog.product_id), str(catalog.service_id), quantity),
    )
    conn.commit()
    conn.close()
    return order_id


def months_before(moment: datetime, months: int) -> datetime:
    index = moment.year * 12 + (moment.month - 1) - months
    return moment.replace(year=index // 12, month=index % 12 + 1, day=min(moment.day, 28))
