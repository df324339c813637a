import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from conftest import add_order, seed_catalog

from oms.domain.errors import MalformedPersistedStateError
from oms.domain.models import OrderCreateRequest, OrderItemRequest
from oms.repositories.sqlite_repo import SqliteRepository
from oms.services.order_service import OrderService
from oms.services.reporting_service import ReportingService


def _setup(tmp_path: Path):
    repo = SqliteRepository(tmp_path / "listing.db")
    repo.init_db()
    catalog = seed_catalog(repo)
    service = OrderService(repo, ReportingService(repo))
    return repo, catalog, service


def test_list_orders_returns_all_orders(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    for qty in (1, 2, 3):
        add_order(repo, catalog, qty)

    assert len(service.list_orders()) == 3


def test_list_orders_computes_totals_per_order(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    ids = {qty: add_order(repo, catalog, qty) for qty in (1, 2, 3)}

    by_id = {o.id: o for o in service.list_orders()}

    assert (by_id[ids[1]].total_cost, by_id[ids[1]].total_price) == (Decimal("0.8"), Decimal("0.9"))
    assert (by_id[ids[2]].total_cost, by_id[ids[2]].total_price) == (Decimal("1.6"), Decimal("1.8"))
    assert (by_id[ids[3]].total_cost, by_id[ids[3]].total_price) == (Decimal("2.4"), Decimal("2.7"))
    assert all(o.item_count == 1 for o in by_id.values())
    assert all(o.status_name == "Created" for o in by_id.values())


def test_list_orders_filters_by_exact_status_name(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    add_order(repo, catalog, 1)
    in_progress = add_order(repo, catalog, 2, status_id=catalog.in_progress_id)
    add_order(repo, catalog, 3)

    filtered = service.list_orders("In Progress")

    assert [o.id for o in filtered] == [in_progress]
    assert filtered[0].status_name == "In Progress"
    assert service.list_orders("in progress") == []
    assert service.list_orders("In") == []


def test_filtered_listing_is_subset_of_full_listing(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    add_order(repo, catalog, 1)
    add_order(repo, catalog, 2, status_id=catalog.completed_id)
    add_order(repo, catalog, 4, status_id=catalog.completed_id)

    everything = service.list_orders()
    completed = service.list_orders("Completed")

    assert completed == [o for o in everything if o.status_name == "Completed"]
    assert service.list_orders("Cancelled") == []


def test_list_orders_sorted_newest_first(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    base = datetime(2024, 5, 10, 8, 0, tzinfo=timezone.utc)
    for offset in (3, 0, 5, 1):
        add_order(repo, catalog, 1, created_date=base + timedelta(hours=offset))

    dates = [o.created_date for o in service.list_orders()]

    assert dates == sorted(dates, reverse=True)
    assert dates[0] == base + timedelta(hours=5)
    assert dates[0].tzinfo == timezone.utc


def test_list_orders_rejects_item_without_quantity(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    add_order(repo, catalog, None)

    with pytest.raises(MalformedPersistedStateError):
        service.list_orders()


def test_list_orders_uses_current_product_pricing(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    add_order(repo, catalog, 2)

    conn = repo._conn()
    conn.execute("UPDATE product SET unit_cost='1.00', unit_price='1.50' WHERE id=?", (str(catalog.product_id),))
    conn.commit()
    conn.close()

    [order] = service.list_orders()
    assert order.total_cost == Decimal("2.00")
    assert order.total_price == Decimal("3.00")


def test_list_orders_totals_match_detail_for_multi_item_and_empty_orders(tmp_path: Path):
    repo, catalog, service = _setup(tmp_path)
    hosting = repo.add_service("Hosting")
    vps = repo.add_product(hosting, "Small VPS", Decimal("4.00"), Decimal("5.50"))
    multi = service.create_order(
        OrderCreateRequest(
            reseller_id=uuid.uuid4(),
            customer_id=uuid.uuid4(),
            status_id=catalog.created_id,
            items=(
                OrderItemRequest(product_id=catalog.product_id, quantity=3),
                OrderItemRequest(product_id=vps, quantity=2),
            ),
        )
    ).id

    empty = uuid.uuid4()
    conn = repo._conn()
    conn.execute(
        "INSERT INTO orders (id, reseller_id, customer_id, status_id, created_date) VALUES (?, ?, ?, ?, ?)",
        (str(empty), str(uuid.uuid4()), str(uuid.uuid4()), str(catalog.created_id), "2024-01-01 00:00:00.000000"),
    )
    conn.commit()
    conn.close()

    by_id = {o.id: o for o in service.list_orders()}

    assert by_id[multi].item_count == 2
    assert (by_id[multi].total_cost, by_id[multi].total_price) == (Decimal("10.40"), Decimal("13.70"))
    assert by_id[empty].item_count == 0
    assert (by_id[empty].total_cost, by_id[empty].total_price) == (Decimal("0"), Decimal("0"))

    for order_id in (multi, empty):
        detail = service.get_order_detail(order_id)
        assert len(detail.items) == by_id[order_id].item_count
        assert detail.total_cost == by_id[order_id].total_cost
        assert detail.total_price == by_id[order_id].total_price
