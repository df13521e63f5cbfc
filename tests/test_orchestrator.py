"""
Tests for the silver batch orchestration
"""

import pytest

from sales_warehouse.exceptions import BatchLoadError
from sales_warehouse.orchestrator import (
    BatchStatus,
    LoadOrchestrator,
    TableStatus,
    load_silver,
)
from sales_warehouse.silver import SILVER_LOADS, TableLoad
from sales_warehouse.schema import ENTITIES, count_rows


def _broken_categories(frame):
    # column unknown to the silver table: the INSERT fails after the DELETE
    return frame.assign(bogus=1)


BROKEN_LOADS = SILVER_LOADS[:5] + (TableLoad("erp_px_cat_g1v2", _broken_categories),)


def _silver_snapshot(conn, fetch):
    return {entity: fetch(conn, f"silver_{entity}") for entity in ENTITIES}


def test_successful_batch(seeded_conn):
    result = load_silver(seeded_conn)

    assert result.status is BatchStatus.SUCCEEDED
    assert result.succeeded
    assert result.failure is None
    assert [table.status for table in result.tables] == [TableStatus.LOADED] * 6
    assert [table.rows for table in result.tables] == [4, 5, 5, 3, 5, 3]
    assert result.finished_at >= result.started_at
    assert result.raise_for_status() is result


def test_reload_is_identical(seeded_conn, fetch):
    """Truncate-and-reload on unchanged bronze yields the same silver contents."""
    load_silver(seeded_conn)
    first = _silver_snapshot(seeded_conn, fetch)

    load_silver(seeded_conn)
    second = _silver_snapshot(seeded_conn, fetch)

    assert first == second
    assert count_rows(seeded_conn, "silver_crm_cust_info") == 4


def test_reload_replaces_previous_rows(seeded_conn):
    load_silver(seeded_conn)
    seeded_conn.execute("DELETE FROM bronze_erp_loc_a101 WHERE cid != 'AW-01'")
    seeded_conn.commit()

    load_silver(seeded_conn)

    assert seeded_conn.execute("SELECT cid, cntry FROM silver_erp_loc_a101").fetchall() == [("AW01", "Germany")]


def test_missing_bronze_table_stops_the_batch(seeded_conn):
    seeded_conn.execute("DROP TABLE bronze_crm_sales_details")
    seeded_conn.commit()

    result = load_silver(seeded_conn)

    assert result.status is BatchStatus.PARTIAL
    assert [table.status for table in result.tables] == [
        TableStatus.LOADED,
        TableStatus.LOADED,
        TableStatus.FAILED,
        TableStatus.SKIPPED,
        TableStatus.SKIPPED,
        TableStatus.SKIPPED,
    ]
    assert result.failure.table == "silver_crm_sales_details"
    assert "no such table" in result.failure.message
    assert result.failure.state in ("SQLITE_ERROR", "OperationalError")
    assert count_rows(seeded_conn, "silver_crm_cust_info") == 4
    assert count_rows(seeded_conn, "silver_erp_cust_az12") == 0


def test_failed_table_keeps_previous_contents(seeded_conn):
    load_silver(seeded_conn)

    result = LoadOrchestrator(seeded_conn, loads=BROKEN_LOADS).run()

    assert result.status is BatchStatus.PARTIAL
    assert result.tables[-1].status is TableStatus.FAILED
    assert count_rows(seeded_conn, "silver_erp_px_cat_g1v2") == 3


def test_atomic_batch_rolls_back_every_table(seeded_conn, insert_rows):
    load_silver(seeded_conn)
    insert_rows("bronze", "crm_cust_info", [(5, "AW05", "Rob", "Walker", "M", "M", "2025-10-10")])

    result = LoadOrchestrator(seeded_conn, loads=BROKEN_LOADS, atomic=True).run()

    assert result.status is BatchStatus.FAILED
    assert result.atomic
    assert [table.status for table in result.tables[:5]] == [TableStatus.ROLLED_BACK] * 5
    assert result.tables[5].status is TableStatus.FAILED
    assert count_rows(seeded_conn, "silver_crm_cust_info") == 4
    assert count_rows(seeded_conn, "silver_erp_px_cat_g1v2") == 3


def test_atomic_batch_commits_on_success(seeded_conn):
    result = load_silver(seeded_conn, atomic=True)

    assert result.succeeded
    assert not seeded_conn.in_transaction
    assert count_rows(seeded_conn, "silver_crm_sales_details") == 5


def test_raise_for_status(seeded_conn):
    seeded_conn.execute("DROP TABLE bronze_crm_cust_info")
    seeded_conn.commit()

    result = load_silver(seeded_conn)

    assert result.status is BatchStatus.FAILED
    with pytest.raises(BatchLoadError, match="silver_crm_cust_info"):
        result.raise_for_status()


def test_listeners_receive_progress_events(seeded_conn):
    events = []

    def broken_listener(event):
        raise RuntimeError("listener down")

    result = load_silver(seeded_conn, listeners=[events.append, broken_listener])

    assert result.succeeded
    assert [event.table for event in events] == [f"silver_{entity}" for entity in ENTITIES]
    assert [event.position for event in events] == [1, 2, 3, 4, 5, 6]
    assert all(event.total == 6 for event in events)
    assert events[2].rows == 5
