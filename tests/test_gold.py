"""
Tests for the gold star-schema views
"""

from sales_warehouse.gold import GOLD_VIEWS, build_gold_views, get_gold_counts
from sales_warehouse.orchestrator import load_silver


def test_views_are_created(seeded_conn):
    load_silver(seeded_conn)

    assert build_gold_views(seeded_conn)
    assert get_gold_counts(seeded_conn) == {
        "gold_dim_customer": 4,
        "gold_dim_product": 3,
        "gold_fact_sales": 5,
    }


def test_rebuild_is_idempotent(seeded_conn):
    load_silver(seeded_conn)

    assert build_gold_views(seeded_conn)
    assert build_gold_views(seeded_conn)
    views = seeded_conn.execute("SELECT name FROM sqlite_master WHERE type = 'view' ORDER BY name").fetchall()
    assert [name for (name,) in views] == sorted(GOLD_VIEWS)


def test_customer_dimension_integrates_erp(seeded_conn):
    load_silver(seeded_conn)
    build_gold_views(seeded_conn)

    rows = seeded_conn.execute(
        "SELECT customer_key, customer_number, country, gender, birthdate FROM gold_dim_customer ORDER BY customer_key"
    ).fetchall()

    assert rows == [
        (1, "AW01", "Germany", "Female", "1970-05-04"),
        (2, "AW02", "United States", "Female", None),
        (3, "AW03", "N/A", "Male", "1980-01-01"),
        (4, "AW04", "N/A", "N/A", None),
    ]


def test_product_dimension_keeps_current_versions(seeded_conn):
    """Surrogate keys are numbered by product number, then start date."""
    load_silver(seeded_conn)
    build_gold_views(seeded_conn)

    rows = seeded_conn.execute(
        "SELECT product_key, product_id, product_number, category, subcategory FROM gold_dim_product"
        " ORDER BY product_key"
    ).fetchall()

    assert rows == [
        (1, 214, "", "Bikes", "Road Bikes"),
        (2, 210, "FR-R92B-58", "Components", "Road Frames"),
        (3, 213, "HL-U509-R", "Accessories", "Helmets"),
    ]


def test_fact_resolves_surrogate_keys(seeded_conn):
    load_silver(seeded_conn)
    build_gold_views(seeded_conn)

    rows = seeded_conn.execute(
        "SELECT order_number, product_key, customer_key, sales_amount FROM gold_fact_sales ORDER BY order_number"
    ).fetchall()

    assert rows == [
        ("SO1", 2, 1, 60),
        ("SO2", 3, 2, 30),
        ("SO3", 3, 3, 50),
        ("SO4", 3, 4, 0),
        ("SO5", 3, 1, 20),
    ]


def test_build_failure_returns_false(conn):
    conn.execute("CREATE TABLE gold_dim_customer (customer_key INTEGER)")
    conn.commit()

    assert build_gold_views(conn) is False
