"""
Pytest configuration and shared fixtures
"""

import sqlite3

import pytest

from sales_warehouse.schema import column_names, create_tables, table_name


BRONZE_ROWS = {
    "crm_cust_info": [
        (1, "AW01", "  Jon ", "Yang ", " m ", "F", "2025-10-06"),
        (2, "AW02", "Elizabeth", "Huang", "S", "Female", "2025-10-07"),
        (3, "AW03", "Ruben", None, None, "male", "2025-10-08"),
        (4, "AW04", "Christy", "Zhu", "X", "", "2025-10-09"),
    ],
    "crm_prd_info": [
        (210, "CO-RF-FR-R92B-58", "HL Road Frame - Black- 58", None, "R ", "2003-07-01", None),
        (211, "AC-HE-HL-U509-R", "Sport-100 Helmet- Red", 34, "s", "2011-07-01", None),
        (212, "AC-HE-HL-U509-R", "Sport-100 Helmet- Red", 35, "S", "2012-07-01", None),
        (213, "AC-HE-HL-U509-R", "Sport-100 Helmet- Red", -5, "X", "2013-07-01", None),
        (214, "BI-RB", "Road Bike", 10, "T", "2014-01-01", None),
    ],
    "crm_sales_details": [
        ("SO1", "FR-R92B-58", 1, 20101229, 20110105, 20110110, 60, 2, 30),
        ("SO2", "HL-U509-R", 2, 0, 20110105, 20110110, None, 3, 10),
        ("SO3", "HL-U509-R", 3, 32154, 20110105, 20501231, 50, 5, None),
        ("SO4", "HL-U509-R", 4, 20100230, 20110105, 20110110, 0, 0, None),
        ("SO5", "HL-U509-R", 1, 20110101, 20110105, 20110110, -20, 2, -10),
    ],
    "erp_cust_az12": [
        ("NASAW01", "1970-05-04", "M"),
        ("AW02", "2999-01-01", " female"),
        ("AW03", "1980-01-01", None),
    ],
    "erp_loc_a101": [
        ("AW-01", "DE"),
        ("AW-02", " USA"),
        ("AW-03", ""),
        ("AW-04", None),
        ("AW-05", "Australia"),
    ],
    "erp_px_cat_g1v2": [
        ("CO_RF", "Components", "Road Frames", "No"),
        ("AC_HE", "Accessories", "Helmets", "Yes"),
        ("BI_RB", "Bikes", "Road Bikes", None),
    ],
}


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def _insert(connection, layer, entity, rows):
    columns = column_names(layer, entity)
    placeholders = ", ".join("?" for _ in columns)
    connection.executemany(
        f"INSERT INTO {table_name(layer, entity)} ({', '.join(columns)}) VALUES ({placeholders})",
        rows,
    )
    connection.commit()


@pytest.fixture
def conn():
    """In-memory warehouse database with bronze and silver tables created."""
    connection = sqlite3.connect(":memory:")
    create_tables(connection)
    yield connection
    connection.close()


@pytest.fixture
def insert_rows(conn):
    """Return a helper inserting rows into a layer table."""
    def _insert_rows(layer, entity, rows):
        _insert(conn, layer, entity, rows)
    return _insert_rows


@pytest.fixture
def seeded_conn(conn):
    """Warehouse database with dirty bronze rows for all six entities."""
    for entity, rows in BRONZE_ROWS.items():
        _insert(conn, "bronze", entity, rows)
    return conn


def fetch_table(connection, table):
    return connection.execute(f"SELECT * FROM {table} ORDER BY rowid").fetchall()


@pytest.fixture
def fetch():
    """Return a helper reading all rows of a table in insertion order."""
    return fetch_table
