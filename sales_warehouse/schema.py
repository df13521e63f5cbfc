"""
Table definitions for the bronze and silver layers.

Both layers live in a single SQLite database; tables are prefixed with their
layer name. Silver mirrors bronze column for column, except that the product
table gains the derived category id.
"""
import sqlite3
import logging
from typing import Dict, List

logger = logging.getLogger("sales_warehouse.schema")

ENTITIES = (
    "crm_cust_info",
    "crm_prd_info",
    "crm_sales_details",
    "erp_cust_az12",
    "erp_loc_a101",
    "erp_px_cat_g1v2",
)

BRONZE_COLUMNS: Dict[str, List[tuple]] = {
    "crm_cust_info": [
        ("cst_id", "INTEGER"),
        ("cst_key", "TEXT"),
        ("cst_firstname", "TEXT"),
        ("cst_lastname", "TEXT"),
        ("cst_marital_status", "TEXT"),
        ("cst_gndr", "TEXT"),
        ("cst_create_date", "DATE"),
    ],
    "crm_prd_info": [
        ("prd_id", "INTEGER"),
        ("prd_key", "TEXT"),
        ("prd_nm", "TEXT"),
        ("prd_cost", "INTEGER"),
        ("prd_line", "TEXT"),
        ("prd_start_dt", "DATETIME"),
        ("prd_end_dt", "DATETIME"),
    ],
    "crm_sales_details": [
        ("sls_ord_num", "TEXT"),
        ("sls_prd_key", "TEXT"),
        ("sls_cust_id", "INTEGER"),
        ("sls_order_dt", "INTEGER"),
        ("sls_ship_dt", "INTEGER"),
        ("sls_due_dt", "INTEGER"),
        ("sls_sales", "INTEGER"),
        ("sls_quantity", "INTEGER"),
        ("sls_price", "INTEGER"),
    ],
    "erp_cust_az12": [
        ("cid", "TEXT"),
        ("bdate", "DATE"),
        ("gen", "TEXT"),
    ],
    "erp_loc_a101": [
        ("cid", "TEXT"),
        ("cntry", "TEXT"),
    ],
    "erp_px_cat_g1v2": [
        ("id", "TEXT"),
        ("cat", "TEXT"),
        ("subcat", "TEXT"),
        ("maintenance", "TEXT"),
    ],
}

SILVER_COLUMNS: Dict[str, List[tuple]] = {
    "crm_cust_info": BRONZE_COLUMNS["crm_cust_info"],
    "crm_prd_info": [
        ("prd_id", "INTEGER"),
        ("cat_id", "TEXT"),
        ("prd_key", "TEXT"),
        ("prd_nm", "TEXT"),
        ("prd_cost", "INTEGER"),
        ("prd_line", "TEXT"),
        ("prd_start_dt", "DATE"),
        ("prd_end_dt", "DATE"),
    ],
    "crm_sales_details": [
        ("sls_ord_num", "TEXT"),
        ("sls_prd_key", "TEXT"),
        ("sls_cust_id", "INTEGER"),
        ("sls_order_dt", "DATE"),
        ("sls_ship_dt", "DATE"),
        ("sls_due_dt", "DATE"),
        ("sls_sales", "INTEGER"),
        ("sls_quantity", "INTEGER"),
        ("sls_price", "REAL"),
    ],
    "erp_cust_az12": BRONZE_COLUMNS["erp_cust_az12"],
    "erp_loc_a101": BRONZE_COLUMNS["erp_loc_a101"],
    "erp_px_cat_g1v2": BRONZE_COLUMNS["erp_px_cat_g1v2"],
}

LAYER_COLUMNS = {"bronze": BRONZE_COLUMNS, "silver": SILVER_COLUMNS}


def table_name(layer: str, entity: str) -> str:
    """Return the physical table name of an entity in a layer."""
    return f"{layer}_{entity}"


def column_names(layer: str, entity: str) -> List[str]:
    return [name for name, _ in LAYER_COLUMNS[layer][entity]]


def create_table_sql(layer: str, entity: str) -> str:
    columns = ",\n    ".join(f"{name} {dtype}" for name, dtype in LAYER_COLUMNS[layer][entity])
    return f"CREATE TABLE IF NOT EXISTS {table_name(layer, entity)} (\n    {columns}\n)"


def create_tables(conn: sqlite3.Connection, layers=("bronze", "silver")) -> None:
    """
    Create the bronze and silver tables if they don't already exist.

    Args:
        conn: Open SQLite connection
        layers: Layers to create
    """
    cursor = conn.cursor()
    for layer in layers:
        for entity in ENTITIES:
            cursor.execute(create_table_sql(layer, entity))
    conn.commit()
    logger.info(f"Tables ready for layers: {', '.join(layers)}")


def count_rows(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
