import sqlite3
import logging
from datetime import date
from typing import Callable, List, NamedTuple, Optional

import pandas as pd

from sales_warehouse.lifecycle import derive_end_dates, split_product_key
from sales_warehouse.reconcile import parse_sales_date, reconcile_sales, to_number
from sales_warehouse.schema import column_names, table_name
from sales_warehouse.standardize import (
    standardize_country,
    standardize_crm_gender,
    standardize_erp_gender,
    standardize_marital_status,
    standardize_product_line,
)

logger = logging.getLogger("sales_warehouse.silver")


def _nullify(frame: pd.DataFrame) -> pd.DataFrame:
    """Return frame as Python objects with NaN/NaT replaced by None."""
    return frame.astype(object).where(frame.notna(), None)


def _trim(value):
    return value.strip() if isinstance(value, str) else value


def _iso_dates(values: pd.Series) -> pd.Series:
    parsed = pd.to_datetime(values, errors="coerce", format="mixed")
    return parsed.dt.strftime("%Y-%m-%d")


def transform_crm_customers(bronze: pd.DataFrame) -> pd.DataFrame:
    """Trim names and standardize marital status and gender."""
    silver = _nullify(bronze)
    silver["cst_firstname"] = silver["cst_firstname"].map(_trim)
    silver["cst_lastname"] = silver["cst_lastname"].map(_trim)
    silver["cst_marital_status"] = silver["cst_marital_status"].map(standardize_marital_status)
    silver["cst_gndr"] = silver["cst_gndr"].map(standardize_crm_gender)
    return _nullify(silver[column_names("silver", "crm_cust_info")])


def _product_cost(value):
    cost = to_number(value)
    return 0 if cost is None or cost < 0 else cost


def transform_crm_products(bronze: pd.DataFrame) -> pd.DataFrame:
    """
    Split the product key, default missing or negative costs to 0,
    standardize the product line and derive the end date of each version.
    """
    silver = _nullify(bronze)
    keys = silver["prd_key"].map(split_product_key)
    silver["cat_id"] = keys.map(lambda parts: parts[0])
    silver["prd_end_dt"] = derive_end_dates(bronze).dt.strftime("%Y-%m-%d")
    # Partitioning above uses the raw key; replace it only afterwards
    silver["prd_key"] = keys.map(lambda parts: parts[1])
    silver["prd_cost"] = silver["prd_cost"].map(_product_cost)
    silver["prd_line"] = silver["prd_line"].map(standardize_product_line)
    silver["prd_start_dt"] = _iso_dates(bronze["prd_start_dt"])
    return _nullify(silver[column_names("silver", "crm_prd_info")])


def transform_crm_sales(bronze: pd.DataFrame) -> pd.DataFrame:
    """Validate the YYYYMMDD dates and reconcile sales amount and price."""
    silver = _nullify(bronze)
    for column in ("sls_order_dt", "sls_ship_dt", "sls_due_dt"):
        silver[column] = silver[column].map(parse_sales_date)

    corrected = [
        reconcile_sales(sales, quantity, price)
        for sales, quantity, price in zip(silver["sls_sales"], silver["sls_quantity"], silver["sls_price"])
    ]
    silver["sls_sales"] = [sales for sales, _ in corrected]
    silver["sls_price"] = [price for _, price in corrected]
    return _nullify(silver[column_names("silver", "crm_sales_details")])


def _strip_nas_prefix(cid):
    if isinstance(cid, str) and cid.startswith("NAS"):
        return cid[3:]
    return cid


def transform_erp_customers(bronze: pd.DataFrame, today: Optional[date] = None) -> pd.DataFrame:
    """Strip the 'NAS' id prefix, null out future birth dates, standardize gender."""
    today = today or date.today()
    silver = _nullify(bronze)
    silver["cid"] = silver["cid"].map(_strip_nas_prefix)
    birth_dates = pd.to_datetime(bronze["bdate"], errors="coerce", format="mixed")
    birth_dates = birth_dates.where(birth_dates <= pd.Timestamp(today))
    silver["bdate"] = birth_dates.dt.strftime("%Y-%m-%d")
    silver["gen"] = silver["gen"].map(standardize_erp_gender)
    return _nullify(silver[column_names("silver", "erp_cust_az12")])


def transform_erp_locations(bronze: pd.DataFrame) -> pd.DataFrame:
    """Remove hyphens from customer ids and standardize countries."""
    silver = _nullify(bronze)
    silver["cid"] = silver["cid"].map(lambda cid: cid.replace("-", "") if isinstance(cid, str) else cid)
    silver["cntry"] = silver["cntry"].map(standardize_country)
    return _nullify(silver[column_names("silver", "erp_loc_a101")])


def transform_erp_categories(bronze: pd.DataFrame) -> pd.DataFrame:
    """Product categories are copied as-is."""
    return _nullify(bronze)[column_names("silver", "erp_px_cat_g1v2")]


class TableLoad(NamedTuple):
    entity: str
    transform: Callable[[pd.DataFrame], pd.DataFrame]

    @property
    def source(self) -> str:
        return table_name("bronze", self.entity)

    @property
    def target(self) -> str:
        return table_name("silver", self.entity)


# Fixed load order of the silver batch
SILVER_LOADS = (
    TableLoad("crm_cust_info", transform_crm_customers),
    TableLoad("crm_prd_info", transform_crm_products),
    TableLoad("crm_sales_details", transform_crm_sales),
    TableLoad("erp_cust_az12", transform_erp_customers),
    TableLoad("erp_loc_a101", transform_erp_locations),
    TableLoad("erp_px_cat_g1v2", transform_erp_categories),
)


def _records(frame: pd.DataFrame) -> List[tuple]:
    return list(_nullify(frame).itertuples(index=False, name=None))


def read_bronze(conn: sqlite3.Connection, load: TableLoad) -> pd.DataFrame:
    columns = ", ".join(column_names("bronze", load.entity))
    return pd.read_sql(f"SELECT {columns} FROM {load.source} ORDER BY rowid", conn)


def load_table(conn: sqlite3.Connection, load: TableLoad) -> int:
    """
    Replace the contents of one silver table with its transformed bronze rows.

    The caller owns the transaction; nothing is committed here.

    Args:
        conn: Open SQLite connection
        load: Table load definition

    Returns:
        Number of rows written
    """
    bronze_df = read_bronze(conn, load)
    logger.info(f"Read {len(bronze_df)} records from {load.source}")

    silver_df = load.transform(bronze_df)
    columns = list(silver_df.columns)
    placeholders = ", ".join("?" for _ in columns)

    cursor = conn.cursor()
    logger.info(f"Truncating table {load.target}")
    cursor.execute(f"DELETE FROM {load.target}")
    cursor.executemany(
        f"INSERT INTO {load.target} ({', '.join(columns)}) VALUES ({placeholders})",
        _records(silver_df),
    )
    return len(silver_df)
