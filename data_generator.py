#!/usr/bin/env python3
"""
CRM/ERP Extract Generator

Generates synthetic source extracts for the sales warehouse: customers,
product versions and sales lines from the CRM, and customer demographics,
locations and product categories from the ERP. A share of the rows carries
the dirty values the silver layer has to repair (padded names, raw codes,
broken dates, inconsistent sales amounts, prefixed ids).
"""
import os
import argparse
from datetime import date, timedelta
from typing import Dict, Optional

import numpy as np
import pandas as pd

from sales_warehouse.bronze import SOURCE_FILES
from sales_warehouse.utils.logger import setup_logger

logger = setup_logger("Data_Generator", log_file="data_generator.log")

DEFAULT_OUTPUT_DIR = "data/source"
DEFAULT_NUM_CUSTOMERS = 500
DEFAULT_NUM_SALES = 5000
DIRTY_RATE = 0.05

CATEGORIES = [
    ("AC_BR", "Accessories", "Bike Racks", "Yes"),
    ("AC_HE", "Accessories", "Helmets", "Yes"),
    ("BI_MB", "Bikes", "Mountain Bikes", "Yes"),
    ("BI_RB", "Bikes", "Road Bikes", "Yes"),
    ("BI_TB", "Bikes", "Touring Bikes", "Yes"),
    ("CL_JE", "Clothing", "Jerseys", "No"),
    ("CO_RF", "Components", "Road Frames", "No"),
]

FIRST_NAMES = ["Jon", "Elizabeth", "Eugene", "Ruben", "Christy", "Elizabeth", "Julio", "Janet", "Marco", "Rob"]
LAST_NAMES = ["Yang", "Huang", "Torres", "Zhu", "Johnson", "Ruiz", "Alvarez", "Mehta", "Verhoff", "Walker"]
COUNTRIES = ["DE", "US", "USA", "Germany", "United States", "Australia", "France", "Canada", "", " "]


def _dirty(rng: np.random.Generator) -> bool:
    return rng.random() < DIRTY_RATE


def _yyyymmdd(day: date) -> int:
    return day.year * 10000 + day.month * 100 + day.day


def generate_customers(rng: np.random.Generator, num_customers: int) -> Dict[str, pd.DataFrame]:
    crm, erp, loc = [], [], []
    for i in range(num_customers):
        cst_id = 11000 + i
        cst_key = f"AW{cst_id:08d}"
        first = str(rng.choice(FIRST_NAMES))
        last = str(rng.choice(LAST_NAMES))
        if _dirty(rng):
            first = f"  {first} "
        crm.append({
            "cst_id": cst_id,
            "cst_key": cst_key,
            "cst_firstname": first,
            "cst_lastname": last,
            "cst_marital_status": rng.choice(["M", "S", "m", " S", "", "X"], p=[0.45, 0.45, 0.03, 0.03, 0.02, 0.02]),
            "cst_gndr": rng.choice(["F", "M", "Female", "male", "", "U"], p=[0.44, 0.44, 0.04, 0.04, 0.02, 0.02]),
            "cst_create_date": (date(2025, 1, 1) + timedelta(days=int(rng.integers(0, 365)))).isoformat(),
        })

        birth = date(1940, 1, 1) + timedelta(days=int(rng.integers(0, 25000)))
        if _dirty(rng):
            birth = date.today() + timedelta(days=int(rng.integers(1, 3650)))
        erp.append({
            "CID": f"NAS{cst_key}" if rng.random() < 0.5 else cst_key,
            "BDATE": birth.isoformat(),
            "GEN": rng.choice(["Male", "Female", "M", "F", " ", ""], p=[0.4, 0.4, 0.07, 0.07, 0.03, 0.03]),
        })
        loc.append({
            "CID": f"{cst_key[:2]}-{cst_key[2:]}",
            "CNTRY": rng.choice(COUNTRIES, p=[0.1, 0.1, 0.1, 0.2, 0.2, 0.1, 0.08, 0.08, 0.02, 0.02]),
        })
    return {
        "crm_cust_info": pd.DataFrame(crm),
        "erp_cust_az12": pd.DataFrame(erp),
        "erp_loc_a101": pd.DataFrame(loc),
    }


def generate_products(rng: np.random.Generator) -> pd.DataFrame:
    rows = []
    prd_id = 210
    serial = 100
    for cat_id, _, _, _ in CATEGORIES:
        for number in range(int(rng.integers(3, 8))):
            # serial keeps the key after the category prefix unique across categories
            raw_key = f"{cat_id.replace('_', '-')}-{rng.choice(['BK', 'FR', 'HL', 'RA'])}-{serial}"
            serial += 1
            start = date(2011, 7, 1)
            # several price/cost versions per product key
            for _ in range(int(rng.integers(1, 4))):
                cost = int(rng.integers(1, 1500))
                rows.append({
                    "prd_id": prd_id,
                    "prd_key": raw_key,
                    "prd_nm": f"{cat_id} product {number}",
                    "prd_cost": "" if _dirty(rng) else cost,
                    "prd_line": rng.choice(["M ", "R", "S", "T", "", "r"], p=[0.3, 0.3, 0.15, 0.15, 0.05, 0.05]),
                    "prd_start_dt": start.isoformat(),
                    "prd_end_dt": "",
                })
                prd_id += 1
                start = start + timedelta(days=int(rng.integers(180, 400)))
    return pd.DataFrame(rows)


def generate_sales(rng: np.random.Generator, customers: pd.DataFrame, products: pd.DataFrame,
                   num_sales: int) -> pd.DataFrame:
    product_keys = products["prd_key"].str[6:].unique()
    rows = []
    for i in range(num_sales):
        order = date(2011, 1, 1) + timedelta(days=int(rng.integers(0, 5000)))
        quantity = int(rng.integers(1, 4))
        price = int(rng.integers(2, 3600))
        sales = quantity * price
        order_dt = _yyyymmdd(order)
        if _dirty(rng):
            order_dt = int(rng.choice([0, 5489, 32154, 20101350]))
        if _dirty(rng):
            sales = rng.choice(["", 0, -sales, sales + 10])
        if _dirty(rng):
            price = rng.choice(["", -price, 0])
        if rng.random() < 0.002:
            quantity, price = 0, ""
        rows.append({
            "sls_ord_num": f"SO{43697 + i}",
            "sls_prd_key": rng.choice(product_keys),
            "sls_cust_id": int(rng.choice(customers["cst_id"])),
            "sls_order_dt": order_dt,
            "sls_ship_dt": _yyyymmdd(order + timedelta(days=7)),
            "sls_due_dt": _yyyymmdd(order + timedelta(days=12)),
            "sls_sales": sales,
            "sls_quantity": quantity,
            "sls_price": price,
        })
    return pd.DataFrame(rows)


def generate_extracts(output_dir: str = DEFAULT_OUTPUT_DIR, num_customers: int = DEFAULT_NUM_CUSTOMERS,
                      num_sales: int = DEFAULT_NUM_SALES, seed: Optional[int] = None) -> Dict[str, str]:
    """
    Write the six CSV extracts under output_dir.

    Returns:
        Mapping of entity name to the written file path
    """
    rng = np.random.default_rng(seed)
    frames = generate_customers(rng, num_customers)
    frames["crm_prd_info"] = generate_products(rng)
    frames["crm_sales_details"] = generate_sales(rng, frames["crm_cust_info"], frames["crm_prd_info"], num_sales)
    frames["erp_px_cat_g1v2"] = pd.DataFrame(CATEGORIES, columns=["ID", "CAT", "SUBCAT", "MAINTENANCE"])

    written = {}
    for entity, relative_path in SOURCE_FILES.items():
        path = os.path.join(output_dir, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        frames[entity].to_csv(path, index=False)
        logger.info(f"Generated {len(frames[entity])} rows at: {path}")
        written[entity] = path
    return written


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate synthetic CRM/ERP source extracts")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--customers", type=int, default=DEFAULT_NUM_CUSTOMERS)
    parser.add_argument("--sales", type=int, default=DEFAULT_NUM_SALES)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()
    generate_extracts(args.output_dir, args.customers, args.sales, args.seed)
