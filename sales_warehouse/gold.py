import sqlite3
import logging
from typing import Dict

logger = logging.getLogger("sales_warehouse.gold")

GOLD_VIEWS = {
    "gold_dim_customer": """
        SELECT
            ROW_NUMBER() OVER (ORDER BY ci.cst_id) AS customer_key,
            ci.cst_id AS customer_id,
            ci.cst_key AS customer_number,
            ci.cst_firstname AS first_name,
            ci.cst_lastname AS last_name,
            la.cntry AS country,
            ci.cst_marital_status AS marital_status,
            CASE
                WHEN ci.cst_gndr != 'N/A' THEN ci.cst_gndr
                ELSE COALESCE(ca.gen, 'N/A')
            END AS gender,
            ca.bdate AS birthdate,
            ci.cst_create_date AS create_date
        FROM silver_crm_cust_info ci
        LEFT JOIN silver_erp_cust_az12 ca ON ci.cst_key = ca.cid
        LEFT JOIN silver_erp_loc_a101 la ON ci.cst_key = la.cid
    """,
    "gold_dim_product": """
        SELECT
            ROW_NUMBER() OVER (ORDER BY pn.prd_key, pn.prd_start_dt) AS product_key,
            pn.prd_id AS product_id,
            pn.prd_key AS product_number,
            pn.prd_nm AS product_name,
            pn.cat_id AS category_id,
            pc.cat AS category,
            pc.subcat AS subcategory,
            pc.maintenance,
            pn.prd_cost AS cost,
            pn.prd_line AS product_line,
            pn.prd_start_dt AS start_date
        FROM silver_crm_prd_info pn
        LEFT JOIN silver_erp_px_cat_g1v2 pc ON pn.cat_id = pc.id
        WHERE pn.prd_end_dt IS NULL
    """,
    "gold_fact_sales": """
        SELECT
            sd.sls_ord_num AS order_number,
            pr.product_key,
            cu.customer_key,
            sd.sls_order_dt AS order_date,
            sd.sls_ship_dt AS shipping_date,
            sd.sls_due_dt AS due_date,
            sd.sls_sales AS sales_amount,
            sd.sls_quantity AS quantity,
            sd.sls_price AS price
        FROM silver_crm_sales_details sd
        LEFT JOIN gold_dim_product pr ON sd.sls_prd_key = pr.product_number
        LEFT JOIN gold_dim_customer cu ON sd.sls_cust_id = cu.customer_id
    """,
}


def build_gold_views(conn: sqlite3.Connection) -> bool:
    """
    (Re)create the gold star-schema views over the silver tables.

    Dimensions are created before the fact view that references them.

    Returns:
        True if successful, False otherwise
    """
    try:
        cursor = conn.cursor()
        for view in reversed(list(GOLD_VIEWS)):
            cursor.execute(f"DROP VIEW IF EXISTS {view}")
        for view, query in GOLD_VIEWS.items():
            cursor.execute(f"CREATE VIEW {view} AS {query}")
        conn.commit()
        logger.info(f"Created gold views: {', '.join(GOLD_VIEWS)}")
        return True
    except sqlite3.Error as e:
        logger.error(f"Error creating gold views: {e}")
        conn.rollback()
        return False


def get_gold_counts(conn: sqlite3.Connection) -> Dict[str, int]:
    return {view: conn.execute(f"SELECT COUNT(*) FROM {view}").fetchone()[0] for view in GOLD_VIEWS}
