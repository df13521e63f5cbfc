"""
Data quality checks for the bronze and silver layers.

Each check is a read-only predicate over one entity. The bronze form finds
source rows the silver transformation has to repair; the silver form verifies
the repair. On a correctly loaded silver layer every silver check reports
zero violations and the cross-layer checks report equal bronze and silver
contents for the pass-through category table.
"""
import sqlite3
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from sales_warehouse.lifecycle import MIN_PRODUCT_KEY_LENGTH
from sales_warehouse.reconcile import MAX_SALES_DATE, MIN_SALES_DATE
from sales_warehouse.schema import column_names, table_name
from sales_warehouse.standardize import (
    COUNTRY,
    CRM_GENDER,
    ERP_GENDER,
    MARITAL_STATUS,
    PRODUCT_LINE,
    CodeTable,
)

logger = logging.getLogger("sales_warehouse.quality")

CROSS_LAYER = "bronze->silver"
AMOUNT_TOLERANCE = 0.01


@dataclass(frozen=True)
class QualityCheck:
    name: str
    entity: str
    description: str
    bronze: Optional[str] = None
    silver: Optional[str] = None
    list_rows: bool = False

    def predicate(self, layer: str) -> Optional[str]:
        return self.bronze if layer == "bronze" else self.silver


@dataclass
class CheckResult:
    name: str
    layer: str
    violations: int
    description: str = ""
    bronze_count: Optional[int] = None
    silver_count: Optional[int] = None
    rows: Optional[pd.DataFrame] = field(default=None, repr=False)

    @property
    def passed(self) -> bool:
        return self.violations == 0


def _quoted(values: Iterable[str]) -> str:
    return ", ".join("'" + value.replace("'", "''") + "'" for value in sorted(values))


def _unknown_code(column: str, table: CodeTable) -> str:
    return f"COALESCE(UPPER(TRIM({column})), '') NOT IN ({_quoted(table.codes)})"


def _unknown_label(column: str, table: CodeTable) -> str:
    return f"COALESCE({column}, '') NOT IN ({_quoted(table.labels)})"


def _bad_bronze_date(column: str) -> str:
    # date() only normalizes day overflow (2010-02-30 -> 2010-03-02) when given a modifier
    iso = f"substr({column}, 1, 4) || '-' || substr({column}, 5, 2) || '-' || substr({column}, 7, 2)"
    return (
        f"({column} IS NOT NULL AND ({column} <= 0 OR LENGTH({column}) != 8"
        f" OR {column} < {MIN_SALES_DATE} OR {column} > {MAX_SALES_DATE}"
        f" OR date({iso}, '+0 days') IS NOT {iso}))"
    )


def _bad_silver_date(column: str) -> str:
    low = f"{str(MIN_SALES_DATE)[:4]}-{str(MIN_SALES_DATE)[4:6]}-{str(MIN_SALES_DATE)[6:]}"
    high = f"{str(MAX_SALES_DATE)[:4]}-{str(MAX_SALES_DATE)[4:6]}-{str(MAX_SALES_DATE)[6:]}"
    return (
        f"({column} IS NOT NULL AND (date({column}, '+0 days') IS NOT {column}"
        f" OR {column} < '{low}' OR {column} > '{high}'))"
    )


def _build_checks() -> Tuple[QualityCheck, ...]:
    checks = [
        # CRM customers
        QualityCheck(
            "invalid_marital_status", "crm_cust_info",
            "Marital status outside the known codes",
            bronze=_unknown_code("cst_marital_status", MARITAL_STATUS),
            silver=_unknown_label("cst_marital_status", MARITAL_STATUS),
        ),
        QualityCheck(
            "invalid_customer_gender", "crm_cust_info",
            "CRM gender outside the known codes",
            bronze=_unknown_code("cst_gndr", CRM_GENDER),
            silver=_unknown_label("cst_gndr", CRM_GENDER),
        ),
        QualityCheck(
            "untrimmed_customer_names", "crm_cust_info",
            "First or last name with surrounding whitespace",
            bronze="cst_firstname != TRIM(cst_firstname) OR cst_lastname != TRIM(cst_lastname)",
            silver="cst_firstname != TRIM(cst_firstname) OR cst_lastname != TRIM(cst_lastname)",
        ),
        QualityCheck(
            "missing_customer_names", "crm_cust_info",
            "Blank or missing first or last name",
            bronze=(
                "cst_firstname IS NULL OR TRIM(cst_firstname) = ''"
                " OR cst_lastname IS NULL OR TRIM(cst_lastname) = ''"
            ),
            list_rows=True,
        ),
        # CRM products
        QualityCheck(
            "invalid_product_cost", "crm_prd_info",
            "Negative or missing product cost",
            bronze="prd_cost IS NULL OR prd_cost < 0",
            silver="prd_cost IS NULL OR prd_cost < 0",
            list_rows=True,
        ),
        QualityCheck(
            "invalid_product_line", "crm_prd_info",
            "Product line outside the known codes",
            bronze=_unknown_code("prd_line", PRODUCT_LINE),
            silver=_unknown_label("prd_line", PRODUCT_LINE),
        ),
        QualityCheck(
            "product_date_inversion", "crm_prd_info",
            "Product start date after its end date",
            silver="prd_end_dt IS NOT NULL AND prd_start_dt > prd_end_dt",
            list_rows=True,
        ),
        QualityCheck(
            "short_product_key", "crm_prd_info",
            "Product key too short to hold the category prefix",
            bronze=f"prd_key IS NULL OR LENGTH(prd_key) < {MIN_PRODUCT_KEY_LENGTH}",
            list_rows=True,
        ),
    ]

    # CRM sales
    for column, label in (("sls_order_dt", "order"), ("sls_ship_dt", "ship"), ("sls_due_dt", "due")):
        checks.append(QualityCheck(
            f"invalid_{label}_date", "crm_sales_details",
            f"Malformed or out-of-range {label} date",
            bronze=_bad_bronze_date(column),
            silver=_bad_silver_date(column),
            list_rows=True,
        ))

    checks.extend([
        QualityCheck(
            "sales_amount_mismatch", "crm_sales_details",
            "Sales amount, quantity and price missing, non-positive or inconsistent",
            bronze=(
                "sls_sales IS NULL OR sls_quantity IS NULL OR sls_price IS NULL"
                " OR sls_quantity <= 0 OR sls_price <= 0"
                " OR sls_sales != sls_quantity * sls_price"
            ),
            silver=(
                "sls_sales IS NOT NULL AND sls_quantity IS NOT NULL AND sls_price IS NOT NULL"
                f" AND ABS(sls_sales - sls_quantity * sls_price) > {AMOUNT_TOLERANCE}"
            ),
            list_rows=True,
        ),
        QualityCheck(
            "zero_quantity_invalid_price", "crm_sales_details",
            "Zero quantity with a missing or non-positive price",
            bronze="sls_quantity = 0 AND (sls_price IS NULL OR sls_price <= 0)",
            list_rows=True,
        ),
        # ERP customers
        QualityCheck(
            "prefixed_customer_id", "erp_cust_az12",
            "Customer id still carrying the 'NAS' prefix",
            bronze="cid GLOB 'NAS*'",
            silver="cid GLOB 'NAS*'",
            list_rows=True,
        ),
        QualityCheck(
            "future_birth_date", "erp_cust_az12",
            "Birth date in the future",
            bronze="bdate > date('now', 'localtime')",
            silver="bdate > date('now', 'localtime')",
            list_rows=True,
        ),
        QualityCheck(
            "invalid_erp_gender", "erp_cust_az12",
            "ERP gender outside the known codes",
            bronze=_unknown_code("gen", ERP_GENDER),
            silver=_unknown_label("gen", ERP_GENDER),
        ),
        # ERP locations
        QualityCheck(
            "hyphenated_location_id", "erp_loc_a101",
            "Customer id containing hyphens",
            bronze="cid LIKE '%-%'",
            silver="cid LIKE '%-%'",
        ),
        QualityCheck(
            "unstandardized_country", "erp_loc_a101",
            "Country still given as a code",
            bronze=f"UPPER(TRIM(cntry)) IN ({_quoted(COUNTRY.codes)})",
            silver=f"UPPER(TRIM(cntry)) IN ({_quoted(COUNTRY.codes)})",
        ),
        QualityCheck(
            "missing_country", "erp_loc_a101",
            "Blank or missing country",
            bronze="cntry IS NULL OR TRIM(cntry) = ''",
            silver="cntry IS NULL OR TRIM(cntry) = ''",
            list_rows=True,
        ),
        # ERP categories
        QualityCheck(
            "missing_category_values", "erp_px_cat_g1v2",
            "Category, subcategory or maintenance flag missing",
            bronze="cat IS NULL OR subcat IS NULL OR maintenance IS NULL",
            list_rows=True,
        ),
    ])
    return tuple(checks)


CHECKS = _build_checks()

# Entities whose silver rows must equal their bronze rows exactly
PASSTHROUGH_ENTITIES = ("erp_px_cat_g1v2",)


@dataclass
class QualityReport:
    results: List[CheckResult] = field(default_factory=list)

    @property
    def violations(self) -> Dict[Tuple[str, str], int]:
        return {(result.layer, result.name): result.violations for result in self.results}

    def failed(self, layer: Optional[str] = None) -> List[CheckResult]:
        return [
            result for result in self.results
            if not result.passed and (layer is None or result.layer == layer)
        ]

    def passed(self, layer: Optional[str] = None) -> bool:
        return not self.failed(layer)

    def get(self, name: str, layer: str) -> CheckResult:
        for result in self.results:
            if result.name == name and result.layer == layer:
                return result
        raise KeyError(f"No result for check '{name}' on layer '{layer}'")

    def rows(self, name: str, layer: str) -> Optional[pd.DataFrame]:
        return self.get(name, layer).rows

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "layer": result.layer,
                    "check": result.name,
                    "violations": result.violations,
                    "bronze_count": result.bronze_count,
                    "silver_count": result.silver_count,
                    "description": result.description,
                }
                for result in self.results
            ],
            columns=["layer", "check", "violations", "bronze_count", "silver_count", "description"],
        )

    def log_summary(self) -> None:
        for result in self.results:
            if result.passed:
                logger.info(f"[{result.layer}] {result.name}: OK")
            else:
                logger.warning(f"[{result.layer}] {result.name}: {result.violations} violations")


def run_check(conn: sqlite3.Connection, check: QualityCheck, layer: str) -> CheckResult:
    """
    Count (and optionally list) the rows violating one check on one layer.

    Args:
        conn: Open SQLite connection
        check: Check to run; must define a predicate for the layer
        layer: 'bronze' or 'silver'
    """
    predicate = check.predicate(layer)
    if predicate is None:
        raise ValueError(f"Check '{check.name}' has no {layer} form")
    table = table_name(layer, check.entity)

    violations = conn.execute(f"SELECT COUNT(*) FROM {table} WHERE {predicate}").fetchone()[0]
    rows = None
    if check.list_rows and violations:
        rows = pd.read_sql(f"SELECT * FROM {table} WHERE {predicate}", conn)
    return CheckResult(check.name, layer, violations, check.description, rows=rows)


def run_parity_check(conn: sqlite3.Connection, entity: str) -> List[CheckResult]:
    """
    Compare a pass-through entity across layers: row counts and row contents.

    Returns:
        A row-count parity result and a content drift result
    """
    bronze = table_name("bronze", entity)
    silver = table_name("silver", entity)
    columns = ", ".join(column_names("bronze", entity))

    bronze_count = conn.execute(f"SELECT COUNT(*) FROM {bronze}").fetchone()[0]
    silver_count = conn.execute(f"SELECT COUNT(*) FROM {silver}").fetchone()[0]
    parity = CheckResult(
        f"{entity}_row_parity", CROSS_LAYER, abs(bronze_count - silver_count),
        "Row count differs between bronze and silver",
        bronze_count=bronze_count, silver_count=silver_count,
    )

    drift_sql = (
        f"SELECT 'bronze' AS only_in, * FROM (SELECT {columns} FROM {bronze} EXCEPT SELECT {columns} FROM {silver})"
        f" UNION ALL "
        f"SELECT 'silver' AS only_in, * FROM (SELECT {columns} FROM {silver} EXCEPT SELECT {columns} FROM {bronze})"
    )
    drift_rows = pd.read_sql(drift_sql, conn)
    drift = CheckResult(
        f"{entity}_content_drift", CROSS_LAYER, len(drift_rows),
        "Rows present in only one layer",
        bronze_count=bronze_count, silver_count=silver_count,
        rows=drift_rows if len(drift_rows) else None,
    )
    return [parity, drift]


def run_quality_checks(
    conn: sqlite3.Connection,
    layers: Iterable[str] = ("bronze", "silver"),
    checks: Iterable[QualityCheck] = CHECKS,
    cross_layer: bool = True,
) -> QualityReport:
    """
    Run the check battery against the requested layers.

    No check modifies data, so the battery can run before or after a silver
    batch.

    Args:
        conn: Open SQLite connection
        layers: Layers to check ('bronze', 'silver')
        checks: Checks to run
        cross_layer: Also compare pass-through entities across layers

    Returns:
        QualityReport with one result per check and layer
    """
    layers = list(layers)
    checks = list(checks)
    report = QualityReport()

    for layer in layers:
        for check in checks:
            if check.predicate(layer) is not None:
                report.results.append(run_check(conn, check, layer))

    if cross_layer:
        for entity in PASSTHROUGH_ENTITIES:
            report.results.extend(run_parity_check(conn, entity))

    failed = report.failed()
    logger.info(
        f"Quality checks completed: {len(report.results)} results, "
        f"{len(failed)} with violations"
    )
    return report


def profile_column(conn: sqlite3.Connection, table: str, column: str) -> pd.DataFrame:
    """
    Distinct values of a column with their record counts, most frequent first.
    """
    query = (
        f"SELECT {column} AS value, COUNT(*) AS record_count FROM {table}"
        f" GROUP BY {column} ORDER BY record_count DESC, value"
    )
    return pd.read_sql(query, conn)
