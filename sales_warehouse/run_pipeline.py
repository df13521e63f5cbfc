#!/usr/bin/env python3
"""
Sales warehouse pipeline runner.

Ingests the CRM/ERP extracts into bronze, rebuilds silver, optionally runs the
quality checks, (re)creates the gold views and exports layer snapshots.
"""
import os
import sys
import sqlite3
import logging
import argparse
from typing import Dict, List, Optional

from sales_warehouse import config
from sales_warehouse.bronze import ingest_source_dir
from sales_warehouse.exceptions import BronzeIngestionError
from sales_warehouse.export import export_layer, upload_exports
from sales_warehouse.gold import GOLD_VIEWS, build_gold_views
from sales_warehouse.orchestrator import BatchResult, Listener, load_silver
from sales_warehouse.quality import CROSS_LAYER, QualityReport, run_quality_checks
from sales_warehouse.schema import ENTITIES, count_rows, create_tables, table_name
from sales_warehouse.utils.logger import setup_logger

logger = logging.getLogger("sales_warehouse.pipeline")


class SalesWarehouse:
    """Bronze/silver/gold sales warehouse stored in one SQLite database."""

    def __init__(self, db_path: str = config.DEFAULT_DB_PATH):
        """
        Initialize the warehouse with database path.

        Args:
            db_path: Path to the SQLite database file (':memory:' allowed)
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self.quality_report: Optional[QualityReport] = None
        self._ensure_db_directory()

    def _ensure_db_directory(self) -> None:
        directory = os.path.dirname(self.db_path)
        if directory and self.db_path != ":memory:":
            os.makedirs(directory, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Return the warehouse connection, opening it on first use."""
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SalesWarehouse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def create_tables(self) -> None:
        create_tables(self.connect())

    def ingest_bronze(self, source_dir: str = config.DEFAULT_SOURCE_DIR) -> Dict[str, int]:
        return ingest_source_dir(self.connect(), source_dir)

    def load_silver(self, atomic: bool = config.ATOMIC_BATCH, listeners: List[Listener] = ()) -> BatchResult:
        return load_silver(self.connect(), atomic=atomic, listeners=listeners)

    def run_quality_checks(self, layers=("bronze", "silver")) -> QualityReport:
        report = run_quality_checks(self.connect(), layers=layers)
        report.log_summary()
        self.quality_report = report
        return report

    def build_gold(self) -> bool:
        return build_gold_views(self.connect())

    def export(self, layers=("silver", "gold"), output_dir: str = config.DEFAULT_EXPORT_DIR,
               upload: bool = False) -> Dict[str, List[str]]:
        exported = {}
        for layer in layers:
            files = export_layer(self.connect(), layer, output_dir)
            if upload and files:
                uploaded = upload_exports(files, layer)
                logger.info(f"Uploaded {uploaded}/{len(files)} {layer} files to s3://{config.S3_BUCKET}")
            exported[layer] = files
        return exported

    def get_layer_stats(self) -> Dict[str, int]:
        """
        Get record counts for every bronze and silver table and gold view.

        Returns:
            Dictionary of table name to record count (-1 when unreadable)
        """
        conn = self.connect()
        tables = [table_name(layer, entity) for layer in ("bronze", "silver") for entity in ENTITIES]
        stats = {}
        for table in tables + list(GOLD_VIEWS):
            try:
                stats[table] = count_rows(conn, table)
            except sqlite3.Error as e:
                logger.warning(f"Cannot count rows of {table}: {e}")
                stats[table] = -1
        return stats

    def run_pipeline(
        self,
        source_dir: Optional[str] = config.DEFAULT_SOURCE_DIR,
        atomic: bool = config.ATOMIC_BATCH,
        checks: bool = False,
        gold: bool = True,
    ) -> BatchResult:
        """
        Run bronze ingestion (when source_dir is given), the silver batch and,
        if the batch succeeded, the gold views.

        With checks=True the resulting QualityReport is kept on
        self.quality_report.

        Returns:
            The silver BatchResult
        """
        self.create_tables()
        if source_dir:
            self.ingest_bronze(source_dir)

        result = self.load_silver(atomic=atomic)
        if checks:
            self.run_quality_checks()
        if result.succeeded and gold:
            self.build_gold()
        return result


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point for the pipeline."""
    parser = argparse.ArgumentParser(description='Run the sales warehouse bronze/silver/gold pipeline')
    parser.add_argument('--db', type=str, default=config.DEFAULT_DB_PATH, help='Path to SQLite database')
    parser.add_argument('--source-dir', type=str, default=config.DEFAULT_SOURCE_DIR,
                        help='Directory holding source_crm/ and source_erp/ extracts')
    parser.add_argument('--skip-bronze', action='store_true', help='Reuse the bronze tables already loaded')
    parser.add_argument('--atomic', action='store_true', default=config.ATOMIC_BATCH,
                        help='Load all silver tables in a single transaction')
    parser.add_argument('--checks', action='store_true', help='Run the data quality checks after loading')
    parser.add_argument('--checks-only', action='store_true', help='Only run the data quality checks')
    parser.add_argument('--no-gold', action='store_true', help='Do not (re)create the gold views')
    parser.add_argument('--export-dir', type=str, default=None, help='Export silver and gold to Parquet here')
    parser.add_argument('--upload', action='store_true', help='Upload exported files to S3')
    parser.add_argument('--log-level', type=str, default=None, help='Logging level (default: WAREHOUSE_LOG_LEVEL)')
    parser.add_argument('--quiet', action='store_true', help='Log to the log file only')

    args = parser.parse_args(argv)

    setup_logger("sales_warehouse", log_file="sales_warehouse.log", level=args.log_level, console=not args.quiet)

    with SalesWarehouse(db_path=args.db) as warehouse:
        if args.checks_only:
            try:
                report = warehouse.run_quality_checks()
            except sqlite3.Error as e:
                logger.error(f"Cannot run quality checks against {args.db}: {e}")
                return 1
            print(report.to_frame().to_string(index=False))
            return 0 if report.passed("silver") and report.passed(CROSS_LAYER) else 1

        logger.info("Starting sales warehouse pipeline...")
        try:
            result = warehouse.run_pipeline(
                source_dir=None if args.skip_bronze else args.source_dir,
                atomic=args.atomic,
                checks=args.checks,
                gold=not args.no_gold,
            )
        except BronzeIngestionError as e:
            logger.error(str(e))
            return 1

        if args.export_dir and result.succeeded:
            warehouse.export(output_dir=args.export_dir, upload=args.upload)

        print(f"Silver batch {result.status.value} in {result.duration_seconds:.2f} seconds")
        for table_result in result.tables:
            print(f"  {table_result.table}: {table_result.status.value} ({table_result.rows} rows)")
        if result.failure is not None:
            print(f"Error in {result.failure.table}: {result.failure.message}")

        print("\nLayer statistics:")
        for table, count in warehouse.get_layer_stats().items():
            print(f"  {table}: {count} records")

    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
