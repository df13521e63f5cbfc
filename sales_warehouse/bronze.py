import sqlite3
import csv
import os
import logging
from typing import Dict, List

from sales_warehouse.exceptions import BronzeIngestionError
from sales_warehouse.schema import column_names, table_name

logger = logging.getLogger("sales_warehouse.bronze")

# Source extract for each bronze entity, relative to the source directory
SOURCE_FILES = {
    "crm_cust_info": os.path.join("source_crm", "cust_info.csv"),
    "crm_prd_info": os.path.join("source_crm", "prd_info.csv"),
    "crm_sales_details": os.path.join("source_crm", "sales_details.csv"),
    "erp_cust_az12": os.path.join("source_erp", "CUST_AZ12.csv"),
    "erp_loc_a101": os.path.join("source_erp", "LOC_A101.csv"),
    "erp_px_cat_g1v2": os.path.join("source_erp", "PX_CAT_G1V2.csv"),
}


def validate_csv_structure(csv_file: str, required_columns: List[str]) -> bool:
    """
    Validate the structure of the CSV file.

    Header names are compared case-insensitively.

    Args:
        csv_file: Path to the CSV file
        required_columns: List of required column names

    Returns:
        True if the CSV structure is valid, False otherwise
    """
    try:
        with open(csv_file, newline='', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            csv_columns = reader.fieldnames
            if not csv_columns:
                logger.error(f"CSV file {csv_file} is empty or has no headers.")
                return False
            present = {col.strip().lower() for col in csv_columns}
            missing_columns = [col for col in required_columns if col.lower() not in present]
            if missing_columns:
                logger.error(f"CSV file {csv_file} is missing required columns: {missing_columns}")
                return False
        return True
    except OSError as e:
        logger.error(f"Error validating CSV structure of {csv_file}: {e}")
        return False


def _read_rows(csv_file: str, columns: List[str]):
    with open(csv_file, newline='', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for row in reader:
            normalized = {key.strip().lower(): value for key, value in row.items() if key is not None}
            # Empty fields are NULL in bronze; everything else is loaded verbatim
            yield tuple(
                None if normalized.get(col) in (None, '') else normalized[col]
                for col in columns
            )


def ingest_table(conn: sqlite3.Connection, entity: str, csv_file: str) -> int:
    """
    Truncate and reload one bronze table from a CSV extract.

    Args:
        conn: Open SQLite connection
        entity: Entity name (e.g. 'crm_cust_info')
        csv_file: Path to the CSV extract

    Returns:
        Number of rows loaded
    """
    target = table_name("bronze", entity)
    columns = column_names("bronze", entity)

    if not os.path.exists(csv_file):
        raise BronzeIngestionError(target, f"source file not found: {csv_file}")
    if not validate_csv_structure(csv_file, columns):
        raise BronzeIngestionError(target, f"invalid header in {csv_file}")

    placeholders = ", ".join("?" for _ in columns)
    insert_sql = f"INSERT INTO {target} ({', '.join(columns)}) VALUES ({placeholders})"

    try:
        cursor = conn.cursor()
        cursor.execute(f"DELETE FROM {target}")
        cursor.executemany(insert_sql, _read_rows(csv_file, columns))
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise

    record_count = conn.execute(f"SELECT COUNT(*) FROM {target}").fetchone()[0]
    logger.info(f"Loaded {record_count} records into {target} from {csv_file}")
    return record_count


def ingest_source_dir(conn: sqlite3.Connection, source_dir: str) -> Dict[str, int]:
    """
    Load all six CRM/ERP extracts from a source directory into bronze.

    Args:
        conn: Open SQLite connection
        source_dir: Directory holding source_crm/ and source_erp/

    Returns:
        Mapping of bronze table name to loaded row count
    """
    logger.info(f"Ingesting source extracts from: {source_dir}")
    counts = {}
    for entity, relative_path in SOURCE_FILES.items():
        csv_file = os.path.join(source_dir, relative_path)
        counts[table_name("bronze", entity)] = ingest_table(conn, entity, csv_file)
    logger.info(f"Bronze layer ingestion completed: {sum(counts.values())} records in {len(counts)} tables")
    return counts
