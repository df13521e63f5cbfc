import os
import sqlite3
import logging
import datetime
from typing import List, Optional

import boto3
import pandas as pd
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from sales_warehouse import config
from sales_warehouse.gold import GOLD_VIEWS
from sales_warehouse.schema import ENTITIES, table_name

logger = logging.getLogger("sales_warehouse.export")


def layer_tables(layer: str) -> List[str]:
    if layer == "gold":
        return list(GOLD_VIEWS)
    if layer in ("bronze", "silver"):
        return [table_name(layer, entity) for entity in ENTITIES]
    raise ValueError(f"Invalid layer: {layer}")


def export_table_to_parquet(conn: sqlite3.Connection, table: str, output_file: str) -> Optional[str]:
    """
    Write one table or view to a Parquet file.

    Returns:
        The output path, or None when the table is empty
    """
    df = pd.read_sql(f"SELECT * FROM {table}", conn)
    if df.empty:
        logger.warning(f"Table '{table}' is empty. No data to export.")
        return None
    df.to_parquet(output_file, index=False)
    logger.info(f"Exported {len(df)} records from table '{table}' to {output_file}")
    return output_file


def export_layer(conn: sqlite3.Connection, layer: str, output_dir: str = config.DEFAULT_EXPORT_DIR) -> List[str]:
    """
    Export every table of a layer to timestamped Parquet files.

    Args:
        conn: Open SQLite connection
        layer: 'bronze', 'silver' or 'gold'
        output_dir: Directory to save the exported files

    Returns:
        Paths of the files written
    """
    os.makedirs(output_dir, exist_ok=True)
    ts = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    exported = []
    for table in layer_tables(layer):
        output_file = os.path.join(output_dir, f"{ts}_{table}.parquet")
        path = export_table_to_parquet(conn, table, output_file)
        if path:
            exported.append(path)
    logger.info(f"Exported {len(exported)} {layer} tables to {output_dir}")
    return exported


def s3_client():
    return boto3.client(
        's3',
        aws_access_key_id=config.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=config.AWS_SECRET_ACCESS_KEY,
        region_name=config.AWS_REGION,
    )


def upload_file_to_s3(local_file: str, bucket: str, s3_key: str, client=None) -> bool:
    """
    Upload a local file to the specified bucket and key.

    Returns:
        True if the upload succeeded, False otherwise
    """
    client = client or s3_client()
    try:
        client.upload_file(local_file, bucket, s3_key)
        logger.info(f"Uploaded {local_file} to s3://{bucket}/{s3_key}")
        return True
    except (Boto3Error, BotoCoreError, ClientError, OSError) as e:
        logger.error(f"Failed to upload {local_file} to s3://{bucket}/{s3_key}: {e}")
        return False


def upload_exports(files: List[str], layer: str, bucket: str = config.S3_BUCKET, client=None) -> int:
    """Upload exported files under '<layer>/'; returns the number uploaded."""
    client = client or s3_client()
    uploaded = 0
    for local_file in files:
        if upload_file_to_s3(local_file, bucket, f"{layer}/{os.path.basename(local_file)}", client=client):
            uploaded += 1
    return uploaded
