"""
Runtime configuration for the sales warehouse.

Values are read from the environment (optionally populated from a .env file)
with local-development defaults.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("1", "true", "yes", "on")."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DEFAULT_DB_PATH = os.environ.get("WAREHOUSE_DB_PATH", "database/warehouse.db")
DEFAULT_SOURCE_DIR = os.environ.get("WAREHOUSE_SOURCE_DIR", "data/source")
DEFAULT_EXPORT_DIR = os.environ.get("WAREHOUSE_EXPORT_DIR", "data/export")

LOG_DIR = os.environ.get("WAREHOUSE_LOG_DIR", "logs")
LOG_LEVEL = os.environ.get("WAREHOUSE_LOG_LEVEL", "INFO")

# Wrap the whole silver batch in a single transaction instead of one per table
ATOMIC_BATCH = env_flag("WAREHOUSE_ATOMIC_BATCH", False)

S3_BUCKET = os.environ.get("WAREHOUSE_S3_BUCKET", "sales-warehouse-exports")
AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
