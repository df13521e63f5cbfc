"""
Product lifecycle derivation.

A product key can appear several times, once per cost/version period. Each
period ends the day before the next period for the same key starts; the
latest period stays open (NULL end date).
"""
from typing import Any, Optional, Tuple

import pandas as pd

CATEGORY_ID_WIDTH = 5
PRODUCT_KEY_OFFSET = 6
MIN_PRODUCT_KEY_LENGTH = PRODUCT_KEY_OFFSET + 1


def split_product_key(raw_key: Any) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a raw CRM product key into (category id, product key).

    'CO-RF-FR-R92B-58' -> ('CO_RF', 'FR-R92B-58'). Keys shorter than
    MIN_PRODUCT_KEY_LENGTH are split the same way (giving an empty product
    key); they are reported by the quality checks, not repaired.
    """
    if raw_key is None or (not isinstance(raw_key, str) and pd.isna(raw_key)):
        return None, None
    raw_key = str(raw_key)
    return raw_key[:CATEGORY_ID_WIDTH].replace("-", "_"), raw_key[PRODUCT_KEY_OFFSET:]


def derive_end_dates(
    products: pd.DataFrame,
    key_column: str = "prd_key",
    start_column: str = "prd_start_dt",
    id_column: str = "prd_id",
) -> pd.Series:
    """
    Compute each product row's end date from its successor's start date.

    Rows are grouped by key and ordered by start date (NULL first), then by
    id so that rows with identical start dates get a stable order.

    Args:
        products: Product rows
        key_column: Column grouping the versions of one product
        start_column: Start date column (anything pandas can parse)
        id_column: Tie-break column

    Returns:
        Series of Timestamps (NaT for open-ended rows) aligned to products.index
    """
    if products.empty:
        return pd.Series([], index=products.index, dtype="datetime64[ns]")

    starts = pd.to_datetime(products[start_column], errors="coerce", format="mixed")
    ordered = (
        products[[key_column, id_column]]
        .assign(_start=starts)
        .sort_values([key_column, "_start", id_column], na_position="first", kind="mergesort")
    )
    next_start = ordered.groupby(key_column, sort=False, dropna=False)["_start"].shift(-1)
    end_dates = next_start - pd.Timedelta(days=1)
    return end_dates.reindex(products.index)
