"""
Sales line corrections: amount/price reconciliation and YYYYMMDD date parsing.
"""
import numbers
from datetime import date
from typing import Any, Optional, Tuple

import pandas as pd

MIN_SALES_DATE = 19000101
MAX_SALES_DATE = 20500101


def _missing(value: Any) -> bool:
    return value is None or pd.isna(value)


def to_number(value: Any):
    """Return value as a number, or None when it is NULL or not numeric."""
    if _missing(value):
        return None
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def reconcile_sales(sales: Any, quantity: Any, price: Any) -> Tuple[Any, Any]:
    """
    Correct the sales amount and unit price of one sales line.

    Quantity is trusted. The sales amount is replaced by quantity * |price|
    when it is NULL, non-positive or inconsistent with that product; the price
    is then replaced by corrected sales / quantity when it is NULL or
    non-positive. A zero quantity gives a NULL price instead of failing.

    When quantity * |price| cannot be computed (NULL quantity or price) the
    original sales amount is kept.

    Args:
        sales: Source sales amount
        quantity: Source quantity
        price: Source unit price

    Returns:
        (sales, price) after correction
    """
    sales = to_number(sales)
    quantity = to_number(quantity)
    price = to_number(price)

    expected = None
    if quantity is not None and price is not None:
        expected = quantity * abs(price)

    if expected is not None and (sales is None or sales <= 0 or sales != expected):
        sales = expected

    if price is None or price <= 0:
        if sales is None or quantity is None or quantity == 0:
            price = None
        else:
            price = sales / quantity

    return sales, price


def parse_sales_date(value: Any) -> Optional[str]:
    """
    Convert an integer YYYYMMDD date to ISO text.

    Returns None for NULL, non-integer, non-positive, non-8-digit,
    out-of-range (19000101..20500101) and non-calendar values.
    """
    if _missing(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer():
        return None
    number = int(number)
    if number <= 0 or len(str(number)) != 8:
        return None
    if number < MIN_SALES_DATE or number > MAX_SALES_DATE:
        return None
    try:
        parsed = date(number // 10000, number // 100 % 100, number % 100)
    except ValueError:
        return None
    return parsed.isoformat()
