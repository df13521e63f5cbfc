"""
Code-table standardization for categorical source fields.

Every raw code is trimmed and upper-cased before it is looked up in its code
table. Unknown, blank and NULL codes map to FALLBACK, except for country where
non-blank unknown values are kept as they arrived.
"""
from typing import Any, Dict, NamedTuple

import pandas as pd

FALLBACK = "N/A"


class CodeTable(NamedTuple):
    name: str
    codes: Dict[str, str]
    passthrough: bool = False

    @property
    def labels(self):
        """Every value the standardizer can produce for this table, except passthrough values."""
        return sorted(set(self.codes.values()) | {FALLBACK})


MARITAL_STATUS = CodeTable("marital_status", {
    "M": "Married",
    "S": "Single",
})

CRM_GENDER = CodeTable("crm_gender", {
    "F": "Female",
    "FEMALE": "Female",
    "M": "Male",
    "MALE": "Male",
})

ERP_GENDER = CodeTable("erp_gender", {
    "M": "Male",
    "MALE": "Male",
    "F": "Female",
    "FEMALE": "Female",
})

PRODUCT_LINE = CodeTable("product_line", {
    "M": "Mountain",
    "R": "Road",
    "S": "Other Sales",
    "T": "Touring",
})

COUNTRY = CodeTable("country", {
    "DE": "Germany",
    "US": "United States",
    "USA": "United States",
}, passthrough=True)


def _normalize(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip().upper()


def standardize(value: Any, table: CodeTable) -> Any:
    """
    Map a raw code to its canonical label.

    Args:
        value: Raw field value (any type, possibly NULL/NaN)
        table: Code table to look the value up in

    Returns:
        The canonical label, FALLBACK, or for passthrough tables the
        untouched input when it is non-blank and unknown
    """
    code = _normalize(value)
    if not code:
        return FALLBACK
    if code in table.codes:
        return table.codes[code]
    return value if table.passthrough else FALLBACK


def standardize_marital_status(value: Any) -> str:
    return standardize(value, MARITAL_STATUS)


def standardize_crm_gender(value: Any) -> str:
    return standardize(value, CRM_GENDER)


def standardize_erp_gender(value: Any) -> str:
    return standardize(value, ERP_GENDER)


def standardize_product_line(value: Any) -> str:
    return standardize(value, PRODUCT_LINE)


def standardize_country(value: Any) -> Any:
    return standardize(value, COUNTRY)
