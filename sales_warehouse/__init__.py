"""
Sales Warehouse Package

Modules:
    bronze.py       - Loads the raw CRM/ERP CSV extracts into the bronze layer.
    standardize.py  - Code-table standardization of categorical fields.
    reconcile.py    - Sales amount/price reconciliation and sales date parsing.
    lifecycle.py    - Product key splitting and product end-date derivation.
    silver.py       - Per-table bronze to silver transformations.
    orchestrator.py - Runs the silver batch table by table.
    quality.py      - Data quality checks over bronze and silver.
    gold.py         - Star-schema views over the silver layer.
    export.py       - Parquet export and S3 upload of layer snapshots.
    run_pipeline.py - Orchestrates the full pipeline from the command line.

Version: 1.0.0
"""

__version__ = "1.0.0"
