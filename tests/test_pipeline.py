"""
End-to-end tests: generated extracts through bronze, silver and gold
"""

import pytest

from data_generator import generate_extracts
from sales_warehouse.quality import CROSS_LAYER
from sales_warehouse.run_pipeline import SalesWarehouse, main


@pytest.fixture
def source_dir(tmp_path):
    directory = tmp_path / "source"
    generate_extracts(str(directory), num_customers=40, num_sales=300, seed=7)
    return str(directory)


@pytest.mark.slow
def test_full_pipeline(tmp_path, source_dir):
    with SalesWarehouse(db_path=str(tmp_path / "db" / "warehouse.db")) as warehouse:
        result = warehouse.run_pipeline(source_dir=source_dir)

        assert result.succeeded
        stats = warehouse.get_layer_stats()
        assert stats["bronze_crm_cust_info"] == stats["silver_crm_cust_info"] == 40
        assert stats["silver_crm_sales_details"] == 300
        assert stats["gold_fact_sales"] == 300
        assert stats["gold_dim_customer"] == 40

        report = warehouse.run_quality_checks()
        assert report.passed("silver")
        assert report.passed(CROSS_LAYER)
        assert not report.passed("bronze")


@pytest.mark.slow
def test_pipeline_rerun_is_stable(tmp_path, source_dir):
    with SalesWarehouse(db_path=str(tmp_path / "warehouse.db")) as warehouse:
        warehouse.run_pipeline(source_dir=source_dir)
        conn = warehouse.connect()
        first = conn.execute("SELECT * FROM silver_crm_prd_info ORDER BY rowid").fetchall()

        warehouse.run_pipeline(source_dir=None)
        second = conn.execute("SELECT * FROM silver_crm_prd_info ORDER BY rowid").fetchall()

    assert first == second


def test_layer_stats_before_gold(tmp_path):
    with SalesWarehouse(db_path=str(tmp_path / "warehouse.db")) as warehouse:
        warehouse.create_tables()
        stats = warehouse.get_layer_stats()

    assert stats["silver_erp_loc_a101"] == 0
    assert stats["gold_fact_sales"] == -1


@pytest.mark.slow
def test_main_runs_and_exports(tmp_path, source_dir, monkeypatch):
    monkeypatch.chdir(tmp_path)
    db_path = str(tmp_path / "warehouse.db")
    export_dir = tmp_path / "export"

    assert main(["--db", db_path, "--source-dir", source_dir, "--export-dir", str(export_dir)]) == 0
    assert len(list(export_dir.glob("*.parquet"))) == 9
    assert main(["--db", db_path, "--checks-only"]) == 0


def test_main_reports_missing_sources(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert main(["--db", str(tmp_path / "warehouse.db"), "--source-dir", str(tmp_path / "none")]) == 1


def test_pipeline_keeps_quality_report(tmp_path):
    with SalesWarehouse(db_path=str(tmp_path / "warehouse.db")) as warehouse:
        assert warehouse.quality_report is None

        result = warehouse.run_pipeline(source_dir=None, checks=True, gold=False)

        assert result.succeeded
        assert warehouse.quality_report is not None
        assert warehouse.quality_report.passed("silver")


def test_checks_only_without_tables_fails_cleanly(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert main(["--db", str(tmp_path / "empty.db"), "--checks-only"]) == 1
