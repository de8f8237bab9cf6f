from __future__ import annotations

import csv
import io
import json

import pytest
from openpyxl import load_workbook

from tradedesk import export
from tradedesk.catalog import Catalog
from tradedesk.export import ExportFailed, export_records, run_export


@pytest.fixture
def catalog(center):
    return Catalog(center, seed=3)


def _titles(center):
    return [n.title for n in center.notifications]


def test_export_csv_flattens_lists(catalog):
    orders = catalog.query("orders")[:3]
    result = export_records(orders, "csv", name="orders")
    assert result.mimetype.startswith("text/csv")
    assert result.filename == "orders.csv"
    assert result.records == 3

    rows = list(csv.DictReader(io.StringIO(result.body)))
    assert [r["id"] for r in rows] == [o.id for o in orders]
    assert rows[0]["products"] == ", ".join(orders[0].products)


def test_export_json(catalog):
    result = export_records(catalog.query("customers")[:2], "JSON", "customers")
    assert result.mimetype == "application/json"
    assert result.filename == "customers.json"
    assert [c["id"] for c in json.loads(result.body)] == ["1", "2"]


def test_export_xlsx_writes_data_sheet(catalog):
    products = catalog.query("products")[:4]
    result = export_records(products, "xlsx", name="products")
    assert result.filename == "products.xlsx"
    assert result.mimetype.endswith("spreadsheetml.sheet")

    sheet = load_workbook(io.BytesIO(result.body)).active
    assert sheet.title == "Data"
    rows = list(sheet.iter_rows(values_only=True))
    assert list(rows[0]) == list(products[0].to_dict())
    assert rows[1][0] == products[0].id
    assert len(rows) == 5


def test_export_selected_fields_in_requested_order(catalog):
    result = export_records(catalog.query("customers")[:2], "json", fields=["email", "name"])
    assert result.fields == ["email", "name"]
    assert [list(row) for row in json.loads(result.body)] == [["email", "name"]] * 2


@pytest.mark.parametrize("fields", [[], ["name", "shoe_size"]])
def test_export_rejects_bad_field_selection(catalog, fields):
    with pytest.raises(ValueError):
        export_records(catalog.query("customers"), "csv", fields=fields)


def test_export_empty_and_bad_format():
    assert export_records([], "csv").body == ""
    with pytest.raises(ValueError):
        export_records([], "pdf")


def test_run_export_announces_progress_and_analytics(center, catalog):
    customers = catalog.query("customers")
    result = run_export(center, customers, "xlsx", name="customers", fields=["id", "name"])
    assert result.records == 60

    analytics, done, started = center.notifications
    assert _titles(center) == ["Export Analytics", "Export completed successfully", "Export Started"]
    assert started.message == "Preparing 60 records for export in XLSX format"
    assert done.kind == "success"
    assert done.action.label == "Export Again"
    assert analytics.auto_close is False
    assert analytics.message == "Export included 2 fields from 60 total records"


def test_export_again_repeats_the_export(center, catalog):
    run_export(center, catalog.query("orders")[:5], "csv", name="orders")
    done = center.notifications[1]

    assert center.invoke_action(done.id)
    assert _titles(center)[:3] == [
        "Export Analytics", "Export completed successfully", "Export Started"]
    assert len(center.notifications) == 6


def test_run_export_rejects_bad_input_before_announcing(center, catalog):
    with pytest.raises(ValueError):
        run_export(center, catalog.query("orders"), "pdf")
    with pytest.raises(ValueError):
        run_export(center, catalog.query("orders"), "csv", fields=["colour"])
    assert center.notifications == []


def test_run_export_failure_offers_retry(center, catalog, monkeypatch):
    def boom(rows, fields):
        raise OSError("disk full")

    monkeypatch.setitem(export._WRITERS, "csv", boom)
    with pytest.raises(ExportFailed):
        run_export(center, catalog.query("products"), "csv", name="products")

    failed, started = center.notifications
    assert started.title == "Export Started"
    assert (failed.title, failed.kind) == ("Export failed", "error")
    assert failed.auto_close is False
    assert "disk full" in failed.message
    assert failed.action.label == "Retry"

    monkeypatch.undo()
    assert center.invoke_action(failed.id)
    assert center.notifications[1].title == "Export completed successfully"
