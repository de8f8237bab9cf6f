"""
Export catalog records as spreadsheet, CSV or JSON downloads.

export_records() is the pure serializer. run_export() is what the console
calls: it reports the export through the notification center the way the
export dialog does (started, completed with "Export Again", analytics, or
failed with "Retry").
"""
import csv
import io
import json
import logging
from dataclasses import dataclass

from openpyxl import Workbook

from tradedesk.models import NotificationAction

log = logging.getLogger("tradedesk.export")

EXPORT_FORMATS = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv; charset=utf-8",
    "json": "application/json",
}


class ExportFailed(RuntimeError):
    """Serialization failed after the export was announced."""


@dataclass
class ExportResult:
    body: str | bytes
    mimetype: str
    filename: str
    records: int
    fields: list[str]


def _flatten(value):
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return value


def _write_json(rows, fields) -> str:
    return json.dumps(rows, ensure_ascii=False, indent=2)


def _write_csv(rows, fields) -> str:
    buf = io.StringIO()
    if fields:
        writer = csv.DictWriter(buf, fieldnames=fields)
        writer.writeheader()
        for row in rows:
            writer.writerow({k: _flatten(v) for k, v in row.items()})
    return buf.getvalue()


def _write_xlsx(rows, fields) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    if fields:
        ws.append(fields)
        for row in rows:
            ws.append([_flatten(row[f]) for f in fields])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


_WRITERS = {
    "xlsx": _write_xlsx,
    "csv": _write_csv,
    "json": _write_json,
}


def check_format(fmt: str) -> str:
    fmt = (fmt or "").strip().lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"format must be one of {tuple(EXPORT_FORMATS)}")
    return fmt


def select_fields(records: list, fields: list[str] | None) -> list[str]:
    """
    Resolve the exported columns. None means every field of the records;
    an empty selection or a field the records don't have is a ValueError.
    """
    available = list(records[0].to_dict()) if records else []
    if fields is None:
        return available
    if not fields:
        raise ValueError("select at least one field to export")
    if records:
        unknown = [f for f in fields if f not in available]
        if unknown:
            raise ValueError(f"unknown export fields: {unknown}")
    return list(fields)


def export_records(records: list, fmt: str, name: str = "export",
                   fields: list[str] | None = None) -> ExportResult:
    """Serialize records (anything with to_dict()) for download."""
    fmt = check_format(fmt)
    columns = select_fields(records, fields)
    rows = [{f: r.to_dict()[f] for f in columns} for r in records]
    body = _WRITERS[fmt](rows, columns)
    return ExportResult(body, EXPORT_FORMATS[fmt], f"{name}.{fmt}", len(rows), columns)


def run_export(center, records: list, fmt: str, name: str = "export",
               fields: list[str] | None = None) -> ExportResult:
    """
    export_records() with the console's notifications around it.

    Bad format or field selections are rejected before anything is
    announced. A failure while writing becomes an error notification with
    a Retry action and is raised as ExportFailed.
    """
    fmt = check_format(fmt)
    select_fields(records, fields)

    def _again():
        run_export(center, records, fmt, name, fields)

    center.add_notification(
        title="Export Started",
        message=f"Preparing {len(records)} records for export in {fmt.upper()} format",
        kind="info",
        auto_close=True,
    )
    try:
        result = export_records(records, fmt, name, fields)
    except Exception as exc:
        log.exception("Export of %s as %s failed", name, fmt)
        center.add_notification(
            title="Export failed",
            message=f"Export failed: {exc}",
            kind="error",
            auto_close=False,
            action=NotificationAction("Retry", _again),
        )
        raise ExportFailed(str(exc)) from exc

    center.add_notification(
        title="Export completed successfully",
        message=f"{result.records} records exported successfully as {result.filename}",
        kind="success",
        auto_close=True,
        action=NotificationAction("Export Again", _again),
    )
    center.add_notification(
        title="Export Analytics",
        message=(f"Export included {len(result.fields)} fields from "
                 f"{result.records} total records"),
        kind="info",
        auto_close=False,
    )
    log.info("Exported %d %s as %s", result.records, name, result.filename)
    return result
