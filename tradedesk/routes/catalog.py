"""Catalog routes: customers, products and orders, plus spreadsheet/CSV/JSON export."""
import logging

from flask import Blueprint, request, jsonify, Response

from tradedesk.catalog import COLLECTIONS, RecordNotFound
from tradedesk.export import ExportFailed, run_export
from tradedesk.models import ORDER_STATUSES
from tradedesk.state import get_state

log = logging.getLogger("tradedesk.routes.catalog")

bp = Blueprint("catalog", __name__)

_COLLECTION_PATTERN = f"<any({', '.join(COLLECTIONS)}):collection>"


def _not_found(exc: RecordNotFound):
    return jsonify({"error": exc.args[0] if exc.args else "not found"}), 404


@bp.route(f"/{_COLLECTION_PATTERN}")
def list_records(collection):
    records = get_state().catalog.query(
        collection,
        search=(request.args.get("search") or "").strip(),
        status=(request.args.get("status") or "").strip(),
    )
    return jsonify({"items": [r.to_dict() for r in records], "total": len(records)})


@bp.route(f"/{_COLLECTION_PATTERN}/export")
def export_collection(collection):
    state = get_state()
    records = state.catalog.query(
        collection, search=(request.args.get("search") or "").strip())
    raw_fields = request.args.get("fields")
    fields = None
    if raw_fields is not None:
        fields = [f.strip() for f in raw_fields.split(",") if f.strip()]
    try:
        result = run_export(state.center, records, request.args.get("format", "xlsx"),
                            name=collection, fields=fields)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    except ExportFailed as exc:
        return jsonify({"error": f"export failed: {exc}"}), 500
    return Response(result.body, mimetype=result.mimetype,
                    headers={"Content-Disposition": f"attachment; filename={result.filename}"})


@bp.route(f"/{_COLLECTION_PATTERN}/bulk-delete", methods=["POST"])
def bulk_delete(collection):
    ids = (request.json or {}).get("ids")
    if not isinstance(ids, list) or not ids:
        return jsonify({"error": "ids must be a non-empty list"}), 400
    removed = get_state().catalog.bulk_delete(collection, [str(i) for i in ids])
    return jsonify({"ok": True, "removed": removed})


# ── Customers ─────────────────────────────────────────────────

@bp.route("/customers", methods=["POST"])
def create_customer():
    data = request.json or {}
    try:
        customer = get_state().catalog.add_customer(
            name=str(data.get("name", "")).strip(),
            email=str(data.get("email", "")).strip(),
            phone=str(data.get("phone", "")).strip(),
            address=str(data.get("address", "")).strip(),
            city=str(data.get("city", "")).strip(),
            status="inactive" if data.get("status") == "inactive" else "active",
        )
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(customer.to_dict()), 201


@bp.route("/customers/<customer_id>", methods=["DELETE"])
def delete_customer(customer_id):
    try:
        get_state().catalog.delete_customer(customer_id)
    except RecordNotFound as exc:
        return _not_found(exc)
    return jsonify({"ok": True})


# ── Products ──────────────────────────────────────────────────

def _product_fields(data: dict) -> dict:
    out = {}
    for fld in ("name", "category", "description", "sku", "supplier"):
        if fld in data:
            out[fld] = str(data[fld]).strip()
    if "price" in data:
        out["price"] = max(0.0, float(data["price"]))
    if "stock" in data:
        out["stock"] = max(0, int(data["stock"]))
    return out


@bp.route("/products", methods=["POST"])
def create_product():
    try:
        fields = _product_fields(request.json or {})
        product = get_state().catalog.add_product(
            name=fields.get("name", ""),
            category=fields.get("category", ""),
            price=fields.get("price", 0.0),
            stock=fields.get("stock", 0),
            description=fields.get("description", ""),
            sku=fields.get("sku", ""),
            supplier=fields.get("supplier", ""),
        )
    except (ValueError, TypeError) as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(product.to_dict()), 201


@bp.route("/products/<product_id>", methods=["PUT"])
def update_product(product_id):
    try:
        fields = _product_fields(request.json or {})
        product = get_state().catalog.update_product(product_id, **fields)
    except RecordNotFound as exc:
        return _not_found(exc)
    except (ValueError, TypeError) as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(product.to_dict())


@bp.route("/products/<product_id>", methods=["DELETE"])
def delete_product(product_id):
    try:
        get_state().catalog.delete_product(product_id)
    except RecordNotFound as exc:
        return _not_found(exc)
    return jsonify({"ok": True})


# ── Orders ────────────────────────────────────────────────────

@bp.route("/orders/<order_id>/status", methods=["POST"])
def change_order_status(order_id):
    status = (request.json or {}).get("status")
    if status not in ORDER_STATUSES:
        return jsonify({"error": f"status must be one of {ORDER_STATUSES}"}), 400
    try:
        order = get_state().catalog.change_order_status(order_id, status)
    except RecordNotFound as exc:
        return _not_found(exc)
    return jsonify(order.to_dict())


@bp.route("/orders/bulk-status", methods=["POST"])
def bulk_order_status():
    data = request.json or {}
    ids = data.get("ids")
    status = data.get("status")
    if not isinstance(ids, list) or not ids:
        return jsonify({"error": "ids must be a non-empty list"}), 400
    if status not in ORDER_STATUSES:
        return jsonify({"error": f"status must be one of {ORDER_STATUSES}"}), 400
    updated = get_state().catalog.bulk_update_status([str(i) for i in ids], status)
    return jsonify({"ok": True, "updated": updated})


@bp.route("/orders/<order_id>", methods=["DELETE"])
def delete_order(order_id):
    try:
        get_state().catalog.delete_order(order_id)
    except RecordNotFound as exc:
        return _not_found(exc)
    return jsonify({"ok": True})

