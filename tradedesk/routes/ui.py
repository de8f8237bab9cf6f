"""Console-level routes: health summary and the OpenAPI document."""
import logging

from flask import Blueprint, jsonify, Response

from tradedesk.openapi_spec import get_openapi_dict, get_openapi_yaml
from tradedesk.state import get_state

log = logging.getLogger("tradedesk.routes.ui")

bp = Blueprint("ui", __name__)


@bp.route("/status")
def status():
    state = get_state()
    center = state.center
    return jsonify({
        "console": state.name,
        "notifications": len(center.notifications),
        "unread_count": center.unread_count,
        "toasts": len(center.toasts),
        "ambient_running": state.ambient_running,
        "customers": len(state.catalog.customers),
        "products": len(state.catalog.products),
        "orders": len(state.catalog.orders),
    })


@bp.route("/openapi.json")
def openapi_json():
    return jsonify(get_openapi_dict())


@bp.route("/openapi.yaml")
def openapi_yaml():
    return Response(get_openapi_yaml(), mimetype="application/yaml")
