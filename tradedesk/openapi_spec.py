"""
OpenAPI 3 document for the console API, built with apispec.

Paths are declared here; component schemas come from tradedesk.openapi_schemas.
"""
from functools import lru_cache

import yaml
from apispec import APISpec

from tradedesk.export import EXPORT_FORMATS
from tradedesk.openapi_schemas import schemas_from_models

REF_NOTIFICATION = {"$ref": "#/components/schemas/Notification"}
REF_NOTIFICATION_CREATE = {"$ref": "#/components/schemas/NotificationCreate"}
REF_NOTIFICATION_LIST = {"$ref": "#/components/schemas/NotificationList"}
REF_TOAST = {"$ref": "#/components/schemas/Toast"}
REF_SETTINGS = {"$ref": "#/components/schemas/Settings"}
REF_OK = {"type": "object", "properties": {"ok": {"type": "boolean"}}}

_COLLECTIONS = (
    ("customers", "Customer"),
    ("products", "Product"),
    ("orders", "Order"),
)


def resp_json(schema, status="200", description="OK"):
    return {
        status: {
            "description": description,
            "content": {"application/json": {"schema": schema}},
        }
    }


def _id_param(name: str) -> dict:
    return {"name": name, "in": "path", "required": True, "schema": {"type": "string"}}


def _notification_paths(spec: APISpec) -> None:
    spec.path(
        path="/notifications",
        operations=dict(
            get=dict(
                summary="List notifications",
                description="Newest first. ?limit= trims the list for the bell dropdown.",
                operationId="listNotifications",
                parameters=[{"name": "limit", "in": "query", "schema": {"type": "integer"}}],
                responses=resp_json(REF_NOTIFICATION_LIST),
            ),
            post=dict(
                summary="Add notification",
                description="Prepends a notification; also shown as a toast unless auto_close is false.",
                operationId="addNotification",
                requestBody={"content": {"application/json": {"schema": REF_NOTIFICATION_CREATE}}},
                responses={
                    **resp_json(REF_NOTIFICATION, status="201", description="Created"),
                    "400": {"description": "Unknown kind or bad duration"},
                },
            ),
            delete=dict(
                summary="Clear all notifications",
                operationId="clearNotifications",
                responses=resp_json(REF_OK),
            ),
        ),
    )
    spec.path(
        path="/notifications/read-all",
        operations=dict(post=dict(summary="Mark all read", operationId="markAllRead",
                                  responses=resp_json(REF_OK))),
    )
    spec.path(
        path="/notifications/{notif_id}/read",
        operations=dict(post=dict(
            summary="Mark one read",
            description="Unknown or already-read ids are accepted and ignored.",
            operationId="markRead",
            parameters=[_id_param("notif_id")],
            responses=resp_json(REF_OK),
        )),
    )
    spec.path(
        path="/notifications/{notif_id}",
        operations=dict(delete=dict(
            summary="Remove notification",
            description="Idempotent; removing an unknown id is not an error.",
            operationId="removeNotification",
            parameters=[_id_param("notif_id")],
            responses=resp_json(REF_OK),
        )),
    )
    spec.path(
        path="/notifications/{notif_id}/action",
        operations=dict(post=dict(
            summary="Run notification action",
            description="Runs the attached action once. Failures are reported as a new error notification.",
            operationId="runNotificationAction",
            parameters=[_id_param("notif_id")],
            responses={
                **resp_json(REF_OK),
                "400": {"description": "Notification has no action"},
                "404": {"description": "Notification not found"},
            },
        )),
    )
    spec.path(
        path="/toasts",
        operations=dict(
            get=dict(summary="Visible toasts", operationId="listToasts",
                     responses=resp_json({"type": "array", "items": REF_TOAST})),
            post=dict(summary="Show toast", operationId="showToast",
                      responses=resp_json(REF_TOAST, status="201", description="Created")),
        ),
    )
    spec.path(
        path="/toasts/{toast_id}",
        operations=dict(delete=dict(summary="Dismiss toast", operationId="dismissToast",
                                    parameters=[_id_param("toast_id")],
                                    responses=resp_json(REF_OK))),
    )


def _catalog_paths(spec: APISpec) -> None:
    for collection, schema in _COLLECTIONS:
        ref = {"$ref": f"#/components/schemas/{schema}"}
        spec.path(
            path=f"/{collection}",
            operations=dict(get=dict(
                summary=f"List {collection}",
                operationId=f"list{schema}s",
                parameters=[
                    {"name": "search", "in": "query", "schema": {"type": "string"}},
                    {"name": "status", "in": "query", "schema": {"type": "string"}},
                ],
                responses=resp_json({
                    "type": "object",
                    "properties": {"items": {"type": "array", "items": ref},
                                   "total": {"type": "integer"}},
                }),
            )),
        )
        spec.path(
            path=f"/{collection}/export",
            operations=dict(get=dict(
                summary=f"Export {collection}",
                operationId=f"export{schema}s",
                parameters=[
                    {"name": "format", "in": "query",
                     "schema": {"type": "string", "enum": list(EXPORT_FORMATS), "default": "xlsx"}},
                    {"name": "fields", "in": "query", "description": "Comma-separated columns",
                     "schema": {"type": "string"}},
                ],
                responses={"200": {"description": "File download"},
                           "400": {"description": "Unsupported format or field selection"},
                           "500": {"description": "Export failed"}},
            )),
        )
        spec.path(
            path=f"/{collection}/bulk-delete",
            operations=dict(post=dict(summary=f"Delete several {collection}",
                                      operationId=f"bulkDelete{schema}s",
                                      responses=resp_json(REF_OK))),
        )
    spec.path(
        path="/orders/{order_id}/status",
        operations=dict(post=dict(summary="Change order status", operationId="changeOrderStatus",
                                  parameters=[_id_param("order_id")],
                                  responses=resp_json({"$ref": "#/components/schemas/Order"}))),
    )


def build_spec(title: str = "Tradedesk Console API") -> APISpec:
    spec = APISpec(
        title=title,
        version="1.0.0",
        openapi_version="3.0.3",
        info=dict(
            description=(
                "JSON API behind the wholesale admin console: notifications and toasts, "
                "catalog records and exports, and console settings. Live notification "
                "events are pushed over the /ws/notifications WebSocket."
            ),
        ),
        servers=[{"url": "/", "description": "Current origin"}],
    )

    for name, schema in schemas_from_models().items():
        spec.components.schema(name, schema)

    spec.path(
        path="/status",
        operations=dict(get=dict(summary="Console health", operationId="getStatus",
                                 responses=resp_json({"type": "object"}))),
    )
    _notification_paths(spec)
    _catalog_paths(spec)
    spec.path(
        path="/settings",
        operations=dict(
            get=dict(summary="Get settings", operationId="getSettings",
                     responses=resp_json(REF_SETTINGS)),
            post=dict(
                summary="Update settings",
                operationId="updateSettings",
                requestBody={"content": {"application/json": {"schema": REF_SETTINGS}}},
                responses={
                    **resp_json(REF_SETTINGS),
                    "400": {"description": "Validation error"},
                },
            ),
        ),
    )
    return spec


@lru_cache(maxsize=1)
def _cached_spec() -> APISpec:
    return build_spec()


def get_openapi_dict() -> dict:
    return _cached_spec().to_dict()


def get_openapi_yaml() -> str:
    """The same document as YAML, keys in declaration order."""
    return yaml.safe_dump(get_openapi_dict(), allow_unicode=True, sort_keys=False)
