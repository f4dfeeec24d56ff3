# src/pos_ui_bff/proxy.py
"""
Plain list/get/create/update/delete forwarding for backend resources.

Backend conventions: `GET /<res>`, `GET /<res>/{id}`, `POST /<res>/create`,
`PUT /<res>/update/{id}`, `DELETE /<res>/delete/{id}`.
"""

from typing import Any, List, Mapping, Optional, Tuple

import httpx
from fastapi import status

from .errors import InvalidBackendResponse
from .gateway import AuthenticatedGateway
from .responses import backend_error, backend_json, created, error_response

MISSING_ID_MESSAGE = "ID no proporcionado"


def parse_id(value: Any) -> Optional[int]:
    """Numeric resource id from a body field, path segment or cookie; None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def missing_id():
    return error_response(MISSING_ID_MESSAGE, status.HTTP_400_BAD_REQUEST)


async def fetch_list(gateway: AuthenticatedGateway, resource: str) -> Tuple[Optional[List[Any]], httpx.Response]:
    """The backend list for `resource` (None when the backend refused) and the raw response."""
    response = await gateway.fetch(f"/{resource}", method="GET")
    if not response.is_success:
        return None, response
    items = backend_json(response)
    if not isinstance(items, list):
        raise InvalidBackendResponse()
    return items, response


async def list_resource(gateway: AuthenticatedGateway, resource: str, error_message: str):
    items, response = await fetch_list(gateway, resource)
    if items is None:
        return backend_error(response, error_message)
    return items


async def get_resource(gateway: AuthenticatedGateway, resource: str, raw_id: Any, error_message: str):
    resource_id = parse_id(raw_id)
    if resource_id is None:
        return missing_id()
    response = await gateway.fetch(f"/{resource}/{resource_id}", method="GET")
    if not response.is_success:
        return backend_error(response, error_message)
    return backend_json(response)


async def create_resource(gateway: AuthenticatedGateway, resource: str, body: Mapping[str, Any], error_message: str):
    response = await gateway.fetch(f"/{resource}/create", method="POST", json_body=dict(body))
    if not response.is_success:
        return backend_error(response, error_message)
    return created()


async def update_resource(gateway: AuthenticatedGateway, resource: str, payload: Mapping[str, Any], error_message: str):
    """Forward `payload` minus its `id`, which goes into the path."""
    update = dict(payload)
    resource_id = parse_id(update.pop("id", None))
    if resource_id is None:
        return missing_id()
    response = await gateway.fetch(f"/{resource}/update/{resource_id}", method="PUT", json_body=update)
    if not response.is_success:
        return backend_error(response, error_message)
    return created()


async def delete_resource(gateway: AuthenticatedGateway, resource: str, payload: Mapping[str, Any], error_message: str):
    resource_id = parse_id(payload.get("id"))
    if resource_id is None:
        return missing_id()
    response = await gateway.fetch(f"/{resource}/delete/{resource_id}", method="DELETE")
    if not response.is_success:
        return backend_error(response, error_message)
    return created()
