# src/pos_ui_bff/routers/orders.py

import logging
import re
from datetime import date
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from .. import proxy
from ..dependencies import get_gateway
from ..gateway import AuthenticatedGateway
from ..responses import backend_error, backend_json, created, error_response
from ..workflow import group_by_status, next_status, next_status_label, parse_status, status_label
from .users import MISSING_USER_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/order", tags=["orders"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ADMIN_ROLE = "ADMINISTRATOR"

REPORT_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def _report_date(value: str) -> Optional[date]:
    """A `YYYY-MM-DD` calendar date, or None."""
    if not REPORT_DATE_PATTERN.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _visible_orders(orders, user):
    """Administrators see every order; anyone else only orders on their assigned tables."""
    if user.get("role") == ADMIN_ROLE:
        return orders
    table_ids = {table.get("id") for table in user.get("assignedTables") or [] if isinstance(table, dict)}
    return [order for order in orders if order.get("tableId") in table_ids]


@router.post("/create")
async def create_order(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    details = payload.get("details")
    if not isinstance(details, list) or not details:
        return error_response("La orden debe tener al menos un producto", status.HTTP_400_BAD_REQUEST)

    response = await gateway.fetch("/order/create", method="POST", json_body=payload)
    if not response.is_success:
        return backend_error(response, "Error al crear la orden")
    return created()


@router.put("/update")
async def update_order(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.update_resource(gateway, "order", payload, "Error en actualizar")


@router.get("/getAll")
async def get_all_orders(gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.list_resource(gateway, "order", "Error al obtener ordenes")


@router.get("/board")
async def get_order_board(gateway: AuthenticatedGateway = Depends(get_gateway)):
    """Orders grouped by status in lifecycle order, each annotated with its next action.

    Waiters only get the orders of the tables assigned to them.
    """
    user_info = gateway.store.user_info
    user_id = proxy.parse_id(user_info.id) if user_info is not None else None
    if user_id is None:
        return error_response(MISSING_USER_MESSAGE, status.HTTP_401_UNAUTHORIZED)

    response = await gateway.fetch(f"/user/{user_id}", method="GET")
    if not response.is_success:
        return backend_error(response, "Error al obtener usuario")
    user = backend_json(response)
    if not isinstance(user, dict):
        return error_response(MISSING_USER_MESSAGE, status.HTTP_401_UNAUTHORIZED)

    orders, response = await proxy.fetch_list(gateway, "order")
    if orders is None:
        return backend_error(response, "Error al obtener ordenes")

    groups = []
    for current, bucket in group_by_status(_visible_orders(orders, user)):
        upcoming = next_status(current)
        groups.append({
            "status": current.value,
            "label": status_label(current),
            "orders": [
                {
                    **order,
                    "nextStatus": upcoming.value if upcoming else None,
                    "nextStatusLabel": next_status_label(current),
                }
                for order in bucket
            ],
        })
    return {"groups": groups}


@router.post("/advance")
async def advance_order(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    """Move an order exactly one step forward in its lifecycle."""
    order_id = proxy.parse_id(payload.get("id"))
    if order_id is None:
        return proxy.missing_id()

    response = await gateway.fetch(f"/order/{order_id}", method="GET")
    if not response.is_success:
        return backend_error(response, "Error al obtener orden")

    order = backend_json(response)
    current = parse_status(order.get("status")) if isinstance(order, dict) else None
    upcoming = next_status(current)
    if upcoming is None:
        return error_response("La orden no puede avanzar de estado", status.HTTP_409_CONFLICT)

    response = await gateway.fetch(
        f"/order/update/{order_id}",
        method="PUT",
        json_body={"status": upcoming.value},
    )
    if not response.is_success:
        return backend_error(response, "Error en actualizar")

    logger.info("ORDERS: /advance - Order %s moved %s -> %s", order_id, current.value, upcoming.value)
    return {"success": True, "status": upcoming.value}


@router.post("/delete")
async def delete_order(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.delete_resource(gateway, "order", payload, "Error al eliminar la orden")


@router.get("/report")
async def download_report(
        startDate: Optional[str] = None,
        endDate: Optional[str] = None,
        gateway: AuthenticatedGateway = Depends(get_gateway),
):
    if not startDate or not endDate:
        return error_response("Faltan fechas", status.HTTP_400_BAD_REQUEST)
    if _report_date(startDate) is None or _report_date(endDate) is None:
        return error_response("Fechas inválidas, use AAAA-MM-DD", status.HTTP_400_BAD_REQUEST)

    query = urlencode({"startDate": startDate, "endDate": endDate})
    response = await gateway.fetch(f"/order/report?{query}", method="GET")
    if not response.is_success:
        return backend_error(response, "Error al obtener el reporte")

    return Response(
        content=response.content,
        status_code=status.HTTP_200_OK,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=ordenes_{startDate}_a_{endDate}.xlsx"},
    )


@router.get("/{order_id}")
async def get_order(order_id: str, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.get_resource(gateway, "order", order_id, "Error al obtener orden")
