# src/pos_ui_bff/routers/users.py

import logging

from fastapi import APIRouter, Depends, status

from .. import proxy
from ..dependencies import get_gateway
from ..gateway import AuthenticatedGateway
from ..responses import backend_error, backend_json, created, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["users"])

WAITER_ROLE = "WAITER"
MISSING_USER_MESSAGE = "No autorizado, falta ID"


@router.get("/getMyUser")
async def get_my_user(gateway: AuthenticatedGateway = Depends(get_gateway)):
    user = gateway.store.user_info
    user_id = proxy.parse_id(user.id) if user is not None else None
    if user_id is None:
        return error_response(MISSING_USER_MESSAGE, status.HTTP_401_UNAUTHORIZED)

    response = await gateway.fetch(f"/user/{user_id}", method="GET")
    if not response.is_success:
        return backend_error(response, "Error al obtener usuario")
    return backend_json(response)


@router.get("/getAll")
async def get_all_users(gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.list_resource(gateway, "user", "Error al obtener usuarios")


@router.get("/getAllWaiters")
async def get_all_waiters(gateway: AuthenticatedGateway = Depends(get_gateway)):
    users, response = await proxy.fetch_list(gateway, "user")
    if users is None:
        return backend_error(response, "Error al obtener usuarios")
    return [user for user in users if user.get("role") == WAITER_ROLE]


@router.get("/getAllActiveWaiters")
async def get_all_active_waiters(gateway: AuthenticatedGateway = Depends(get_gateway)):
    users, response = await proxy.fetch_list(gateway, "user")
    if users is None:
        return backend_error(response, "Error al obtener usuarios")
    return [user for user in users if user.get("role") == WAITER_ROLE and user.get("active")]


@router.post("/create")
async def create_user(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    body = {
        "name": payload.get("name"),
        "email": payload.get("email"),
        "password": payload.get("password"),
        "role": payload.get("role"),
        "active": payload.get("active"),
    }
    response = await gateway.fetch("/user/create", method="POST", json_body=body)
    if not response.is_success:
        return backend_error(response, "Error en registro")
    logger.info("USERS: /create - Created user %s", body["email"])
    return created()


@router.put("/update")
async def update_user(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.update_resource(gateway, "user", payload, "Error al actualizar usuario")


@router.post("/delete")
async def delete_user(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.delete_resource(gateway, "user", payload, "Error al eliminar usuario")


@router.get("/{user_id}")
async def get_user(user_id: str, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.get_resource(gateway, "user", user_id, "Error al obtener usuario")
