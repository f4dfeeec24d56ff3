# src/pos_ui_bff/routers/catalog.py
# Categories, products and restaurant tables.

from fastapi import APIRouter, Depends

from .. import proxy
from ..dependencies import get_gateway
from ..gateway import AuthenticatedGateway

router = APIRouter(prefix="/api", tags=["catalog"])

TABLE_RESOURCE = "restaurant-table"


# --- Categories ---

@router.get("/category/getAll")
async def get_all_categories(gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.list_resource(gateway, "category", "Error al obtener categorias")


@router.post("/category/create")
async def create_category(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.create_resource(
        gateway, "category", {"name": payload.get("name")}, "Error al crear la categoria"
    )


@router.post("/category/delete")
async def delete_category(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.delete_resource(gateway, "category", payload, "Error al eliminar la categoria")


# --- Products ---

@router.get("/product/getAll")
async def get_all_products(gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.list_resource(gateway, "product", "Error al obtener productos")


@router.post("/product/create")
async def create_product(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    body = {
        "name": payload.get("name"),
        "description": payload.get("description"),
        "price": payload.get("price"),
        "categoryId": payload.get("categoryId"),
    }
    return await proxy.create_resource(gateway, "product", body, "Error al crear el producto")


@router.put("/product/update")
async def update_product(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.update_resource(gateway, "product", payload, "Error al actualizar el producto")


@router.post("/product/delete")
async def delete_product(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.delete_resource(gateway, "product", payload, "Error al eliminar el producto")


@router.get("/product/{product_id}")
async def get_product(product_id: str, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.get_resource(gateway, "product", product_id, "Error al obtener producto")


# --- Restaurant tables ---

@router.get("/table/getAll")
async def get_all_tables(gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.list_resource(gateway, TABLE_RESOURCE, "Error al obtener mesas")


@router.post("/table/create")
async def create_table(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.create_resource(gateway, TABLE_RESOURCE, payload, "Error al crear la mesa")


@router.put("/table/update")
async def update_table(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    """Also assigns a waiter (`waiterId`), or unassigns one with `waiterId: -1`."""
    return await proxy.update_resource(gateway, TABLE_RESOURCE, payload, "Error al actualizar mesa")


@router.post("/table/delete")
async def delete_table(payload: dict, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.delete_resource(gateway, TABLE_RESOURCE, payload, "Error al eliminar la Mesa")


@router.get("/table/{table_id}")
async def get_table(table_id: str, gateway: AuthenticatedGateway = Depends(get_gateway)):
    return await proxy.get_resource(gateway, TABLE_RESOURCE, table_id, "Error al obtener mesa")
