import logging
import os
import time
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from auth import clear_session_cookie, create_token, set_session_cookie, verify_admin, verify_seller, verify_token
from database import db, parse_object_id, serialize_doc
from repositories import AccountRepository
from schemas import AccountProfile, Order, Plant, QuantityUpdate, RoleUpdate, SessionPayload, StatusUpdate
from services import (
    AccountNotFound,
    AccountService,
    CatalogService,
    OrderDelivered,
    OrderNotFound,
    OrderService,
    PlantNotFound,
    get_account_service,
    get_catalog_service,
    get_order_service,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PlantBay API")

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:5174")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in ALLOWED_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    logger.info("%s %s %d %.1f ms", request.method, request.url.path, response.status_code, elapsed)
    return response


@app.on_event("startup")
def check_database():
    if db is None:
        logger.warning("DATABASE_URL/DATABASE_NAME not set, database routes will answer 500")
        return
    try:
        db.client.admin.command("ping")
        AccountRepository(db).ensure_indexes()
        logger.info("Pinged your deployment. Connected to MongoDB")
    except Exception:
        logger.exception("Could not reach MongoDB at startup")


@app.get("/")
def read_root():
    return {"message": "Hello from PlantBay Server.."}


# -----------------------------
# Session
# -----------------------------

@app.post("/jwt")
def issue_token(payload: SessionPayload, response: Response):
    token = create_token(payload.model_dump(mode="json"))
    set_session_cookie(response, token)
    return {"success": True}


@app.get("/logout")
def logout(response: Response):
    clear_session_cookie(response)
    return {"success": True}


# -----------------------------
# Users
# -----------------------------

@app.post("/users/{email}")
def save_user(email: str, profile: AccountProfile, accounts: AccountService = Depends(get_account_service)):
    result = accounts.upsert_account(email, profile)
    if "user" in result:
        result["user"] = serialize_doc(result["user"])
    return result


@app.get("/all-users/{email}", dependencies=[Depends(verify_admin)])
def list_users(email: str, accounts: AccountService = Depends(get_account_service)):
    return [serialize_doc(d) for d in accounts.list_accounts_except(email)]


@app.patch("/users/role/{email}", dependencies=[Depends(verify_admin)])
def update_role(email: str, payload: RoleUpdate, accounts: AccountService = Depends(get_account_service)):
    return accounts.set_role(email, payload.role)


@app.patch("/users/{email}", dependencies=[Depends(verify_token)])
def request_role_change(email: str, accounts: AccountService = Depends(get_account_service)):
    try:
        return accounts.request_role_change(email)
    except AccountNotFound:
        raise HTTPException(status_code=404, detail="User not found or request is pending")


@app.get("/users/role/{email}")
def get_role(email: str, accounts: AccountService = Depends(get_account_service)):
    try:
        return {"role": accounts.get_role(email)}
    except AccountNotFound:
        raise HTTPException(status_code=404, detail="User not found")


# -----------------------------
# Plants
# -----------------------------

@app.get("/plants/seller")
def list_seller_plants(user: dict = Depends(verify_seller), plants: CatalogService = Depends(get_catalog_service)):
    return [serialize_doc(d) for d in plants.list_items_for_seller(user.get("email"))]


@app.post("/plants")
def create_plant(plant: Plant, plants: CatalogService = Depends(get_catalog_service)):
    pid = plants.create_item(plant)
    return {"acknowledged": True, "insertedId": pid}


@app.get("/plants", response_model=List[dict])
def list_plants(plants: CatalogService = Depends(get_catalog_service)):
    return [serialize_doc(d) for d in plants.list_items()]


@app.get("/plants/{plant_id}")
def get_plant(plant_id: str, plants: CatalogService = Depends(get_catalog_service)):
    try:
        return serialize_doc(plants.get_item(parse_object_id(plant_id)))
    except PlantNotFound:
        raise HTTPException(status_code=404, detail="Plant not found")


@app.delete("/plants/{plant_id}", dependencies=[Depends(verify_seller)])
def delete_plant(plant_id: str, plants: CatalogService = Depends(get_catalog_service)):
    return plants.delete_item(parse_object_id(plant_id))


@app.patch("/plants/quantity/{plant_id}")
def update_plant_quantity(plant_id: str, payload: QuantityUpdate, plants: CatalogService = Depends(get_catalog_service)):
    return plants.adjust_quantity(parse_object_id(plant_id), payload.quantityToUpdate, payload.status)


# -----------------------------
# Orders
# -----------------------------

@app.post("/orders", dependencies=[Depends(verify_token)])
def place_order(order: Order, orders: OrderService = Depends(get_order_service)):
    oid = orders.place_order(order)
    return {"acknowledged": True, "insertedId": oid}


@app.get("/customers-orders/{email}")
def customer_orders(email: str, orders: OrderService = Depends(get_order_service)):
    return [serialize_doc(d) for d in orders.list_orders_for_customer(email)]


@app.get("/manage-orders/{email}", dependencies=[Depends(verify_seller)])
def seller_orders(email: str, orders: OrderService = Depends(get_order_service)):
    return [serialize_doc(d) for d in orders.list_orders_for_seller(email)]


@app.patch("/orders/status/{order_id}")
def update_order_status(order_id: str, payload: StatusUpdate, orders: OrderService = Depends(get_order_service)):
    return orders.update_order_status(parse_object_id(order_id), payload.status)


@app.delete("/orders/{order_id}")
def delete_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    try:
        return orders.delete_order(parse_object_id(order_id))
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except OrderDelivered:
        raise HTTPException(status_code=409, detail="You can not delete delivered order")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
