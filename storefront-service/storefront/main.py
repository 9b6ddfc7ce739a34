import logging
import uuid
from typing import List

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import auth, cart, catalog, config, db, orders, schemas
from .deps import get_correlation_id, get_current_user_id, get_db, get_gateway
from .errors import StorefrontError
from .gateway import PaymentGateway
from .logging_config import setup_logging
from .metrics import (
    CART_MUTATIONS,
    ORDERS_CREATED,
    PAYMENT_VERIFICATIONS,
    MetricsMiddleware,
    metrics_endpoint,
)

# ----- Logging -----
setup_logging()
logger = logging.getLogger(config.SERVICE_NAME)

# ----- Init -----
db.init_db()
app = FastAPI(title=config.SERVICE_NAME, version="v1")
app.add_middleware(MetricsMiddleware, service_name=config.SERVICE_NAME)


# ----- Errors -----

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    cid = getattr(request.state, "correlation_id", None) or request.headers.get(
        "x-correlation-id", str(uuid.uuid4())
    )
    level = logging.WARNING if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"{request.method} {request.url.path} -> {exc.code}: {exc.message}",
        extra={"correlation_id": cid},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"code": exc.code, "message": exc.message, "correlationId": cid}},
    )


# ----- Infra Endpoints -----

@app.get("/health")
def health():
    return {"status": "ok", "service": config.SERVICE_NAME}


@app.get("/metrics")
def metrics():
    return metrics_endpoint()


def _cart_read(items: dict) -> schemas.CartRead:
    return schemas.CartRead(
        items=[schemas.CartEntry(food_item_id=k, quantity=v) for k, v in items.items()]
    )


# ----- API: Auth -----

@app.post("/v1/auth/register", response_model=schemas.TokenResponse, status_code=201)
def register(
    payload: schemas.RegisterRequest,
    db_sess: Session = Depends(get_db),
    cid: str = Depends(get_correlation_id),
):
    token = auth.register_user(db_sess, payload.name, payload.email, payload.password)
    return schemas.TokenResponse(token=token)


@app.post("/v1/auth/login", response_model=schemas.TokenResponse)
def login(
    payload: schemas.LoginRequest,
    db_sess: Session = Depends(get_db),
    cid: str = Depends(get_correlation_id),
):
    token = auth.authenticate_user(db_sess, payload.email, payload.password)
    return schemas.TokenResponse(token=token)


# ----- API: Catalog -----

@app.get("/v1/food", response_model=List[schemas.FoodItemRead])
def list_food(category: str | None = None, db_sess: Session = Depends(get_db)):
    return catalog.list_food_items(db_sess, category)


# ----- API: Cart -----

@app.get("/v1/cart", response_model=schemas.CartView)
def get_cart(
    cid: str = Depends(get_correlation_id),
    user_id: int = Depends(get_current_user_id),
    db_sess: Session = Depends(get_db),
):
    items = cart.get_cart(db_sess, user_id)
    subtotal = cart.compute_subtotal(db_sess, user_id)
    return schemas.CartView(items=_cart_read(items).items, subtotal=subtotal)


@app.post("/v1/cart/add", response_model=schemas.CartRead)
def add_to_cart(
    payload: schemas.CartItemRequest,
    cid: str = Depends(get_correlation_id),
    user_id: int = Depends(get_current_user_id),
    db_sess: Session = Depends(get_db),
):
    items = cart.add_to_cart(db_sess, user_id, payload.food_item_id)
    CART_MUTATIONS.labels("add").inc()
    return _cart_read(items)


@app.post("/v1/cart/remove", response_model=schemas.CartRead)
def remove_from_cart(
    payload: schemas.CartItemRequest,
    cid: str = Depends(get_correlation_id),
    user_id: int = Depends(get_current_user_id),
    db_sess: Session = Depends(get_db),
):
    items = cart.remove_from_cart(db_sess, user_id, payload.food_item_id)
    CART_MUTATIONS.labels("remove").inc()
    return _cart_read(items)


# ----- API: Orders -----

@app.post("/v1/order/place", response_model=schemas.PlaceOrderResponse, status_code=201)
def place_order(
    payload: schemas.PlaceOrderRequest,
    cid: str = Depends(get_correlation_id),
    user_id: int = Depends(get_current_user_id),
    db_sess: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
):
    """
    Orchestration flow:
    1. Snapshot the caller's cart at current catalog prices.
    2. Create the order pending payment.
    3. Open a checkout session with the payment gateway.
    4. Hand the redirect url back; the cart stays until payment is verified.
    """
    delivery_fee = payload.delivery_fee if payload.delivery_fee is not None else config.DELIVERY_FEE
    try:
        placed = orders.place_order(
            db_sess,
            user_id,
            payload.address.model_dump(),
            delivery_fee,
            gateway,
        )
    except StorefrontError as e:
        ORDERS_CREATED.labels(e.code).inc()
        raise

    ORDERS_CREATED.labels("PENDING").inc()
    logger.info(
        f"Order {placed.order.id} awaiting payment, session {placed.order.payment_session_id}",
        extra={"correlation_id": cid},
    )
    return schemas.PlaceOrderResponse(
        order_id=placed.order.id,
        amount=placed.order.amount,
        redirect_url=placed.redirect_url,
    )


@app.post("/v1/order/verify", response_model=schemas.VerifyPaymentResponse)
def verify_payment(
    payload: schemas.VerifyPaymentRequest,
    cid: str = Depends(get_correlation_id),
    db_sess: Session = Depends(get_db),
):
    result = orders.verify_payment(db_sess, payload.order_id, payload.success)
    PAYMENT_VERIFICATIONS.labels(result.status.value, str(result.applied).lower()).inc()
    logger.info(
        f"Order {payload.order_id} verification: {result.status.value} (applied={result.applied})",
        extra={"correlation_id": cid},
    )
    return schemas.VerifyPaymentResponse(
        order_id=result.order.id,
        status=result.status.value,
        success=result.status is orders.OrderStatus.PAID,
    )


@app.get("/v1/orders", response_model=List[schemas.OrderRead])
def list_my_orders(
    cid: str = Depends(get_correlation_id),
    user_id: int = Depends(get_current_user_id),
    db_sess: Session = Depends(get_db),
):
    return orders.list_user_orders(db_sess, user_id)


@app.get("/v1/orders/{order_id}", response_model=schemas.OrderRead)
def get_order(
    order_id: int,
    cid: str = Depends(get_correlation_id),
    user_id: int = Depends(get_current_user_id),
    db_sess: Session = Depends(get_db),
):
    return orders.get_user_order(db_sess, user_id, order_id)


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
