"""Order placement and payment verification.

An order is created ``pending`` from a priced snapshot of the cart and is
settled exactly once, to ``paid`` or ``failed``, by the verify call that the
payment provider's redirect triggers. Settlement is a conditional update on
the status column so duplicate or concurrent verify calls cannot apply the
transition (or clear the cart) twice.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from . import config, models
from .cart import cart_lines, clear_cart, get_cart
from .errors import EmptyCartError, OrderNotFoundError, PaymentGatewayError
from .gateway import PaymentGateway
from .models import OrderStatus, utcnow

logger = logging.getLogger(__name__)

orders_table = models.Order.__table__

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PlacedOrder:
    order: models.Order
    redirect_url: str


@dataclass(frozen=True)
class Verification:
    order: models.Order
    applied: bool  # False when the order had already been settled

    @property
    def status(self) -> OrderStatus:
        return OrderStatus(self.order.status)


def checkout_urls(order_id: int) -> tuple[str, str]:
    base = config.FRONTEND_URL.rstrip("/")
    return (
        f"{base}/verify?success=true&orderId={order_id}",
        f"{base}/verify?success=false&orderId={order_id}",
    )


def place_order(
    db: Session,
    user_id: int,
    address: dict,
    delivery_fee: Decimal,
    gateway: PaymentGateway,
) -> PlacedOrder:
    """
    1. Snapshot the cart at current catalog prices.
    2. Commit the order as pending, without a payment session.
    3. Open a checkout session with the payment gateway, outside any transaction.
    4. Attach the session id.

    A gateway failure settles the order as failed. The cart is left as it is;
    it is cleared only once the payment is verified.
    """
    if not get_cart(db, user_id):
        raise EmptyCartError()

    lines = cart_lines(db, user_id, strict=True)
    delivery_fee = Decimal(delivery_fee).quantize(CENTS, rounding=ROUND_HALF_UP)
    amount = sum((line.line_total for line in lines), Decimal("0")) + delivery_fee

    order = models.Order(
        user_id=user_id,
        delivery_fee=delivery_fee,
        amount=amount,
        status=OrderStatus.PENDING.value,
        items=[
            models.OrderItem(
                food_item_id=line.food_item_id,
                name=line.name,
                price=line.unit_price,
                quantity=line.quantity,
            )
            for line in lines
        ],
        **address,
    )
    db.add(order)
    # Committed ids are never handed out again, so the id is safe to use in
    # callback urls and gateway idempotency keys.
    db.commit()

    success_url, cancel_url = checkout_urls(order.id)
    try:
        session = gateway.create_checkout_session(order.id, amount, success_url, cancel_url)
    except PaymentGatewayError:
        update_order_status(db, order.id, OrderStatus.PENDING, OrderStatus.FAILED)
        db.commit()
        db.refresh(order)
        logger.error(f"Checkout session for order {order.id} failed, order marked failed")
        raise

    order.payment_session_id = session.session_id
    db.commit()

    logger.info(f"Order {order.id} created pending payment, amount {amount}")
    return PlacedOrder(order, session.redirect_url)


def update_order_status(
    db: Session,
    order_id: int,
    expected: OrderStatus,
    new: OrderStatus,
) -> bool:
    """Set ``new`` only if the order is currently ``expected``. Does not commit."""
    result = db.execute(
        update(orders_table)
        .where(orders_table.c.id == order_id, orders_table.c.status == expected.value)
        .values(status=new.value, updated_at=utcnow())
    )
    return result.rowcount == 1


def verify_payment(db: Session, order_id: int, success: bool) -> Verification:
    new_status = OrderStatus.PAID if success else OrderStatus.FAILED

    # Write before reading so concurrent callers queue on the row instead of
    # racing a read of the old status.
    applied = update_order_status(db, order_id, OrderStatus.PENDING, new_status)

    order = db.get(models.Order, order_id, populate_existing=True)
    if order is None:
        db.rollback()
        logger.warning(f"Payment verification for unknown order {order_id}")
        raise OrderNotFoundError(order_id)

    if applied and new_status is OrderStatus.PAID:
        cleared = clear_cart(db, order.user_id)
        logger.info(f"Order {order_id} paid, cleared {cleared} cart entries of user {order.user_id}")
    elif applied:
        logger.info(f"Order {order_id} payment failed")
    else:
        logger.info(f"Order {order_id} already settled as {order.status}, verification ignored")

    db.commit()
    return Verification(order, applied)


def get_order(db: Session, order_id: int) -> models.Order | None:
    return db.get(models.Order, order_id)


def get_user_order(db: Session, user_id: int, order_id: int) -> models.Order:
    order = get_order(db, order_id)
    if order is None or order.user_id != user_id:
        raise OrderNotFoundError(order_id)
    return order


def list_user_orders(db: Session, user_id: int) -> list[models.Order]:
    stmt = (
        select(models.Order)
        .where(models.Order.user_id == user_id)
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
    )
    return list(db.execute(stmt).scalars())
