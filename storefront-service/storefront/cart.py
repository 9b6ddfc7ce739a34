"""Per-user cart aggregation.

A cart is the set of ``cart_items`` rows owned by one user. Quantities are
changed with single atomic statements (upsert on add, guarded decrement on
remove) so concurrent requests for the same user never lose an update.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import and_, delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from . import catalog, models
from .errors import CatalogInconsistencyError

logger = logging.getLogger(__name__)

cart_table = models.CartItem.__table__

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@dataclass(frozen=True)
class CartLine:
    food_item_id: int
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


def _entry(user_id: int, food_item_id: int):
    return and_(cart_table.c.user_id == user_id, cart_table.c.food_item_id == food_item_id)


def _increment(db: Session, user_id: int, food_item_id: int):
    dialect = db.get_bind().dialect.name
    upsert = _UPSERT_DIALECTS.get(dialect)
    if upsert is None:
        raise RuntimeError(f"Cart storage needs INSERT ... ON CONFLICT, not available on {dialect}")

    stmt = upsert(cart_table).values(user_id=user_id, food_item_id=food_item_id, quantity=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[cart_table.c.user_id, cart_table.c.food_item_id],
        set_={"quantity": cart_table.c.quantity + 1},
    )
    db.execute(stmt)


def add_to_cart(db: Session, user_id: int, food_item_id: int) -> dict[int, int]:
    _increment(db, user_id, food_item_id)
    db.commit()
    return get_cart(db, user_id)


def remove_from_cart(db: Session, user_id: int, food_item_id: int) -> dict[int, int]:
    """Decrement by one; removing an item that is not in the cart does nothing."""
    db.execute(
        update(cart_table)
        .where(_entry(user_id, food_item_id), cart_table.c.quantity > 0)
        .values(quantity=cart_table.c.quantity - 1)
    )
    db.execute(delete(cart_table).where(_entry(user_id, food_item_id), cart_table.c.quantity <= 0))
    db.commit()
    return get_cart(db, user_id)


def clear_cart(db: Session, user_id: int) -> int:
    """Delete every entry of the user's cart. Does not commit."""
    return db.execute(delete(cart_table).where(cart_table.c.user_id == user_id)).rowcount


def get_cart(db: Session, user_id: int) -> dict[int, int]:
    rows = db.execute(
        select(cart_table.c.food_item_id, cart_table.c.quantity)
        .where(cart_table.c.user_id == user_id, cart_table.c.quantity > 0)
        .order_by(cart_table.c.id)
    )
    return {food_item_id: quantity for food_item_id, quantity in rows}


def cart_lines(db: Session, user_id: int, strict: bool = False) -> list[CartLine]:
    """Price the cart against the current catalog.

    Items missing from the catalog are skipped, or raise
    ``CatalogInconsistencyError`` when ``strict`` is set.
    """
    cart = get_cart(db, user_id)
    items = catalog.get_food_items(db, cart.keys())

    lines = []
    for food_item_id, quantity in cart.items():
        item = items.get(food_item_id)
        if item is None:
            if strict:
                raise CatalogInconsistencyError(food_item_id)
            logger.warning(f"Cart of user {user_id} references missing food item {food_item_id}")
            continue
        lines.append(CartLine(food_item_id, item.name, quantity, Decimal(item.price)))
    return lines


def compute_subtotal(db: Session, user_id: int) -> Decimal:
    return sum((line.line_total for line in cart_lines(db, user_id)), Decimal("0"))
