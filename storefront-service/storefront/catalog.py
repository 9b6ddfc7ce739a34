"""Read-only access to the food catalog."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models


def get_food_item(db: Session, food_item_id: int) -> models.FoodItem | None:
    return db.get(models.FoodItem, food_item_id)


def get_food_items(db: Session, food_item_ids) -> dict[int, models.FoodItem]:
    ids = list(food_item_ids)
    if not ids:
        return {}
    rows = db.execute(select(models.FoodItem).where(models.FoodItem.id.in_(ids))).scalars()
    return {item.id: item for item in rows}


def list_food_items(db: Session, category: str | None = None) -> list[models.FoodItem]:
    stmt = select(models.FoodItem).order_by(models.FoodItem.id)
    if category:
        stmt = stmt.where(models.FoodItem.category == category)
    return list(db.execute(stmt).scalars())
