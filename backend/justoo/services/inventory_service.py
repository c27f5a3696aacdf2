# Overview: Service-layer operations for items and stock; encapsulates business logic and database work.

"""
Inventory Service

Item management for the inventory surface plus the stock primitives used
by order placement and cancellation.

STOCK RULE: quantity is only decremented through a conditional
UPDATE ... WHERE quantity >= n, so concurrent orders can never drive it
below zero.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_, update

from ..extensions import db
from ..models import Item, Order
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    VALID_UNITS,
    enforce_rules_item,
    paginate,
    parse_int,
    parse_money_cents,
    validate_payload,
)


ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "price_cents",
        "quantity",
        "discount_percent",
        "unit",
        "description",
        "image_url",
        "image_public_id",
        "min_stock_level",
        "category",
        "is_active",
    },
    required_on_create={"name", "price_cents", "unit"},
)

STOCK_STATUSES = ("in_stock", "low_stock", "out_of_stock")
BULK_OPERATIONS = ("set", "add", "subtract")
ITEM_SORT_FIELDS = {
    "name": Item.name,
    "price": Item.price_cents,
    "quantity": Item.quantity,
    "created_at": Item.created_at,
    "updated_at": Item.updated_at,
}


# =============================================================================
# Stock primitives
# =============================================================================

def decrement_stock(item_id: int, quantity: int) -> bool:
    """
    Atomically remove quantity units. Returns False (and changes nothing)
    if the item is inactive or has fewer than quantity units on hand.
    """
    stmt = (
        update(Item)
        .where(Item.id == item_id, Item.is_active.is_(True), Item.quantity >= quantity)
        .values(quantity=Item.quantity - quantity, updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    return db.session.execute(stmt).rowcount == 1


def restock(item_id: int, quantity: int) -> bool:
    """Return units to stock (order cancellation). Inactive items are restocked too."""
    stmt = (
        update(Item)
        .where(Item.id == item_id)
        .values(quantity=Item.quantity + quantity, updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    return db.session.execute(stmt).rowcount == 1


# =============================================================================
# Item management
# =============================================================================

def get_item(item_id: int, *, include_inactive: bool = True) -> Item:
    item = db.session.get(Item, item_id)
    if item is None or (not include_inactive and not item.is_active):
        raise NotFoundError("Item not found")
    return item


def _with_price_cents(payload: dict) -> dict:
    """Accept a rupee "price" in place of price_cents."""
    if "price" not in payload:
        return payload
    if "price_cents" in payload:
        raise ValidationError("Send either price or price_cents, not both")
    payload = dict(payload)
    payload["price_cents"] = parse_money_cents(payload.pop("price"), "price")
    return payload


def create_item(payload: dict) -> Item:
    patch = validate_payload(model=Item, payload=_with_price_cents(payload), policy=ITEM_POLICY, partial=False)
    enforce_rules_item(patch)

    item = Item(**patch)
    db.session.add(item)
    db.session.commit()
    current_app.logger.info("Item %s created (%s)", item.id, item.name)
    return item


def update_item(item_id: int, payload: dict) -> Item:
    item = get_item(item_id)
    patch = validate_payload(model=Item, payload=_with_price_cents(payload), policy=ITEM_POLICY, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    enforce_rules_item(patch)

    for key, value in patch.items():
        setattr(item, key, value)
    db.session.commit()
    return item


def delete_item(item_id: int, *, permanent: bool = False) -> Item:
    """Soft delete (is_active=False) by default; permanent removes the row."""
    item = get_item(item_id)
    if permanent:
        db.session.delete(item)
        current_app.logger.info("Item %s permanently deleted", item_id)
    else:
        item.is_active = False
    db.session.commit()
    return item


def _apply_stock_status(query, stock_status: str):
    if stock_status == "out_of_stock":
        return query.filter(Item.quantity <= 0)
    if stock_status == "low_stock":
        return query.filter(Item.quantity > 0, Item.quantity <= Item.min_stock_level)
    if stock_status == "in_stock":
        return query.filter(Item.quantity > 0)
    raise ValidationError(f"Invalid stock_status. Must be one of: {', '.join(STOCK_STATUSES)}")


def list_items(
    *,
    page: int,
    per_page: int,
    category: str | None = None,
    search: str | None = None,
    stock_status: str | None = None,
    include_inactive: bool = False,
    sort_by: str = "name",
    sort_order: str = "asc",
) -> tuple[list[Item], dict]:
    query = db.session.query(Item)
    if not include_inactive:
        query = query.filter(Item.is_active.is_(True))
    if category:
        query = query.filter(Item.category == category)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Item.name.ilike(pattern), Item.description.ilike(pattern)))
    if stock_status:
        query = _apply_stock_status(query, stock_status)

    column = ITEM_SORT_FIELDS.get(sort_by, Item.name)
    query = query.order_by(column.desc() if sort_order == "desc" else column.asc(), Item.id)
    return paginate(query, page, per_page)


def stock_list(stock_status: str) -> list[Item]:
    """Active items in one stock band, lowest quantity first."""
    query = _apply_stock_status(db.session.query(Item).filter(Item.is_active.is_(True)), stock_status)
    return query.order_by(Item.quantity.asc(), Item.name).all()


def list_units() -> list[str]:
    return list(VALID_UNITS)


def dashboard_stats() -> dict:
    active = db.session.query(Item).filter(Item.is_active.is_(True))

    total_items = db.session.query(func.count(Item.id)).scalar() or 0
    active_items = active.count()
    out_of_stock = active.filter(Item.quantity <= 0).count()
    low_stock = active.filter(Item.quantity > 0, Item.quantity <= Item.min_stock_level).count()
    total_quantity, total_value = (
        db.session.query(
            func.coalesce(func.sum(Item.quantity), 0),
            func.coalesce(func.sum(Item.quantity * Item.price_cents), 0),
        )
        .filter(Item.is_active.is_(True))
        .one()
    )
    categories = (
        db.session.query(func.count(func.distinct(Item.category)))
        .filter(Item.is_active.is_(True), Item.category.isnot(None))
        .scalar()
        or 0
    )

    start_of_day = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    orders_today = db.session.query(func.count(Order.id)).filter(Order.placed_at >= start_of_day).scalar() or 0
    pending_orders = (
        db.session.query(func.count(Order.id))
        .filter(Order.status.in_(("placed", "confirmed", "preparing")))
        .scalar()
        or 0
    )

    return {
        "total_items": total_items,
        "active_items": active_items,
        "inactive_items": total_items - active_items,
        "in_stock_items": active_items - out_of_stock,
        "out_of_stock_items": out_of_stock,
        "low_stock_items": low_stock,
        "total_quantity": int(total_quantity),
        "total_stock_value_cents": int(total_value),
        "category_count": categories,
        "orders_today": orders_today,
        "pending_orders": pending_orders,
    }


# =============================================================================
# Bulk stock operations
# =============================================================================

def _parse_lines(lines, *, field: str = "items") -> list[dict]:
    if not isinstance(lines, list) or not lines:
        raise ValidationError(f"{field} array is required and must not be empty")
    parsed = []
    for raw in lines:
        if not isinstance(raw, dict):
            raise ValidationError(f"Each entry in {field} must be an object")
        parsed.append(raw)
    return parsed


def bulk_update_stock(updates) -> dict:
    """
    Apply a list of {item_id, quantity, operation} stock changes.

    operation is set/add/subtract (default set). Each entry succeeds or
    fails on its own; subtracting below zero fails that entry.
    """
    results = []
    errors = []
    for entry in _parse_lines(updates, field="updates"):
        item_id = entry.get("item_id")
        try:
            item_id = parse_int(item_id, "item_id", minimum=1)
            quantity = parse_int(entry.get("quantity"), "quantity", minimum=0)
            operation = entry.get("operation", "set")
            if operation not in BULK_OPERATIONS:
                raise ValidationError(f"Invalid operation. Must be one of: {', '.join(BULK_OPERATIONS)}")

            item = db.session.get(Item, item_id)
            if item is None:
                raise NotFoundError("Item not found")

            previous = item.quantity
            if operation == "set":
                item.quantity = quantity
            elif operation == "add":
                restock(item_id, quantity)
            elif not decrement_stock(item_id, quantity):
                raise ValidationError(f"Insufficient stock. Available: {previous}, Requested: {quantity}")

            db.session.flush()
            db.session.refresh(item)
            results.append({
                "item_id": item_id,
                "operation": operation,
                "previous_quantity": previous,
                "new_quantity": item.quantity,
            })
        except (ValidationError, NotFoundError) as exc:
            errors.append({"item_id": item_id, "error": str(exc)})

    db.session.commit()
    return {"updated": results, "errors": errors}


def check_availability(lines) -> dict:
    """Report, per requested line, whether the active stock covers it."""
    report = []
    for entry in _parse_lines(lines):
        item_id = parse_int(entry.get("item_id"), "item_id", minimum=1)
        requested = parse_int(entry.get("quantity"), "quantity", minimum=1)
        item = db.session.get(Item, item_id)
        available = item.quantity if item is not None and item.is_active else 0
        report.append({
            "item_id": item_id,
            "name": item.name if item is not None else None,
            "requested": requested,
            "available": available,
            "is_available": available >= requested,
        })
    return {
        "all_available": all(row["is_available"] for row in report),
        "items": report,
    }
