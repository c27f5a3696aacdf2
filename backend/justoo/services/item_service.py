# Overview: Customer-facing catalog queries (browse, search, categories, suggestions).

from __future__ import annotations

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Item, Order, OrderItem
from ..validation import NotFoundError, ValidationError, paginate, parse_int


MIN_SEARCH_LENGTH = 2

SORT_FIELDS = {
    "name": Item.name,
    "price": Item.price_cents,
    "created_at": Item.created_at,
    "quantity": Item.quantity,
}

# Relevance weights: a hit in the name outranks category, which outranks description
NAME_WEIGHT = 3
CATEGORY_WEIGHT = 2
DESCRIPTION_WEIGHT = 1


def _visible():
    return db.session.query(Item).filter(Item.is_active.is_(True))


def _to_bool(value) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def list_items(args, *, page: int, per_page: int):
    """
    Browse the active catalog.

    Query args: category, search, min_price_cents, max_price_cents,
    in_stock, sort_by (name|price|created_at|quantity), sort_order.
    """
    query = _visible()

    if args.get("category"):
        query = query.filter(Item.category == args["category"])
    if args.get("search"):
        pattern = f"%{args['search'].strip()}%"
        query = query.filter(or_(Item.name.ilike(pattern), Item.description.ilike(pattern)))
    if args.get("min_price_cents") not in (None, ""):
        query = query.filter(Item.price_cents >= parse_int(args["min_price_cents"], "min_price_cents", minimum=0))
    if args.get("max_price_cents") not in (None, ""):
        query = query.filter(Item.price_cents <= parse_int(args["max_price_cents"], "max_price_cents", minimum=0))
    if args.get("in_stock") not in (None, "") and _to_bool(args["in_stock"]):
        query = query.filter(Item.quantity > 0)

    column = SORT_FIELDS.get(args.get("sort_by") or "name", Item.name)
    if (args.get("sort_order") or "asc") == "desc":
        query = query.order_by(column.desc(), Item.id)
    else:
        query = query.order_by(column.asc(), Item.id)

    return paginate(query, page, per_page)


def list_categories() -> list[dict]:
    rows = (
        db.session.query(
            Item.category,
            func.count(Item.id),
            func.coalesce(func.sum(Item.quantity), 0),
        )
        .filter(Item.is_active.is_(True), Item.category.isnot(None))
        .group_by(Item.category)
        .order_by(Item.category)
        .all()
    )
    return [
        {"category": category, "item_count": count, "total_stock": int(stock)}
        for category, count, stock in rows
    ]


def featured_items(limit: int = 10) -> list[Item]:
    return (
        _visible()
        .filter(Item.discount_percent > 0, Item.quantity > 0)
        .order_by(Item.discount_percent.desc(), Item.name)
        .limit(limit)
        .all()
    )


def _relevance(item: Item, needle: str) -> int:
    if needle in (item.name or "").lower():
        return NAME_WEIGHT
    if needle in (item.category or "").lower():
        return CATEGORY_WEIGHT
    if needle in (item.description or "").lower():
        return DESCRIPTION_WEIGHT
    return 0


def search_items(q: str | None, limit: int = 20) -> list[Item]:
    """Match name, category or description; best match first."""
    needle = (q or "").strip()
    if len(needle) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search query must be at least {MIN_SEARCH_LENGTH} characters long")

    pattern = f"%{needle}%"
    candidates = (
        _visible()
        .filter(or_(Item.name.ilike(pattern), Item.category.ilike(pattern), Item.description.ilike(pattern)))
        .all()
    )
    lowered = needle.lower()
    ranked = sorted(candidates, key=lambda item: (-_relevance(item, lowered), item.name.lower(), item.id))
    return ranked[:limit]


def items_by_category(category: str, *, page: int, per_page: int):
    query = _visible().filter(Item.category == category).order_by(Item.name, Item.id)
    return paginate(query, page, per_page)


def suggestions(customer_id: int, limit: int = 10) -> list[Item]:
    """
    In-stock items from categories the customer has ordered before,
    biggest discount first. Falls back to featured items.
    """
    categories = [
        row[0]
        for row in db.session.query(Item.category)
        .join(OrderItem, OrderItem.item_id == Item.id)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.customer_id == customer_id, Item.category.isnot(None))
        .distinct()
        .all()
    ]
    if categories:
        items = (
            _visible()
            .filter(Item.category.in_(categories), Item.quantity > 0)
            .order_by(Item.discount_percent.desc(), Item.name)
            .limit(limit)
            .all()
        )
        if items:
            return items
    return featured_items(limit)


def get_visible_item(item_id: int) -> Item:
    item = _visible().filter(Item.id == item_id).first()
    if item is None:
        raise NotFoundError("Item not found")
    return item
