# Overview: Order/cart total computation shared by cart summaries and order placement.

from __future__ import annotations

from flask import current_app


def tax_for(subtotal_cents: int) -> int:
    """TAX_RATE_BPS of subtotal, rounded half-up to the nearest paisa."""
    bps = current_app.config["TAX_RATE_BPS"]
    return (subtotal_cents * bps + 5000) // 10000


def delivery_fee_for(subtotal_cents: int) -> int:
    """Flat fee below the free-delivery threshold, free at or above it."""
    if subtotal_cents < current_app.config["FREE_DELIVERY_THRESHOLD_CENTS"]:
        return current_app.config["DELIVERY_FEE_CENTS"]
    return 0


def compute_totals(subtotal_cents: int, *, discount_cents: int = 0) -> dict:
    """
    Return the money breakdown for a basket.

    total_cents = subtotal_cents + delivery_fee_cents + tax_cents - discount_cents
    """
    delivery_fee = delivery_fee_for(subtotal_cents)
    tax = tax_for(subtotal_cents)
    return {
        "subtotal_cents": subtotal_cents,
        "delivery_fee_cents": delivery_fee,
        "tax_cents": tax,
        "discount_cents": discount_cents,
        "total_cents": subtotal_cents + delivery_fee + tax - discount_cents,
    }
