# Overview: Service-layer operations for customer addresses and service-area checks.

from __future__ import annotations

import math

from ..extensions import db
from ..models import Customer, CustomerAddress, DeliveryZone
from ..models.customers import ADDRESS_TYPES
from ..validation import NotFoundError, ValidationError, clean_string, parse_flag, validate_choice
from .concurrency import lock_row


# Returned when no delivery zones are configured
DEFAULT_ESTIMATED_DELIVERY_MINUTES = 60

EARTH_RADIUS_KM = 6371.0

ADDRESS_FIELDS = (
    "type", "label", "full_address", "landmark", "latitude", "longitude",
    "pincode", "city", "state", "country",
)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def coerce_coordinate(value, field: str, limit: float) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not -limit <= number <= limit:
        raise ValidationError(f"Invalid {field}")
    return number


def _active_addresses(customer_id: int):
    return db.session.query(CustomerAddress).filter(
        CustomerAddress.customer_id == customer_id,
        CustomerAddress.is_active.is_(True),
    )


def list_addresses(customer_id: int) -> list[CustomerAddress]:
    return (
        _active_addresses(customer_id)
        .order_by(CustomerAddress.is_default.desc(), CustomerAddress.updated_at.desc(), CustomerAddress.id.desc())
        .all()
    )


def get_address(customer_id: int, address_id: int) -> CustomerAddress:
    address = _active_addresses(customer_id).filter(CustomerAddress.id == address_id).first()
    if not address:
        raise NotFoundError("Address not found")
    return address


def get_default_address(customer_id: int) -> CustomerAddress:
    address = _active_addresses(customer_id).filter(CustomerAddress.is_default.is_(True)).first()
    if not address:
        raise NotFoundError("No default address found")
    return address


def _apply_fields(address: CustomerAddress, data: dict) -> None:
    for field in ADDRESS_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "type":
            value = validate_choice(value, ADDRESS_TYPES, "address type")
        elif field == "latitude":
            value = coerce_coordinate(value, "latitude", 90)
        elif field == "longitude":
            value = coerce_coordinate(value, "longitude", 180)
        elif field == "full_address":
            value = clean_string(value, "full_address")
            if not value:
                raise ValidationError("Full address is required")
        elif field == "country":
            value = clean_string(value, "country") or "India"
        elif isinstance(value, str):
            value = value.strip() or None
        setattr(address, field, value)


def _clear_default(customer_id: int, *, keep_id: int | None = None) -> None:
    query = _active_addresses(customer_id).filter(CustomerAddress.is_default.is_(True))
    if keep_id is not None:
        query = query.filter(CustomerAddress.id != keep_id)
    query.update({CustomerAddress.is_default: False}, synchronize_session="fetch")


def create_address(customer_id: int, data: dict) -> CustomerAddress:
    """
    Add an address. The customer's first address becomes the default;
    is_default=True on a later one moves the default to it.
    """
    if not clean_string(data.get("full_address"), "full_address"):
        raise ValidationError("Full address is required")

    lock_row(Customer, customer_id)

    address = CustomerAddress(customer_id=customer_id)
    _apply_fields(address, data)

    has_any = _active_addresses(customer_id).first() is not None
    make_default = parse_flag(data.get("is_default")) or not has_any
    if make_default:
        _clear_default(customer_id)
    address.is_default = make_default

    db.session.add(address)
    db.session.commit()
    return address


def update_address(customer_id: int, address_id: int, data: dict) -> CustomerAddress:
    lock_row(Customer, customer_id)
    address = get_address(customer_id, address_id)
    _apply_fields(address, data)

    if parse_flag(data.get("is_default")) and not address.is_default:
        _clear_default(customer_id, keep_id=address.id)
        address.is_default = True

    db.session.commit()
    return address


def set_default_address(customer_id: int, address_id: int) -> CustomerAddress:
    """Move the default flag in one transaction; exactly one default afterwards."""
    lock_row(Customer, customer_id)
    address = get_address(customer_id, address_id)
    _clear_default(customer_id, keep_id=address.id)
    address.is_default = True
    db.session.commit()
    return address


def delete_address(customer_id: int, address_id: int) -> None:
    """Soft delete. The default address must be replaced before it can go."""
    address = get_address(customer_id, address_id)
    if address.is_default:
        raise ValidationError("Cannot delete default address. Please set another address as default first.")
    address.is_active = False
    db.session.commit()


def find_zone(latitude: float, longitude: float) -> DeliveryZone | None:
    """Nearest active zone whose radius covers the point."""
    zones = (
        db.session.query(DeliveryZone)
        .filter(DeliveryZone.is_active.is_(True), DeliveryZone.status == "active")
        .all()
    )
    best = None
    best_distance = None
    for zone in zones:
        if zone.center_latitude is None or zone.center_longitude is None:
            continue
        distance = haversine_km(latitude, longitude, zone.center_latitude, zone.center_longitude)
        if distance <= zone.radius_km and (best_distance is None or distance < best_distance):
            best, best_distance = zone, distance
    return best


def validate_location(latitude, longitude) -> dict:
    """
    Check coordinates and whether they fall in a delivery zone.

    With no zones configured every valid point is treated as serviceable.
    """
    if latitude in (None, "") or longitude in (None, ""):
        raise ValidationError("Latitude and longitude are required")
    lat = coerce_coordinate(latitude, "latitude", 90)
    lng = coerce_coordinate(longitude, "longitude", 180)

    has_zones = db.session.query(DeliveryZone.id).filter(DeliveryZone.is_active.is_(True)).first() is not None
    if not has_zones:
        return {
            "is_valid": True,
            "in_service_area": True,
            "estimated_delivery_time": DEFAULT_ESTIMATED_DELIVERY_MINUTES,
            "zone": None,
        }

    zone = find_zone(lat, lng)
    return {
        "is_valid": True,
        "in_service_area": zone is not None,
        "estimated_delivery_time": zone.estimated_delivery_minutes if zone else None,
        "zone": zone.to_dict() if zone else None,
    }
