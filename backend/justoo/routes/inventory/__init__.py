# Overview: Inventory (warehouse) surface, mounted by the gateway under /inventory/api.

from flask import Blueprint

from .auth import auth_bp
from .items import items_bp
from .orders import orders_bp


inventory_surface_bp = Blueprint("inventory", __name__, url_prefix="/inventory/api")

inventory_surface_bp.register_blueprint(auth_bp)
inventory_surface_bp.register_blueprint(items_bp)
inventory_surface_bp.register_blueprint(orders_bp)
