# Overview: Customer surface, mounted by the gateway under /customer/api.

from flask import Blueprint

from .auth import auth_bp
from .addresses import addresses_bp
from .cart import cart_bp
from .items import items_bp
from .orders import orders_bp
from .notifications import notifications_bp


customer_surface_bp = Blueprint("customer", __name__, url_prefix="/customer/api")

customer_surface_bp.register_blueprint(auth_bp)
customer_surface_bp.register_blueprint(addresses_bp)
customer_surface_bp.register_blueprint(cart_bp)
customer_surface_bp.register_blueprint(items_bp)
customer_surface_bp.register_blueprint(orders_bp)
customer_surface_bp.register_blueprint(notifications_bp)
