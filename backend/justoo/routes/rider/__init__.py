# Overview: Rider surface, mounted by the gateway under /rider/api.

from flask import Blueprint

from .auth import auth_bp
from .orders import orders_bp
from .delivery import delivery_bp
from .profile import profile_bp
from .notifications import notifications_bp


rider_surface_bp = Blueprint("rider", __name__, url_prefix="/rider/api")

rider_surface_bp.register_blueprint(auth_bp)
rider_surface_bp.register_blueprint(orders_bp)
rider_surface_bp.register_blueprint(orders_bp, name="orders_plural", url_prefix="/orders")
rider_surface_bp.register_blueprint(delivery_bp)
rider_surface_bp.register_blueprint(profile_bp)
rider_surface_bp.register_blueprint(notifications_bp)
