# Overview: Admin back-office surface, mounted by the gateway under /admin/api.

from flask import Blueprint

from .auth import auth_bp
from .admins import admins_bp
from .inventory_admins import inventory_admins_bp
from .inventory import inventory_bp
from .riders import riders_bp
from .orders import orders_bp


admin_surface_bp = Blueprint("admin", __name__, url_prefix="/admin/api")

admin_surface_bp.register_blueprint(auth_bp)
admin_surface_bp.register_blueprint(admins_bp)
admin_surface_bp.register_blueprint(inventory_admins_bp)
admin_surface_bp.register_blueprint(inventory_bp)
admin_surface_bp.register_blueprint(riders_bp)
admin_surface_bp.register_blueprint(orders_bp)
