from flask.views import MethodView
from flask_smorest import Blueprint
from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from restaurant_ordering.controllers import respond
from restaurant_ordering.models import Admin
from restaurant_ordering.schemas import AdminLoginSchema
from restaurant_ordering.services import auth
from restaurant_ordering.services.auth import admin_required
from restaurant_ordering.services.helper import get_or_404

blp = Blueprint("admin", __name__, description="Admin authentication")


@blp.route("/api/admin/login")
class AdminLogin(MethodView):
    @blp.arguments(AdminLoginSchema)
    def post(self, data):
        """Log in an admin and return access and refresh tokens."""
        return respond(auth.login(data["email"], data["password"]), "Login successful")


@blp.route("/api/admin/logout")
class AdminLogout(MethodView):
    @jwt_required()
    def post(self):
        """Log out the current admin."""
        claims = get_jwt()
        auth.logout_logic(claims["jti"], claims["exp"])
        return respond(message="Logged out successfully")


@blp.route("/api/admin/me")
class AdminMe(MethodView):
    @admin_required
    def get(self):
        admin = get_or_404(Admin, int(get_jwt_identity()), "Admin")
        return respond(admin.to_dict())
