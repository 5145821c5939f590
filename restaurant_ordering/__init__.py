from flask import Flask, jsonify
from flask_smorest import Api
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_cors import CORS
from config import Config


db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def create_app(config_class=Config):

    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    from .controllers.categories import blp as CategoryBlp
    from .controllers.food_items import blp as FoodItemBlp
    from .controllers.cart import blp as CartBlp
    from .controllers.orders import blp as OrderBlp
    from .controllers.special_deals import blp as SpecialDealBlp
    from .controllers.dashboard import blp as DashboardBlp
    from .controllers.admin import blp as AdminBlp
    from .middleware import init_middleware
    from .services.auth import is_token_revoked
    from .services.cache import init_cache
    from .scripts.create_admin import register_commands


    @jwt.token_in_blocklist_loader
    def check_if_token_in_blocklist(jwt_header, jwt_payload):
        return is_token_revoked(jwt_payload)


    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            "success": False,
            "error": "token_expired",
            "message": "The token has expired."
        }), 401


    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            "success": False,
            "error": "invalid_token",
            "message": "Signature verification failed."
        }), 401


    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            "success": False,
            "error": "authorization_required",
            "message": "Request doesn't contain an access token."
        }), 401


    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return jsonify({
            "success": False,
            "error": "token_revoked",
            "message": "The token has been revoked."
        }), 401


    api = Api(app)
    api.register_blueprint(CategoryBlp)
    api.register_blueprint(FoodItemBlp)
    api.register_blueprint(CartBlp)
    api.register_blueprint(OrderBlp)
    api.register_blueprint(SpecialDealBlp)
    api.register_blueprint(DashboardBlp)
    api.register_blueprint(AdminBlp)

    # Registered after Api so the envelope handlers replace flask-smorest's
    init_middleware(app)
    init_cache(app)
    register_commands(app)


    @app.route('/')
    def home():
        return jsonify({"success": True, "message": "Welcome to the Restaurant Ordering API!"})

    return app
