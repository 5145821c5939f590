import os
from dotenv import load_dotenv
from datetime import timedelta

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))


class Config:
    PROPAGATE_EXCEPTIONS = True
    API_TITLE = "Restaurant Ordering API"
    API_VERSION = "v1"
    OPENAPI_VERSION = "3.0.3"
    OPENAPI_URL_PREFIX = "/"
    OPENAPI_SWAGGER_UI_PATH = "/swagger-ui"
    OPENAPI_SWAGGER_UI_URL = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'app.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)

    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    # Logging
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(basedir, 'logs')
    LOG_TO_FILES = True

    # Restaurant location and delivery settings
    RESTAURANT_NAME = os.environ.get('RESTAURANT_NAME', 'Your Restaurant Name')
    RESTAURANT_LATITUDE = float(os.environ.get('RESTAURANT_LATITUDE', 31.39149))
    RESTAURANT_LONGITUDE = float(os.environ.get('RESTAURANT_LONGITUDE', 72.99180))
    DELIVERY_RADIUS_KM = float(os.environ.get('DELIVERY_RADIUS_KM', 20))
    BASE_PREPARATION_MINUTES = int(os.environ.get('BASE_PREPARATION_MINUTES', 25))
    TRAVEL_MINUTES_PER_KM = int(os.environ.get('TRAVEL_MINUTES_PER_KM', 3))

    # (max distance in km, fee); the last tier has no upper bound
    DELIVERY_FEE_TIERS = [
        (4, 0),
        (6, 50),
        (None, 120),
    ]

    # Orders
    ORDER_NUMBER_PREFIX = 'ORD'
    ORDER_NUMBER_MAX_ATTEMPTS = 5
    ORDERS_PER_PAGE = 20
    ENFORCE_ORDER_STATUS_FLOW = True

    # Read-through cache freshness windows, in seconds
    MENU_CACHE_TTL = int(os.environ.get('MENU_CACHE_TTL', 120))
    CART_CACHE_TTL = int(os.environ.get('CART_CACHE_TTL', 10))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///dev.db')


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'  # Use in-memory SQLite database
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = 'testing-secret-key'
    LOG_TO_FILES = False
    PRESERVE_CONTEXT_ON_EXCEPTION = False


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
