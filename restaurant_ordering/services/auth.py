import functools
from datetime import datetime, timezone

from flask_jwt_extended import (
    create_access_token, create_refresh_token, get_jwt, verify_jwt_in_request
)
from flask_smorest import abort
from passlib.hash import pbkdf2_sha256
from sqlalchemy.exc import IntegrityError

from restaurant_ordering import db
from restaurant_ordering import errors
from restaurant_ordering.models import Admin, AdminRole, TokenBlocklist
from restaurant_ordering.middleware.logging_config import get_logger
from restaurant_ordering.services.helper import commit_or_raise, to_naive_utc

logger = get_logger(__name__)

ADMIN_ROLES = {role.value for role in AdminRole}


def create_admin(email, password, name, role=AdminRole.ADMIN):
    """Create an admin account with a hashed password."""
    admin = Admin(
        email=email.strip().lower(),
        name=name,
        password=pbkdf2_sha256.hash(password),
        role=role,
    )
    db.session.add(admin)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise errors.ConflictError("Admin with this email already exists", email=email)

    logger.info(f"Admin created: {admin.email}", extra={
        'event': 'admin_created', 'admin_id': admin.id})
    return admin


def login(email, password):
    """Check credentials and issue access and refresh tokens."""
    admin = Admin.query.filter_by(email=email.strip().lower()).first()
    if not admin or not admin.is_active or not pbkdf2_sha256.verify(password, admin.password):
        logger.warning("Failed admin login", extra={
            'event': 'admin_login_failed', 'email': email})
        abort(401, message="Invalid email or password.")

    claims = {"role": admin.role.value}
    access_token = create_access_token(
        identity=str(admin.id), additional_claims=claims, fresh=True)
    refresh_token = create_refresh_token(
        identity=str(admin.id), additional_claims=claims)

    logger.info(f"Admin logged in: {admin.email}", extra={
        'event': 'admin_login', 'admin_id': admin.id})
    return {
        "accessToken": access_token,
        "refreshToken": refresh_token,
        "admin": admin.to_dict(),
    }


def logout_logic(jti, expires_at):
    """Add token to the blocklist with its expiration time."""
    token = TokenBlocklist(jti=jti, expires_at=to_naive_utc(
        datetime.fromtimestamp(expires_at, timezone.utc)))
    db.session.add(token)
    commit_or_raise("log out", jti=jti)


def is_token_revoked(jwt_payload):
    """Check if the token is in the blocklist."""
    jti = jwt_payload["jti"]
    return db.session.query(TokenBlocklist.id).filter_by(jti=jti).first() is not None


def ensure_admin():
    """Abort unless the request carries a valid admin access token."""
    verify_jwt_in_request()
    if get_jwt().get("role") not in ADMIN_ROLES:
        abort(403, message="Access forbidden: Admin role required.")


def admin_required(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        ensure_admin()
        return fn(*args, **kwargs)
    return wrapper
