from __future__ import annotations

from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from schoolpay.config import current_config
from schoolpay.extensions import db, login_manager
from schoolpay.models import User
from schoolpay.utils.jwt_utils import create_access_token, decode_token, get_bearer_token

api_auth = Blueprint("api_auth", __name__, url_prefix="/api/auth")


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(req):
    """Bearer tokens for API clients; there are no cookie sessions."""
    token = get_bearer_token(req.headers.get("Authorization", ""))
    if not token:
        return None
    payload = decode_token(token, current_config().secret_key)
    if not payload or payload.get("type") != "access":
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def _unauthorized():
    return jsonify({"message": "Unauthorized"}), 401


def roles_required(*roles: str):
    """login_required plus a role check; answers 403 for the wrong role."""

    def decorator(fn):
        @wraps(fn)
        @login_required
        def wrapper(*args, **kwargs):
            if (current_user.role or "") not in roles:
                return jsonify({"message": "Forbidden"}), 403
            return fn(*args, **kwargs)

        return wrapper

    return decorator


admin_required = roles_required("admin", "super_admin")
staff_required = roles_required("admin", "super_admin", "accountant")


@api_auth.post("/login")
def api_login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"message": "email and password required"}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        current_app.logger.info("login failed")
        return jsonify({"message": "invalid credentials"}), 401

    token = create_access_token(user.id, current_config().secret_key)
    return jsonify({"token": token, "user": user.to_dict()})


@api_auth.get("/me")
@login_required
def api_me():
    return jsonify({"user": current_user.to_dict()})
