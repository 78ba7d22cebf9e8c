from __future__ import annotations

from functools import wraps

from flask import Flask, g, request

from ..common.http import json_body, ok
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..container import Container


def build_admin_required(container: Container):
    """Decorator factory: require a valid bearer token with the admin role."""

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            header = request.headers.get("Authorization", "")
            scheme, _, token = header.partition(" ")
            if scheme.lower() != "bearer" or not token.strip():
                raise AuthenticationError("Authentication required")

            user = container.auth_service.decode(token.strip())
            if user.role != Role.ADMIN:
                raise AuthorizationError("Admin access required")

            g.current_user = user
            return view(*args, **kwargs)

        return wrapper

    return admin_required


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        issued = container.auth_service.authenticate(str(data.get("username") or ""), str(data.get("password") or ""))
        return ok(
            {
                "token": issued.token,
                "expiresAt": issued.expires_at,
                "user": {"username": issued.user.username, "role": issued.user.role},
            }
        )
