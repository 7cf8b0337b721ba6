"""Shared bits of the Flask controller layer: JSON replies, error mapping, guards."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import Flask, current_app, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role, View
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..users.model import User
from ..users.repository import UserRepository
from .permissions import is_allowed

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
)


def ok(status: int = 200, **data):
    return jsonify({"success": True, **data}), status


def fail(message: str, status: int = 400):
    return jsonify({"success": False, "message": message}), status


def status_for(exc: DomainError) -> int:
    for cls, status in STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 400


def json_body() -> dict:
    """JSON payload, falling back to form fields for plain HTML posts."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def install_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return fail(str(e), status_for(e))

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return fail(e.description or e.name, e.code or 500)
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if bool(current_app.config.get("DEBUG", False)):
            return fail(f"Internal error: {e}", 500)
        return fail("Internal error", 500)


class Guards:
    """Login/permission decorators.

    The user is reloaded from the repository on every request, so permission
    edits and deactivations apply without a new login.
    """

    def __init__(self, users: UserRepository):
        self._users = users

    def current_user(self) -> Optional[User]:
        if "current_user" in g:
            return g.current_user
        user = None
        user_id = session.get("user_id")
        if user_id is not None:
            user = self._users.get_by_id(int(user_id))
            if not user or not user.is_active:
                session.clear()
                user = None
        g.current_user = user
        return user

    def login_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not self.current_user():
                return fail("Please log in to continue", 401)
            return view(*args, **kwargs)

        return wrapper

    def requires(self, screen: View, *, allow_parents: bool = False):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = self.current_user()
                if not user:
                    return fail("Please log in to continue", 401)
                if not is_allowed(user, screen) and not (allow_parents and user.role == Role.PARENT):
                    return fail("You do not have permission", 403)
                return view(*args, **kwargs)

            return wrapper

        return decorator


def current_user() -> User:
    """The user loaded by a guard for this request."""
    return g.current_user
