# phonerelay/utils/decorators.py
# -*- coding: utf-8 -*-
"""Custom helper decorators for Flask routes."""

from functools import wraps
from flask import current_app, request, abort
from flask_login import current_user


def active_user_required(f):
    """
    Requires an authenticated user whose account is active.

    Uses abort() to trigger the standard JSON error responses.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            current_app.logger.info(f"Permission denied for {request.endpoint}: User not authenticated.")
            abort(401, description="Authentication required.")

        # Sessions can outlive a status change
        if not current_user.is_active:
            current_app.logger.warning(f"Forbidden access attempt to {request.endpoint}: User '{current_user.username}' is inactive.")
            abort(403, description="Access forbidden: User account is inactive.")

        return f(*args, **kwargs)
    return decorated_function
