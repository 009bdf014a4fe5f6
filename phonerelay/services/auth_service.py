# phonerelay/services/auth_service.py
# -*- coding: utf-8 -*-
"""
Auth Service
Handles user authentication logic.
"""
from flask import current_app

from phonerelay.database.models.user import UserModel
from phonerelay.utils.exceptions import AuthenticationError


class AuthService:
    @staticmethod
    def authenticate_user(username, password):
        """
        Authenticates a user based on username and password.

        Returns:
            UserModel: The authenticated and active UserModel instance.

        Raises:
            AuthenticationError: If authentication fails due to invalid credentials,
                                 non-existent user, or inactive account status.
        """
        user = UserModel.query.filter_by(username=username).one_or_none()

        if not user:
            current_app.logger.warning(f"Authentication attempt failed: User '{username}' not found.")
            raise AuthenticationError("Invalid username or password.")

        if not user.check_password(password):
            current_app.logger.warning(f"Authentication attempt failed: Invalid password for user '{username}'.")
            raise AuthenticationError("Invalid username or password.")

        # Status is checked only after the password so inactive accounts are not enumerable
        if not user.is_active:
            current_app.logger.warning(f"Authentication attempt failed: User '{username}' is inactive (status: {user.status}).")
            raise AuthenticationError("User account is inactive.")

        current_app.logger.info(f"User '{username}' authenticated successfully.")
        return user
