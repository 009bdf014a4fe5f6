# phonerelay/services/user_service.py
# -*- coding: utf-8 -*-
"""
User Service
Creates and looks up users. Authentication itself lives in AuthService.
Service methods modify the session but DO NOT COMMIT.
"""
from sqlalchemy.exc import IntegrityError
from flask import current_app

from phonerelay.database.models.user import UserModel
from phonerelay.extensions import db
from phonerelay.utils.exceptions import ConflictError, ServiceError, ValidationError


class UserService:

    @staticmethod
    def create_user(username: str, email: str, password: str, status: str = 'active',
                    full_name: str | None = None) -> UserModel:
        """
        Adds a new user instance to the session (DOES NOT COMMIT).

        Raises:
            ConflictError: If username or email already exists.
            ValidationError: If username, email, or password is empty.
            ServiceError: If a database or unexpected error occurs during flush.
        """
        if not username: raise ValidationError("Username cannot be empty.")
        if not email: raise ValidationError("Email cannot be empty.")
        if not password: raise ValidationError("Password cannot be empty.")

        if db.session.query(UserModel.id).filter_by(username=username).first():
            raise ConflictError(f"Username '{username}' already exists.")
        if db.session.query(UserModel.id).filter_by(email=email).first():
            raise ConflictError(f"Email '{email}' already exists.")

        new_user = UserModel(
            username=username,
            email=email,
            password=password, # __init__ hashes it
            status=status,
            full_name=full_name,
        )
        try:
            db.session.add(new_user)
            db.session.flush()
            current_app.logger.info(f"User '{username}' added to session with ID {new_user.id}.")
            return new_user
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.error(f"Database integrity error creating user '{username}': {e}", exc_info=True)
            raise ConflictError(f"Database integrity error creating user: {e.orig}")
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Unexpected error adding user '{username}' to session: {e}", exc_info=True)
            raise ServiceError(f"Failed to add user to session: {e}")

    @staticmethod
    def get_user_by_id(user_id: int) -> UserModel | None:
        """Fetches a user by their ID using the current session."""
        return db.session.get(UserModel, user_id)

    @staticmethod
    def get_user_by_username(username: str) -> UserModel | None:
        """Fetches a user by their username using the current session."""
        return db.session.query(UserModel).filter_by(username=username).one_or_none()
