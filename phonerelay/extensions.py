# phonerelay/extensions.py
# -*- coding: utf-8 -*-
"""
Flask extensions instances and configuration.
Central place to initialize extensions to avoid circular imports.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
import os

# Database ORM: Provides SQLAlchemy integration
db = SQLAlchemy()

# Database Migrations: Alembic via Flask-Migrate
# migrations/ lives in the project root, next to the phonerelay package
migrations_dir = os.path.join(os.path.dirname(__file__), '..', 'migrations')

migrate = Migrate(directory=migrations_dir)

# Password Hashing: Provides bcrypt hashing capabilities
bcrypt = Bcrypt()

# User Session Management: Handles user login sessions via Flask-Login
login_manager = LoginManager()

# --- Flask-Login Configuration ---

# Matches `auth_bp = Blueprint('auth_api', __name__)` and `def login()` in auth routes.
login_manager.login_view = 'auth_api.login'
login_manager.login_message = u"Please log in to access this page."
login_manager.login_message_category = "info"


@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for Flask-Login session management."""
    # Lazy import of UserModel to avoid circular imports during initialization
    from .database.models.user import UserModel
    try:
        # Session stores the id as a string
        user_id_int = int(user_id)
        return db.session.get(UserModel, user_id_int)
    except (ValueError, TypeError):
        return None
