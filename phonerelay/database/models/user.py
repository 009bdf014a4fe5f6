# phonerelay/database/models/user.py
# -*- coding: utf-8 -*-
"""User model for people who own a telephony configuration and a contact book."""

from flask_login import UserMixin
from sqlalchemy.sql import func

from phonerelay.extensions import db, bcrypt


class UserModel(UserMixin, db.Model):
    """
    User Model: owner of at most one telephony configuration, a contact book
    and the webhook event ledger rows routed to them.
    Includes Flask-Login integration properties and password hashing.
    """
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='active', index=True) # 'active', 'inactive'
    full_name = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # --- Relationships ---
    telephony_configuration = db.relationship(
        'TelephonyConfigurationModel', back_populates='owner', uselist=False, cascade="all, delete-orphan"
    )
    contacts = db.relationship('ContactModel', back_populates='owner', lazy='dynamic', cascade="all, delete-orphan")
    webhook_events = db.relationship('WebhookEventModel', back_populates='owner', lazy='dynamic', cascade="all, delete-orphan")

    # --- Methods ---
    def __init__(self, username, email, password, **kwargs):
        """Create instance and hash password."""
        self.username = username
        self.email = email
        for key, value in kwargs.items():
             if hasattr(self, key):
                  setattr(self, key, value)
        self.set_password(password)

    def set_password(self, password):
        """Set password hash from plaintext password."""
        if not password:
            raise ValueError("Password cannot be empty")
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check plaintext password against the stored hash."""
        if not self.password_hash or not password:
            return False
        return bcrypt.check_password_hash(self.password_hash, password)

    # --- Flask-Login Properties ---
    @property
    def is_active(self):
        """Required by Flask-Login. Checks if the user's status is 'active'."""
        return self.status == 'active'

    def __repr__(self):
        """Represent instance as a unique string."""
        return f"<User(id={self.id}, username='{self.username}')>"
