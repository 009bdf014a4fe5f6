# phonerelay/database/models/contact.py
# -*- coding: utf-8 -*-
"""Contact book entry owned by a user."""

import re

from sqlalchemy.sql import func

from phonerelay.extensions import db


class ContactModel(db.Model):
    """A person the owner can call or text through their configured inbound number."""
    __tablename__ = 'contacts'
    __table_args__ = (
        db.Index('ix_contacts_user_id_name', 'user_id', 'name'),
        db.Index('ix_contacts_user_id_phone_number', 'user_id', 'phone_number'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    is_favorite = db.Column(db.Boolean, nullable=False, default=False)
    tags = db.Column(db.JSON, nullable=True) # List of free-text tags
    created_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # --- Relationships ---
    owner = db.relationship('UserModel', back_populates='contacts')

    @property
    def formatted_phone(self) -> str:
        """US-style display format for 10/11 digit numbers, otherwise the stored value."""
        digits = re.sub(r'[^0-9]', '', self.phone_number or '')
        if len(digits) == 11 and digits[0] == '1':
            return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:11]}"
        if len(digits) == 10:
            return f"({digits[0:3]}) {digits[3:6]}-{digits[6:10]}"
        return self.phone_number

    @property
    def initials(self) -> str:
        letters = [word[0].upper() for word in (self.name or '').split(' ') if word]
        return ''.join(letters)[:2]

    def __repr__(self):
        """Represent instance as a unique string."""
        return f"<Contact(id={self.id}, user_id={self.user_id}, name='{self.name}')>"
