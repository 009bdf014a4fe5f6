# phonerelay/services/contact_service.py
# -*- coding: utf-8 -*-
"""
Contact Service
Contact book CRUD, search and favorites.
Service methods modify the session but DO NOT COMMIT.
"""
from flask import current_app
from flask_sqlalchemy.pagination import Pagination
from sqlalchemy import or_

from phonerelay.database.models.contact import ContactModel
from phonerelay.extensions import db
from phonerelay.utils.exceptions import ResourceNotFound, ServiceError, ValidationError


class ContactService:

    UPDATABLE_FIELDS = ('name', 'phone_number', 'email', 'notes', 'is_favorite', 'tags')

    @staticmethod
    def create_contact(user_id: int, name: str, phone_number: str, email: str | None = None,
                       notes: str | None = None, is_favorite: bool = False,
                       tags: list | None = None) -> ContactModel:
        """
        Adds a new contact to the session (DOES NOT COMMIT).

        Raises:
            ValidationError: If name or phone number is empty.
            ServiceError: For unexpected errors during flush.
        """
        if not name:
            raise ValidationError("Contact name cannot be empty.")
        if not phone_number:
            raise ValidationError("Contact phone number cannot be empty.")

        contact = ContactModel(
            user_id=user_id,
            name=name,
            phone_number=phone_number,
            email=email,
            notes=notes,
            is_favorite=is_favorite,
            tags=list(dict.fromkeys(tags or [])),
        )
        try:
            db.session.add(contact)
            db.session.flush()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Unexpected error adding contact for user {user_id}: {e}", exc_info=True)
            raise ServiceError(f"Failed to add contact to session: {e}")

        current_app.logger.info(f"Contact {contact.id} added to session for user {user_id}.")
        return contact

    @staticmethod
    def get_contact(contact_id: int, user_id: int | None = None) -> ContactModel | None:
        """Fetches a contact by ID, optionally checking ownership."""
        query = db.session.query(ContactModel).filter_by(id=contact_id)
        if user_id is not None:
            query = query.filter_by(user_id=user_id)
        return query.one_or_none()

    @staticmethod
    def get_contacts_for_user(user_id: int, page: int = 1, per_page: int = 20,
                              search: str | None = None, favorites_only: bool = False) -> Pagination:
        """
        Fetches a paginated list of the user's contacts ordered by name.

        Args:
            search (str, optional): Substring match over name, phone number and email.
            favorites_only (bool): Only contacts flagged as favorite.
        """
        query = db.session.query(ContactModel).filter_by(user_id=user_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                ContactModel.name.ilike(pattern),
                ContactModel.phone_number.ilike(pattern),
                ContactModel.email.ilike(pattern),
            ))
        if favorites_only:
            query = query.filter(ContactModel.is_favorite.is_(True))
        query = query.order_by(ContactModel.name, ContactModel.id)
        return query.paginate(page=page, per_page=per_page, error_out=False, count=True)

    @staticmethod
    def update_contact(contact_id: int, user_id: int, **kwargs) -> ContactModel:
        """
        Updates an owned contact in the session (DOES NOT COMMIT).

        Raises:
            ResourceNotFound: If contact not found or not owned by user.
            ValidationError: If name or phone number would become empty.
        """
        contact = ContactService.get_contact(contact_id, user_id=user_id)
        if not contact:
            raise ResourceNotFound(f"Contact with ID {contact_id} not found or not owned by user {user_id}.")

        for key in ('name', 'phone_number'):
            if key in kwargs and not kwargs[key]:
                raise ValidationError(f"Contact {key.replace('_', ' ')} cannot be empty.")

        updated = False
        for key, value in kwargs.items():
            if key in ContactService.UPDATABLE_FIELDS:
                setattr(contact, key, list(dict.fromkeys(value or [])) if key == 'tags' else value)
                updated = True

        if updated:
            try:
                db.session.flush()
            except Exception as e:
                db.session.rollback()
                current_app.logger.error(f"Unexpected error updating contact {contact_id}: {e}", exc_info=True)
                raise ServiceError(f"Failed to update contact in session: {e}")
            current_app.logger.info(f"Contact {contact_id} updated in session by user {user_id}.")
        return contact

    @staticmethod
    def toggle_favorite(contact_id: int, user_id: int) -> ContactModel:
        contact = ContactService.get_contact(contact_id, user_id=user_id)
        if not contact:
            raise ResourceNotFound(f"Contact with ID {contact_id} not found or not owned by user {user_id}.")
        contact.is_favorite = not contact.is_favorite
        db.session.flush()
        return contact

    @staticmethod
    def delete_contact(contact_id: int, user_id: int) -> bool:
        """
        Marks an owned contact for deletion (DOES NOT COMMIT).

        Raises:
            ResourceNotFound: If contact not found or not owned by user.
        """
        contact = ContactService.get_contact(contact_id, user_id=user_id)
        if not contact:
            raise ResourceNotFound(f"Contact with ID {contact_id} not found or not owned by user {user_id}.")
        try:
            db.session.delete(contact)
            db.session.flush()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Unexpected error deleting contact {contact_id}: {e}", exc_info=True)
            raise ServiceError(f"Failed to stage contact deletion: {e}")
        current_app.logger.info(f"Contact {contact_id} marked for deletion by user {user_id}.")
        return True
