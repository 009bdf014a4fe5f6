# phonerelay/api/routes/contacts.py
# -*- coding: utf-8 -*-
"""
Contact book API Routes, plus "call contact" / "SMS contact" actions.
Handles transaction commit/rollback and catches custom service exceptions.
Call and SMS actions only queue an intent and return 202 Accepted.
"""
from flask import Blueprint, request, jsonify, current_app, abort
from flask_login import current_user
from marshmallow import ValidationError

from phonerelay.extensions import db
from phonerelay.services.contact_service import ContactService
from phonerelay.services.outbound_dispatcher import CallContactIntent, SmsContactIntent, get_dispatcher
from phonerelay.services.settings_service import SettingsService
from phonerelay.utils.exceptions import ResourceNotFound, ServiceError, ValidationError as CustomValidationError
from phonerelay.utils.decorators import active_user_required
from phonerelay.api.schemas.contact_schemas import (
    ContactSchema, CreateContactSchema, UpdateContactSchema, ContactListSchema, SmsContactSchema
)

# Create Blueprint
contacts_bp = Blueprint('contacts_api', __name__)

# Instantiate schemas
contact_schema = ContactSchema()
create_contact_schema = CreateContactSchema()
update_contact_schema = UpdateContactSchema()
contact_list_schema = ContactListSchema()
sms_contact_schema = SmsContactSchema()


def _get_owned_contact_or_404(contact_id):
    contact = ContactService.get_contact(contact_id, user_id=current_user.id)
    if not contact:
        abort(404, description=f"Contact with ID {contact_id} not found or not owned by user.")
    return contact


def _require_inbound_number():
    configuration = SettingsService.get_configuration(current_user.id)
    if configuration is None or not configuration.inbound_number:
        abort(400, description="Please configure your telephony settings first.")
    return configuration


@contacts_bp.route('', methods=['GET'])
@active_user_required
def get_contacts():
    """List own contacts ordered by name (paginated, searchable, favorites filter)."""
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config.get('CONTACTS_PER_PAGE', 20), type=int)
    search = request.args.get('search', None, type=str)
    list_filter = request.args.get('filter', None, type=str)

    if list_filter is not None and list_filter != 'favorites':
        abort(400, description="Invalid filter. Allowed values: favorites")

    try:
        paginated = ContactService.get_contacts_for_user(
            user_id=current_user.id,
            page=page,
            per_page=per_page,
            search=search,
            favorites_only=(list_filter == 'favorites'),
        )
        result_data = {
            'items': paginated.items,
            'page': paginated.page,
            'per_page': paginated.per_page,
            'total': paginated.total,
            'pages': paginated.pages
        }
        return jsonify(contact_list_schema.dump(result_data)), 200
    except Exception as e:
        current_app.logger.exception(f"Unexpected error fetching contacts for user {current_user.id}: {e}")
        abort(500, description="Could not fetch contacts.")


@contacts_bp.route('', methods=['POST'])
@active_user_required
def create_contact():
    """Add a contact."""
    json_data = request.get_json(silent=True)
    if not json_data:
        abort(400, description="No input data provided.")

    try:
        data = create_contact_schema.load(json_data)
    except ValidationError as err:
        current_app.logger.warning(f"Create contact validation error for user {current_user.id}: {err.messages}")
        return jsonify({"errors": err.messages}), 400

    try:
        contact = ContactService.create_contact(user_id=current_user.id, **data)
        db.session.commit()
        current_app.logger.info(f"User {current_user.id} created contact {contact.id}")
        return jsonify(contact_schema.dump(contact)), 201
    except CustomValidationError as e:
        db.session.rollback()
        abort(400, description=str(e))
    except ServiceError as e:
        db.session.rollback()
        current_app.logger.error(f"Create contact service error for user {current_user.id}: {e}", exc_info=True)
        abort(500, description=str(e))
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Unexpected error creating contact for user {current_user.id}: {e}")
        abort(500, description="Could not create contact due to an internal error.")


@contacts_bp.route('/<int:contact_id>', methods=['GET'])
@active_user_required
def get_contact(contact_id):
    """Get one owned contact."""
    return jsonify(contact_schema.dump(_get_owned_contact_or_404(contact_id))), 200


@contacts_bp.route('/<int:contact_id>', methods=['PUT'])
@active_user_required
def update_contact(contact_id):
    """Update an owned contact (partial)."""
    json_data = request.get_json(silent=True)
    if not json_data:
        abort(400, description="No input data provided.")

    try:
        data_to_update = update_contact_schema.load(json_data)
    except ValidationError as err:
        current_app.logger.warning(f"Update contact validation error for ID {contact_id}, user {current_user.id}: {err.messages}")
        return jsonify({"errors": err.messages}), 400

    if not data_to_update:
        abort(400, description="No valid fields provided for update.")

    try:
        contact = ContactService.update_contact(contact_id=contact_id, user_id=current_user.id, **data_to_update)
        db.session.commit()
        current_app.logger.info(f"User {current_user.id} updated contact {contact_id}")
        return jsonify(contact_schema.dump(contact)), 200
    except ResourceNotFound as e:
        db.session.rollback()
        abort(404, description=str(e))
    except (CustomValidationError, ServiceError) as e:
        db.session.rollback()
        current_app.logger.error(f"Update contact service error for ID {contact_id}, user {current_user.id}: {e}", exc_info=True)
        status_code = 400 if isinstance(e, CustomValidationError) else 500
        abort(status_code, description=str(e))
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Unexpected error updating contact {contact_id} for user {current_user.id}: {e}")
        abort(500, description="Could not update contact due to an internal error.")


@contacts_bp.route('/<int:contact_id>', methods=['DELETE'])
@active_user_required
def delete_contact(contact_id):
    """Delete an owned contact."""
    try:
        ContactService.delete_contact(contact_id=contact_id, user_id=current_user.id)
        db.session.commit()
        current_app.logger.info(f"User {current_user.id} deleted contact {contact_id}")
        return '', 204
    except ResourceNotFound as e:
        db.session.rollback()
        abort(404, description=str(e))
    except ServiceError as e:
        db.session.rollback()
        current_app.logger.error(f"Delete contact service error for ID {contact_id}, user {current_user.id}: {e}", exc_info=True)
        abort(500, description=str(e))


@contacts_bp.route('/<int:contact_id>/favorite', methods=['POST'])
@active_user_required
def toggle_favorite(contact_id):
    """Flip the favorite flag of an owned contact."""
    try:
        contact = ContactService.toggle_favorite(contact_id=contact_id, user_id=current_user.id)
        db.session.commit()
        return jsonify(contact_schema.dump(contact)), 200
    except ResourceNotFound as e:
        db.session.rollback()
        abort(404, description=str(e))


@contacts_bp.route('/<int:contact_id>/call', methods=['POST'])
@active_user_required
def call_contact(contact_id):
    """Queue an outbound call to the contact. Returns before the provider is contacted."""
    contact = _get_owned_contact_or_404(contact_id)
    _require_inbound_number()

    intent_id = get_dispatcher().submit(CallContactIntent(user_id=current_user.id, contact_id=contact.id))
    current_app.logger.info(f"User {current_user.id} requested call to contact {contact.id} (intent {intent_id})")
    return jsonify({
        "message": f"Calling {contact.name}...",
        "intentId": intent_id
    }), 202


@contacts_bp.route('/<int:contact_id>/sms', methods=['POST'])
@active_user_required
def sms_contact(contact_id):
    """Queue an outbound SMS to the contact. Returns before the provider is contacted."""
    contact = _get_owned_contact_or_404(contact_id)

    try:
        data = sms_contact_schema.load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"errors": err.messages}), 400

    _require_inbound_number()

    intent_id = get_dispatcher().submit(
        SmsContactIntent(user_id=current_user.id, contact_id=contact.id, body=data['message'])
    )
    current_app.logger.info(f"User {current_user.id} requested SMS to contact {contact.id} (intent {intent_id})")
    return jsonify({
        "message": f"SMS to {contact.name} queued for sending.",
        "intentId": intent_id
    }), 202
