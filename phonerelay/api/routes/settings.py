# phonerelay/api/routes/settings.py
# -*- coding: utf-8 -*-
"""
Telephony Settings API Routes.
Handles transaction commit/rollback and catches custom service exceptions.
"""
from flask import Blueprint, request, jsonify, current_app, abort
from flask_login import current_user
from marshmallow import ValidationError

from phonerelay.extensions import db
from phonerelay.database.models.telephony_configuration import CALL_ACTION_DIAL_PHONE
from phonerelay.services.settings_service import SettingsService
from phonerelay.utils.exceptions import ConflictError, ServiceError, ValidationError as CustomValidationError
from phonerelay.utils.decorators import active_user_required
from phonerelay.api.schemas.settings_schemas import TelephonySettingsSchema, UpdateTelephonySettingsSchema

# Create Blueprint
settings_bp = Blueprint('settings_api', __name__)

# Instantiate schemas
settings_schema = TelephonySettingsSchema()
update_settings_schema = UpdateTelephonySettingsSchema()

# Shown to users who have never saved settings
DEFAULT_SETTINGS = {
    'inbound_number': None,
    'call_action': CALL_ACTION_DIAL_PHONE,
    'forward_to_phone': None,
    'sip_endpoint': None,
    'sip_username': None,
    'has_sip_password': False,
    'sms_forwarding_enabled': False,
    'custom_greeting': None,
    'updated_at': None,
}


@settings_bp.route('', methods=['GET'])
@active_user_required
def get_settings():
    """Current user's telephony settings, or defaults when none are saved."""
    configuration = SettingsService.get_configuration(current_user.id)
    return jsonify(settings_schema.dump(configuration if configuration else DEFAULT_SETTINGS)), 200


@settings_bp.route('', methods=['PUT'])
@active_user_required
def update_settings():
    """Create or replace the current user's telephony settings."""
    json_data = request.get_json(silent=True)
    if not json_data:
        abort(400, description="No input data provided.")

    try:
        data = update_settings_schema.load(json_data)
    except ValidationError as err:
        current_app.logger.warning(f"Settings validation error for user {current_user.id}: {err.messages}")
        return jsonify({"errors": err.messages}), 400

    try:
        configuration = SettingsService.save_configuration(user_id=current_user.id, **data)

        # --- Commit Transaction ---
        db.session.commit()
        current_app.logger.info(f"User {current_user.id} saved telephony settings (configuration {configuration.id}).")
        return jsonify({
            "message": "Telephony settings saved successfully.",
            "settings": settings_schema.dump(configuration)
        }), 200

    except CustomValidationError as e:
        db.session.rollback()
        current_app.logger.warning(f"Settings rejected for user {current_user.id}: {e}")
        # Field-level errors keep the same shape as schema errors
        return jsonify(e.to_dict()), 400
    except ConflictError as e:
        db.session.rollback()
        current_app.logger.warning(f"Settings conflict for user {current_user.id}: {e}")
        abort(409, description=str(e))
    except ServiceError as e:
        db.session.rollback()
        current_app.logger.error(f"Settings service error for user {current_user.id}: {e}", exc_info=True)
        abort(500, description=str(e))
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Unexpected error saving settings for user {current_user.id}: {e}")
        abort(500, description="Could not save settings due to an internal error.")
