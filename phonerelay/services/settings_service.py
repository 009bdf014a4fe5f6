# phonerelay/services/settings_service.py
# -*- coding: utf-8 -*-
"""
Settings Service
Reads and writes a user's telephony configuration.
Service methods modify the session but DO NOT COMMIT.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from phonerelay.database.models.telephony_configuration import (
    TelephonyConfigurationModel, build_forwarding_target,
)
from phonerelay.extensions import db
from phonerelay.utils.exceptions import ConflictError, ResourceNotFound, ServiceError


class SettingsService:

    @staticmethod
    def get_configuration(user_id: int) -> TelephonyConfigurationModel | None:
        """Fetches the user's configuration, or None if they have not saved one."""
        return db.session.query(TelephonyConfigurationModel).filter_by(user_id=user_id).one_or_none()

    @staticmethod
    def get_all_configurations(user_id: int | None = None) -> list:
        query = db.session.query(TelephonyConfigurationModel).order_by(TelephonyConfigurationModel.id)
        if user_id is not None:
            query = query.filter_by(user_id=user_id)
        return query.all()

    @staticmethod
    def save_configuration(user_id: int, call_action: str, inbound_number: str | None = None,
                           forward_to_phone: str | None = None, sip_endpoint: str | None = None,
                           sip_username: str | None = None, sms_forwarding_enabled: bool = False,
                           custom_greeting: str | None = None, **kwargs) -> TelephonyConfigurationModel:
        """
        Creates or replaces the user's configuration in the session (DOES NOT COMMIT).

        The SIP password is write-only: pass `sip_password` to set or clear it; when
        the keyword is absent the stored password is kept.

        Raises:
            ValidationError: Invalid call action or partial SIP credentials. Nothing is staged.
            ConflictError: Another user already claims `inbound_number`.
            ServiceError: For unexpected errors during flush.
        """
        configuration = SettingsService.get_configuration(user_id)

        if 'sip_password' in kwargs:
            sip_password = kwargs['sip_password']
        else:
            sip_password = configuration.sip_password if configuration else None

        # Cross-field rules; raises before anything touches the session
        target = build_forwarding_target(
            call_action,
            forward_to_phone=forward_to_phone,
            sip_endpoint=sip_endpoint,
            sip_username=sip_username,
            sip_password=sip_password,
        )

        if inbound_number:
            claimed = db.session.query(TelephonyConfigurationModel.id).filter(
                TelephonyConfigurationModel.inbound_number == inbound_number,
                TelephonyConfigurationModel.user_id != user_id,
            ).first()
            if claimed:
                raise ConflictError(f"Inbound number '{inbound_number}' is already configured by another user.")

        if configuration is None:
            configuration = TelephonyConfigurationModel(user_id=user_id)
            db.session.add(configuration)

        configuration.inbound_number = inbound_number or None
        configuration.forward_to_phone = forward_to_phone or None
        configuration.sms_forwarding_enabled = bool(sms_forwarding_enabled)
        configuration.custom_greeting = custom_greeting or None
        configuration.apply_forwarding_target(target)

        try:
            db.session.flush()
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.warning(f"Integrity error saving configuration for user {user_id}: {e}")
            # Concurrent claim of the same number lands here via the unique constraint
            raise ConflictError(f"Inbound number '{inbound_number}' is already configured by another user.")
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Unexpected error saving configuration for user {user_id}: {e}", exc_info=True)
            raise ServiceError(f"Failed to save telephony configuration: {e}")

        current_app.logger.info(
            f"Telephony configuration {configuration.id} staged for user {user_id} "
            f"(number: {configuration.inbound_number}, action: {configuration.call_action}, "
            f"sip password set: {configuration.has_sip_password})."
        )
        return configuration

    @staticmethod
    def delete_configuration(user_id: int) -> bool:
        """
        Marks the user's configuration for deletion (DOES NOT COMMIT).

        Raises:
            ResourceNotFound: If the user has no configuration.
        """
        configuration = SettingsService.get_configuration(user_id)
        if configuration is None:
            raise ResourceNotFound(f"No telephony configuration found for user ID: {user_id}")
        db.session.delete(configuration)
        db.session.flush()
        current_app.logger.info(f"Telephony configuration for user {user_id} marked for deletion.")
        return True

    @staticmethod
    def delete_all_configurations() -> int:
        """Deletes every configuration (DOES NOT COMMIT). Returns the number of rows removed."""
        count = db.session.query(TelephonyConfigurationModel).delete(synchronize_session=False)
        current_app.logger.info(f"{count} telephony configuration(s) marked for deletion.")
        return count
