# phonerelay/database/models/telephony_configuration.py
# -*- coding: utf-8 -*-
"""
Telephony configuration model: one per user, keyed for routing by the inbound number.

The forwarding target is a tagged union. `dial_phone` forwards to a phone number,
`dial_sip` forwards to a SIP endpoint with optional credentials. The columns are
flat, but code reads and writes the target through PhoneTarget / SipTarget and
`build_forwarding_target()`, which is the only place cross-field rules live.
"""
from dataclasses import dataclass

from sqlalchemy.sql import func

from phonerelay.extensions import db
from phonerelay.database.types import EncryptedString
from phonerelay.utils.exceptions import ValidationError

CALL_ACTION_DIAL_PHONE = 'dial_phone'
CALL_ACTION_DIAL_SIP = 'dial_sip'
CALL_ACTIONS = (CALL_ACTION_DIAL_PHONE, CALL_ACTION_DIAL_SIP)


@dataclass(frozen=True)
class PhoneTarget:
    """Forward calls to a phone number."""
    number: str | None

    call_action = CALL_ACTION_DIAL_PHONE


@dataclass(frozen=True)
class SipTarget:
    """Forward calls to a SIP endpoint, optionally authenticating as username/password."""
    endpoint: str | None
    username: str | None = None
    password: str | None = None

    call_action = CALL_ACTION_DIAL_SIP

    @property
    def has_credentials(self) -> bool:
        # Both halves or nothing; a lone username/password is never applied
        return bool(self.username) and bool(self.password)


def build_forwarding_target(call_action: str, forward_to_phone: str | None = None,
                            sip_endpoint: str | None = None, sip_username: str | None = None,
                            sip_password: str | None = None) -> PhoneTarget | SipTarget:
    """
    Builds a validated forwarding target from submitted settings fields.

    Raises:
        ValidationError: Unknown call action, or SIP credentials partially supplied.
                         `errors` is keyed by the API field names.
    """
    if call_action == CALL_ACTION_DIAL_PHONE:
        return PhoneTarget(number=forward_to_phone or None)

    if call_action == CALL_ACTION_DIAL_SIP:
        if bool(sip_username) != bool(sip_password):
            message = "Both username and password are required for SIP authentication."
            raise ValidationError(message, errors={
                'sipUsername': [message],
                'sipPassword': [message],
            })
        return SipTarget(
            endpoint=sip_endpoint or None,
            username=sip_username or None,
            password=sip_password or None,
        )

    raise ValidationError("Invalid call action.", errors={
        'callAction': [f"Must be one of: {', '.join(CALL_ACTIONS)}."]
    })


class TelephonyConfigurationModel(db.Model):
    """
    A user's telephony configuration. `inbound_number` is the routing key for
    provider webhooks and is unique across all configurations.
    """
    __tablename__ = 'telephony_configurations'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False, index=True)
    # Stored exactly as the provider sends it in `To` (E.164), no normalization on lookup
    inbound_number = db.Column(db.String(20), unique=True, nullable=True, index=True)
    call_action = db.Column(db.String(20), nullable=False, default=CALL_ACTION_DIAL_PHONE)
    # Dial target for dial_phone and destination for forwarded SMS
    forward_to_phone = db.Column(db.String(20), nullable=True)
    sip_endpoint = db.Column(db.String(255), nullable=True)
    sip_username = db.Column(db.String(100), nullable=True)
    sip_password = db.Column(EncryptedString(), nullable=True)
    sms_forwarding_enabled = db.Column(db.Boolean, nullable=False, default=False)
    custom_greeting = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # --- Relationships ---
    owner = db.relationship('UserModel', back_populates='telephony_configuration')

    @property
    def forwarding_target(self) -> PhoneTarget | SipTarget:
        """Current target as a variant. Reads stored columns without re-validating them."""
        if self.call_action == CALL_ACTION_DIAL_SIP:
            return SipTarget(endpoint=self.sip_endpoint, username=self.sip_username, password=self.sip_password)
        return PhoneTarget(number=self.forward_to_phone)

    def apply_forwarding_target(self, target: PhoneTarget | SipTarget) -> None:
        """Writes a target variant to the columns; fields of the other branch are cleared."""
        self.call_action = target.call_action
        if isinstance(target, SipTarget):
            self.sip_endpoint = target.endpoint
            self.sip_username = target.username
            self.sip_password = target.password
        else:
            self.sip_endpoint = None
            self.sip_username = None
            self.sip_password = None
            self.forward_to_phone = target.number

    @property
    def has_sip_password(self) -> bool:
        return bool(self.sip_password)

    @property
    def sms_forward_destination(self) -> str | None:
        if self.sms_forwarding_enabled and self.forward_to_phone:
            return self.forward_to_phone
        return None

    def __repr__(self):
        """Represent instance as a unique string. Never includes credentials."""
        return (f"<TelephonyConfiguration(id={self.id}, user_id={self.user_id}, "
                f"inbound_number='{self.inbound_number}', call_action='{self.call_action}')>")
