# phonerelay/database/models/webhook_event.py
# -*- coding: utf-8 -*-
"""Webhook event ledger: inbound provider callbacks and the outbound legs they trigger."""

from sqlalchemy.sql import func

from phonerelay.extensions import db

EVENT_TYPE_VOICE = 'voice'
EVENT_TYPE_SMS = 'sms'
EVENT_TYPE_SMS_FORWARD = 'sms_forward'
EVENT_TYPES = (EVENT_TYPE_VOICE, EVENT_TYPE_SMS, EVENT_TYPE_SMS_FORWARD)

DIRECTION_INBOUND = 'inbound'
DIRECTION_OUTBOUND = 'outbound'
DIRECTIONS = (DIRECTION_INBOUND, DIRECTION_OUTBOUND)

STATUS_RECEIVED = 'received'
STATUS_PROCESSED = 'processed'
STATUS_FORWARDED = 'forwarded'
STATUS_SENT = 'sent'
STATUS_ERROR = 'error'
EVENT_STATUSES = (STATUS_RECEIVED, STATUS_PROCESSED, STATUS_FORWARDED, STATUS_SENT, STATUS_ERROR)


class WebhookEventModel(db.Model):
    """
    One ledger row per telephony event. Inbound rows are created in 'received'
    before any reply is built and later moved to 'processed' or 'error', matched
    by provider correlation id (call_sid / message_sid) and owner.
    Outbound rows ('sent' / 'error') carry no foreign key to the inbound leg.
    """
    __tablename__ = 'webhook_events'

    id = db.Column(db.BigInteger().with_variant(db.Integer, 'sqlite'), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    type = db.Column(db.String(20), nullable=False, index=True)
    direction = db.Column(db.String(10), nullable=False, default=DIRECTION_INBOUND)
    from_number = db.Column(db.String(50), nullable=True)
    to_number = db.Column(db.String(50), nullable=True)
    # SMS body, forwarded text, or error detail
    content = db.Column(db.Text, nullable=True)

    # --- Provider correlation ids ---
    call_sid = db.Column(db.String(64), nullable=True, index=True)
    message_sid = db.Column(db.String(64), nullable=True, index=True)
    # Set on rows written by the outbound dispatcher; used to skip redelivered intents
    intent_id = db.Column(db.String(36), nullable=True, index=True)

    status = db.Column(db.String(20), nullable=False, default=STATUS_RECEIVED, index=True)
    # Raw provider form payload, kept verbatim for replay
    provider_payload = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), index=True)
    updated_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # --- Relationships ---
    owner = db.relationship('UserModel', back_populates='webhook_events')

    def __repr__(self):
        """Represent instance as a unique string."""
        sid = self.call_sid or self.message_sid
        return f"<WebhookEvent(id={self.id}, type='{self.type}', sid='{sid}', status='{self.status}')>"
