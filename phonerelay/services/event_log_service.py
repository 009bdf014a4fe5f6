# phonerelay/services/event_log_service.py
# -*- coding: utf-8 -*-
"""
Event Log Service
Append-and-update ledger of inbound and outbound telephony events.

Unlike the CRUD services, ledger writes COMMIT immediately: a 'received' row has
to survive whatever happens later in the same request.
"""
from dataclasses import dataclass, field

from flask import current_app
from flask_sqlalchemy.pagination import Pagination
from sqlalchemy import or_

from phonerelay.database.models.webhook_event import (
    WebhookEventModel, DIRECTION_INBOUND, EVENT_STATUSES, EVENT_TYPES,
    EVENT_TYPE_VOICE, EVENT_TYPE_SMS, EVENT_TYPE_SMS_FORWARD, STATUS_RECEIVED,
    STATUS_SENT, STATUS_ERROR,
)
from phonerelay.extensions import db
from phonerelay.utils.exceptions import ServiceError, ValidationError


@dataclass
class WebhookEventDraft:
    """Fields of a ledger row before it is written."""
    user_id: int
    type: str
    from_number: str | None = None
    to_number: str | None = None
    content: str | None = None
    call_sid: str | None = None
    message_sid: str | None = None
    direction: str = DIRECTION_INBOUND
    intent_id: str | None = None
    provider_payload: dict | None = field(default=None, repr=False)

    @property
    def correlation_id(self) -> str | None:
        return self.call_sid or self.message_sid


class EventLogService:

    @staticmethod
    def _insert(draft: WebhookEventDraft, status: str) -> int:
        if draft.type not in EVENT_TYPES:
            raise ValidationError(f"Invalid event type '{draft.type}'.")
        if status not in EVENT_STATUSES:
            raise ValidationError(f"Invalid event status '{status}'.")

        event = WebhookEventModel(
            user_id=draft.user_id,
            type=draft.type,
            direction=draft.direction,
            from_number=draft.from_number,
            to_number=draft.to_number,
            content=draft.content,
            call_sid=draft.call_sid,
            message_sid=draft.message_sid,
            intent_id=draft.intent_id,
            status=status,
            provider_payload=draft.provider_payload,
        )
        try:
            db.session.add(event)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to write {status} {draft.type} event for user {draft.user_id}: {e}", exc_info=True)
            raise ServiceError(f"Failed to write event log entry: {e}")
        return event.id

    @staticmethod
    def record(draft: WebhookEventDraft) -> int:
        """
        Inserts an inbound event in 'received' status and commits.

        Must be called before any reply is synthesized so that a failure later in
        the request still leaves an observable row.

        Returns:
            int: ID of the new ledger row.

        Raises:
            ServiceError: If the row could not be written.
        """
        event_id = EventLogService._insert(draft, STATUS_RECEIVED)
        current_app.logger.info(
            f"Recorded {draft.type} event {event_id} for user {draft.user_id} "
            f"(sid: {draft.correlation_id}, from: {draft.from_number}, to: {draft.to_number})."
        )
        return event_id

    @staticmethod
    def transition(correlation_id: str | None, user_id: int, new_status: str) -> int:
        """
        Moves every row matching the correlation id and owner to `new_status`.

        Idempotent: repeating the call leaves the same final state. When nothing
        matches (unknown or empty id) it is a no-op and no row is created.
        Rows already in 'error' are terminal and never move again.

        Returns:
            int: Number of rows updated.
        """
        if new_status not in EVENT_STATUSES:
            raise ValidationError(f"Invalid event status '{new_status}'.")
        if not correlation_id:
            current_app.logger.debug(f"Transition to '{new_status}' skipped for user {user_id}: no correlation id.")
            return 0

        try:
            updated = db.session.query(WebhookEventModel).filter(
                WebhookEventModel.user_id == user_id,
                WebhookEventModel.status != STATUS_ERROR,
                or_(WebhookEventModel.call_sid == correlation_id,
                    WebhookEventModel.message_sid == correlation_id)
            ).update({WebhookEventModel.status: new_status}, synchronize_session=False)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to transition events '{correlation_id}' to '{new_status}': {e}", exc_info=True)
            raise ServiceError(f"Failed to update event log status: {e}")

        if updated:
            current_app.logger.debug(f"Transitioned {updated} event(s) with sid '{correlation_id}' to '{new_status}'.")
        else:
            current_app.logger.debug(f"Transition to '{new_status}' matched no events for sid '{correlation_id}' (user {user_id}).")
        return updated

    @staticmethod
    def append(draft: WebhookEventDraft, status: str = STATUS_SENT) -> int:
        """
        Appends a row that is not part of an inbound lifecycle: forwarded SMS,
        outbound calls/messages, and error records. Commits immediately.
        """
        event_id = EventLogService._insert(draft, status)
        current_app.logger.info(f"Appended {status} {draft.type} event {event_id} for user {draft.user_id}.")
        return event_id

    @staticmethod
    def has_sent_intent(intent_id: str) -> bool:
        """True when an outbound intent already produced a 'sent' row."""
        return db.session.query(WebhookEventModel.id).filter(
            WebhookEventModel.intent_id == intent_id,
            WebhookEventModel.status == STATUS_SENT,
        ).first() is not None

    @staticmethod
    def get_events_for_user(user_id: int, page: int = 1, per_page: int = 20,
                            event_type: str | None = None, status: str | None = None,
                            search: str | None = None) -> Pagination:
        """
        Fetches a paginated, newest-first list of a user's ledger rows.

        Args:
            event_type (str, optional): Exact match on type.
            status (str, optional): Exact match on status.
            search (str, optional): Substring match over from/to/content.
        """
        query = db.session.query(WebhookEventModel).filter(WebhookEventModel.user_id == user_id)
        if event_type:
            query = query.filter(WebhookEventModel.type == event_type)
        if status:
            query = query.filter(WebhookEventModel.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                WebhookEventModel.from_number.ilike(pattern),
                WebhookEventModel.to_number.ilike(pattern),
                WebhookEventModel.content.ilike(pattern),
            ))
        query = query.order_by(WebhookEventModel.created_at.desc(), WebhookEventModel.id.desc())
        return query.paginate(page=page, per_page=per_page, error_out=False, count=True)

    @staticmethod
    def get_summary(user_id: int, recent_limit: int = 10) -> dict:
        """Counts and recent activity for the dashboard."""
        base = db.session.query(WebhookEventModel).filter(WebhookEventModel.user_id == user_id)
        recent = base.order_by(WebhookEventModel.created_at.desc(), WebhookEventModel.id.desc())\
                     .limit(recent_limit).all()
        return {
            'total_calls': base.filter(WebhookEventModel.type == EVENT_TYPE_VOICE).count(),
            'total_sms': base.filter(WebhookEventModel.type.in_([EVENT_TYPE_SMS, EVENT_TYPE_SMS_FORWARD])).count(),
            'total_errors': base.filter(WebhookEventModel.status == STATUS_ERROR).count(),
            'recent_activity': recent,
        }
