# phonerelay/api/routes/events.py
# -*- coding: utf-8 -*-
"""
Event ledger read API: the current user's webhook and outbound events.
"""
from flask import Blueprint, request, jsonify, current_app, abort
from flask_login import current_user

from phonerelay.database.models.webhook_event import EVENT_STATUSES, EVENT_TYPES, WebhookEventModel
from phonerelay.extensions import db
from phonerelay.services.event_log_service import EventLogService
from phonerelay.utils.decorators import active_user_required
from phonerelay.api.schemas.event_schemas import WebhookEventDetailSchema, WebhookEventListSchema

# Create Blueprint
events_bp = Blueprint('events_api', __name__)

# Instantiate schemas
event_detail_schema = WebhookEventDetailSchema()
event_list_schema = WebhookEventListSchema()


@events_bp.route('', methods=['GET'])
@active_user_required
def get_events():
    """List own events, newest first (paginated, filterable by type/status, searchable)."""
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config.get('EVENTS_PER_PAGE', 20), type=int)
    event_type = request.args.get('type', None, type=str)
    status = request.args.get('status', None, type=str)
    search = request.args.get('search', None, type=str)

    if event_type is not None and event_type not in EVENT_TYPES:
        abort(400, description=f"Invalid type filter. Allowed values: {', '.join(EVENT_TYPES)}")
    if status is not None and status not in EVENT_STATUSES:
        abort(400, description=f"Invalid status filter. Allowed values: {', '.join(EVENT_STATUSES)}")

    try:
        paginated = EventLogService.get_events_for_user(
            user_id=current_user.id,
            page=page,
            per_page=per_page,
            event_type=event_type,
            status=status,
            search=search,
        )
        result_data = {
            'items': paginated.items,
            'page': paginated.page,
            'per_page': paginated.per_page,
            'total': paginated.total,
            'pages': paginated.pages
        }
        return jsonify(event_list_schema.dump(result_data)), 200
    except Exception as e:
        current_app.logger.exception(f"Unexpected error fetching events for user {current_user.id}: {e}")
        abort(500, description="Could not fetch events.")


@events_bp.route('/<int:event_id>', methods=['GET'])
@active_user_required
def get_event(event_id):
    """Single own event including the raw provider payload."""
    event = db.session.query(WebhookEventModel).filter_by(id=event_id, user_id=current_user.id).one_or_none()
    if not event:
        abort(404, description=f"Event with ID {event_id} not found or not owned by user.")
    return jsonify(event_detail_schema.dump(event)), 200
