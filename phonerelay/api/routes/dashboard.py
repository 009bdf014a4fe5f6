# phonerelay/api/routes/dashboard.py
# -*- coding: utf-8 -*-
"""Dashboard summary for the current user."""
from flask import Blueprint, jsonify, current_app, abort
from flask_login import current_user

from phonerelay.services.event_log_service import EventLogService
from phonerelay.services.settings_service import SettingsService
from phonerelay.utils.decorators import active_user_required
from phonerelay.api.schemas.event_schemas import DashboardSchema

dashboard_bp = Blueprint('dashboard_api', __name__)

dashboard_schema = DashboardSchema()


@dashboard_bp.route('', methods=['GET'])
@active_user_required
def get_dashboard():
    """Event totals, the most recent activity and whether an inbound number is set."""
    try:
        summary = EventLogService.get_summary(current_user.id)
        configuration = SettingsService.get_configuration(current_user.id)
        summary['telephony_configured'] = bool(configuration and configuration.inbound_number)
        return jsonify(dashboard_schema.dump(summary)), 200
    except Exception as e:
        current_app.logger.exception(f"Unexpected error building dashboard for user {current_user.id}: {e}")
        abort(500, description="Could not load dashboard.")
