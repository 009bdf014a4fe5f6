# phonerelay/api/schemas/event_schemas.py
# -*- coding: utf-8 -*-
"""
Schemas for the event ledger read API and the dashboard summary.
"""
from marshmallow import Schema, fields


# Schema for a ledger row (Response)
class WebhookEventSchema(Schema):
    id = fields.Int(dump_only=True)
    type = fields.Str(dump_only=True)
    direction = fields.Str(dump_only=True)
    from_number = fields.Str(allow_none=True, dump_only=True, data_key="fromNumber")
    to_number = fields.Str(allow_none=True, dump_only=True, data_key="toNumber")
    content = fields.Str(allow_none=True, dump_only=True)
    call_sid = fields.Str(allow_none=True, dump_only=True, data_key="callSid")
    message_sid = fields.Str(allow_none=True, dump_only=True, data_key="messageSid")
    status = fields.Str(dump_only=True)
    created_at = fields.DateTime(dump_only=True, data_key="createdAt")


# Single-event detail also carries the raw provider payload
class WebhookEventDetailSchema(WebhookEventSchema):
    intent_id = fields.Str(allow_none=True, dump_only=True, data_key="intentId")
    provider_payload = fields.Raw(allow_none=True, dump_only=True, data_key="providerPayload")
    updated_at = fields.DateTime(dump_only=True, data_key="updatedAt")


# Schema for event list pagination response
class WebhookEventListSchema(Schema):
    items = fields.List(fields.Nested(WebhookEventSchema()), required=True)
    page = fields.Int(required=True)
    perPage = fields.Int(required=True, attribute="per_page")
    total = fields.Int(required=True)
    pages = fields.Int(required=True)


# Schema for the dashboard (Response)
class DashboardSchema(Schema):
    total_calls = fields.Int(data_key="totalCalls")
    total_sms = fields.Int(data_key="totalSms")
    total_errors = fields.Int(data_key="totalErrors")
    recent_activity = fields.List(fields.Nested(WebhookEventSchema()), data_key="recentActivity")
    telephony_configured = fields.Bool(data_key="telephonyConfigured")
