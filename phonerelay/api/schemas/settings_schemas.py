# phonerelay/api/schemas/settings_schemas.py
# -*- coding: utf-8 -*-
"""
Schemas for the telephony settings API.
The SIP password is load-only; responses expose only `sipPasswordSet`.
"""
from marshmallow import Schema, fields, validate, pre_load, EXCLUDE

from phonerelay.database.models.telephony_configuration import CALL_ACTIONS

E164_REGEX = r'^\+[1-9]\d{1,14}$'
E164_ERROR = "Invalid phone number format. Must start with '+' and contain digits (e.g., +15551234567)."

_NULLABLE_STRINGS = (
    'inboundNumber', 'forwardToPhone', 'sipEndpoint', 'sipUsername', 'customGreeting',
)


# Schema for settings output (Response)
class TelephonySettingsSchema(Schema):
    inbound_number = fields.Str(allow_none=True, data_key="inboundNumber")
    call_action = fields.Str(data_key="callAction")
    forward_to_phone = fields.Str(allow_none=True, data_key="forwardToPhone")
    sip_endpoint = fields.Str(allow_none=True, data_key="sipEndpoint")
    sip_username = fields.Str(allow_none=True, data_key="sipUsername")
    sip_password_set = fields.Bool(attribute="has_sip_password", data_key="sipPasswordSet")
    sms_forwarding_enabled = fields.Bool(data_key="smsForwardingEnabled")
    custom_greeting = fields.Str(allow_none=True, data_key="customGreeting")
    updated_at = fields.DateTime(dump_only=True, allow_none=True, data_key="updatedAt")


# Schema for saving settings (Input - full replace, password optional)
class UpdateTelephonySettingsSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    inbound_number = fields.Str(
        allow_none=True, data_key="inboundNumber",
        validate=[validate.Length(max=20), validate.Regexp(E164_REGEX, error=E164_ERROR)]
    )
    call_action = fields.Str(required=True, data_key="callAction", validate=validate.OneOf(CALL_ACTIONS))
    forward_to_phone = fields.Str(
        allow_none=True, data_key="forwardToPhone",
        validate=[validate.Length(max=20), validate.Regexp(E164_REGEX, error=E164_ERROR)]
    )
    sip_endpoint = fields.Str(allow_none=True, data_key="sipEndpoint", validate=validate.Length(max=255))
    sip_username = fields.Str(allow_none=True, data_key="sipUsername", validate=validate.Length(max=100))
    sip_password = fields.Str(allow_none=True, load_only=True, data_key="sipPassword", validate=validate.Length(max=255))
    sms_forwarding_enabled = fields.Bool(load_default=False, data_key="smsForwardingEnabled")
    custom_greeting = fields.Str(allow_none=True, data_key="customGreeting", validate=validate.Length(max=500))

    @pre_load
    def blank_strings_to_none(self, data, **kwargs):
        """Form posts send '' for untouched inputs."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in _NULLABLE_STRINGS:
            if data.get(key) == '':
                data[key] = None
        # An empty password box means "keep the stored one"; null clears it
        if data.get('sipPassword') == '':
            del data['sipPassword']
        return data
