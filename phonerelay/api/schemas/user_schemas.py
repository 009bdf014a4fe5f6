# phonerelay/api/schemas/user_schemas.py
# -*- coding: utf-8 -*-
"""
Schemas for User API requests and responses.
"""
from marshmallow import Schema, fields, validate

USER_STATUSES = ['active', 'inactive']


# Base User Schema (for output, excluding sensitive info like password hash)
class UserSchema(Schema):
    id = fields.Int(dump_only=True)
    username = fields.Str(required=True)
    email = fields.Email(required=True)
    status = fields.Str(required=True, validate=validate.OneOf(USER_STATUSES))
    full_name = fields.Str(allow_none=True, data_key="fullName")
    created_at = fields.DateTime(dump_only=True, data_key="createdAt")


# Login request body
class LoginSchema(Schema):
    username = fields.Str(required=True)
    password = fields.Str(required=True, load_only=True)
