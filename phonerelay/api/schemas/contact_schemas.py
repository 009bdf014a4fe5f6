# phonerelay/api/schemas/contact_schemas.py
# -*- coding: utf-8 -*-
"""
Schemas for Contact API requests and responses.
"""
from marshmallow import Schema, fields, validate, EXCLUDE

PHONE_REGEX = r'^\+?[0-9\s\-\(\)\.]{7,20}$'
PHONE_ERROR = "Invalid phone number. Use digits with optional '+', spaces, dashes, dots or parentheses."


# Schema for creating a contact (Input)
class CreateContactSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    phone_number = fields.Str(
        required=True, data_key="phoneNumber",
        validate=[validate.Length(max=20), validate.Regexp(PHONE_REGEX, error=PHONE_ERROR)]
    )
    email = fields.Email(allow_none=True, validate=validate.Length(max=255))
    notes = fields.Str(allow_none=True)
    is_favorite = fields.Bool(load_default=False, data_key="isFavorite")
    tags = fields.List(fields.Str(validate=validate.Length(max=50)), load_default=list)


# Schema for updating a contact (Input - Partial)
class UpdateContactSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(min=1, max=255))
    phone_number = fields.Str(
        data_key="phoneNumber",
        validate=[validate.Length(max=20), validate.Regexp(PHONE_REGEX, error=PHONE_ERROR)]
    )
    email = fields.Email(allow_none=True, validate=validate.Length(max=255))
    notes = fields.Str(allow_none=True)
    is_favorite = fields.Bool(data_key="isFavorite")
    tags = fields.List(fields.Str(validate=validate.Length(max=50)), allow_none=True)


# Schema for contact output (Response)
class ContactSchema(Schema):
    id = fields.Int(dump_only=True)
    name = fields.Str()
    phone_number = fields.Str(data_key="phoneNumber")
    formatted_phone = fields.Str(dump_only=True, data_key="formattedPhone")
    initials = fields.Str(dump_only=True)
    email = fields.Str(allow_none=True)
    notes = fields.Str(allow_none=True)
    is_favorite = fields.Bool(data_key="isFavorite")
    tags = fields.List(fields.Str(), allow_none=True)
    created_at = fields.DateTime(dump_only=True, data_key="createdAt")
    updated_at = fields.DateTime(dump_only=True, data_key="updatedAt")


# Schema for contact list pagination response
class ContactListSchema(Schema):
    items = fields.List(fields.Nested(ContactSchema()), required=True)
    page = fields.Int(required=True)
    perPage = fields.Int(required=True, attribute="per_page")
    total = fields.Int(required=True)
    pages = fields.Int(required=True)


# Schema for "SMS contact" (Input)
class SmsContactSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    message = fields.Str(required=True, validate=validate.Length(min=1, max=1600))
