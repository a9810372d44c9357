from marshmallow import Schema, fields, validate

from dailynotes.profiles.schemas import username_field_validators

class RegisterSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=320))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=8, max=128))
    username = fields.String(load_default=None, allow_none=True, validate=username_field_validators)
    full_name = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=200))

class LoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

class TokensOut(Schema):
    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
