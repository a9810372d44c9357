from marshmallow import Schema, fields, validate

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"

username_field_validators = [
    validate.Length(min=1, max=64),
    validate.Regexp(USERNAME_PATTERN, error="Username can only contain letters, numbers, and underscores."),
]

class ProfileOut(Schema):
    """Vue publique d'un profil (recherche, amis, auteurs de notes)."""
    id = fields.UUID(required=True)
    username = fields.String(allow_none=True)
    full_name = fields.String(allow_none=True)

class MeOut(ProfileOut):
    email = fields.Email(required=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)

class ProfileUpdateIn(Schema):
    username = fields.String(validate=username_field_validators)
    full_name = fields.String(allow_none=True, validate=validate.Length(max=200))

class SearchArgs(Schema):
    q = fields.String(required=True, validate=validate.Length(min=1, max=64))
