from marshmallow import Schema, fields, validate

from dailynotes.profiles.schemas import ProfileOut

class NoteIn(Schema):
    title = fields.String(allow_none=True, validate=validate.Length(max=200))
    subtitle = fields.String(allow_none=True, validate=validate.Length(max=300))
    content = fields.String(allow_none=True)

class NoteOut(Schema):
    id = fields.UUID(required=True)
    user_id = fields.UUID(required=True)
    date = fields.Date(required=True)
    title = fields.String(allow_none=True)
    subtitle = fields.String(allow_none=True)
    content = fields.String(allow_none=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)
    owner = fields.Nested(ProfileOut, data_key="user")

class BlockIn(Schema):
    type = fields.String(required=True, validate=validate.OneOf(("text", "todo")))
    # position dans la séquence composée: None = fin, -1 = tête
    after = fields.Integer(load_default=None, allow_none=True, validate=validate.Range(min=-1))
    content = fields.String(load_default="")
    text = fields.String(validate=validate.Length(max=500))
    completed = fields.Boolean(load_default=False)

class ImageArgs(Schema):
    after = fields.Integer(load_default=None, allow_none=True, validate=validate.Range(min=-1))

class TextBlockUpdateIn(Schema):
    content = fields.String(required=True)

class TodoUpdateIn(Schema):
    text = fields.String(validate=validate.Length(min=1, max=500))
    completed = fields.Boolean()

class BlockOut(Schema):
    """Un élément de la séquence composée, quelle que soit sa sorte."""
    type = fields.String(required=True)
    id = fields.UUID(required=True)
    note_id = fields.UUID(required=True)
    user_id = fields.UUID(required=True)
    order_index = fields.String(required=True)
    created_at = fields.DateTime(required=True)
    content = fields.String()
    text = fields.String()
    completed = fields.Boolean()
    url = fields.String()

class ShareIn(Schema):
    friend_id = fields.UUID(required=True)

class ShareOut(Schema):
    note_id = fields.UUID(required=True)
    friend_id = fields.UUID(required=True)
    created_at = fields.DateTime(required=True)
    friend = fields.Nested(ProfileOut)
