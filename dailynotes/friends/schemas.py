from marshmallow import Schema, fields

from dailynotes.profiles.schemas import ProfileOut

class FriendRequestIn(Schema):
    friend_id = fields.UUID(required=True)

class FriendRequestOut(Schema):
    id = fields.UUID(required=True)
    user_id = fields.UUID(required=True)
    friend_id = fields.UUID(required=True)
    status = fields.String(required=True)
    created_at = fields.DateTime(required=True)
    # requester pour les demandes reçues, destinataire pour les envoyées
    user = fields.Nested(ProfileOut)
    friend = fields.Nested(ProfileOut)
