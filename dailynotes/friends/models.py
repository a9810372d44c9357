import uuid
from sqlalchemy import func
from dailynotes.extensions import db

PENDING = "pending"
ACCEPTED = "accepted"

class Friendship(db.Model):
    """
    Arête orientée user_id -> friend_id.
    Une amitié acceptée = deux lignes "accepted", une par sens.
    """
    __tablename__ = "friends"
    __table_args__ = (
        db.UniqueConstraint("user_id", "friend_id", name="uq_friends_pair"),
        db.CheckConstraint("user_id <> friend_id", name="ck_friends_not_self"),
    )

    id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    friend_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=PENDING, index=True)

    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = db.relationship("Profile", foreign_keys=[user_id], lazy="joined")
    friend = db.relationship("Profile", foreign_keys=[friend_id], lazy="joined")
