import uuid
from sqlalchemy import func
from passlib.hash import bcrypt
from dailynotes.extensions import db

class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(320), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    # [a-z0-9_]+, modifiable après inscription
    username = db.Column(db.String(64), unique=True, nullable=True, index=True)
    full_name = db.Column(db.String(200), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    notes = db.relationship("Note", back_populates="owner", lazy="select", passive_deletes=True)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or "Unknown"

    # helpers mot de passe
    def set_password(self, raw_password: str) -> None:
        self.password_hash = bcrypt.hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return bcrypt.verify(raw_password, self.password_hash)
