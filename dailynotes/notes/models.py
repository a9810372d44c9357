import uuid
from sqlalchemy import func
from sqlalchemy.orm import declared_attr
from dailynotes.extensions import db

class Note(db.Model):
    __tablename__ = "notes"
    __table_args__ = (
        db.UniqueConstraint("user_id", "date", name="uq_notes_user_date"),
    )

    id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    title = db.Column(db.String(200), nullable=True)
    subtitle = db.Column(db.String(300), nullable=True)
    # variante historique "texte libre"
    content = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = db.relationship("Profile", back_populates="notes", lazy="joined")

    text_blocks = db.relationship("TextBlock", back_populates="note", cascade="all, delete-orphan")
    todos = db.relationship("Todo", back_populates="note", cascade="all, delete-orphan")
    images = db.relationship("NoteImage", back_populates="note", cascade="all, delete-orphan")
    shares = db.relationship("SharedNote", back_populates="note", cascade="all, delete-orphan")


class _BlockMixin:
    """Colonnes communes aux trois sortes de blocs d'une note."""
    id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # clé fractionnaire base 62 (voir notes.ordering), triée côté Python
    order_index = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def note_id(cls):
        return db.Column(db.Uuid(as_uuid=True), db.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)

    # auteur (peut différer du propriétaire de la note quand elle est partagée)
    @declared_attr
    def user_id(cls):
        return db.Column(db.Uuid(as_uuid=True), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)


class TextBlock(_BlockMixin, db.Model):
    __tablename__ = "text_blocks"
    kind = "text"

    content = db.Column(db.Text, nullable=False, default="")
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    note = db.relationship("Note", back_populates="text_blocks")


class Todo(_BlockMixin, db.Model):
    __tablename__ = "todos"
    kind = "todo"

    text = db.Column(db.String(500), nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    note = db.relationship("Note", back_populates="todos")


class NoteImage(_BlockMixin, db.Model):
    __tablename__ = "note_images"
    kind = "image"

    url = db.Column(db.String(1024), nullable=False)
    # chemin relatif dans le stockage objet
    path = db.Column(db.String(512), nullable=False)

    note = db.relationship("Note", back_populates="images")


BLOCK_MODELS = {m.kind: m for m in (TextBlock, Todo, NoteImage)}


class SharedNote(db.Model):
    """Droit de lecture/écriture des blocs accordé par le propriétaire à un ami."""
    __tablename__ = "shared_notes"
    __table_args__ = (
        db.UniqueConstraint("note_id", "friend_id", name="uq_shared_notes_note_friend"),
    )

    id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    note_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    friend_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), nullable=False)

    note = db.relationship("Note", back_populates="shares")
    friend = db.relationship("Profile", foreign_keys=[friend_id], lazy="joined")
