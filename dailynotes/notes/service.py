"""
Note store et composition des blocs.

Une note par (propriétaire, jour), créée à la première écriture. Le contenu
est l'union ordonnée des blocs texte, todos et images, triée par
``(order_index, created_at, id)``.
"""
import hashlib
import logging
import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy.exc import IntegrityError
from werkzeug.datastructures import FileStorage

from dailynotes.extensions import db
from dailynotes.common.errors import ApiError, not_found
from dailynotes.notes import storage
from dailynotes.notes.models import Note, TextBlock, Todo, NoteImage, BLOCK_MODELS
from dailynotes.notes.ordering import insert_key, OrderKeyError
from dailynotes.notes.visibility import get_block_editable_note

log = logging.getLogger(__name__)

NOTE_FIELDS = ("title", "subtitle", "content")


# ---------------------------------------------------------------- notes

def find_note(owner_id: uuid.UUID, day: date) -> Note | None:
    return Note.query.filter_by(user_id=owner_id, date=day).first()


def ensure_note(owner_id: uuid.UUID, day: date) -> Note:
    """
    Get-or-create idempotent de la note (owner, day), non commité.
    Doit être la première écriture de la transaction: en cas de course
    perdue sur la contrainte unique, le rollback ne jette rien d'autre.
    """
    note = find_note(owner_id, day)
    if note:
        return note
    note = Note(user_id=owner_id, date=day)
    db.session.add(note)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        note = find_note(owner_id, day)
        if note is None:
            raise
        return note
    log.info("note_created", extra={"note_id": str(note.id), "user_id": str(owner_id), "date": day.isoformat()})
    return note


def save_note(owner_id: uuid.UUID, day: date, data: dict) -> Note:
    note = ensure_note(owner_id, day)
    for field in NOTE_FIELDS:
        if field in data:
            # chaîne vide -> NULL
            setattr(note, field, data[field] or None)
    db.session.commit()
    return note


def delete_note(owner_id: uuid.UUID, day: date) -> None:
    note = find_note(owner_id, day)
    if not note:
        raise not_found("Note", date=day.isoformat())
    paths = [img.path for img in note.images]
    db.session.delete(note)
    db.session.commit()
    for path in paths:
        storage.delete_image(path)
    log.info("note_deleted", extra={"note_id": str(note.id), "user_id": str(owner_id)})


# ---------------------------------------------------------------- blocs

@dataclass(frozen=True)
class ComposedBlock:
    kind: str
    block: TextBlock | Todo | NoteImage

    @property
    def sort_key(self):
        b = self.block
        return (b.order_index, b.created_at, str(b.id))


def compose(note: Note) -> list[ComposedBlock]:
    """Séquence ordonnée des blocs de la note, toutes sortes confondues."""
    blocks = [
        ComposedBlock(model.kind, b)
        for model in BLOCK_MODELS.values()
        for b in model.query.filter_by(note_id=note.id).all()
    ]
    return sorted(blocks, key=lambda c: c.sort_key)


def revision(blocks: list[ComposedBlock]) -> str:
    """Empreinte du contenu composé (ETag pour le polling)."""
    h = hashlib.sha1()
    for c in blocks:
        b = c.block
        stamp = getattr(b, "updated_at", None) or b.created_at
        h.update(f"{c.kind}:{b.id}:{b.order_index}:{stamp}".encode())
        if c.kind == "text":
            h.update(b.content.encode())
        elif c.kind == "todo":
            h.update(f"{b.text}:{b.completed}".encode())
    return h.hexdigest()


def _next_key(note: Note, after: int | None) -> str:
    keys = [c.block.order_index for c in compose(note)] if note.id else []
    try:
        return insert_key(keys, after)
    except IndexError:
        raise ApiError("Insert position out of range.", 400, "validation_error",
                       details={"after": after, "blocks": len(keys)})
    except OrderKeyError as e:
        raise ApiError("Corrupted block ordering.", 409, "conflict", details={"reason": str(e)})


def _new_block(note: Note, author_id: uuid.UUID, data: dict):
    kind = data["type"]
    key = _next_key(note, data.get("after"))
    if kind == "text":
        block = TextBlock(note_id=note.id, user_id=author_id, content=data.get("content") or "", order_index=key)
    elif kind == "todo":
        text = (data.get("text") or "").strip()
        if not text:
            raise ApiError("Todo text required.", 400, "validation_error")
        block = Todo(note_id=note.id, user_id=author_id, text=text, completed=bool(data.get("completed")), order_index=key)
    else:
        raise ApiError("Images are added through the upload endpoint.", 400, "validation_error",
                       details={"type": kind})
    db.session.add(block)
    return block


def add_block(note_id: uuid.UUID, author_id: uuid.UUID, data: dict):
    note = get_block_editable_note(note_id, author_id)
    block = _new_block(note, author_id, data)
    db.session.commit()
    log.info("block_added", extra={"note_id": str(note.id), "block_id": str(block.id), "kind": block.kind})
    return block


def add_block_for_day(owner_id: uuid.UUID, day: date, data: dict):
    """Création paresseuse de la note + insertion du bloc, en une transaction."""
    note = ensure_note(owner_id, day)
    block = _new_block(note, owner_id, data)
    db.session.commit()
    log.info("block_added", extra={"note_id": str(note.id), "block_id": str(block.id), "kind": block.kind})
    return block


def _add_image(note: Note, author_id: uuid.UUID, upload: FileStorage, after: int | None) -> NoteImage:
    key = _next_key(note, after)
    path, url = storage.save_image(note.id, upload)
    image = NoteImage(note_id=note.id, user_id=author_id, url=url, path=path, order_index=key)
    db.session.add(image)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        storage.delete_image(path)
        raise
    log.info("block_added", extra={"note_id": str(note.id), "block_id": str(image.id), "kind": "image"})
    return image


def add_image(note_id: uuid.UUID, author_id: uuid.UUID, upload: FileStorage, after: int | None = None) -> NoteImage:
    return _add_image(get_block_editable_note(note_id, author_id), author_id, upload, after)


def add_image_for_day(owner_id: uuid.UUID, day: date, upload: FileStorage, after: int | None = None) -> NoteImage:
    return _add_image(ensure_note(owner_id, day), owner_id, upload, after)


def _editable_block(kind: str, block_id: uuid.UUID, user_id: uuid.UUID):
    model = BLOCK_MODELS.get(kind)
    if model is None:
        raise not_found("Block kind", kind=kind)
    block = db.session.get(model, block_id)
    if not block:
        raise not_found("Block", block_id=block_id)
    get_block_editable_note(block.note_id, user_id)
    return block


def update_block(kind: str, block_id: uuid.UUID, user_id: uuid.UUID, data: dict, prune_empty: bool = False):
    """
    Met à jour un bloc texte ou todo. Avec ``prune_empty``, un bloc texte
    ne contenant que des blancs est supprimé (perte de focus côté client);
    renvoie alors None.
    """
    block = _editable_block(kind, block_id, user_id)
    if kind == "text":
        if "content" in data:
            block.content = data["content"] or ""
        if prune_empty and not block.content.strip():
            db.session.delete(block)
            db.session.commit()
            log.info("block_pruned", extra={"block_id": str(block_id)})
            return None
    elif kind == "todo":
        if "text" in data:
            text = (data["text"] or "").strip()
            if not text:
                raise ApiError("Todo text required.", 400, "validation_error")
            block.text = text
        if "completed" in data:
            block.completed = bool(data["completed"])
    else:
        raise ApiError("Images cannot be edited, delete and re-upload instead.", 400, "validation_error")
    db.session.commit()
    return block


def delete_block(kind: str, block_id: uuid.UUID, user_id: uuid.UUID) -> None:
    block = _editable_block(kind, block_id, user_id)
    path = getattr(block, "path", None)
    db.session.delete(block)
    db.session.commit()
    if path:
        storage.delete_image(path)
    log.info("block_deleted", extra={"block_id": str(block_id), "kind": kind})
