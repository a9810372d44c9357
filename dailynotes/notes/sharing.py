import logging
import uuid

from sqlalchemy.exc import IntegrityError

from dailynotes.extensions import db
from dailynotes.common.authz import ensure_owner
from dailynotes.common.errors import ApiError, not_found
from dailynotes.friends.service import are_friends
from dailynotes.notes.models import Note, SharedNote

log = logging.getLogger(__name__)

def _owned_note(note_id: uuid.UUID, owner_id: uuid.UUID) -> Note:
    note = db.session.get(Note, note_id)
    if not note:
        raise not_found("Note", note_id=note_id)
    ensure_owner(note.user_id, owner_id, details={"note_id": str(note_id)})
    return note

def list_shares(note_id: uuid.UUID, owner_id: uuid.UUID) -> list[SharedNote]:
    note = _owned_note(note_id, owner_id)
    return (
        SharedNote.query.filter_by(note_id=note.id)
        .order_by(SharedNote.created_at.asc())
        .all()
    )

def share(note_id: uuid.UUID, owner_id: uuid.UUID, friend_id: uuid.UUID) -> SharedNote:
    note = _owned_note(note_id, owner_id)
    if not are_friends(owner_id, friend_id):
        raise ApiError("You can only share notes with friends.", 400, "validation_error",
                       details={"friend_id": str(friend_id)})

    grant = SharedNote(note_id=note.id, user_id=note.user_id, friend_id=friend_id)
    db.session.add(grant)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ApiError("Note already shared with this friend.", 409, "conflict")
    log.info("note_shared", extra={"note_id": str(note.id), "friend_id": str(friend_id)})
    return grant

def unshare(note_id: uuid.UUID, owner_id: uuid.UUID, friend_id: uuid.UUID) -> None:
    note = _owned_note(note_id, owner_id)
    deleted = SharedNote.query.filter_by(note_id=note.id, friend_id=friend_id).delete(synchronize_session=False)
    db.session.commit()
    log.info("note_unshared", extra={"note_id": str(note.id), "friend_id": str(friend_id), "deleted": deleted})
