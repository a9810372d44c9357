"""
Visibilité des notes: politique "partage explicite".

Un utilisateur voit toujours sa propre note du jour. Il voit la note d'un
autre utilisateur seulement si celui-ci la lui a partagée (ligne
``shared_notes``) ET qu'ils sont encore amis: un partage survivant à une
amitié supprimée reste sans effet.
"""
import uuid
from datetime import date

from sqlalchemy import or_, select

from dailynotes.extensions import db
from dailynotes.friends.service import friend_ids
from dailynotes.notes.models import Note, SharedNote
from dailynotes.common.errors import ApiError, not_found


def _granted_note_ids(viewer_id: uuid.UUID, owners: set[uuid.UUID]):
    return select(SharedNote.note_id).where(
        SharedNote.friend_id == viewer_id, SharedNote.user_id.in_(owners)
    )


def _visible_filter(viewer_id: uuid.UUID):
    friends = friend_ids(viewer_id)
    if not friends:
        return Note.user_id == viewer_id
    return or_(
        Note.user_id == viewer_id,
        Note.id.in_(_granted_note_ids(viewer_id, friends)),
    )


def visible_notes(viewer_id: uuid.UUID, day: date) -> list[Note]:
    """Notes du jour visibles par ``viewer_id``, la sienne en premier."""
    notes = (
        Note.query
        .filter(Note.date == day, _visible_filter(viewer_id))
        .order_by(Note.created_at.asc())
        .all()
    )
    return sorted(notes, key=lambda n: n.user_id != viewer_id)


def visible_dates(viewer_id: uuid.UUID) -> list[date]:
    """Dates distinctes des notes visibles (marqueurs du calendrier), plus récentes d'abord."""
    rows = (
        db.session.query(Note.date)
        .filter(_visible_filter(viewer_id))
        .distinct()
        .order_by(Note.date.desc())
        .all()
    )
    return [r[0] for r in rows]


def can_view(note: Note, user_id: uuid.UUID) -> bool:
    if note.user_id == user_id:
        return True
    granted = db.session.query(
        SharedNote.query.filter_by(note_id=note.id, friend_id=user_id).exists()
    ).scalar()
    return bool(granted) and note.user_id in friend_ids(user_id)


def can_edit_blocks(note: Note, user_id: uuid.UUID) -> bool:
    # les bénéficiaires d'un partage éditent les blocs (édition collaborative);
    # titre, sous-titre, suppression et partages restent au propriétaire
    return can_view(note, user_id)


def get_viewable_note(note_id: uuid.UUID, user_id: uuid.UUID) -> Note:
    note = db.session.get(Note, note_id)
    # même réponse pour "absente" et "non partagée": ne révèle pas l'existence
    if not note or not can_view(note, user_id):
        raise not_found("Note", note_id=note_id)
    return note


def get_block_editable_note(note_id: uuid.UUID, user_id: uuid.UUID) -> Note:
    note = db.session.get(Note, note_id)
    if not note or not can_view(note, user_id):
        raise not_found("Note", note_id=note_id)
    if not can_edit_blocks(note, user_id):
        raise ApiError("Forbidden: you cannot edit this note.", 403, "forbidden")
    return note
