"""
Graphe d'amis.

Invariant: une amitié acceptée existe dans les deux sens (deux lignes
``accepted``); une demande en attente est une seule ligne ``pending``.
``accept`` et ``remove`` écrivent les deux sens dans une même transaction.
"""
import logging
import uuid

from sqlalchemy import or_, and_
from sqlalchemy.exc import IntegrityError

from dailynotes.extensions import db
from dailynotes.friends.models import Friendship, PENDING, ACCEPTED
from dailynotes.notes.models import SharedNote
from dailynotes.profiles.models import Profile
from dailynotes.profiles.service import get_profile, profiles_by_id
from dailynotes.common.errors import ApiError, not_found

log = logging.getLogger(__name__)

def _edge(user_id: uuid.UUID, friend_id: uuid.UUID) -> Friendship | None:
    return Friendship.query.filter_by(user_id=user_id, friend_id=friend_id).first()

def send_request(from_id: uuid.UUID, to_id: uuid.UUID) -> Friendship:
    if from_id == to_id:
        raise ApiError("You cannot add yourself.", 400, "validation_error")
    get_profile(to_id)

    existing = _edge(from_id, to_id)
    if existing:
        if existing.status == ACCEPTED:
            raise ApiError("You are already friends.", 409, "conflict")
        raise ApiError("Friend request already sent.", 409, "conflict")

    edge = Friendship(user_id=from_id, friend_id=to_id, status=PENDING)
    db.session.add(edge)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ApiError("Friend request already sent or already friends.", 409, "conflict")
    log.info("friend_request_sent", extra={"edge_id": str(edge.id), "user_id": str(from_id), "friend_id": str(to_id)})
    return edge

def _pending_edge(edge_id: uuid.UUID) -> Friendship:
    edge = db.session.get(Friendship, edge_id)
    if not edge:
        raise not_found("Friend request", edge_id=edge_id)
    if edge.status != PENDING:
        raise ApiError("Friend request is not pending.", 409, "conflict", details={"edge_id": str(edge_id)})
    return edge

def accept(edge_id: uuid.UUID, accepter_id: uuid.UUID) -> Friendship:
    edge = _pending_edge(edge_id)
    if edge.friend_id != accepter_id:
        raise ApiError("Forbidden: this request was not sent to you.", 403, "forbidden")

    edge.status = ACCEPTED
    # sens inverse: créé, ou promu si l'autre avait aussi envoyé une demande
    reverse = _edge(accepter_id, edge.user_id)
    if reverse:
        reverse.status = ACCEPTED
    else:
        db.session.add(Friendship(user_id=accepter_id, friend_id=edge.user_id, status=ACCEPTED))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ApiError("Friendship changed concurrently, retry.", 409, "conflict")
    log.info("friend_request_accepted", extra={"edge_id": str(edge.id), "user_id": str(edge.user_id), "friend_id": str(accepter_id)})
    return edge

def decline(edge_id: uuid.UUID, actor_id: uuid.UUID) -> None:
    """Refus (destinataire) ou annulation (demandeur) d'une demande en attente."""
    edge = _pending_edge(edge_id)
    if actor_id not in (edge.user_id, edge.friend_id):
        raise ApiError("Forbidden: not your friend request.", 403, "forbidden")
    db.session.delete(edge)
    db.session.commit()
    log.info("friend_request_declined", extra={"edge_id": str(edge_id)})

def remove(user_id: uuid.UUID, friend_id: uuid.UUID) -> int:
    """
    Supprime les deux sens; un sens absent n'est pas une erreur.
    Les partages entre les deux sont retirés dans la même transaction:
    une nouvelle amitié ne les fait pas revivre.
    """
    deleted = Friendship.query.filter(or_(
        and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
        and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
    )).delete(synchronize_session=False)
    revoked = SharedNote.query.filter(or_(
        and_(SharedNote.user_id == user_id, SharedNote.friend_id == friend_id),
        and_(SharedNote.user_id == friend_id, SharedNote.friend_id == user_id),
    )).delete(synchronize_session=False)
    db.session.commit()
    log.info("friend_removed", extra={"user_id": str(user_id), "friend_id": str(friend_id), "deleted": deleted, "shares_revoked": revoked})
    return deleted

def friend_ids(user_id: uuid.UUID) -> set[uuid.UUID]:
    """Ids des amis acceptés, quel que soit le sens de l'arête."""
    rows = db.session.query(Friendship.user_id, Friendship.friend_id).filter(
        Friendship.status == ACCEPTED,
        or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
    ).all()
    ids = {a if b == user_id else b for a, b in rows}
    ids.discard(user_id)
    return ids

def are_friends(a: uuid.UUID, b: uuid.UUID) -> bool:
    return b in friend_ids(a)

def list_friends(user_id: uuid.UUID) -> list[Profile]:
    by_id = profiles_by_id(friend_ids(user_id))
    return sorted(by_id.values(), key=lambda p: ((p.username or ""), str(p.id)))

def list_incoming(user_id: uuid.UUID) -> list[Friendship]:
    return (
        Friendship.query
        .filter_by(friend_id=user_id, status=PENDING)
        .order_by(Friendship.created_at.asc())
        .all()
    )

def list_outgoing(user_id: uuid.UUID) -> list[Friendship]:
    return (
        Friendship.query
        .filter_by(user_id=user_id, status=PENDING)
        .order_by(Friendship.created_at.asc())
        .all()
    )
