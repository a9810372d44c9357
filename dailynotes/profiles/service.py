import logging
import uuid

from flask import current_app
from sqlalchemy.exc import IntegrityError

from dailynotes.extensions import db
from dailynotes.profiles.models import Profile
from dailynotes.common.errors import ApiError, not_found

log = logging.getLogger(__name__)

def normalize_username(username: str | None) -> str | None:
    username = (username or "").strip().lower()
    return username or None

def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def get_profile(profile_id: uuid.UUID) -> Profile:
    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise not_found("Profile", profile_id=profile_id)
    return profile

def profiles_by_id(ids) -> dict:
    ids = set(ids)
    if not ids:
        return {}
    rows = Profile.query.filter(Profile.id.in_(ids)).all()
    return {p.id: p for p in rows}

def ensure_username_free(username: str, exclude_id: uuid.UUID | None = None) -> None:
    q = Profile.query.filter(Profile.username == username)
    if exclude_id is not None:
        q = q.filter(Profile.id != exclude_id)
    if db.session.query(q.exists()).scalar():
        raise ApiError("Username already taken.", 409, "conflict", details={"username": username})

def search_profiles(term: str, exclude_user_id: uuid.UUID) -> list[Profile]:
    """Recherche par sous-chaîne du username (insensible à la casse), hors appelant."""
    term = (term or "").strip()
    if not term:
        raise ApiError("Search term required.", 400, "validation_error")
    limit = current_app.config.get("SEARCH_RESULT_LIMIT", 10)
    return (
        Profile.query
        .filter(Profile.username.ilike(f"%{_escape_like(term)}%", escape="\\"))
        .filter(Profile.id != exclude_user_id)
        .order_by(Profile.username.asc())
        .limit(limit)
        .all()
    )

def update_profile(profile: Profile, data: dict) -> Profile:
    if "username" in data:
        username = normalize_username(data["username"])
        if not username:
            raise ApiError("Username cannot be empty.", 400, "validation_error")
        ensure_username_free(username, exclude_id=profile.id)
        profile.username = username
    if "full_name" in data:
        profile.full_name = (data["full_name"] or "").strip() or None
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ApiError("Username already taken.", 409, "conflict")
    log.info("profile_updated", extra={"profile_id": str(profile.id)})
    return profile
