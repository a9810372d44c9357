import logging
import re
import uuid

from sqlalchemy.exc import IntegrityError

from dailynotes.extensions import db
from dailynotes.profiles.models import Profile
from dailynotes.profiles.service import ensure_username_free, normalize_username
from dailynotes.common.errors import ApiError

log = logging.getLogger(__name__)

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def default_username(email: str) -> str | None:
    """Partie locale de l'email, réduite à [a-z0-9_]."""
    local = normalize_email(email).split("@")[0]
    return re.sub(r"[^a-z0-9_]", "", local) or None

def create_profile(email: str, password: str, username: str | None = None, full_name: str | None = None) -> Profile:
    email_n = normalize_email(email)
    if not email_n or not password:
        raise ApiError("Email & password required.", 400, "validation_error")

    if Profile.query.filter_by(email=email_n).first():
        raise ApiError("Email already exists.", 409, "conflict", details={"email": email_n})

    username_n = normalize_username(username)
    if username_n:
        ensure_username_free(username_n)
    else:
        # username implicite: on ne bloque pas l'inscription s'il est déjà pris
        username_n = default_username(email_n)
        if username_n and Profile.query.filter_by(username=username_n).first():
            username_n = None

    profile = Profile(email=email_n, username=username_n, full_name=(full_name or "").strip() or None)
    profile.set_password(password)
    db.session.add(profile)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ApiError("Email or username already exists.", 409, "conflict")
    log.info("profile_created", extra={"profile_id": str(profile.id)})
    return profile

def authenticate(email: str, password: str) -> Profile:
    email_n = normalize_email(email)
    profile: Profile | None = Profile.query.filter_by(email=email_n).first()
    if not profile or not profile.check_password(password):
        raise ApiError("Invalid credentials.", 401, "invalid_credentials")
    return profile

def profile_from_identity(identity: str) -> Profile:
    """sub -> UUID -> Profile, ApiError sinon."""
    try:
        uid = uuid.UUID(identity)
    except (TypeError, ValueError):
        raise ApiError("Invalid token subject.", 422, "token_invalid_sub")

    profile = db.session.get(Profile, uid)
    if not profile:
        raise ApiError("User not found.", 404, "not_found")
    return profile
