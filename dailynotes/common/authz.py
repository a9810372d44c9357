import uuid

from flask_jwt_extended import get_jwt_identity

from dailynotes.common.errors import ApiError

def current_user_id() -> uuid.UUID:
    """sub du JWT -> UUID (le JWT a déjà été vérifié par @jwt_required)."""
    try:
        return uuid.UUID(get_jwt_identity())
    except (TypeError, ValueError):
        raise ApiError("Invalid token subject.", 422, "token_invalid_sub")

def ensure_owner(owner_id: uuid.UUID, user_id: uuid.UUID, what: str = "note", details=None):
    """
    Remplace la row-level security du backend d'origine:
    seul le propriétaire d'une ressource peut la modifier.
    """
    if owner_id != user_id:
        raise ApiError(
            f"Forbidden: you do not own this {what}.",
            status_code=403,
            code="forbidden",
            details=details or {},
        )
