from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token, create_refresh_token,
    jwt_required, get_jwt_identity, get_jwt
)

from dailynotes.extensions import limiter
from dailynotes.profiles.models import Profile
from dailynotes.profiles.schemas import MeOut
from dailynotes.auth.models import TokenBlocklist
from dailynotes.auth.schemas import RegisterSchema, LoginSchema, TokensOut
from dailynotes.auth import service

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
tokens_out = TokensOut()
me_out = MeOut()


def _issue_tokens(profile: Profile, fresh: bool = True) -> dict:
    """Émet un couple {access, refresh} avec des claims homogènes."""
    identity = str(profile.id)
    claims = {"username": profile.username}
    access_token = create_access_token(identity=identity, additional_claims=claims, fresh=fresh)
    refresh_token = create_refresh_token(identity=identity, additional_claims=claims)
    return {"access_token": access_token, "refresh_token": refresh_token}


@bp.post("/register")
@limiter.limit(lambda: current_app.config.get("RATELIMIT_AUTH_REGISTER", "10/hour"))
def register():
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    profile = service.create_profile(
        data["email"], data["password"],
        username=data.get("username"), full_name=data.get("full_name"),
    )
    return jsonify(tokens_out.dump(_issue_tokens(profile, fresh=True))), 201


@bp.post("/login")
@limiter.limit(lambda: current_app.config.get("RATELIMIT_AUTH_LOGIN", "5/minute"))
def login():
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    profile = service.authenticate(data["email"], data["password"])
    return jsonify(tokens_out.dump(_issue_tokens(profile, fresh=True))), 200


@bp.post("/refresh")
@jwt_required(refresh=True)
@limiter.limit(lambda: current_app.config.get("RATELIMIT_AUTH_REFRESH", "30/minute"))
def refresh():
    """Rotation stricte: révoque le refresh courant, renvoie un NOUVEAU couple."""
    j = get_jwt()
    profile = service.profile_from_identity(j["sub"])
    TokenBlocklist.revoke(j["jti"], "refresh", profile_id=profile.id)
    return jsonify(tokens_out.dump(_issue_tokens(profile, fresh=False))), 200


@bp.get("/me")
@jwt_required()
def me():
    profile = service.profile_from_identity(get_jwt_identity())
    return jsonify(me_out.dump(profile)), 200


@bp.post("/logout")
@jwt_required(verify_type=False)  # accepte access ou refresh
def logout():
    j = get_jwt()
    ttype = j["type"]  # "access" | "refresh"
    profile = service.profile_from_identity(j["sub"])
    TokenBlocklist.revoke(j["jti"], ttype, profile_id=profile.id)
    return jsonify({"status": "success", "message": f"{ttype} token revoked"}), 200
