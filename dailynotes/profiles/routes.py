from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from dailynotes.common.authz import current_user_id
from dailynotes.profiles import service
from dailynotes.profiles.schemas import MeOut, ProfileOut, ProfileUpdateIn, SearchArgs

bp = Blueprint("profiles", __name__)

me_out = MeOut()
profile_out_many = ProfileOut(many=True)
profile_update_in = ProfileUpdateIn()
search_args = SearchArgs()

@bp.get("/me")
@jwt_required()
def get_me():
    profile = service.get_profile(current_user_id())
    return jsonify(me_out.dump(profile)), 200

@bp.patch("/me")
@jwt_required()
def update_me():
    payload = request.get_json(silent=True) or {}
    data = profile_update_in.load(payload)
    profile = service.update_profile(service.get_profile(current_user_id()), data)
    return jsonify(me_out.dump(profile)), 200

@bp.get("/search")
@jwt_required()
def search():
    args = search_args.load(request.args.to_dict())
    users = service.search_profiles(args["q"], current_user_id())
    return jsonify({"status": "success", "data": profile_out_many.dump(users)}), 200
