import uuid

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from dailynotes.common.authz import current_user_id
from dailynotes.common.utils import success
from dailynotes.friends import service
from dailynotes.friends.schemas import FriendRequestIn, FriendRequestOut
from dailynotes.profiles.schemas import ProfileOut

bp = Blueprint("friends", __name__)

request_in = FriendRequestIn()
request_out = FriendRequestOut()
request_out_many = FriendRequestOut(many=True)
profile_out_many = ProfileOut(many=True)

@bp.get("/")
@jwt_required()
def list_friends():
    friends = service.list_friends(current_user_id())
    return jsonify({"status": "success", "data": profile_out_many.dump(friends)}), 200

@bp.delete("/<uuid:friend_id>")
@jwt_required()
def remove_friend(friend_id: uuid.UUID):
    service.remove(current_user_id(), friend_id)
    return ("", 204)

@bp.get("/requests")
@jwt_required()
def incoming_requests():
    edges = service.list_incoming(current_user_id())
    return jsonify({"status": "success", "data": request_out_many.dump(edges)}), 200

@bp.get("/requests/sent")
@jwt_required()
def outgoing_requests():
    edges = service.list_outgoing(current_user_id())
    return jsonify({"status": "success", "data": request_out_many.dump(edges)}), 200

@bp.post("/requests")
@jwt_required()
def send_request():
    payload = request.get_json(silent=True) or {}
    data = request_in.load(payload)
    edge = service.send_request(current_user_id(), data["friend_id"])
    name = edge.friend.display_name
    return success(request_out.dump(edge), message=f"Friend request sent to {name}!", status=201)

@bp.post("/requests/<uuid:edge_id>/accept")
@jwt_required()
def accept_request(edge_id: uuid.UUID):
    edge = service.accept(edge_id, current_user_id())
    return success(request_out.dump(edge), message="Friend request accepted.")

@bp.post("/requests/<uuid:edge_id>/decline")
@jwt_required()
def decline_request(edge_id: uuid.UUID):
    service.decline(edge_id, current_user_id())
    return ("", 204)
