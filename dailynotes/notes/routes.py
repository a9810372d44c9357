import uuid

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from dailynotes.common.authz import current_user_id
from dailynotes.common.utils import parse_day, success
from dailynotes.notes import service, sharing, visibility
from dailynotes.notes.schemas import (
    NoteIn, NoteOut, BlockIn, ImageArgs, TextBlockUpdateIn, TodoUpdateIn,
    BlockOut, ShareIn, ShareOut,
)

bp = Blueprint("notes", __name__)

note_in = NoteIn(partial=True)
note_out = NoteOut()
block_in = BlockIn()
image_args = ImageArgs()
text_update_in = TextBlockUpdateIn()
todo_update_in = TodoUpdateIn()
block_out = BlockOut()
block_out_many = BlockOut(many=True)
share_in = ShareIn()
share_out = ShareOut()
share_out_many = ShareOut(many=True)

BLOCK_ATTRS = ("id", "note_id", "user_id", "order_index", "created_at", "content", "text", "completed", "url")


def _block_dict(kind, block) -> dict:
    data = {"type": kind}
    data.update({a: getattr(block, a) for a in BLOCK_ATTRS if hasattr(block, a)})
    return data


def _composed(note) -> list:
    return block_out_many.dump([_block_dict(c.kind, c.block) for c in service.compose(note)])


def _note_payload(note, user_id) -> dict:
    data = note_out.dump(note)
    data["is_own"] = note.user_id == user_id
    data["blocks"] = _composed(note)
    return data


def _truthy(value) -> bool:
    return (value or "").lower() in ("1", "true", "yes")


# ---------------------------------------------------------------- jours

@bp.get("/dates")
@jwt_required()
def note_dates():
    dates = visibility.visible_dates(current_user_id())
    return jsonify({"status": "success", "data": [d.isoformat() for d in dates]}), 200


@bp.get("/day/<day>")
@jwt_required()
def get_day(day):
    d = parse_day(day)
    user_id = current_user_id()
    notes = [_note_payload(n, user_id) for n in visibility.visible_notes(user_id, d)]
    own = next((n for n in notes if n["is_own"]), None)
    return jsonify({
        "status": "success",
        "data": {"date": d.isoformat(), "own_note": own, "notes": notes},
        "meta": {"poll_interval_ms": current_app.config.get("NOTES_POLL_INTERVAL_MS", 2000)},
    }), 200


@bp.put("/day/<day>")
@jwt_required()
def save_day(day):
    d = parse_day(day)
    payload = request.get_json(silent=True) or {}
    data = note_in.load(payload)
    note = service.save_note(current_user_id(), d, data)
    return jsonify(note_out.dump(note)), 200


@bp.delete("/day/<day>")
@jwt_required()
def delete_day(day):
    service.delete_note(current_user_id(), parse_day(day))
    return ("", 204)


@bp.post("/day/<day>/blocks")
@jwt_required()
def add_day_block(day):
    d = parse_day(day)
    data = block_in.load(request.get_json(silent=True) or {})
    block = service.add_block_for_day(current_user_id(), d, data)
    return jsonify(block_out.dump(_block_dict(block.kind, block))), 201


@bp.post("/day/<day>/images")
@jwt_required()
def add_day_image(day):
    d = parse_day(day)
    args = image_args.load(request.form.to_dict())
    image = service.add_image_for_day(current_user_id(), d, request.files.get("file"), args["after"])
    return jsonify(block_out.dump(_block_dict(image.kind, image))), 201


# ---------------------------------------------------------------- note par id

@bp.get("/<uuid:note_id>")
@jwt_required()
def get_note(note_id: uuid.UUID):
    user_id = current_user_id()
    note = visibility.get_viewable_note(note_id, user_id)
    return jsonify(_note_payload(note, user_id)), 200


@bp.get("/<uuid:note_id>/blocks")
@jwt_required()
def list_blocks(note_id: uuid.UUID):
    note = visibility.get_viewable_note(note_id, current_user_id())
    composed = service.compose(note)
    resp = jsonify({
        "status": "success",
        "data": block_out_many.dump([_block_dict(c.kind, c.block) for c in composed]),
    })
    # polling: If-None-Match -> 304 tant que rien n'a changé
    resp.set_etag(service.revision(composed))
    return resp.make_conditional(request)


@bp.post("/<uuid:note_id>/blocks")
@jwt_required()
def add_block(note_id: uuid.UUID):
    data = block_in.load(request.get_json(silent=True) or {})
    block = service.add_block(note_id, current_user_id(), data)
    return jsonify(block_out.dump(_block_dict(block.kind, block))), 201


@bp.post("/<uuid:note_id>/images")
@jwt_required()
def add_image(note_id: uuid.UUID):
    args = image_args.load(request.form.to_dict())
    image = service.add_image(note_id, current_user_id(), request.files.get("file"), args["after"])
    return jsonify(block_out.dump(_block_dict(image.kind, image))), 201


# ---------------------------------------------------------------- blocs

@bp.patch("/blocks/<any(text, todo, image):kind>/<uuid:block_id>")
@jwt_required()
def update_block(kind, block_id: uuid.UUID):
    payload = request.get_json(silent=True) or {}
    schema = text_update_in if kind == "text" else todo_update_in
    data = schema.load(payload)
    block = service.update_block(kind, block_id, current_user_id(), data,
                                 prune_empty=_truthy(request.args.get("prune")))
    if block is None:
        return ("", 204)
    return jsonify(block_out.dump(_block_dict(kind, block))), 200


@bp.delete("/blocks/<any(text, todo, image):kind>/<uuid:block_id>")
@jwt_required()
def delete_block(kind, block_id: uuid.UUID):
    service.delete_block(kind, block_id, current_user_id())
    return ("", 204)


# ---------------------------------------------------------------- partages

@bp.get("/<uuid:note_id>/shares")
@jwt_required()
def list_shares(note_id: uuid.UUID):
    grants = sharing.list_shares(note_id, current_user_id())
    return jsonify({"status": "success", "data": share_out_many.dump(grants)}), 200


@bp.post("/<uuid:note_id>/shares")
@jwt_required()
def share_note(note_id: uuid.UUID):
    data = share_in.load(request.get_json(silent=True) or {})
    grant = sharing.share(note_id, current_user_id(), data["friend_id"])
    return success(share_out.dump(grant), message="Note shared!", status=201)


@bp.delete("/<uuid:note_id>/shares/<uuid:friend_id>")
@jwt_required()
def unshare_note(note_id: uuid.UUID, friend_id: uuid.UUID):
    sharing.unshare(note_id, current_user_id(), friend_id)
    return ("", 204)
