# dailynotes/docs/spec.py
from apispec import APISpec
from apispec.ext.marshmallow import MarshmallowPlugin
from marshmallow import Schema, fields

from dailynotes.auth.schemas import RegisterSchema, LoginSchema, TokensOut
from dailynotes.profiles.schemas import MeOut, ProfileOut, ProfileUpdateIn
from dailynotes.friends.schemas import FriendRequestIn, FriendRequestOut
from dailynotes.notes.schemas import NoteIn, NoteOut, BlockIn, BlockOut, ShareIn, ShareOut

class ErrorSchema(Schema):
    code = fields.String()
    message = fields.String()
    details = fields.Dict()

COMPONENTS = {
    "Register": RegisterSchema,
    "Login": LoginSchema,
    "TokenPair": TokensOut,
    "Me": MeOut,
    "Profile": ProfileOut,
    "ProfileUpdate": ProfileUpdateIn,
    "FriendRequestIn": FriendRequestIn,
    "FriendRequest": FriendRequestOut,
    "NoteIn": NoteIn,
    "Note": NoteOut,
    "BlockIn": BlockIn,
    "Block": BlockOut,
    "ShareIn": ShareIn,
    "Share": ShareOut,
    "Error": ErrorSchema,
}

def _ref(name: str):
    return {"$ref": f"#/components/schemas/{name}"}

def _json(name: str):
    return {"content": {"application/json": {"schema": _ref(name)}}}

def _path_params(*names):
    return [{"in": "path", "name": n, "required": True, "schema": {"type": "string"}} for n in names]

def _op(summary, body=None, ok=("200", None), params=(), secured=True, errors=()):
    op = {"summary": summary, "responses": {ok[0]: {"description": "OK", **(_json(ok[1]) if ok[1] else {})}}}
    if secured:
        op["security"] = [{"bearerAuth": []}]
    if body:
        op["requestBody"] = {"required": True, **_json(body)}
    if params:
        op["parameters"] = list(params)
    for status in errors:
        op["responses"][status] = {"description": "Error", **_json("Error")}
    return op

def build_spec():
    spec = APISpec(
        title="Daily Notes API",
        version="1.0.0",
        openapi_version="3.0.3",
        info={"description": "Shared daily notes: friends, notes, blocks, sharing"},
        plugins=[MarshmallowPlugin()],
    )
    spec.components.security_scheme(
        "bearerAuth",
        {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
    )
    for name, schema in COMPONENTS.items():
        spec.components.schema(name, schema=schema)

    day = _path_params("day")
    note = _path_params("note_id")
    block = _path_params("kind", "block_id")

    paths = {
        # ---- AUTH ----
        "/api/v1/auth/register": {"post": _op("Register", "Register", ("201", "TokenPair"), secured=False, errors=("400", "409"))},
        "/api/v1/auth/login": {"post": _op("Login", "Login", ("200", "TokenPair"), secured=False, errors=("401",))},
        "/api/v1/auth/refresh": {"post": _op("Rotate refresh token", ok=("200", "TokenPair"))},
        "/api/v1/auth/me": {"get": _op("Current profile", ok=("200", "Me"))},
        "/api/v1/auth/logout": {"post": _op("Revoke current token")},
        # ---- PROFILES ----
        "/api/v1/profiles/me": {
            "get": _op("My profile", ok=("200", "Me")),
            "patch": _op("Update username / full name", "ProfileUpdate", ("200", "Me"), errors=("400", "409")),
        },
        "/api/v1/profiles/search": {"get": _op(
            "Search profiles by username", errors=("400",),
            params=[{"in": "query", "name": "q", "required": True, "schema": {"type": "string"}}],
        )},
        # ---- FRIENDS ----
        "/api/v1/friends/": {"get": _op("List accepted friends")},
        "/api/v1/friends/{friend_id}": {"delete": _op("Remove friend (both directions)", ok=("204", None), params=_path_params("friend_id"))},
        "/api/v1/friends/requests": {
            "get": _op("Incoming friend requests"),
            "post": _op("Send friend request", "FriendRequestIn", ("201", None), errors=("400", "404", "409")),
        },
        "/api/v1/friends/requests/sent": {"get": _op("Outgoing friend requests")},
        "/api/v1/friends/requests/{edge_id}/accept": {"post": _op("Accept request", params=_path_params("edge_id"), errors=("403", "404", "409"))},
        "/api/v1/friends/requests/{edge_id}/decline": {"post": _op("Decline or cancel request", ok=("204", None), params=_path_params("edge_id"), errors=("403", "404", "409"))},
        # ---- NOTES ----
        "/api/v1/notes/dates": {"get": _op("Dates with visible notes")},
        "/api/v1/notes/day/{day}": {
            "get": _op("Notes visible for a day", params=day, errors=("400",)),
            "put": _op("Save my note for a day", "NoteIn", ("200", "Note"), params=day, errors=("400",)),
            "delete": _op("Delete my note for a day", ok=("204", None), params=day, errors=("404",)),
        },
        "/api/v1/notes/day/{day}/blocks": {"post": _op("Add block to my note (created if missing)", "BlockIn", ("201", "Block"), params=day, errors=("400",))},
        "/api/v1/notes/day/{day}/images": {"post": _op("Upload image to my note (multipart: file, after)", ok=("201", "Block"), params=day, errors=("400",))},
        "/api/v1/notes/{note_id}": {"get": _op("Note with composed blocks", params=note, errors=("404",))},
        "/api/v1/notes/{note_id}/blocks": {
            "get": _op("Composed blocks (ETag / If-None-Match)", params=note, errors=("404",)),
            "post": _op("Add block", "BlockIn", ("201", "Block"), params=note, errors=("400", "404")),
        },
        "/api/v1/notes/{note_id}/images": {"post": _op("Upload image (multipart: file, after)", ok=("201", "Block"), params=note, errors=("400", "404"))},
        "/api/v1/notes/blocks/{kind}/{block_id}": {
            "patch": _op("Update text/todo block (?prune=1 drops blank text)", ok=("200", "Block"), params=block, errors=("400", "404")),
            "delete": _op("Delete block", ok=("204", None), params=block, errors=("404",)),
        },
        "/api/v1/notes/{note_id}/shares": {
            "get": _op("List grants", params=note, errors=("403", "404")),
            "post": _op("Share with a friend", "ShareIn", ("201", None), params=note, errors=("400", "403", "409")),
        },
        "/api/v1/notes/{note_id}/shares/{friend_id}": {"delete": _op("Unshare", ok=("204", None), params=_path_params("note_id", "friend_id"))},
    }
    for path, operations in paths.items():
        spec.path(path=path, operations=operations)

    return spec.to_dict()
