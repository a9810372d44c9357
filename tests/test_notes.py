# tests/test_notes.py
import datetime
import io

DAY = "2024-03-15"

def _day(client, headers, day=DAY):
    r = client.get(f"/api/v1/notes/day/{day}", headers=headers)
    assert r.status_code == 200
    return r.get_json()["data"]

def _add(client, headers, day=DAY, **body):
    body.setdefault("type", "text")
    r = client.post(f"/api/v1/notes/day/{day}/blocks", headers=headers, json=body)
    assert r.status_code == 201, r.get_json()
    return r.get_json()

def test_empty_day_has_no_own_note(client, register):
    headers, _ = register("alice")
    data = _day(client, headers)
    assert data == {"date": DAY, "own_note": None, "notes": []}

def test_save_note_round_trip_and_unique_per_day(client, app, register):
    headers, user_id = register("alice")
    body = {"title": "Monday", "subtitle": "sunny", "content": "legacy text\nsecond line"}

    r = client.put(f"/api/v1/notes/day/{DAY}", headers=headers, json=body)
    assert r.status_code == 200
    note_id = r.get_json()["id"]

    own = _day(client, headers)["own_note"]
    assert own["id"] == note_id
    assert own["is_own"] is True
    assert own["user"]["username"] == "alice"
    assert {k: own[k] for k in body} == body

    # seconde sauvegarde: même note, champ vidé -> null
    r = client.put(f"/api/v1/notes/day/{DAY}", headers=headers, json={"subtitle": ""})
    assert r.get_json()["id"] == note_id
    assert r.get_json()["subtitle"] is None
    assert r.get_json()["title"] == "Monday"

    from dailynotes.notes.models import Note
    with app.app_context():
        assert Note.query.filter_by(date=datetime.date(2024, 3, 15)).count() == 1

def test_unique_constraint_on_user_and_date(app, register):
    import uuid
    import pytest
    from sqlalchemy.exc import IntegrityError
    from dailynotes.extensions import db
    from dailynotes.notes.models import Note

    _, user_id = register("alice")
    with app.app_context():
        uid = uuid.UUID(user_id)
        db.session.add(Note(user_id=uid, date=datetime.date(2024, 1, 1)))
        db.session.commit()
        db.session.add(Note(user_id=uid, date=datetime.date(2024, 1, 1)))
        with pytest.raises(IntegrityError):
            db.session.commit()
        db.session.rollback()

def test_invalid_day(client, register):
    headers, _ = register("alice")
    r = client.get("/api/v1/notes/day/2024-13-40", headers=headers)
    assert r.status_code == 400
    assert r.get_json()["error"]["code"] == "validation_error"

def test_first_block_creates_note_in_one_step(client, register):
    headers, _ = register("alice")
    block = _add(client, headers, content="hello")
    assert block["type"] == "text"
    assert block["order_index"] == "a0"

    own = _day(client, headers)["own_note"]
    assert own["id"] == block["note_id"]
    assert [b["content"] for b in own["blocks"]] == ["hello"]

def test_insert_between_neighbours_keeps_order(client, register):
    headers, _ = register("alice")
    for content in ("zero", "one", "two"):
        _add(client, headers, content=content)

    blocks = _day(client, headers)["own_note"]["blocks"]
    assert [b["order_index"] for b in blocks] == ["a0", "a1", "a2"]

    # "après l'index 0" plusieurs fois: jamais de collision
    for i in range(5):
        _add(client, headers, content=f"mid{i}", after=0)

    blocks = _day(client, headers)["own_note"]["blocks"]
    keys = [b["order_index"] for b in blocks]
    assert len(set(keys)) == len(keys) == 8
    assert keys == sorted(keys)
    assert [b["content"] for b in blocks] == ["zero", "mid4", "mid3", "mid2", "mid1", "mid0", "one", "two"]

def test_mixed_kinds_compose_in_one_sequence(client, register):
    headers, _ = register("alice")
    first = _add(client, headers, content="intro")
    _add(client, headers, type="todo", text="  buy milk  ")
    _add(client, headers, content="head", after=-1)
    _add(client, headers, type="todo", text="call mom", after=0)

    r = client.get(f"/api/v1/notes/{first['note_id']}/blocks", headers=headers)
    blocks = r.get_json()["data"]
    assert [(b["type"], b.get("content") or b.get("text")) for b in blocks] == [
        ("text", "head"), ("todo", "call mom"), ("text", "intro"), ("todo", "buy milk"),
    ]

def test_insert_position_out_of_range(client, register):
    headers, _ = register("alice")
    _add(client, headers, content="only")
    r = client.post(f"/api/v1/notes/day/{DAY}/blocks", headers=headers, json={"type": "text", "after": 5})
    assert r.status_code == 400

def test_todo_requires_text_and_toggles(client, register):
    headers, _ = register("alice")
    r = client.post(f"/api/v1/notes/day/{DAY}/blocks", headers=headers, json={"type": "todo", "text": "   "})
    assert r.status_code == 400

    todo = _add(client, headers, type="todo", text="water plants")
    assert todo["completed"] is False
    r = client.patch(f"/api/v1/notes/blocks/todo/{todo['id']}", headers=headers, json={"completed": True})
    assert r.status_code == 200
    assert r.get_json()["completed"] is True
    assert r.get_json()["text"] == "water plants"

def test_update_and_prune_text_block(client, register):
    headers, _ = register("alice")
    block = _add(client, headers, content="draft")

    r = client.patch(f"/api/v1/notes/blocks/text/{block['id']}", headers=headers, json={"content": "final"})
    assert r.status_code == 200
    assert r.get_json()["content"] == "final"

    # blancs sans prune: conservé
    r = client.patch(f"/api/v1/notes/blocks/text/{block['id']}", headers=headers, json={"content": "  "})
    assert r.status_code == 200

    r = client.patch(f"/api/v1/notes/blocks/text/{block['id']}?prune=1", headers=headers, json={"content": " \n "})
    assert r.status_code == 204
    assert _day(client, headers)["own_note"]["blocks"] == []

def test_delete_block_and_note(client, register):
    headers, _ = register("alice")
    block = _add(client, headers, content="bye")
    _add(client, headers, type="todo", text="later")

    assert client.delete(f"/api/v1/notes/blocks/text/{block['id']}", headers=headers).status_code == 204
    assert client.delete(f"/api/v1/notes/blocks/text/{block['id']}", headers=headers).status_code == 404

    assert client.delete(f"/api/v1/notes/day/{DAY}", headers=headers).status_code == 204
    assert _day(client, headers)["own_note"] is None
    assert client.delete(f"/api/v1/notes/day/{DAY}", headers=headers).status_code == 404

def test_block_listing_supports_conditional_polling(client, register):
    headers, _ = register("alice")
    block = _add(client, headers, content="v1")
    url = f"/api/v1/notes/{block['note_id']}/blocks"

    r = client.get(url, headers=headers)
    etag = r.headers["ETag"]
    r = client.get(url, headers={**headers, "If-None-Match": etag})
    assert r.status_code == 304

    client.patch(f"/api/v1/notes/blocks/text/{block['id']}", headers=headers, json={"content": "v2"})
    r = client.get(url, headers={**headers, "If-None-Match": etag})
    assert r.status_code == 200
    assert r.get_json()["data"][0]["content"] == "v2"

def test_image_upload_and_media(client, app, register):
    headers, _ = register("alice")
    _add(client, headers, content="caption")

    r = client.post(
        f"/api/v1/notes/day/{DAY}/images", headers=headers,
        data={"file": (io.BytesIO(b"\x89PNG fake"), "photo.PNG"), "after": "-1"},
        content_type="multipart/form-data",
    )
    assert r.status_code == 201, r.get_json()
    image = r.get_json()
    assert image["type"] == "image"
    assert image["url"].startswith("/media/")

    blocks = _day(client, headers)["own_note"]["blocks"]
    assert [b["type"] for b in blocks] == ["image", "text"]

    r = client.get(image["url"])
    assert r.status_code == 200
    assert r.data == b"\x89PNG fake"

    assert client.delete(f"/api/v1/notes/blocks/image/{image['id']}", headers=headers).status_code == 204
    assert client.get(image["url"]).status_code == 404

def test_image_upload_rejects_other_types(client, register):
    headers, _ = register("alice")
    r = client.post(
        f"/api/v1/notes/day/{DAY}/images", headers=headers,
        data={"file": (io.BytesIO(b"#!/bin/sh"), "run.sh")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 400
    r = client.post(f"/api/v1/notes/day/{DAY}/images", headers=headers, data={}, content_type="multipart/form-data")
    assert r.status_code == 400

def test_note_dates(client, register):
    headers, _ = register("alice")
    _add(client, headers, day="2024-03-01", content="a")
    _add(client, headers, day="2024-03-20", content="b")
    r = client.get("/api/v1/notes/dates", headers=headers)
    assert r.get_json()["data"] == ["2024-03-20", "2024-03-01"]

def test_openapi(client):
    r = client.get("/openapi.json")
    assert r.status_code == 200
    spec = r.get_json()
    assert "/api/v1/notes/day/{day}" in spec["paths"]
    assert "Block" in spec["components"]["schemas"]

def test_ensure_note_rereads_row_after_lost_race(client, app, register, monkeypatch):
    import uuid
    from dailynotes.notes import service
    from dailynotes.notes.models import Note

    headers, user_id = register("alice")
    existing = client.put(f"/api/v1/notes/day/{DAY}", headers=headers, json={"title": "first"}).get_json()["id"]

    # l'autre requête a créé la ligne entre notre lecture et notre insertion
    real_find = service.find_note
    calls = []
    def stale_find(owner_id, day):
        calls.append(day)
        return None if len(calls) == 1 else real_find(owner_id, day)
    monkeypatch.setattr(service, "find_note", stale_find)

    with app.app_context():
        uid = uuid.UUID(user_id)
        note = service.ensure_note(uid, datetime.date(2024, 3, 15))
        assert str(note.id) == existing
        assert note.title == "first"
        assert Note.query.filter_by(user_id=uid).count() == 1
    assert len(calls) == 2

def test_equal_order_keys_fall_back_to_creation_time_then_id(client, app, register):
    import uuid
    from dailynotes.extensions import db
    from dailynotes.notes import service
    from dailynotes.notes.models import TextBlock, Todo

    _, user_id = register("alice")
    noon = datetime.datetime(2024, 3, 15, 12, 0, 0)
    with app.app_context():
        uid = uuid.UUID(user_id)
        note = service.ensure_note(uid, datetime.date(2024, 3, 15))
        db.session.add_all([
            TextBlock(id=uuid.UUID(int=3), note_id=note.id, user_id=uid, content="late",
                      order_index="a0", created_at=noon + datetime.timedelta(seconds=5)),
            Todo(id=uuid.UUID(int=2), note_id=note.id, user_id=uid, text="same time, higher id",
                 order_index="a0", created_at=noon),
            TextBlock(id=uuid.UUID(int=1), note_id=note.id, user_id=uid, content="same time, lower id",
                      order_index="a0", created_at=noon),
            TextBlock(id=uuid.UUID(int=4), note_id=note.id, user_id=uid, content="first",
                      order_index="Zz", created_at=noon + datetime.timedelta(hours=1)),
        ])
        db.session.commit()

        ids = [c.block.id.int for c in service.compose(note)]
        assert ids == [4, 1, 2, 3]

        # insertion après le premier doublon: au-delà de tous les "a0"
        block = service.add_block(note.id, uid, {"type": "text", "content": "new", "after": 1})
        assert block.order_index > "a0"
        assert [c.block.id for c in service.compose(note)][-1] == block.id

def test_deleting_image_whose_file_is_gone(client, app, register):
    import os
    import re
    import uuid
    from dailynotes.extensions import db
    from dailynotes.notes import service, storage
    from dailynotes.notes.models import NoteImage

    headers, user_id = register("alice")
    r = client.post(
        f"/api/v1/notes/day/{DAY}/images", headers=headers,
        data={"file": (io.BytesIO(b"\x89PNG fake"), "photo.png")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 201, r.get_json()
    image = r.get_json()

    with app.app_context():
        path = db.session.get(NoteImage, uuid.UUID(image["id"])).path
        assert re.fullmatch(rf"{image['note_id']}/\d+-[0-9a-f]{{8}}\.png", path)
        os.remove(os.path.join(app.config["UPLOAD_FOLDER"], *path.split("/")))

        service.delete_block("image", uuid.UUID(image["id"]), uuid.UUID(user_id))
        assert NoteImage.query.count() == 0
        # un second appel sur le fichier absent reste silencieux
        storage.delete_image(path)

def test_order_keys_are_stored_without_length_cap():
    from sqlalchemy import Text
    from dailynotes.notes.models import BLOCK_MODELS

    for model in BLOCK_MODELS.values():
        assert isinstance(model.__table__.c.order_index.type, Text), model.kind
