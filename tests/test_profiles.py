# tests/test_profiles.py

def test_search_by_substring_excludes_self(client, register):
    headers, _ = register("jo_searcher")
    register("john")
    register("joanna")
    register("mike")

    r = client.get("/api/v1/profiles/search?q=jo", headers=headers)
    assert r.status_code == 200
    names = [p["username"] for p in r.get_json()["data"]]
    assert names == ["joanna", "john"]

def test_search_is_case_insensitive_and_literal(client, register):
    headers, _ = register("searcher")
    register("mary_jane")
    register("maryxjane")

    r = client.get("/api/v1/profiles/search?q=MARY_", headers=headers)
    # "_" n'est pas un joker LIKE
    assert [p["username"] for p in r.get_json()["data"]] == ["mary_jane"]

def test_search_no_match_is_empty_list(client, register):
    headers, _ = register("lonely")
    r = client.get("/api/v1/profiles/search?q=zzz", headers=headers)
    assert r.status_code == 200
    assert r.get_json()["data"] == []

def test_search_requires_term(client, register):
    headers, _ = register("asker")
    assert client.get("/api/v1/profiles/search", headers=headers).status_code == 400
    assert client.get("/api/v1/profiles/search?q=%20%20", headers=headers).status_code == 400

def test_search_is_limited(client, app, register):
    headers, _ = register("boss")
    for i in range(12):
        register(f"member{i:02d}")
    r = client.get("/api/v1/profiles/search?q=member", headers=headers)
    assert len(r.get_json()["data"]) == app.config["SEARCH_RESULT_LIMIT"] == 10

def test_update_username(client, register):
    headers, _ = register("old_name")
    register("taken")

    r = client.patch("/api/v1/profiles/me", headers=headers, json={"username": "New_Name", "full_name": "New"})
    assert r.status_code == 200
    assert r.get_json()["username"] == "new_name"
    assert r.get_json()["full_name"] == "New"

    r = client.patch("/api/v1/profiles/me", headers=headers, json={"username": "taken"})
    assert r.status_code == 409

    r = client.patch("/api/v1/profiles/me", headers=headers, json={"username": "no spaces"})
    assert r.status_code == 400

    r = client.get("/api/v1/profiles/me", headers=headers)
    assert r.get_json()["username"] == "new_name"
