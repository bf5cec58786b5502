import pytest

from social_feed_api.app.core.db import get_connection


POSTS = "/api/v1/posts"


@pytest.fixture()
def alice(make_user):
    return make_user("alice")


def _create(client, user, headers, text="Hello World", **extra):
    res = client.post(f"{POSTS}/create", json={"posted_by": user["id"], "text": text, **extra}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def test_create_post_uploads_image(client, alice, image_store):
    user, headers = alice
    res = client.post(
        f"{POSTS}/create",
        json={"posted_by": user["id"], "text": "Hello World", "img": "imageData"},
        headers=headers,
    )
    assert res.status_code == 201
    body = res.json()
    assert body["text"] == "Hello World"
    assert body["posted_by"] == user["id"]
    assert body["img"] == "https://res.example.com/demo/image/upload/v1700000000/img1.jpg"
    assert body["likes"] == [] and body["replies"] == []
    assert image_store.uploads == ["imageData"]


def test_create_post_requires_fields(client, alice):
    user, headers = alice
    res = client.post(f"{POSTS}/create", json={"posted_by": user["id"]}, headers=headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Postedby and text fields are required"}


def test_create_post_text_limit(client, alice):
    user, headers = alice
    too_long = client.post(f"{POSTS}/create", json={"posted_by": user["id"], "text": "a" * 501}, headers=headers)
    assert too_long.status_code == 400
    assert too_long.json() == {"error": "Text must be less than 500 characters"}

    exact = client.post(f"{POSTS}/create", json={"posted_by": user["id"], "text": "a" * 500}, headers=headers)
    assert exact.status_code == 201


def test_create_post_for_unknown_user(client, alice):
    _, headers = alice
    res = client.post(f"{POSTS}/create", json={"posted_by": "f" * 24, "text": "hi"}, headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "User not found"}


def test_create_post_for_someone_else(client, alice, make_user):
    _, headers = alice
    bob, _ = make_user("bob")
    res = client.post(f"{POSTS}/create", json={"posted_by": bob["id"], "text": "hi"}, headers=headers)
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized to create post"}


def test_create_post_upload_failure_is_reported(client, alice, image_store):
    user, headers = alice
    image_store.fail_upload = True
    res = client.post(
        f"{POSTS}/create",
        json={"posted_by": user["id"], "text": "hi", "img": "imageData"},
        headers=headers,
    )
    assert res.status_code == 500
    assert res.json()["error"].startswith("Image upload failed")
    assert client.get(f"{POSTS}/user/alice").json() == []


def test_create_post_requires_auth(client, alice):
    user, _ = alice
    res = client.post(f"{POSTS}/create", json={"posted_by": user["id"], "text": "hi"})
    assert res.status_code == 401


def test_get_post(client, alice):
    post = _create(client, *alice)
    res = client.get(f"{POSTS}/{post['id']}")
    assert res.status_code == 200
    assert res.json() == post


def test_get_missing_post(client):
    res = client.get(f"{POSTS}/{'0' * 24}")
    assert res.status_code == 404
    assert res.json() == {"error": "Post not found"}


def test_delete_post_removes_image(client, alice, image_store):
    post = _create(client, *alice, img="imageData")
    _, headers = alice
    res = client.delete(f"{POSTS}/{post['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Post deleted successfully"}
    assert image_store.destroyed == ["img1"]
    assert client.get(f"{POSTS}/{post['id']}").status_code == 404


def test_delete_post_survives_image_store_failure(client, alice, image_store):
    post = _create(client, *alice, img="imageData")
    _, headers = alice
    image_store.fail_destroy = True
    res = client.delete(f"{POSTS}/{post['id']}", headers=headers)
    assert res.status_code == 200
    assert client.get(f"{POSTS}/{post['id']}").status_code == 404


def test_delete_post_by_non_owner(client, alice, make_user):
    post = _create(client, *alice)
    _, bob_headers = make_user("bob")
    res = client.delete(f"{POSTS}/{post['id']}", headers=bob_headers)
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized to delete post"}
    assert client.get(f"{POSTS}/{post['id']}").status_code == 200


def test_delete_missing_post(client, alice):
    _, headers = alice
    res = client.delete(f"{POSTS}/{'0' * 24}", headers=headers)
    assert res.status_code == 404


def test_delete_post_cascades_likes_and_replies(client, alice):
    user, headers = alice
    post = _create(client, user, headers)
    client.put(f"{POSTS}/like/{post['id']}", headers=headers)
    client.put(f"{POSTS}/reply/{post['id']}", json={"text": "me too"}, headers=headers)
    client.delete(f"{POSTS}/{post['id']}", headers=headers)
    conn = get_connection()
    try:
        assert conn.execute("SELECT COUNT(*) FROM post_likes").fetchone()[0] == 0
        assert conn.execute("SELECT COUNT(*) FROM post_replies").fetchone()[0] == 0
    finally:
        conn.close()


def test_like_unlike_toggles(client, alice, make_user):
    post = _create(client, *alice)
    bob, bob_headers = make_user("bob")

    res = client.put(f"{POSTS}/like/{post['id']}", headers=bob_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Post liked successfully"}
    assert client.get(f"{POSTS}/{post['id']}").json()["likes"] == [bob["id"]]

    res = client.put(f"{POSTS}/like/{post['id']}", headers=bob_headers)
    assert res.json() == {"message": "Post unliked successfully"}
    assert client.get(f"{POSTS}/{post['id']}").json()["likes"] == []


def test_like_missing_post(client, alice):
    _, headers = alice
    res = client.put(f"{POSTS}/like/{'0' * 24}", headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Post not found"}


def test_reply_to_post(client, alice, make_user):
    post = _create(client, *alice)
    bob, bob_headers = make_user("bob")
    res = client.put(f"{POSTS}/reply/{post['id']}", json={"text": "This is a reply"}, headers=bob_headers)
    assert res.status_code == 200
    reply = res.json()
    assert reply["text"] == "This is a reply"
    assert reply["user_id"] == bob["id"]
    assert reply["username"] == "bob"

    client.put(f"{POSTS}/reply/{post['id']}", json={"text": "second"}, headers=bob_headers)
    replies = client.get(f"{POSTS}/{post['id']}").json()["replies"]
    assert [r["text"] for r in replies] == ["This is a reply", "second"]


def test_reply_requires_text(client, alice):
    post = _create(client, *alice)
    _, headers = alice
    res = client.put(f"{POSTS}/reply/{post['id']}", json={}, headers=headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Text field is required"}


def test_reply_to_missing_post(client, alice):
    _, headers = alice
    res = client.put(f"{POSTS}/reply/{'0' * 24}", json={"text": "hi"}, headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Post not found"}


def test_reply_keeps_author_snapshot(client, alice, make_user):
    post = _create(client, *alice)
    bob, bob_headers = make_user("bob")
    client.put(f"{POSTS}/reply/{post['id']}", json={"text": "hi"}, headers=bob_headers)
    client.put(
        f"/api/v1/users/update/{bob['id']}",
        json={"username": "robert", "profile_pic": "newpic"},
        headers=bob_headers,
    )
    reply = client.get(f"{POSTS}/{post['id']}").json()["replies"][0]
    assert reply["username"] == "bob"
    assert reply["user_profile_pic"] == ""


def test_user_posts_newest_first(client, alice):
    first = _create(client, *alice, text="first")
    second = _create(client, *alice, text="second")
    res = client.get(f"{POSTS}/user/alice")
    assert res.status_code == 200
    assert [p["id"] for p in res.json()] == [second["id"], first["id"]]


def test_user_posts_unknown_user(client):
    res = client.get(f"{POSTS}/user/ghost")
    assert res.status_code == 404
    assert res.json() == {"error": "User not found"}


def test_feed_is_empty_without_follows(client, alice):
    _create(client, *alice)
    _, headers = alice
    res = client.get(f"{POSTS}/feed", headers=headers)
    assert res.status_code == 200
    assert res.json() == []


def test_feed_merges_followed_users_newest_first(client, alice, make_user):
    alice_user, alice_headers = alice
    bob, bob_headers = make_user("bob")
    carol, carol_headers = make_user("carol")
    dave, dave_headers = make_user("dave")

    a1 = _create(client, alice_user, alice_headers, text="a1")
    b1 = _create(client, bob, bob_headers, text="b1")
    _create(client, carol, carol_headers, text="c1")
    a2 = _create(client, alice_user, alice_headers, text="a2")

    client.post(f"/api/v1/users/follow/{alice_user['id']}", headers=dave_headers)
    client.post(f"/api/v1/users/follow/{bob['id']}", headers=dave_headers)

    res = client.get(f"{POSTS}/feed", headers=dave_headers)
    assert res.status_code == 200
    assert [p["id"] for p in res.json()] == [a2["id"], b1["id"], a1["id"]]


def test_feed_requires_auth(client):
    res = client.get(f"{POSTS}/feed")
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized"}


def test_malformed_body_is_a_bad_request(client, alice):
    _, headers = alice
    res = client.post(
        f"{POSTS}/create",
        content="not json",
        headers={**headers, "Content-Type": "application/json"},
    )
    assert res.status_code == 400
    assert list(res.json()) == ["error"]


def test_create_post_failure_after_upload_removes_image(client, alice, image_store, monkeypatch):
    existing = _create(client, *alice)
    user, headers = alice
    monkeypatch.setattr("social_feed_api.app.services.post_service.new_id", lambda: existing["id"])
    res = client.post(
        f"{POSTS}/create",
        json={"posted_by": user["id"], "text": "again", "img": "imageData"},
        headers=headers,
    )
    assert res.status_code == 500
    assert image_store.uploads == ["imageData"]
    assert image_store.destroyed == ["img1"]
    assert [p["id"] for p in client.get(f"{POSTS}/user/alice").json()] == [existing["id"]]
