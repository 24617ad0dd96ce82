import os
import uuid

import pytest
from sqlalchemy import func

from models import Post, Comment, Like, Bookmark


@pytest.fixture
def alice(make_user):
    return make_user(username="alice")


@pytest.fixture
def bob(make_user):
    return make_user(username="bob")


def _create_post(client, headers, **body):
    body = body or {"content": "Sensex closes at a record high"}
    response = client.post("/api/posts", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["post"]


def test_create_post_starts_with_zero_counters(client, alice, auth_header):
    response = client.post(
        "/api/posts",
        json={"content": "UPI volumes up 40%", "images": ["https://cdn.finlook.in/a.png"]},
        headers=auth_header(alice),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Post created successfully"
    post = body["data"]["post"]
    assert (post["likes"], post["shares"], post["bookmarks"]) == (0, 0, 0)
    assert post["isRetweet"] is False
    assert post["author"]["username"] == "alice"
    assert "email" not in post["author"]


def test_images_only_post_is_valid(client, alice, auth_header):
    post = _create_post(client, auth_header(alice), images=["https://cdn.finlook.in/chart.png"])
    assert post["content"] is None
    assert post["images"] == ["https://cdn.finlook.in/chart.png"]


@pytest.mark.parametrize("body", [
    {},
    {"content": "", "images": []},
    {"content": "   "},
    {"content": "x" * 2001},
    {"images": [f"https://cdn.finlook.in/{i}.png" for i in range(5)]},
])
def test_invalid_post_bodies_rejected(client, alice, auth_header, body):
    response = client.post("/api/posts", json=body, headers=auth_header(alice))
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_posts_require_authentication(client):
    response = client.get("/api/posts")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_retweet_rules(client, db, alice, bob, auth_header):
    original = _create_post(client, auth_header(alice))

    response = client.post("/api/posts/retweet", json={"originalPostId": original["id"], "content": "Worth reading"},
                           headers=auth_header(bob))
    assert response.status_code == 201
    assert response.json()["message"] == "Retweet created successfully"
    retweet = response.json()["data"]["post"]
    assert retweet["isRetweet"] is True
    assert retweet["originalPost"]["id"] == original["id"]
    assert "originalPost" not in retweet["originalPost"]

    shares = db.query(Post.shares).filter(Post.id == uuid.UUID(original["id"])).scalar()
    assert shares == 1

    response = client.post("/api/posts/retweet", json={"originalPostId": original["id"]}, headers=auth_header(bob))
    assert response.status_code == 409
    db.expire_all()
    assert db.query(Post.shares).filter(Post.id == uuid.UUID(original["id"])).scalar() == 1

    response = client.post("/api/posts/retweet", json={"originalPostId": retweet["id"]}, headers=auth_header(alice))
    assert response.status_code == 400

    response = client.post("/api/posts/retweet", json={"originalPostId": str(uuid.uuid4())}, headers=auth_header(alice))
    assert response.status_code == 404

    # a second user's retweet counts separately
    response = client.post("/api/posts/retweet", json={"originalPostId": original["id"]}, headers=auth_header(alice))
    assert response.status_code == 201
    db.expire_all()
    assert db.query(Post.shares).filter(Post.id == uuid.UUID(original["id"])).scalar() == 2


def test_like_toggle_round_trip(client, alice, bob, auth_header):
    post = _create_post(client, auth_header(alice))

    response = client.post(f"/api/posts/{post['id']}/like", headers=auth_header(bob))
    assert response.status_code == 200
    assert response.json()["message"] == "Post liked"
    assert response.json()["data"] == {"liked": True, "count": 1}

    response = client.post(f"/api/posts/{post['id']}/like", headers=auth_header(bob))
    assert response.json()["message"] == "Post unliked"
    assert response.json()["data"] == {"liked": False, "count": 0}

    response = client.post(f"/api/posts/{uuid.uuid4()}/like", headers=auth_header(bob))
    assert response.status_code == 404


def test_bookmark_toggle(client, alice, bob, auth_header):
    post = _create_post(client, auth_header(alice))

    response = client.post(f"/api/posts/{post['id']}/bookmark", headers=auth_header(bob))
    assert response.json()["message"] == "Post bookmarked"
    assert response.json()["data"] == {"bookmarked": True, "count": 1}

    response = client.post(f"/api/posts/{post['id']}/bookmark", headers=auth_header(bob))
    assert response.json()["message"] == "Bookmark removed"
    assert response.json()["data"] == {"bookmarked": False, "count": 0}


def test_pagination_remainder_and_beyond_last_page(client, alice, auth_header):
    for i in range(7):
        _create_post(client, auth_header(alice), content=f"post {i}")

    response = client.get("/api/posts", params={"page": 3, "limit": 3}, headers=auth_header(alice))
    body = response.json()
    assert body["message"] == "Posts retrieved successfully"
    assert len(body["data"]) == 1
    assert body["data"][0]["content"] == "post 0"
    assert body["pagination"] == {"page": 3, "limit": 3, "total": 7, "totalPages": 3}

    response = client.get("/api/posts", params={"page": 4, "limit": 3}, headers=auth_header(alice))
    body = response.json()
    assert body["data"] == []
    assert body["pagination"]["totalPages"] == 3

    response = client.get("/api/posts", params={"page": 1, "limit": 7}, headers=auth_header(alice))
    assert len(response.json()["data"]) == 7
    assert response.json()["data"][0]["content"] == "post 6"


def test_feed_viewer_flags_and_comment_preview(client, alice, bob, auth_header):
    post = _create_post(client, auth_header(alice))
    for i in range(6):
        client.post(f"/api/posts/{post['id']}/comments", json={"content": f"c{i}"}, headers=auth_header(bob))
    client.post(f"/api/posts/{post['id']}/like", headers=auth_header(bob))
    client.post(f"/api/posts/{post['id']}/bookmark", headers=auth_header(bob))
    client.post("/api/posts/retweet", json={"originalPostId": post["id"]}, headers=auth_header(bob))

    feed = client.get("/api/posts", headers=auth_header(bob)).json()["data"]
    original = next(p for p in feed if p["id"] == post["id"])
    assert original["isLiked"] is True
    assert original["isBookmarked"] is True
    assert original["isRetweeted"] is True
    assert len(original["comments"]) == 5
    assert original["comments"][0]["content"] == "c5"
    assert original["commentsCount"] == 6

    feed = client.get("/api/posts", headers=auth_header(alice)).json()["data"]
    original = next(p for p in feed if p["id"] == post["id"])
    assert original["isLiked"] is False
    assert original["isRetweeted"] is False

    detail = client.get(f"/api/posts/{post['id']}", headers=auth_header(bob)).json()["data"]["post"]
    assert detail["isLiked"] is None
    assert len(detail["comments"]) == 6


def test_update_post_ownership(client, alice, bob, auth_header):
    post = _create_post(client, auth_header(alice))

    response = client.put(f"/api/posts/{post['id']}", json={"content": "edited"}, headers=auth_header(bob))
    assert response.status_code == 403

    response = client.put(f"/api/posts/{uuid.uuid4()}", json={"content": "edited"}, headers=auth_header(alice))
    assert response.status_code == 404

    response = client.put(f"/api/posts/{post['id']}", json={"content": "edited"}, headers=auth_header(alice))
    assert response.status_code == 200
    assert response.json()["data"]["post"]["content"] == "edited"
    assert response.json()["data"]["post"]["images"] == []


def test_delete_post_cascades(client, db, storage, alice, bob, auth_header):
    image_url = storage.upload_bytes(b"png", "posts/chart.png", "image/png")
    image_path = os.path.join(storage.base_dir, "posts", "chart.png")
    assert os.path.exists(image_path)
    post = _create_post(client, auth_header(alice), content="with image", images=[image_url])
    comment = client.post(f"/api/posts/{post['id']}/comments", json={"content": "nice"},
                          headers=auth_header(bob)).json()["data"]["comment"]
    client.post(f"/api/posts/{post['id']}/like", headers=auth_header(bob))
    client.post(f"/api/posts/{post['id']}/bookmark", headers=auth_header(bob))
    client.post(f"/api/posts/comments/{comment['id']}/like", headers=auth_header(alice))
    client.post("/api/posts/retweet", json={"originalPostId": post["id"]}, headers=auth_header(bob))

    response = client.delete(f"/api/posts/{post['id']}", headers=auth_header(bob))
    assert response.status_code == 403

    response = client.delete(f"/api/posts/{post['id']}", headers=auth_header(alice))
    assert response.status_code == 200

    post_id = uuid.UUID(post["id"])
    assert db.query(func.count(Post.id)).scalar() == 0
    assert db.query(func.count(Comment.id)).filter(Comment.post_id == post_id).scalar() == 0
    assert db.query(func.count(Like.id)).scalar() == 0
    assert db.query(func.count(Bookmark.id)).filter(Bookmark.post_id == post_id).scalar() == 0
    assert not os.path.exists(image_path)
    assert client.get(f"/api/posts/{post['id']}", headers=auth_header(alice)).status_code == 404


def test_delete_original_removes_retweet_media(client, db, storage, alice, bob, auth_header):
    post = _create_post(client, auth_header(alice))
    retweet_url = storage.upload_bytes(b"png", "posts/retweet.png", "image/png")
    comment_url = storage.upload_bytes(b"png", "posts/retweet-comment.png", "image/png")

    retweet = client.post("/api/posts/retweet", json={"originalPostId": post["id"], "images": [retweet_url]},
                          headers=auth_header(bob)).json()["data"]["post"]
    response = client.post(f"/api/posts/{retweet['id']}/comments", json={"images": [comment_url]},
                           headers=auth_header(alice))
    assert response.status_code == 201

    assert client.delete(f"/api/posts/{post['id']}", headers=auth_header(alice)).status_code == 200

    assert db.query(func.count(Post.id)).scalar() == 0
    assert not os.path.exists(os.path.join(storage.base_dir, "posts", "retweet.png"))
    assert not os.path.exists(os.path.join(storage.base_dir, "posts", "retweet-comment.png"))


def test_delete_post_survives_storage_failure(client, storage, alice, auth_header, monkeypatch):
    def broken_delete(url):
        raise OSError("bucket unavailable")

    monkeypatch.setattr(storage, "delete", broken_delete)
    post = _create_post(client, auth_header(alice), images=["https://cdn.finlook.in/a.png"])
    response = client.delete(f"/api/posts/{post['id']}", headers=auth_header(alice))
    assert response.status_code == 200


def test_comment_lifecycle(client, alice, bob, auth_header):
    post = _create_post(client, auth_header(alice))

    response = client.post(f"/api/posts/{post['id']}/comments", json={}, headers=auth_header(bob))
    assert response.status_code == 400

    response = client.post(f"/api/posts/{uuid.uuid4()}/comments", json={"content": "hi"}, headers=auth_header(bob))
    assert response.status_code == 404

    comment = client.post(f"/api/posts/{post['id']}/comments", json={"content": "hi"},
                          headers=auth_header(bob)).json()["data"]["comment"]
    assert comment["likes"] == 0

    assert client.put(f"/api/posts/comments/{comment['id']}", json={"content": "x"},
                      headers=auth_header(alice)).status_code == 403
    response = client.put(f"/api/posts/comments/{comment['id']}", json={"content": "edited"}, headers=auth_header(bob))
    assert response.json()["data"]["comment"]["content"] == "edited"

    response = client.post(f"/api/posts/comments/{comment['id']}/like", headers=auth_header(alice))
    assert response.json()["data"] == {"liked": True, "count": 1}

    listing = client.get(f"/api/posts/{post['id']}/comments", headers=auth_header(alice)).json()
    assert listing["pagination"]["total"] == 1
    assert listing["data"][0]["isLiked"] is True

    assert client.delete(f"/api/posts/comments/{comment['id']}", headers=auth_header(alice)).status_code == 403
    assert client.delete(f"/api/posts/comments/{comment['id']}", headers=auth_header(bob)).status_code == 200
    assert client.get(f"/api/posts/comments/{comment['id']}", headers=auth_header(bob)).status_code == 404
