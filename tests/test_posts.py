from conftest import auth_for
from meetpost.db import crud


def test_list_filters_and_paginates(client, auth, db, user, other_user):
    for i in range(3):
        crud.create_post(db, user.id, f"LinkedIn {i}", "linkedin")
    crud.create_post(db, user.id, "Facebook", "facebook")
    crud.create_post(db, other_user.id, "Not mine", "linkedin")

    body = client.get("/posts?platform=linkedin&limit=2", headers=auth).json()
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert [p["content"] for p in body["posts"]] == ["LinkedIn 2", "LinkedIn 1"]

    assert client.get("/posts?status=bogus", headers=auth).status_code == 400


def test_edit_draft(client, auth, db, user):
    post = crud.create_post(db, user.id, "Old", "linkedin")
    resp = client.patch(f"/posts/{post.id}", json={"content": "  New text "}, headers=auth)
    assert resp.status_code == 200
    assert resp.json()["content"] == "New text"


def test_other_users_post_is_not_found(client, db, user, other_user):
    post = crud.create_post(db, user.id, "Mine", "linkedin")
    assert client.get(f"/posts/{post.id}", headers=auth_for(other_user.id)).status_code == 404
