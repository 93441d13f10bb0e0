"""Tests for comment endpoints."""

from fastapi import status

from downtown.models import Post, PostType


def _comment(client, post_id: int, headers, content: str, parent: int | None = None):
    payload = {"content": content}
    if parent is not None:
        payload["parent_comment_id"] = parent
    return client.post(f"/post/{post_id}/comment", json=payload, headers=headers)


def test_reply_is_linked_to_parent(client, test_post, auth_token) -> None:
    r = _comment(client, test_post.id, auth_token, "C1")
    assert r.status_code == status.HTTP_201_CREATED
    c1 = r.json()
    assert c1["parent_comment_id"] == c1["id"] == c1["child_comment_id"]

    c2 = _comment(client, test_post.id, auth_token, "C2", c1["id"]).json()
    assert c2["parent_comment_id"] == c1["id"]

    r = client.get(f"/post/{test_post.id}/comment", headers=auth_token)
    assert r.status_code == status.HTTP_200_OK
    rows = r.json()
    assert [(row["id"], row["parent_comment_id"]) for row in rows] == [
        (c1["id"], c1["id"]),
        (c2["id"], c1["id"]),
    ]


def test_comment_tree(client, test_post, auth_token) -> None:
    c1 = _comment(client, test_post.id, auth_token, "C1").json()
    c2 = _comment(client, test_post.id, auth_token, "C2", c1["id"]).json()
    _comment(client, test_post.id, auth_token, "C3", c2["id"])

    r = client.get(f"/post/{test_post.id}/comment/tree", headers=auth_token)

    assert r.status_code == status.HTTP_200_OK
    (root,) = r.json()
    assert root["parent_comment_id"] is None
    assert root["replies"][0]["content"] == "C2"
    assert root["replies"][0]["replies"][0]["content"] == "C3"


def test_reply_to_comment_on_other_post(client, test_post, db_session, test_user, auth_token) -> None:
    other = Post(
        author_id=test_user.id,
        post_type=int(PostType.DAILY),
        town_id=test_user.town_id,
        content="another post",
    )
    db_session.add(other)
    db_session.commit()
    parent = _comment(client, test_post.id, auth_token, "on first").json()

    r = _comment(client, other.id, auth_token, "cross", parent["id"])

    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_reply_to_missing_comment(client, test_post, auth_token) -> None:
    r = _comment(client, test_post.id, auth_token, "orphan", 999999)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_delete_removes_replies(client, test_post, auth_token, other_auth_token) -> None:
    c1 = _comment(client, test_post.id, auth_token, "C1").json()
    _comment(client, test_post.id, other_auth_token, "reply", c1["id"])
    keep = _comment(client, test_post.id, other_auth_token, "keep").json()

    r = client.delete(f"/post/{test_post.id}/comment/{c1['id']}", headers=other_auth_token)
    assert r.status_code == status.HTTP_404_NOT_FOUND

    r = client.delete(f"/post/{test_post.id}/comment/{c1['id']}", headers=auth_token)
    assert r.status_code == status.HTTP_204_NO_CONTENT

    rows = client.get(f"/post/{test_post.id}/comment", headers=auth_token).json()
    assert [row["id"] for row in rows] == [keep["id"]]
    post = client.get(f"/post/{test_post.id}", headers=auth_token).json()
    assert post["comment_count"] == 1


def test_block_comment_hides_subtree(client, test_post, auth_token, other_auth_token) -> None:
    c1 = _comment(client, test_post.id, other_auth_token, "C1").json()
    c2 = _comment(client, test_post.id, other_auth_token, "C2", c1["id"]).json()

    r = client.post(f"/post/{test_post.id}/comment/{c1['id']}/block", headers=auth_token)
    assert r.status_code == status.HTTP_204_NO_CONTENT

    assert client.get(f"/post/{test_post.id}/comment", headers=auth_token).json() == []
    r = _comment(client, test_post.id, auth_token, "reply to hidden", c2["id"])
    assert r.status_code == status.HTTP_404_NOT_FOUND

    client.delete(f"/post/{test_post.id}/comment/{c1['id']}/block", headers=auth_token)
    rows = client.get(f"/post/{test_post.id}/comment", headers=auth_token).json()
    assert [row["id"] for row in rows] == [c1["id"], c2["id"]]


def test_block_comment_with_wrong_post(client, test_post, auth_token) -> None:
    c1 = _comment(client, test_post.id, auth_token, "C1").json()

    r = client.post(f"/post/{test_post.id + 1}/comment/{c1['id']}/block", headers=auth_token)

    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_withdrawn_author_comment_is_anonymised(
    client, test_post, auth_token, other_auth_token
) -> None:
    c1 = _comment(client, test_post.id, other_auth_token, "soon anonymous").json()
    client.delete("/user", headers=other_auth_token)

    (row,) = client.get(f"/post/{test_post.id}/comment", headers=auth_token).json()

    assert row["id"] == c1["id"]
    assert row["author_id"] is None
    assert row["content"] is None
    assert row["deleted"] is True
