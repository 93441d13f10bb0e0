"""Post-related endpoints for the downtown API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from downtown.api.v1.dependencies import CurrentUserDep, SessionDep, StorageDep
from downtown.api.v1.uploads import saved_uploads
from downtown.core.errors import InvalidRequest
from downtown.models import AgeRange, PostType
from downtown.schemas.post import PostResponse
from downtown.services import likes, posts, visibility
from downtown.services.posts import PostDraft

router = APIRouter(prefix="/post", tags=["posts"])

ImagesForm = Annotated[list[UploadFile] | None, File(description="Images attached to the post")]


def _draft(
    post_type: int,
    content: str,
    age_range: int | None,
    capacity: int | None,
    place: str | None,
) -> PostDraft:
    try:
        kind = PostType(post_type)
        age = AgeRange(age_range) if age_range is not None else None
    except ValueError as err:
        raise InvalidRequest(str(err)) from err
    return PostDraft(
        post_type=kind,
        content=content,
        age_range=age,
        capacity=capacity,
        place=place or None,
    )


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    db: SessionDep,
    storage: StorageDep,
    current_user: CurrentUserDep,
    post_type: Annotated[int, Form()],
    content: Annotated[str, Form(min_length=1)],
    age_range: Annotated[int | None, Form()] = None,
    capacity: Annotated[int | None, Form()] = None,
    place: Annotated[str | None, Form(max_length=128)] = None,
    images: ImagesForm = None,
) -> PostResponse:
    """Publish a post to the caller's town.

    Gathering posts (``post_type=3``) require ``age_range``, ``capacity`` and
    ``place``; other kinds must omit them.
    """
    draft = _draft(post_type, content, age_range, capacity, place)
    with saved_uploads(images or []) as paths:
        post = posts.create(db, current_user, draft, paths, storage)
    return PostResponse.from_view(posts.view(db, post, current_user.id))


@router.get("", response_model=list[PostResponse])
def list_posts(
    db: SessionDep,
    current_user: CurrentUserDep,
    last_id: int | None = Query(None, ge=1, description="Return posts older than this id"),
    limit: int | None = Query(None, ge=1, le=100, description="Maximum number of posts"),
) -> list[PostResponse]:
    """List the newest posts of the caller's town, excluding blocked content."""
    feed = posts.town_feed(db, current_user, last_id=last_id, limit=limit)
    return [PostResponse.from_view(posts.view(db, post, current_user.id)) for post in feed]


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> PostResponse:
    post = posts.from_id(db, post_id, current_user.id)
    return PostResponse.from_view(posts.view(db, post, current_user.id))


@router.patch("/{post_id}", response_model=PostResponse)
def edit_post(
    post_id: int,
    db: SessionDep,
    storage: StorageDep,
    current_user: CurrentUserDep,
    post_type: Annotated[int, Form()],
    content: Annotated[str, Form(min_length=1)],
    age_range: Annotated[int | None, Form()] = None,
    capacity: Annotated[int | None, Form()] = None,
    place: Annotated[str | None, Form(max_length=128)] = None,
    images: ImagesForm = None,
) -> PostResponse:
    """Replace a post's content and images. Posts of other users are reported as missing."""
    draft = _draft(post_type, content, age_range, capacity, place)
    with saved_uploads(images or []) as paths:
        post = posts.edit(db, current_user, post_id, draft, paths, storage)
    return PostResponse.from_view(posts.view(db, post, current_user.id))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: int,
    db: SessionDep,
    storage: StorageDep,
    current_user: CurrentUserDep,
) -> None:
    posts.remove(db, current_user, post_id, storage)


@router.post("/{post_id}/like", status_code=status.HTTP_204_NO_CONTENT)
def like_post(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    likes.like_post(db, current_user, posts.from_id(db, post_id, current_user.id))


@router.delete("/{post_id}/like", status_code=status.HTTP_204_NO_CONTENT)
def unlike_post(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    likes.unlike_post(db, current_user, posts.from_id(db, post_id, current_user.id))


@router.post("/{post_id}/block", status_code=status.HTTP_204_NO_CONTENT)
def block_post(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    visibility.block_post(db, current_user, post_id)


@router.delete("/{post_id}/block", status_code=status.HTTP_204_NO_CONTENT)
def unblock_post(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    visibility.unblock_post(db, current_user, post_id)
