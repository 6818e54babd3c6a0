"""Course rating endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from smartlearn.api.dependencies import get_ratings, http_error_for
from smartlearn.models.rating import MAX_RATING, MIN_RATING
from smartlearn.repos.collection_store import StoreError
from smartlearn.services.rating_service import RatingError, RatingService

router = APIRouter(prefix="/v1/ratings", tags=["ratings"])

Ratings = Annotated[RatingService, Depends(get_ratings)]


class RatingIn(BaseModel):
    user_id: str
    course_id: str
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    comment: str = ""


class RatingOut(BaseModel):
    id: str | None
    user_id: str
    course_id: str
    rating: int
    comment: str
    created_at: int | None


class RatingCreated(BaseModel):
    id: str
    average: float


@router.post("", response_model=RatingCreated, status_code=status.HTTP_201_CREATED)
async def rate_course(body: RatingIn, ratings: Ratings) -> RatingCreated:
    try:
        key = await ratings.add_rating(body.user_id, body.course_id, body.rating, body.comment)
        average = await ratings.update_course_average_rating(body.course_id)
    except (RatingError, StoreError, ValueError) as exc:
        raise http_error_for(exc) from None
    return RatingCreated(id=key, average=average)


@router.get("/{course_id}", response_model=list[RatingOut])
async def course_ratings(course_id: str, ratings: Ratings) -> list[RatingOut]:
    try:
        found = await ratings.get_course_ratings(course_id)
    except StoreError as exc:
        raise http_error_for(exc) from None
    return [
        RatingOut(
            id=r.id,
            user_id=r.user_id,
            course_id=r.course_id,
            rating=r.rating,
            comment=r.comment,
            created_at=r.created_at,
        )
        for r in found
    ]


@router.delete("/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rating(rating_id: str, ratings: Ratings) -> Response:
    try:
        await ratings.delete_rating(rating_id)
    except (RatingError, StoreError) as exc:
        raise http_error_for(exc) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


class RatingUpdate(BaseModel):
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    comment: str = ""


@router.patch("/{rating_id}", response_model=RatingCreated)
async def update_rating(rating_id: str, body: RatingUpdate, ratings: Ratings) -> RatingCreated:
    try:
        average = await ratings.update_rating(rating_id, body.rating, body.comment)
    except (RatingError, StoreError, ValueError) as exc:
        raise http_error_for(exc) from None
    return RatingCreated(id=rating_id, average=average)
