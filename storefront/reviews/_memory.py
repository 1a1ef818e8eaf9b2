from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any

from storefront._types import ProductId, ReviewId, UserId, utcnow
from storefront.reviews._types import (
    DuplicateReview,
    HelpfulnessVote,
    NewReview,
    Review,
    ReviewFilter,
    ReviewSort,
)


def _visible(review: Review, where: ReviewFilter) -> bool:
    if where.product_id is not None and review.product_id != where.product_id:
        return False
    if where.approved is None or review.is_approved == where.approved:
        return True
    return where.also_user_id is not None and review.user_id == where.also_user_id


def sort_reviews(reviews: list[Review], sort: ReviewSort) -> list[Review]:
    """Order for a listing; ties go to the most recent review."""
    if sort is ReviewSort.OLDEST:
        return sorted(reviews, key=lambda r: (r.created_at, r.id))

    ordered = sorted(reviews, key=lambda r: (r.created_at, r.id), reverse=True)
    match sort:
        case ReviewSort.HIGHEST_RATING:
            ordered.sort(key=lambda r: r.rating, reverse=True)
        case ReviewSort.LOWEST_RATING:
            ordered.sort(key=lambda r: r.rating)
        case ReviewSort.MOST_HELPFUL:
            ordered.sort(key=lambda r: r.helpful_count, reverse=True)
        case _:
            pass
    return ordered


class MemoryReviewRepository:
    """
    In-memory reviews for tests.

    Note: one lock guards reviews and votes, which makes vote + counter update atomic.
    """

    def __init__(self) -> None:
        self._reviews: dict[ReviewId, Review] = {}
        self._votes: dict[tuple[ReviewId, UserId], bool] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def get(self, review_id: ReviewId) -> Review | None:
        return self._reviews.get(review_id)

    async def find(self, user_id: UserId, product_id: ProductId) -> Review | None:
        return next(
            (r for r in self._reviews.values() if r.user_id == user_id and r.product_id == product_id),
            None,
        )

    async def insert(self, draft: NewReview) -> Review:
        async with self._lock:
            if await self.find(draft.user_id, draft.product_id) is not None:
                raise DuplicateReview(f"{draft.user_id}/{draft.product_id}")
            now = utcnow()
            review = Review(
                id=self._next_id,
                product_id=draft.product_id,
                user_id=draft.user_id,
                rating=draft.rating,
                title=draft.title,
                text=draft.text,
                is_verified_purchase=draft.is_verified_purchase,
                is_approved=draft.is_approved,
                helpful_count=0,
                not_helpful_count=0,
                created_at=now,
                updated_at=now,
            )
            self._reviews[review.id] = review
            self._next_id += 1
            return review

    async def update(self, review_id: ReviewId, changes: dict[str, Any]) -> Review | None:
        async with self._lock:
            review = self._reviews.get(review_id)
            if review is None:
                return None
            updated = replace(review, **changes, updated_at=utcnow())
            self._reviews[review_id] = updated
            return updated

    async def delete(self, review_id: ReviewId) -> bool:
        async with self._lock:
            self._votes = {k: v for k, v in self._votes.items() if k[0] != review_id}
            return self._reviews.pop(review_id, None) is not None

    async def list(
        self,
        where: ReviewFilter,
        sort: ReviewSort,
        offset: int,
        limit: int,
    ) -> tuple[list[Review], int]:
        matching = [r for r in self._reviews.values() if _visible(r, where)]
        ordered = sort_reviews(matching, sort)
        return ordered[offset : offset + limit], len(matching)

    async def rating_counts(self, product_id: ProductId) -> dict[int, int]:
        counts: dict[int, int] = {}
        for review in self._reviews.values():
            if review.product_id == product_id and review.is_approved:
                counts[review.rating] = counts.get(review.rating, 0) + 1
        return counts

    async def get_vote(self, review_id: ReviewId, user_id: UserId) -> HelpfulnessVote | None:
        choice = self._votes.get((review_id, user_id))
        return HelpfulnessVote(review_id, user_id, choice) if choice is not None else None

    async def vote(self, review_id: ReviewId, user_id: UserId, is_helpful: bool) -> Review | None:
        async with self._lock:
            review = self._reviews.get(review_id)
            if review is None:
                return None
            previous = self._votes.get((review_id, user_id))
            if previous == is_helpful:
                return review

            helpful, not_helpful = review.helpful_count, review.not_helpful_count
            if previous is True:
                helpful -= 1
            elif previous is False:
                not_helpful -= 1
            if is_helpful:
                helpful += 1
            else:
                not_helpful += 1

            self._votes[(review_id, user_id)] = is_helpful
            updated = replace(review, helpful_count=helpful, not_helpful_count=not_helpful)
            self._reviews[review_id] = updated
            return updated

    async def unvote(self, review_id: ReviewId, user_id: UserId) -> Review | None:
        async with self._lock:
            review = self._reviews.get(review_id)
            if review is None:
                return None
            previous = self._votes.pop((review_id, user_id), None)
            if previous is None:
                return review
            updated = replace(
                review,
                helpful_count=review.helpful_count - (1 if previous else 0),
                not_helpful_count=review.not_helpful_count - (0 if previous else 1),
            )
            self._reviews[review_id] = updated
            return updated


__all__ = ("MemoryReviewRepository", "sort_reviews")
