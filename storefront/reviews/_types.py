"""
Review types and the repository protocol.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from storefront._types import ProductId, ReviewId, UserId


# ═══════════════════════════════════════════════════════════════════════════════
# Review
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Review:
    id: ReviewId
    product_id: ProductId
    user_id: UserId
    rating: int
    title: str | None
    text: str | None
    is_verified_purchase: bool
    is_approved: bool
    helpful_count: int
    not_helpful_count: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class NewReview:
    product_id: ProductId
    user_id: UserId
    rating: int
    title: str | None
    text: str | None
    is_verified_purchase: bool
    is_approved: bool


@dataclass(frozen=True, slots=True)
class ReviewPatch:
    """
    Partial update. None means "leave as is".

    is_approved is a moderation field: only admins may set it.
    """

    rating: int | None = None
    title: str | None = None
    text: str | None = None
    is_approved: bool | None = None

    def changes(self, *, moderator: bool) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "rating": self.rating,
            "title": self.title,
            "text": self.text,
        }
        if moderator:
            fields["is_approved"] = self.is_approved
        return {name: value for name, value in fields.items() if value is not None}


@dataclass(frozen=True, slots=True)
class HelpfulnessVote:
    review_id: ReviewId
    user_id: UserId
    is_helpful: bool


class DuplicateReview(Exception):
    """Raised by repositories when (user_id, product_id) already has a review."""


# ═══════════════════════════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════════════════════════


class ReviewSort(Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST_RATING = "highest_rating"
    LOWEST_RATING = "lowest_rating"
    MOST_HELPFUL = "most_helpful"


class ModerationStatus(Enum):
    ALL = "all"
    PENDING = "pending"
    APPROVED = "approved"


@dataclass(frozen=True, slots=True)
class ReviewFilter:
    """
    Which reviews a listing may show.

    approved=True with also_user_id shows approved reviews plus that user's own;
    approved=None shows everything.
    """

    product_id: ProductId | None = None
    approved: bool | None = True
    also_user_id: UserId | None = None


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class ReviewStatistics:
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int] = field(default_factory=lambda: {s: 0 for s in range(1, 6)})


@dataclass(frozen=True, slots=True)
class ReviewPage:
    reviews: tuple[Review, ...]
    pagination: Pagination
    statistics: ReviewStatistics | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Protocols
# ═══════════════════════════════════════════════════════════════════════════════


class ReviewRepository(Protocol):
    """
    Review persistence.

    vote/unvote must adjust the parent's counters in the same atomic step as the
    vote row. Methods raise on infrastructure failure.
    """

    async def get(self, review_id: ReviewId) -> Review | None: ...

    async def find(self, user_id: UserId, product_id: ProductId) -> Review | None: ...

    async def insert(self, draft: NewReview) -> Review:
        """Raises DuplicateReview when the pair already exists."""
        ...

    async def update(self, review_id: ReviewId, changes: dict[str, Any]) -> Review | None: ...

    async def delete(self, review_id: ReviewId) -> bool: ...

    async def list(
        self,
        where: ReviewFilter,
        sort: ReviewSort,
        offset: int,
        limit: int,
    ) -> tuple[list[Review], int]:
        """One page of matching reviews and the total match count."""
        ...

    async def rating_counts(self, product_id: ProductId) -> dict[int, int]:
        """Approved reviews per star."""
        ...

    async def get_vote(self, review_id: ReviewId, user_id: UserId) -> HelpfulnessVote | None: ...

    async def vote(self, review_id: ReviewId, user_id: UserId, is_helpful: bool) -> Review | None:
        """Insert or replace the caller's vote. None when the review is gone."""
        ...

    async def unvote(self, review_id: ReviewId, user_id: UserId) -> Review | None: ...


class PurchaseHistory(Protocol):
    async def has_purchased(self, user_id: UserId, product_id: ProductId) -> bool: ...


__all__ = (
    "Review",
    "NewReview",
    "ReviewPatch",
    "HelpfulnessVote",
    "DuplicateReview",
    "ReviewSort",
    "ModerationStatus",
    "ReviewFilter",
    "Pagination",
    "ReviewStatistics",
    "ReviewPage",
    "ReviewRepository",
    "PurchaseHistory",
)
