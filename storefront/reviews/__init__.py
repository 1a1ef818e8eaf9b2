"""
Reviews — ratings, helpfulness votes and the moderation gate.

    from storefront import reviews as R

    service = R.Reviews(R.SQLAlchemyReviewRepository(session_factory), purchases=orders)
    page = await service.list(product_id, sort=R.ReviewSort.MOST_HELPFUL, viewer=user)
"""

from storefront.reviews._types import (
    Review,
    NewReview,
    ReviewPatch,
    HelpfulnessVote,
    DuplicateReview,
    ReviewSort,
    ModerationStatus,
    ReviewFilter,
    Pagination,
    ReviewStatistics,
    ReviewPage,
    ReviewRepository,
    PurchaseHistory,
)
from storefront.reviews._memory import MemoryReviewRepository, sort_reviews
from storefront.reviews._sqlalchemy import SQLAlchemyReviewRepository
from storefront.reviews._service import Reviews, compute_statistics, MAX_PAGE_SIZE, DEFAULT_PAGE_SIZE

__all__ = (
    # Types
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
    # Protocols
    "ReviewRepository",
    "PurchaseHistory",
    # Implementations
    "MemoryReviewRepository",
    "SQLAlchemyReviewRepository",
    "sort_reviews",
    # Service
    "Reviews",
    "compute_statistics",
    "MAX_PAGE_SIZE",
    "DEFAULT_PAGE_SIZE",
)
