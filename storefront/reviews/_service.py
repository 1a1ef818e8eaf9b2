"""
Reviews — one review per (user, product), helpfulness votes, statistics, moderation.

    reviews = Reviews(repository, purchases=orders, auto_approve=False)

    await reviews.create(user, product_id=7, rating=5, title="Fits perfectly")
    await reviews.vote(other_user, review_id, is_helpful=True)
    stats = (await reviews.statistics(7)).unwrap()

Visibility (moderation gate):

    storefront listing   approved reviews + the viewer's own
    admin listing        everything
    statistics           approved only
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP

from kungfu import Error, Ok, Result

from storefront._errors import Errors, ShopError
from storefront._types import ProductId, ReviewId
from storefront.identity import Identity
from storefront.lift import guarded, guarded_result
from storefront.reviews._types import (
    DuplicateReview,
    ModerationStatus,
    NewReview,
    Pagination,
    PurchaseHistory,
    Review,
    ReviewFilter,
    ReviewPage,
    ReviewPatch,
    ReviewRepository,
    ReviewSort,
    ReviewStatistics,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


def _valid_rating(rating: object) -> bool:
    return isinstance(rating, int) and not isinstance(rating, bool) and 1 <= rating <= 5


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def compute_statistics(counts: dict[int, int]) -> ReviewStatistics:
    """Mean rating rounded half-up to one decimal, with a full 1..5 distribution."""
    distribution = {star: counts.get(star, 0) for star in range(1, 6)}
    total = sum(distribution.values())
    if total == 0:
        return ReviewStatistics(average_rating=0.0, total_reviews=0, rating_distribution=distribution)

    mean = Decimal(sum(star * n for star, n in distribution.items())) / Decimal(total)
    average = float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    return ReviewStatistics(average_rating=average, total_reviews=total, rating_distribution=distribution)


class Reviews:
    def __init__(
        self,
        repository: ReviewRepository,
        purchases: PurchaseHistory,
        *,
        auto_approve: bool = False,
    ) -> None:
        self.repository = repository
        self.purchases = purchases
        self.auto_approve = auto_approve

    # ═══════════════════════════════════════════════════════════════════════════
    # Helpers
    # ═══════════════════════════════════════════════════════════════════════════

    async def _verified_purchase(self, user: Identity, product_id: ProductId) -> bool:
        """Purchase-history check. Any failure counts as "not verified"."""
        try:
            return bool(await self.purchases.has_purchased(user.id, product_id))
        except Exception:
            logger.warning(
                "Purchase history check failed for user %s, product %s; marking unverified",
                user.id,
                product_id,
                exc_info=True,
            )
            return False

    async def _editable(self, caller: Identity | None, review_id: ReviewId) -> Result[Review, ShopError]:
        """The review, if caller may change it (owner or admin)."""
        if caller is None:
            return Error(Errors.unauthenticated())

        match await guarded("reviews.get", lambda: self.repository.get(review_id)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("review", review_id))
            case Ok(review):
                if not (caller.owns(review.user_id) or caller.is_admin):
                    return Error(Errors.forbidden("You can only change your own reviews"))
                return Ok(review)

    # ═══════════════════════════════════════════════════════════════════════════
    # Create / update / delete
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(
        self,
        caller: Identity | None,
        product_id: ProductId,
        rating: int,
        title: str | None = None,
        text: str | None = None,
    ) -> Result[Review, ShopError]:
        if caller is None:
            return Error(Errors.unauthenticated())
        if not _valid_rating(rating):
            return Error(Errors.invalid_rating(rating))

        match await guarded("reviews.find", lambda: self.repository.find(caller.id, product_id)):
            case Error(err):
                return Error(err)
            case Ok(None):
                pass
            case Ok(_):
                return Error(Errors.already_reviewed())

        draft = NewReview(
            product_id=product_id,
            user_id=caller.id,
            rating=rating,
            title=_clean(title),
            text=_clean(text),
            is_verified_purchase=await self._verified_purchase(caller, product_id),
            is_approved=self.auto_approve,
        )

        async def _insert() -> Result[Review, ShopError]:
            try:
                return Ok(await self.repository.insert(draft))
            except DuplicateReview:
                # Lost a race with a concurrent submission
                return Error(Errors.already_reviewed())

        result = await guarded_result("reviews.insert", _insert)
        if isinstance(result, Ok):
            logger.info(
                "Review %s created by %s for product %s (approved=%s)",
                result.value.id,
                caller.id,
                product_id,
                draft.is_approved,
            )
        return result

    async def update(
        self,
        caller: Identity | None,
        review_id: ReviewId,
        patch: ReviewPatch,
    ) -> Result[Review, ShopError]:
        """
        Owners may change rating/title/text; admins may also change is_approved.

        Fields the caller may not touch are dropped before the emptiness check.
        """
        if caller is None:
            return Error(Errors.unauthenticated())

        match await self._editable(caller, review_id):
            case Error(err):
                return Error(err)
            case Ok(review):
                pass

        changes = patch.changes(moderator=caller.is_admin)
        for name in ("title", "text"):
            if name in changes:
                changes[name] = _clean(changes[name])
        if not changes:
            return Error(Errors.no_fields_to_update())
        if "rating" in changes and not _valid_rating(changes["rating"]):
            return Error(Errors.invalid_rating(changes["rating"]))

        match await guarded("reviews.update", lambda: self.repository.update(review.id, changes)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("review", review_id))
            case Ok(updated):
                if "is_approved" in changes:
                    logger.info("Review %s moderated by %s: approved=%s", review_id, caller.id, updated.is_approved)
                return Ok(updated)

    async def delete(self, caller: Identity | None, review_id: ReviewId) -> Result[ReviewId, ShopError]:
        match await self._editable(caller, review_id):
            case Error(err):
                return Error(err)
            case Ok(_):
                pass

        match await guarded("reviews.delete", lambda: self.repository.delete(review_id)):
            case Error(err):
                return Error(err)
            case Ok(False):
                return Error(Errors.not_found("review", review_id))
            case Ok(_):
                return Ok(review_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # Votes
    # ═══════════════════════════════════════════════════════════════════════════

    async def vote(self, caller: Identity | None, review_id: ReviewId, is_helpful: bool) -> Result[Review, ShopError]:
        """Cast or replace the caller's vote; switching sides moves one count across."""
        if caller is None:
            return Error(Errors.unauthenticated())

        match await guarded("reviews.vote", lambda: self.repository.vote(review_id, caller.id, is_helpful)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("review", review_id))
            case Ok(review):
                return Ok(review)

    async def unvote(self, caller: Identity | None, review_id: ReviewId) -> Result[Review, ShopError]:
        if caller is None:
            return Error(Errors.unauthenticated())

        match await guarded("reviews.unvote", lambda: self.repository.unvote(review_id, caller.id)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("review", review_id))
            case Ok(review):
                return Ok(review)

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    async def statistics(self, product_id: ProductId) -> Result[ReviewStatistics, ShopError]:
        return await guarded("reviews.rating_counts", lambda: self.repository.rating_counts(product_id)).map(
            compute_statistics
        )

    async def list(
        self,
        product_id: ProductId,
        *,
        sort: ReviewSort = ReviewSort.NEWEST,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        viewer: Identity | None = None,
    ) -> Result[ReviewPage, ShopError]:
        """One page of a product's reviews, plus its statistics."""
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            return Error(Errors.validation(f"page must be >= 1 and limit within 1..{MAX_PAGE_SIZE}"))

        if viewer is not None and viewer.is_admin:
            where = ReviewFilter(product_id=product_id, approved=None)
        else:
            where = ReviewFilter(
                product_id=product_id,
                approved=True,
                also_user_id=viewer.id if viewer is not None else None,
            )

        offset = (page - 1) * limit
        match await guarded("reviews.list", lambda: self.repository.list(where, sort, offset, limit)):
            case Error(err):
                return Error(err)
            case Ok((reviews, total)):
                pass

        match await self.statistics(product_id):
            case Error(err):
                return Error(err)
            case Ok(stats):
                return Ok(
                    ReviewPage(
                        reviews=tuple(reviews),
                        pagination=Pagination(page=page, limit=limit, total=total),
                        statistics=stats,
                    )
                )

    async def moderation_list(
        self,
        caller: Identity | None,
        *,
        status: ModerationStatus = ModerationStatus.ALL,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Result[ReviewPage, ShopError]:
        """Admin queue across all products, newest first."""
        if caller is None:
            return Error(Errors.unauthenticated())
        if not caller.is_admin:
            return Error(Errors.forbidden("Admin access required"))
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            return Error(Errors.validation(f"page must be >= 1 and limit within 1..{MAX_PAGE_SIZE}"))

        approved = {
            ModerationStatus.ALL: None,
            ModerationStatus.PENDING: False,
            ModerationStatus.APPROVED: True,
        }[status]
        where = ReviewFilter(product_id=None, approved=approved)
        offset = (page - 1) * limit

        match await guarded("reviews.list", lambda: self.repository.list(where, ReviewSort.NEWEST, offset, limit)):
            case Error(err):
                return Error(err)
            case Ok((reviews, total)):
                return Ok(
                    ReviewPage(
                        reviews=tuple(reviews),
                        pagination=Pagination(page=page, limit=limit, total=total),
                    )
                )


__all__ = ("Reviews", "compute_statistics", "MAX_PAGE_SIZE", "DEFAULT_PAGE_SIZE")
