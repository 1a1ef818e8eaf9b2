"""
Reviews in SQL — reviews and review_votes tables.

The (user_id, product_id) unique constraint is the final word on duplicates;
a vote and its counter adjustment commit in one transaction.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import ColumnElement, Select, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import ProductId, ReviewId, UserId, utcnow
from storefront.db import ReviewTable, ReviewVoteTable
from storefront.reviews._types import (
    DuplicateReview,
    HelpfulnessVote,
    NewReview,
    Review,
    ReviewFilter,
    ReviewSort,
)

logger = logging.getLogger(__name__)


def _to_review(row: ReviewTable) -> Review:
    return Review(
        id=row.id,
        product_id=row.product_id,
        user_id=row.user_id,
        rating=row.rating,
        title=row.title,
        text=row.text,
        is_verified_purchase=row.is_verified_purchase,
        is_approved=row.is_approved,
        helpful_count=row.helpful_count,
        not_helpful_count=row.not_helpful_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


_RECENT_FIRST = (ReviewTable.created_at.desc(), ReviewTable.id.desc())

_ORDER: dict[ReviewSort, tuple[Any, ...]] = {
    ReviewSort.NEWEST: _RECENT_FIRST,
    ReviewSort.OLDEST: (ReviewTable.created_at.asc(), ReviewTable.id.asc()),
    ReviewSort.HIGHEST_RATING: (ReviewTable.rating.desc(), *_RECENT_FIRST),
    ReviewSort.LOWEST_RATING: (ReviewTable.rating.asc(), *_RECENT_FIRST),
    ReviewSort.MOST_HELPFUL: (ReviewTable.helpful_count.desc(), *_RECENT_FIRST),
}


def _conditions(where: ReviewFilter) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if where.product_id is not None:
        conditions.append(ReviewTable.product_id == where.product_id)
    if where.approved is not None:
        approved = ReviewTable.is_approved.is_(where.approved)
        if where.also_user_id is not None:
            conditions.append(or_(approved, ReviewTable.user_id == where.also_user_id))
        else:
            conditions.append(approved)
    return conditions


class SQLAlchemyReviewRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, review_id: ReviewId) -> Review | None:
        async with self._session_factory() as session:
            row = await session.get(ReviewTable, review_id)
            return _to_review(row) if row is not None else None

    async def find(self, user_id: UserId, product_id: ProductId) -> Review | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ReviewTable).where(
                    ReviewTable.user_id == user_id,
                    ReviewTable.product_id == product_id,
                )
            )
            row = result.scalar_one_or_none()
            return _to_review(row) if row is not None else None

    async def insert(self, draft: NewReview) -> Review:
        now = utcnow()
        async with self._session_factory() as session:
            row = ReviewTable(
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
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateReview(f"{draft.user_id}/{draft.product_id}") from e
            return _to_review(row)

    async def update(self, review_id: ReviewId, changes: dict[str, Any]) -> Review | None:
        async with self._session_factory() as session:
            row = await session.get(ReviewTable, review_id)
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, value)
            row.updated_at = utcnow()
            await session.commit()
            return _to_review(row)

    async def delete(self, review_id: ReviewId) -> bool:
        async with self._session_factory() as session:
            # SQLite does not enforce ON DELETE CASCADE unless asked to
            await session.execute(delete(ReviewVoteTable).where(ReviewVoteTable.review_id == review_id))
            result = await session.execute(delete(ReviewTable).where(ReviewTable.id == review_id))
            await session.commit()
            return bool(result.rowcount)  # type: ignore[attr-defined]

    async def list(
        self,
        where: ReviewFilter,
        sort: ReviewSort,
        offset: int,
        limit: int,
    ) -> tuple[list[Review], int]:
        conditions = _conditions(where)
        query: Select[tuple[ReviewTable]] = (
            select(ReviewTable).where(*conditions).order_by(*_ORDER[sort]).offset(offset).limit(limit)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(query)).scalars().all()
            total = await session.scalar(select(func.count()).select_from(ReviewTable).where(*conditions))
            return [_to_review(row) for row in rows], int(total or 0)

    async def rating_counts(self, product_id: ProductId) -> dict[int, int]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ReviewTable.rating, func.count())
                .where(ReviewTable.product_id == product_id, ReviewTable.is_approved.is_(True))
                .group_by(ReviewTable.rating)
            )
            return {int(rating): int(count) for rating, count in result.all()}

    async def get_vote(self, review_id: ReviewId, user_id: UserId) -> HelpfulnessVote | None:
        async with self._session_factory() as session:
            row = await session.get(ReviewVoteTable, (review_id, user_id))
            return HelpfulnessVote(review_id, user_id, row.is_helpful) if row is not None else None

    async def vote(self, review_id: ReviewId, user_id: UserId, is_helpful: bool) -> Review | None:
        try:
            return await self._vote(review_id, user_id, is_helpful)
        except IntegrityError:
            # A concurrent first vote by the same user inserted the row first
            logger.info("Vote race on review %s by %s, retrying", review_id, user_id)
            return await self._vote(review_id, user_id, is_helpful)

    async def _vote(self, review_id: ReviewId, user_id: UserId, is_helpful: bool) -> Review | None:
        async with self._session_factory() as session:
            review = await session.get(ReviewTable, review_id)
            if review is None:
                return None

            existing = await session.get(ReviewVoteTable, (review_id, user_id))
            if existing is not None and existing.is_helpful == is_helpful:
                return _to_review(review)

            helpful_delta = 1 if is_helpful else 0
            not_helpful_delta = 0 if is_helpful else 1
            if existing is None:
                session.add(
                    ReviewVoteTable(
                        review_id=review_id,
                        user_id=user_id,
                        is_helpful=is_helpful,
                        created_at=utcnow(),
                    )
                )
            else:
                # Switching sides: take the old vote back out
                helpful_delta -= 1 if existing.is_helpful else 0
                not_helpful_delta -= 0 if existing.is_helpful else 1
                existing.is_helpful = is_helpful

            try:
                await session.execute(
                    update(ReviewTable)
                    .where(ReviewTable.id == review_id)
                    .values(
                        helpful_count=ReviewTable.helpful_count + helpful_delta,
                        not_helpful_count=ReviewTable.not_helpful_count + not_helpful_delta,
                    )
                )
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise
            await session.refresh(review)
            return _to_review(review)

    async def unvote(self, review_id: ReviewId, user_id: UserId) -> Review | None:
        async with self._session_factory() as session:
            review = await session.get(ReviewTable, review_id)
            if review is None:
                return None

            existing = await session.get(ReviewVoteTable, (review_id, user_id))
            if existing is None:
                return _to_review(review)

            column = ReviewTable.helpful_count if existing.is_helpful else ReviewTable.not_helpful_count
            await session.delete(existing)
            await session.execute(
                update(ReviewTable).where(ReviewTable.id == review_id).values({column: column - 1})
            )
            await session.commit()
            await session.refresh(review)
            return _to_review(review)


__all__ = ("SQLAlchemyReviewRepository",)
