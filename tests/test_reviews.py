import asyncio
import random

from kungfu import Error, Ok
from sqlalchemy.exc import IntegrityError

from storefront._errors import ErrorKind
from storefront.db import create_database
from storefront.identity import Identity, Role
from storefront.reviews import (
    MemoryReviewRepository,
    ModerationStatus,
    ReviewPatch,
    Reviews,
    ReviewSort,
    SQLAlchemyReviewRepository,
    compute_statistics,
)


class Purchases:
    def __init__(self, *pairs: tuple[str, int]) -> None:
        self.pairs = set(pairs)

    async def has_purchased(self, user_id: str, product_id: int) -> bool:
        return (user_id, product_id) in self.pairs


class BrokenPurchases:
    async def has_purchased(self, user_id: str, product_id: int) -> bool:
        raise ConnectionError("orders database unavailable")


def _user(n: int) -> Identity:
    return Identity(id=f"u-{n}", email=f"user{n}@example.com")


def _service(purchases=None, *, auto_approve: bool = True) -> Reviews:
    return Reviews(MemoryReviewRepository(), purchases or Purchases(), auto_approve=auto_approve)


# ═══════════════════════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════════════════════


def test_one_review_per_user_and_product(alice: Identity) -> None:
    async def scenario():
        reviews = _service()
        first = await reviews.create(alice, 1, 5, "Great")
        assert isinstance(first, Ok)

        second = await reviews.create(alice, 1, 3, "Changed my mind")
        assert isinstance(second, Error)
        assert second.error.code == "already_reviewed"
        assert second.error.kind is ErrorKind.CONFLICT

        # A different product is fine
        assert isinstance(await reviews.create(alice, 2, 4), Ok)

    asyncio.run(scenario())


def test_concurrent_creates_leave_one_review(alice: Identity) -> None:
    async def scenario():
        reviews = _service()
        results = await asyncio.gather(*(reviews.create(alice, 1, 4) for _ in range(5)))
        assert sum(isinstance(r, Ok) for r in results) == 1
        assert all(r.error.code == "already_reviewed" for r in results if isinstance(r, Error))
        page = (await reviews.list(1)).unwrap()
        assert page.pagination.total == 1

    asyncio.run(scenario())


def test_rating_must_be_one_to_five(alice: Identity) -> None:
    async def scenario():
        reviews = _service()
        for rating in (0, 6, -1):
            result = await reviews.create(alice, 1, rating)
            assert isinstance(result, Error)
            assert result.error.code == "invalid_rating"
        assert isinstance(await reviews.create(None, 1, 5), Error)

    asyncio.run(scenario())


def test_verified_purchase_flag(alice: Identity, bob: Identity) -> None:
    async def scenario():
        reviews = _service(Purchases(("u-alice", 1)))
        assert (await reviews.create(alice, 1, 5)).unwrap().is_verified_purchase
        assert not (await reviews.create(bob, 1, 5)).unwrap().is_verified_purchase

    asyncio.run(scenario())


def test_purchase_check_failure_marks_unverified(alice: Identity) -> None:
    async def scenario():
        reviews = _service(BrokenPurchases())
        review = (await reviews.create(alice, 1, 4, "  Solid  ", "   ")).unwrap()
        assert review.is_verified_purchase is False
        assert review.title == "Solid"
        assert review.text is None

    asyncio.run(scenario())


# ═══════════════════════════════════════════════════════════════════════════════
# Update / delete
# ═══════════════════════════════════════════════════════════════════════════════


def test_only_owner_or_admin_may_change_a_review(alice: Identity, bob: Identity, admin: Identity) -> None:
    async def scenario():
        reviews = _service(auto_approve=False)
        review = (await reviews.create(alice, 1, 3)).unwrap()

        denied = await reviews.update(bob, review.id, ReviewPatch(rating=1))
        assert isinstance(denied, Error) and denied.error.kind is ErrorKind.FORBIDDEN

        edited = (await reviews.update(alice, review.id, ReviewPatch(rating=4, is_approved=True))).unwrap()
        # Owners cannot approve their own review
        assert edited.rating == 4
        assert edited.is_approved is False

        approved = (await reviews.update(admin, review.id, ReviewPatch(is_approved=True))).unwrap()
        assert approved.is_approved is True

        empty = await reviews.update(alice, review.id, ReviewPatch(is_approved=True))
        assert isinstance(empty, Error) and empty.error.code == "no_fields_to_update"

        bad = await reviews.update(alice, review.id, ReviewPatch(rating=9))
        assert isinstance(bad, Error) and bad.error.code == "invalid_rating"

        assert isinstance(await reviews.delete(bob, review.id), Error)
        assert (await reviews.delete(alice, review.id)).unwrap() == review.id
        gone = await reviews.delete(alice, review.id)
        assert isinstance(gone, Error) and gone.error.kind is ErrorKind.NOT_FOUND

    asyncio.run(scenario())


# ═══════════════════════════════════════════════════════════════════════════════
# Votes
# ═══════════════════════════════════════════════════════════════════════════════


def test_switching_vote_moves_one_count(alice: Identity, bob: Identity) -> None:
    async def scenario():
        reviews = _service()
        review = (await reviews.create(alice, 1, 5)).unwrap()

        up = (await reviews.vote(bob, review.id, True)).unwrap()
        assert (up.helpful_count, up.not_helpful_count) == (1, 0)

        again = (await reviews.vote(bob, review.id, True)).unwrap()
        assert (again.helpful_count, again.not_helpful_count) == (1, 0)

        down = (await reviews.vote(bob, review.id, False)).unwrap()
        assert (down.helpful_count, down.not_helpful_count) == (0, 1)

        cleared = (await reviews.unvote(bob, review.id)).unwrap()
        assert (cleared.helpful_count, cleared.not_helpful_count) == (0, 0)

        missing = await reviews.vote(bob, 999, True)
        assert isinstance(missing, Error) and missing.error.kind is ErrorKind.NOT_FOUND

    asyncio.run(scenario())


def test_counters_match_vote_rows_after_random_votes(alice: Identity) -> None:
    rng = random.Random(7)

    async def scenario():
        repository = MemoryReviewRepository()
        reviews = Reviews(repository, Purchases(), auto_approve=True)
        review = (await reviews.create(alice, 1, 5)).unwrap()
        voters = [_user(n) for n in range(12)]

        for _ in range(200):
            voter = rng.choice(voters)
            if rng.random() < 0.2:
                await reviews.unvote(voter, review.id)
            else:
                await reviews.vote(voter, review.id, rng.random() < 0.5)

        choices = [await repository.get_vote(review.id, v.id) for v in voters]
        helpful = sum(1 for c in choices if c is not None and c.is_helpful)
        not_helpful = sum(1 for c in choices if c is not None and not c.is_helpful)

        current = await repository.get(review.id)
        assert current is not None
        assert current.helpful_count == helpful
        assert current.not_helpful_count == not_helpful

    asyncio.run(scenario())


def test_concurrent_votes_keep_counters_exact(alice: Identity) -> None:
    async def scenario():
        reviews = _service()
        review = (await reviews.create(alice, 1, 5)).unwrap()
        voters = [_user(n) for n in range(20)]
        await asyncio.gather(*(reviews.vote(v, review.id, n % 2 == 0) for n, v in enumerate(voters)))
        current = (await reviews.list(1)).unwrap().reviews[0]
        assert (current.helpful_count, current.not_helpful_count) == (10, 10)

    asyncio.run(scenario())


# ═══════════════════════════════════════════════════════════════════════════════
# Statistics
# ═══════════════════════════════════════════════════════════════════════════════


def test_statistics_round_half_up_to_one_decimal() -> None:
    # (5 + 5 + 4 + 1) / 4 = 3.75
    stats = compute_statistics({5: 2, 4: 1, 1: 1})
    assert stats.average_rating == 3.8
    assert stats.total_reviews == 4
    assert stats.rating_distribution == {1: 1, 2: 0, 3: 0, 4: 1, 5: 2}

    # (4 + 4 + 5) / 3 = 4.333...
    assert compute_statistics({4: 2, 5: 1}).average_rating == 4.3


def test_statistics_of_no_reviews() -> None:
    stats = compute_statistics({})
    assert stats.average_rating == 0.0
    assert stats.total_reviews == 0
    assert set(stats.rating_distribution) == {1, 2, 3, 4, 5}


def test_statistics_count_approved_reviews_only(admin: Identity) -> None:
    async def scenario():
        reviews = _service(auto_approve=False)
        for n, rating in enumerate([5, 4, 1]):
            await reviews.create(_user(n), 1, rating)

        assert (await reviews.statistics(1)).unwrap().total_reviews == 0

        pending = (await reviews.moderation_list(admin, status=ModerationStatus.PENDING)).unwrap()
        for review in pending.reviews[:2]:
            await reviews.update(admin, review.id, ReviewPatch(is_approved=True))

        stats = (await reviews.statistics(1)).unwrap()
        assert stats.total_reviews == 2
        assert sum(stats.rating_distribution.values()) == 2

    asyncio.run(scenario())


def test_distribution_sums_to_total_after_random_edits(admin: Identity) -> None:
    rng = random.Random(99)

    async def scenario():
        reviews = _service(auto_approve=False)
        ids = []
        for n in range(15):
            ids.append((await reviews.create(_user(n), 1, rng.randint(1, 5))).unwrap().id)
        for _ in range(40):
            review_id = rng.choice(ids)
            match rng.randint(0, 2):
                case 0:
                    await reviews.update(admin, review_id, ReviewPatch(is_approved=rng.random() < 0.7))
                case 1:
                    await reviews.update(admin, review_id, ReviewPatch(rating=rng.randint(1, 5)))
                case _:
                    await reviews.delete(admin, review_id)

            stats = (await reviews.statistics(1)).unwrap()
            assert sum(stats.rating_distribution.values()) == stats.total_reviews
            assert 0.0 <= stats.average_rating <= 5.0

    asyncio.run(scenario())


# ═══════════════════════════════════════════════════════════════════════════════
# Listing and moderation
# ═══════════════════════════════════════════════════════════════════════════════


def test_listing_shows_approved_plus_own(alice: Identity, bob: Identity, admin: Identity) -> None:
    async def scenario():
        reviews = _service(auto_approve=False)
        mine = (await reviews.create(alice, 1, 2)).unwrap()
        theirs = (await reviews.create(bob, 1, 5)).unwrap()
        await reviews.update(admin, theirs.id, ReviewPatch(is_approved=True))

        anonymous = (await reviews.list(1)).unwrap()
        assert [r.id for r in anonymous.reviews] == [theirs.id]

        own = (await reviews.list(1, viewer=alice)).unwrap()
        assert {r.id for r in own.reviews} == {mine.id, theirs.id}

        everything = (await reviews.list(1, viewer=admin)).unwrap()
        assert everything.pagination.total == 2
        # Statistics ignore the pending review even for its author
        assert own.statistics is not None and own.statistics.total_reviews == 1

    asyncio.run(scenario())


def test_sorting_and_pagination(bob: Identity) -> None:
    async def scenario():
        reviews = _service()
        ratings = [3, 5, 1, 4]
        created = [(await reviews.create(_user(n), 1, r)).unwrap() for n, r in enumerate(ratings)]
        # Second review gets the most helpful votes, the fourth one vote
        for n in range(3):
            await reviews.vote(_user(100 + n), created[1].id, True)
        await reviews.vote(bob, created[3].id, True)

        highest = (await reviews.list(1, sort=ReviewSort.HIGHEST_RATING)).unwrap()
        assert [r.rating for r in highest.reviews] == [5, 4, 3, 1]

        lowest = (await reviews.list(1, sort=ReviewSort.LOWEST_RATING)).unwrap()
        assert [r.rating for r in lowest.reviews] == [1, 3, 4, 5]

        helpful = (await reviews.list(1, sort=ReviewSort.MOST_HELPFUL)).unwrap()
        assert [r.id for r in helpful.reviews[:2]] == [created[1].id, created[3].id]

        oldest = (await reviews.list(1, sort=ReviewSort.OLDEST)).unwrap()
        assert [r.id for r in oldest.reviews] == [r.id for r in created]

        page = (await reviews.list(1, sort=ReviewSort.OLDEST, page=2, limit=3)).unwrap()
        assert [r.id for r in page.reviews] == [created[3].id]
        assert page.pagination.pages == 2

        bad = await reviews.list(1, limit=0)
        assert isinstance(bad, Error) and bad.error.kind is ErrorKind.VALIDATION

    asyncio.run(scenario())


def test_moderation_list_requires_admin(alice: Identity, admin: Identity) -> None:
    async def scenario():
        reviews = _service(auto_approve=False)
        await reviews.create(alice, 1, 4)
        await reviews.create(alice, 2, 3)

        denied = await reviews.moderation_list(alice)
        assert isinstance(denied, Error) and denied.error.kind is ErrorKind.FORBIDDEN

        pending = (await reviews.moderation_list(admin, status=ModerationStatus.PENDING)).unwrap()
        assert pending.pagination.total == 2
        approved = (await reviews.moderation_list(admin, status=ModerationStatus.APPROVED)).unwrap()
        assert approved.reviews == ()

    asyncio.run(scenario())


# ═══════════════════════════════════════════════════════════════════════════════
# SQLAlchemy repository
# ═══════════════════════════════════════════════════════════════════════════════


def test_sqlalchemy_repository(alice: Identity, bob: Identity) -> None:
    async def scenario():
        session_factory, engine = await create_database()
        try:
            reviews = Reviews(
                SQLAlchemyReviewRepository(session_factory), Purchases(("u-alice", 1)), auto_approve=True
            )
            review = (await reviews.create(alice, 1, 5, "Fits")).unwrap()
            assert review.is_verified_purchase

            duplicate = await reviews.create(alice, 1, 4)
            assert isinstance(duplicate, Error) and duplicate.error.code == "already_reviewed"

            await reviews.create(bob, 1, 2)

            voted = (await reviews.vote(bob, review.id, True)).unwrap()
            assert voted.helpful_count == 1
            switched = (await reviews.vote(bob, review.id, False)).unwrap()
            assert (switched.helpful_count, switched.not_helpful_count) == (0, 1)

            stats = (await reviews.statistics(1)).unwrap()
            assert stats.total_reviews == 2
            assert stats.average_rating == 3.5

            page = (await reviews.list(1, sort=ReviewSort.LOWEST_RATING)).unwrap()
            assert [r.rating for r in page.reviews] == [2, 5]

            assert (await reviews.delete(alice, review.id)).unwrap() == review.id
            assert (await reviews.statistics(1)).unwrap().total_reviews == 1
        finally:
            await engine.dispose()

    asyncio.run(scenario())


class FirstVoteLoses(SQLAlchemyReviewRepository):
    """Another request by the same user commits an identical vote just before this one does."""

    def __init__(self, session_factory) -> None:
        super().__init__(session_factory)
        self.attempts = 0

    async def _vote(self, review_id, user_id, is_helpful):
        self.attempts += 1
        if self.attempts == 1:
            await super()._vote(review_id, user_id, is_helpful)
            raise IntegrityError("INSERT INTO review_votes", {}, Exception("UNIQUE constraint failed"))
        return await super()._vote(review_id, user_id, is_helpful)


def test_sql_vote_lost_to_a_concurrent_insert_is_retried(alice: Identity, bob: Identity) -> None:
    async def scenario():
        session_factory, engine = await create_database()
        try:
            repository = FirstVoteLoses(session_factory)
            reviews = Reviews(repository, Purchases(), auto_approve=True)
            review = (await reviews.create(alice, 1, 4)).unwrap()

            voted = (await reviews.vote(bob, review.id, True)).unwrap()

            assert repository.attempts == 2
            assert (voted.helpful_count, voted.not_helpful_count) == (1, 0)
        finally:
            await engine.dispose()

    asyncio.run(scenario())


def test_sql_concurrent_votes_by_one_user(tmp_path, alice: Identity, bob: Identity) -> None:
    async def scenario():
        session_factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
        try:
            reviews = Reviews(SQLAlchemyReviewRepository(session_factory), Purchases(), auto_approve=True)
            review = (await reviews.create(alice, 1, 4)).unwrap()

            results = await asyncio.gather(*(reviews.vote(bob, review.id, True) for _ in range(2)))

            assert all(isinstance(r, Ok) for r in results)
            final = (await reviews.list(1)).unwrap().reviews[0]
            assert (final.helpful_count, final.not_helpful_count) == (1, 0)
        finally:
            await engine.dispose()

    asyncio.run(scenario())


def test_admin_role_is_checked_not_email() -> None:
    impostor = Identity(id="u-x", email="admin@example.com", role=Role.CUSTOMER)
    assert not impostor.is_admin
