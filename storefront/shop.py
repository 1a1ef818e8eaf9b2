"""
Shop — the composition root.

    shop = await Shop.open(Settings.from_env())       # SQLAlchemy backends
    shop = Shop.in_memory()                           # tests, demos

    cart = shop.cart_for(user)
    checkout = shop.checkouts.for_user(user)

Session-scoped state (carts, checkouts) is handed out per identity; nothing in
the feature packages reaches for a global.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncEngine

from storefront import idempotency as I
from storefront._types import UserId
from storefront.cart import Cart, CartBackend, LocalCart, SQLAlchemyCart
from storefront.catalog import Catalog, MemoryCatalog, SQLAlchemyCatalog
from storefront.checkout import Checkout, CheckoutSessions
from storefront.config import Settings
from storefront.db import IdempotencyKeyTable, create_database
from storefront.identity import Identity, TokenVerifier
from storefront.notify import BackgroundDispatcher, notifier_for
from storefront.orders import IdempotentOrders, MemoryOrders, OrderBook, Orders, SQLAlchemyOrders
from storefront.payments import default_confirmers
from storefront.reviews import MemoryReviewRepository, Reviews, SQLAlchemyReviewRepository

logger = logging.getLogger(__name__)


@dataclass
class Shop:
    settings: Settings
    verifier: TokenVerifier
    catalog: Catalog
    order_book: OrderBook
    reviews: Reviews
    dispatcher: BackgroundDispatcher
    carts: Callable[[UserId], CartBackend]
    keyed_orders: IdempotentOrders
    engine: AsyncEngine | None = None
    orders: Orders = field(init=False)
    checkouts: CheckoutSessions = field(init=False)

    def __post_init__(self) -> None:
        self.orders = Orders(self.order_book)
        self.checkouts = CheckoutSessions(self.new_checkout)

    def cart_for(self, user: Identity) -> Cart:
        return Cart(self.carts(user.id), self.catalog)

    def new_checkout(self, user: Identity) -> Checkout:
        return Checkout(
            self.cart_for(user),
            self.order_book,
            self.dispatcher,
            user,
            confirmers=default_confirmers(self.settings.mailing_address, self.settings.bank),
            order_timeout=self.settings.order_timeout.total_seconds(),
            keyed_orders=self.keyed_orders,
        )

    @classmethod
    async def open(cls, settings: Settings) -> Shop:
        session_factory, engine = await create_database(settings.database_url)
        book = SQLAlchemyOrders(session_factory)
        store: I.SQLAlchemyStore[int] = I.SQLAlchemyStore(
            session_factory, model=IdempotencyKeyTable, encode=str, decode=int
        )
        logger.info("Storefront opened on %s", engine.url.render_as_string(hide_password=True))
        return cls(
            settings=settings,
            verifier=TokenVerifier(settings.jwt_secret, settings.token_ttl),
            catalog=SQLAlchemyCatalog(session_factory),
            order_book=book,
            reviews=Reviews(
                SQLAlchemyReviewRepository(session_factory),
                purchases=book,
                auto_approve=settings.review_auto_approve,
            ),
            dispatcher=BackgroundDispatcher(notifier_for(settings)),
            carts=lambda user_id: SQLAlchemyCart(session_factory, user_id),
            keyed_orders=IdempotentOrders(
                book, store=store, policy=I.Policy().with_ttl(delta=settings.idempotency_ttl)
            ),
            engine=engine,
        )

    @classmethod
    def in_memory(cls, settings: Settings | None = None, catalog: MemoryCatalog | None = None) -> Shop:
        settings = settings or Settings()
        catalog = catalog if catalog is not None else MemoryCatalog()
        book = MemoryOrders(catalog)
        carts: dict[UserId, LocalCart] = {}
        return cls(
            settings=settings,
            verifier=TokenVerifier(settings.jwt_secret, settings.token_ttl),
            catalog=catalog,
            order_book=book,
            reviews=Reviews(MemoryReviewRepository(), purchases=book, auto_approve=settings.review_auto_approve),
            dispatcher=BackgroundDispatcher(notifier_for(settings)),
            carts=lambda user_id: carts.setdefault(user_id, LocalCart()),
            keyed_orders=IdempotentOrders(
                book, store=I.MemoryStore(), policy=I.Policy().with_ttl(delta=settings.idempotency_ttl)
            ),
        )

    async def close(self) -> None:
        await self.dispatcher.drain()
        if self.engine is not None:
            await self.engine.dispose()


__all__ = ("Shop",)
