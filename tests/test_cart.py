import asyncio
import random
from decimal import Decimal

from kungfu import Error, Ok

from storefront._errors import ErrorKind
from storefront.cart import Cart, LocalCart, SQLAlchemyCart
from storefront.catalog import MemoryCatalog, SQLAlchemyCatalog
from storefront.db import create_database


def test_add_creates_line_with_snapshot_price(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        view = (await cart.add(1, 2)).unwrap()
        assert len(view.items) == 1
        line = view.items[0]
        assert line.product_id == 1
        assert line.quantity == 2
        assert line.unit_price == Decimal("64.99")
        assert line.stock_quantity == 5
        assert view.total == Decimal("129.98")

    asyncio.run(scenario())


def test_add_existing_product_increments_instead_of_duplicating(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        await cart.add(2, 1)
        view = (await cart.add(2, 3)).unwrap()
        assert len(view.items) == 1
        assert view.items[0].quantity == 4

    asyncio.run(scenario())


def test_add_out_of_stock_product(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        match await cart.add(3, 1):
            case Error(err):
                assert err.kind is ErrorKind.CONFLICT
                assert err.code == "out_of_stock"
            case Ok(_):
                raise AssertionError("out of stock product was added")
        assert (await cart.view()).unwrap().is_empty

    asyncio.run(scenario())


def test_add_checks_combined_quantity_against_stock(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        await cart.add(1, 4)
        result = await cart.add(1, 2)
        assert isinstance(result, Error)
        assert result.error.code == "insufficient_stock"
        assert "4 already in cart" in result.error.message
        assert (await cart.view()).unwrap().items[0].quantity == 4

    asyncio.run(scenario())


def test_add_rejects_bad_quantity_and_unknown_product(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        zero = await cart.add(1, 0)
        assert isinstance(zero, Error) and zero.error.code == "invalid_quantity"
        missing = await cart.add(99, 1)
        assert isinstance(missing, Error) and missing.error.kind is ErrorKind.NOT_FOUND
        assert missing.error.code == "product_not_found"

    asyncio.run(scenario())


def test_update_quantity(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        item_id = (await cart.add(1, 1)).unwrap().items[0].id

        assert (await cart.update_quantity(item_id, 5)).unwrap().items[0].quantity == 5

        too_many = await cart.update_quantity(item_id, 6)
        assert isinstance(too_many, Error) and too_many.error.code == "insufficient_stock"

        too_few = await cart.update_quantity(item_id, 0)
        assert isinstance(too_few, Error) and too_few.error.code == "invalid_quantity"

        gone = await cart.update_quantity(item_id + 100, 1)
        assert isinstance(gone, Error) and gone.error.kind is ErrorKind.NOT_FOUND
        assert gone.error.code == "cart_item_not_found"

        assert (await cart.view()).unwrap().items[0].quantity == 5

    asyncio.run(scenario())


def test_remove_and_clear_are_unconditional(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        await cart.add(1, 1)
        view = (await cart.add(2, 1)).unwrap()

        after_remove = (await cart.remove(view.items[0].id)).unwrap()
        assert [i.product_id for i in after_remove.items] == [2]
        # Removing a line that is already gone is fine
        assert isinstance(await cart.remove(view.items[0].id), Ok)

        assert (await cart.clear()).unwrap().is_empty
        assert (await cart.view()).unwrap().is_empty

    asyncio.run(scenario())


def test_view_refreshes_advisory_stock(catalog: MemoryCatalog) -> None:
    async def scenario():
        cart = Cart(LocalCart(), catalog)
        await cart.add(2, 1)
        catalog.set_stock(2, 3)
        assert (await cart.view()).unwrap().items[0].stock_quantity == 3

    asyncio.run(scenario())


def test_quantity_never_exceeds_stock_under_random_mutations(catalog: MemoryCatalog) -> None:
    rng = random.Random(1234)

    async def scenario():
        cart = Cart(LocalCart(), catalog)
        for _ in range(300):
            # Stock moves underneath the cart, as other orders would move it
            if rng.random() < 0.1:
                catalog.set_stock(rng.choice([1, 2]), rng.randint(0, 12))

            view = (await cart.view()).unwrap()
            if view.items and rng.random() < 0.4:
                item = rng.choice(view.items)
                written = await cart.update_quantity(item.id, rng.randint(-1, 14))
                product_id = item.product_id
            else:
                product_id = rng.choice([1, 2, 3])
                written = await cart.add(product_id, rng.randint(-1, 6))

            if isinstance(written, Ok):
                line = written.value.line_for(product_id)
                stock = catalog.peek(product_id).stock_quantity
                assert line is not None
                assert 1 <= line.quantity <= stock

    asyncio.run(scenario())


# ═══════════════════════════════════════════════════════════════════════════════
# Merge
# ═══════════════════════════════════════════════════════════════════════════════


async def _guest_cart(catalog: MemoryCatalog) -> LocalCart:
    guest = LocalCart()
    guest_cart = Cart(guest, catalog)
    await guest_cart.add(1, 2)
    await guest_cart.add(2, 1)
    # Stocked when the guest added it, sold out by sign-in
    catalog.set_stock(3, 5)
    await guest_cart.add(3, 1)
    catalog.set_stock(3, 0)
    return guest


def test_merge_skips_bad_lines_and_clears_guest_cart(catalog: MemoryCatalog) -> None:
    async def scenario():
        guest = await _guest_cart(catalog)
        server = Cart(LocalCart(), catalog)

        result = (await server.merge(guest)).unwrap()

        assert sorted(result.merged) == [1, 2]
        assert [pid for pid, _ in result.skipped] == [3]
        assert result.skipped[0][1].code == "out_of_stock"
        assert len(result.cart.items) == 2
        assert await guest.items() == []

    asyncio.run(scenario())


def test_repeated_merge_does_not_duplicate_lines(catalog: MemoryCatalog) -> None:
    async def scenario():
        guest = await _guest_cart(catalog)
        server = Cart(LocalCart(), catalog)

        await server.merge(guest)
        again = (await server.merge(guest)).unwrap()

        assert again.merged == ()
        assert {i.product_id: i.quantity for i in again.cart.items} == {1: 2, 2: 1}

    asyncio.run(scenario())


def test_merge_adds_onto_existing_server_lines(catalog: MemoryCatalog) -> None:
    async def scenario():
        server = Cart(LocalCart(), catalog)
        await server.add(1, 4)

        guest = LocalCart()
        await Cart(guest, catalog).add(1, 2)

        result = (await server.merge(guest)).unwrap()
        # 4 + 2 exceeds the 5 in stock: the line is skipped, the server line kept
        assert result.merged == ()
        assert result.cart.items[0].quantity == 4
        assert await guest.items() == []

    asyncio.run(scenario())


def test_local_cart_json_round_trip(catalog: MemoryCatalog) -> None:
    async def scenario():
        guest = LocalCart()
        await Cart(guest, catalog).add(2, 3)
        restored = LocalCart.from_json(guest.to_json())
        [line] = await restored.items()
        assert (line.product_id, line.quantity, line.unit_price) == (2, 3, Decimal("64.99"))
        assert await LocalCart.from_json(None).items() == []

    asyncio.run(scenario())


# ═══════════════════════════════════════════════════════════════════════════════
# SQLAlchemy backend
# ═══════════════════════════════════════════════════════════════════════════════


def test_sqlalchemy_cart_is_scoped_per_owner() -> None:
    async def scenario():
        session_factory, engine = await create_database()
        try:
            catalog = SQLAlchemyCatalog(session_factory)
            pads = await catalog.add("Brake pad set", Decimal("64.99"), 5)
            chain = await catalog.add("Chain kit", Decimal("64.99"), 10)

            alice = Cart(SQLAlchemyCart(session_factory, "u-alice"), catalog)
            bob = Cart(SQLAlchemyCart(session_factory, "u-bob"), catalog)

            await alice.add(pads.id, 1)
            await alice.add(pads.id, 1)
            view = (await alice.add(chain.id, 1)).unwrap()
            assert {i.product_id: i.quantity for i in view.items} == {pads.id: 2, chain.id: 1}
            assert view.total == Decimal("194.97")

            over = await alice.add(pads.id, 4)
            assert isinstance(over, Error) and over.error.code == "insufficient_stock"

            assert (await bob.view()).unwrap().is_empty
            # Bob cannot touch Alice's lines
            bob_update = await bob.update_quantity(view.items[0].id, 1)
            assert isinstance(bob_update, Error)

            guest = LocalCart()
            await Cart(guest, catalog).add(chain.id, 2)
            merged = (await bob.merge(guest)).unwrap()
            assert merged.merged == (chain.id,)

            assert (await alice.clear()).unwrap().is_empty
            assert len((await bob.view()).unwrap().items) == 1
        finally:
            await engine.dispose()

    asyncio.run(scenario())
