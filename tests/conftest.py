from decimal import Decimal

import pytest

from storefront.catalog import MemoryCatalog, Product
from storefront.identity import Identity, Role


@pytest.fixture
def alice() -> Identity:
    return Identity(id="u-alice", email="alice@example.com")


@pytest.fixture
def bob() -> Identity:
    return Identity(id="u-bob", email="bob@example.com")


@pytest.fixture
def admin() -> Identity:
    return Identity(id="u-admin", email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def catalog() -> MemoryCatalog:
    """
    1: Brake pad set   64.99  stock 5
    2: Chain kit       64.99  stock 10
    3: Spark plug       4.50  stock 0
    """
    c = MemoryCatalog()
    c.add("Brake pad set", Decimal("64.99"), 5)
    c.add("Chain kit", Decimal("64.99"), 10)
    c.add("Spark plug", Decimal("4.50"), 0)
    return c


@pytest.fixture
def brake_pads(catalog: MemoryCatalog) -> Product:
    product = catalog.peek(1)
    assert product is not None
    return product
