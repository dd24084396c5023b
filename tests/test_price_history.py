"""Price-history flush hook, exercised on a synchronous in-memory SQLite session."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from backoffice.models import Category, PriceHistory, Product, Profile
from backoffice.services.price_history import get_price_history, install_price_history_recorder
from backoffice.stores.postgres import Base
from tests.fakes import FakeCatalogStore, make_product


@pytest.fixture
def session():
    install_price_history_recorder()
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add(Category(id=1, name="Ferramentas", slug="ferramentas"))
        session.add(Profile(id="admin-1", email="admin@loja.test", full_name="Admin"))
        session.add(Product(id="p1", sku="A1", name="Serra", slug="serra", price=10.0, category_id=1))
        session.commit()
        yield session
    engine.dispose()


def _history(session: Session) -> list[PriceHistory]:
    return list(session.execute(select(PriceHistory)).scalars().all())


def test_price_change_is_recorded_with_actor(session: Session):
    session.info["actor_id"] = "admin-1"
    product = session.get(Product, "p1")
    product.price = 12.5
    session.commit()

    (entry,) = _history(session)
    assert entry.product_id == "p1"
    assert entry.old_price == 10.0
    assert entry.new_price == 12.5
    assert entry.old_sale_price is None
    assert entry.new_sale_price is None
    assert entry.changed_by == "admin-1"


def test_sale_price_change_is_recorded(session: Session):
    product = session.get(Product, "p1")
    product.sale_price = 8.0
    session.commit()

    (entry,) = _history(session)
    assert entry.old_price == 10.0
    assert entry.new_price == 10.0
    assert entry.new_sale_price == 8.0
    assert entry.changed_by is None


def test_other_field_changes_are_not_recorded(session: Session):
    product = session.get(Product, "p1")
    product.name = "Serra circular"
    product.price = 10.0
    session.commit()

    assert _history(session) == []


def test_recorder_install_is_idempotent():
    install_price_history_recorder()
    install_price_history_recorder()


@pytest.mark.asyncio
async def test_get_price_history_shapes_entries():
    store = FakeCatalogStore()
    product = make_product(sku="A1", name="Serra", slug="serra", price=10)
    now = datetime.now(timezone.utc)
    profile = Profile(id="admin-1", email="admin@loja.test", full_name="Admin")
    store.price_history = [
        (PriceHistory(id="h1", product_id=product.id, old_price=10, new_price=12, changed_at=now - timedelta(days=1)), None),
        (PriceHistory(id="h2", product_id=product.id, old_price=12, new_price=15, changed_by="admin-1", changed_at=now), profile),
    ]

    entries = await get_price_history(store, product.id, limit=50)

    assert [e["id"] for e in entries] == ["h2", "h1"]
    assert entries[0]["profile"] == {"full_name": "Admin", "email": "admin@loja.test"}
    assert entries[1]["profile"] is None
