"""Tests for the SQLAlchemy-backed record store."""
from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.exceptions import RecordStoreError
from app.models import Category, Item


def test_insert_and_get(store):
    item = store.insert(Item, name="Landing Page", slug="landing-page", tags=["html", "css"], images=[])

    fetched = store.get(Item, item.id)

    assert fetched.name == "Landing Page"
    assert fetched.tags == ["html", "css"]
    assert fetched.images == []
    assert len(item.id) == 36


def test_get_missing_returns_none(store):
    assert store.get(Item, "does-not-exist") is None
    assert store.get(Item, None) is None
    assert store.get_by_slug(Category, "nope") is None


def test_get_by_slug(store, make_item):
    make_item("Portfolio")
    assert store.get_by_slug(Item, "portfolio").name == "Portfolio"


def test_list_filters_and_orders_by_name(store, make_item, make_category):
    category = make_category("Templates")
    make_item("Zeta", category_id=category.id)
    make_item("Alpha", category_id=category.id)
    make_item("Beta")

    assert [i.name for i in store.list(Item)] == ["Alpha", "Beta", "Zeta"]
    assert [i.name for i in store.list(Item, category_id=category.id)] == ["Alpha", "Zeta"]


def test_lists_are_stored_as_json_text(store, db_session, make_item):
    item = make_item("Docs", tags=["a", "b"], images=["/uploads/images/x.png"])

    raw = db_session.execute(
        text("SELECT tags, images FROM items WHERE id = :id"), {"id": item.id}
    ).one()

    assert raw.tags == '["a", "b"]'
    assert raw.images == '["/uploads/images/x.png"]'


def test_malformed_list_decodes_to_empty(store, db_session, make_item):
    item = make_item("Broken")
    db_session.execute(text("UPDATE items SET tags = 'not json', images = '{}' WHERE id = :id"), {"id": item.id})
    db_session.commit()
    db_session.expire_all()

    fetched = store.get(Item, item.id)

    assert fetched.tags == []
    assert fetched.images == []


def test_update_is_partial(store, make_item):
    item = make_item("Old", tags=["keep"])

    updated = store.update(Item, item.id, {"name": "New"})

    assert updated.name == "New"
    assert updated.tags == ["keep"]


def test_update_missing_returns_none(store):
    assert store.update(Item, "missing", {"name": "x"}) is None


def test_update_rejects_unknown_columns(store, make_item):
    item = make_item("Thing")
    with pytest.raises(RecordStoreError):
        store.update(Item, item.id, {"id": "other"})


def test_write_failure_raises_and_leaves_record_unchanged(store, db_session, make_item):
    item = make_item("Stable", images=["/uploads/images/a.png"])
    failure = OperationalError("UPDATE items", {}, Exception("disk I/O error"))

    with patch.object(db_session, "commit", side_effect=failure):
        with pytest.raises(RecordStoreError):
            store.update(Item, item.id, {"name": "Changed", "images": []})

    db_session.expire_all()
    fetched = store.get(Item, item.id)
    assert fetched.name == "Stable"
    assert fetched.images == ["/uploads/images/a.png"]


def test_insert_failure_raises(store, db_session):
    failure = OperationalError("INSERT", {}, Exception("database is locked"))
    with patch.object(db_session, "commit", side_effect=failure):
        with pytest.raises(RecordStoreError):
            store.insert(Category, name="X", slug="x", icon="fa")


def test_delete(store, make_item):
    item = make_item("Gone")

    assert store.delete(Item, item.id) is True
    assert store.get(Item, item.id) is None
    assert store.delete(Item, item.id) is False


def test_delete_category_clears_item_reference(store, make_item, make_category):
    category = make_category("Themes")
    item = make_item("Dark Theme", category_id=category.id)

    assert store.delete(Category, category.id) is True

    fetched = store.get(Item, item.id)
    assert fetched is not None
    assert fetched.category_id is None


def test_slug_taken_excludes_own_record(store, make_item):
    item = make_item("Blog", slug="blog")

    assert store.slug_taken(Item, "blog") is True
    assert store.slug_taken(Item, "blog", exclude_id=item.id) is False
    assert store.slug_taken(Category, "blog") is False


def test_read_failure_recovers_to_empty_schema(store, db_session, engine, make_item):
    make_item("Lost")
    db_session.commit()
    Item.__table__.drop(engine)

    assert store.list(Item) == []
    assert store.get_by_slug(Item, "lost") is None

    # Schema is usable again afterwards
    make_item("Fresh")
    assert [i.name for i in store.list(Item)] == ["Fresh"]
