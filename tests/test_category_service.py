"""Tests for CategoryService create / update / delete orchestration."""
from datetime import timedelta

import pytest

from catalog.config import settings
from catalog.models.category import Category
from catalog.services.exceptions import (
    CategoryNotFound,
    CategoryValidationError,
    CircularReference,
    ConflictOrNotFound,
    DepthExceeded,
    HasChildren,
)


# ── create ──────────────────────

def test_create_root_category(service):
    category = service.create_category({
        "name": "  Electronics ",
        "description": "Gadgets",
        "is_active": True,
        "metadata": {"color": "blue"},
    })

    assert category.id
    assert category.name == "Electronics"
    assert category.handle == "electronics"
    assert category.parent_id is None
    assert category.is_active is True
    assert category.is_internal is False
    assert category.rank == 0
    assert category.extra_metadata == {"color": "blue"}
    assert category.deleted_at is None
    assert category.created_at == category.updated_at


def test_handles_get_numeric_suffixes(make_category):
    first = make_category("Test Product")
    second = make_category("Test Product")
    third = make_category("Test Product")

    assert [first.handle, second.handle, third.handle] == [
        "test-product", "test-product-1", "test-product-2"
    ]


def test_custom_handle_collision_is_suffixed(make_category):
    make_category("One", handle="shared")
    other = make_category("Two", handle="shared")

    assert other.handle == "shared-1"


def test_handle_is_reusable_after_soft_delete(service, make_category):
    shoes = make_category("Shoes")
    service.delete_category(shoes.id)

    again = make_category("Shoes")

    assert again.handle == "shoes"


def test_create_under_missing_parent(service):
    with pytest.raises(CategoryNotFound):
        service.create_category({"name": "Orphan", "parent_id": "does-not-exist"})


def test_create_under_deleted_parent(service, make_category):
    parent = make_category("Old")
    service.delete_category(parent.id)

    with pytest.raises(CategoryNotFound):
        make_category("Child", parent=parent)


@pytest.mark.parametrize("data,field", [
    ({"name": "   "}, "name"),
    ({"name": "x" * 256}, "name"),
    ({"name": "Ok", "rank": -1}, "rank"),
    ({"name": "Ok", "thumbnail": "not a url"}, "thumbnail"),
    ({"name": "Ok", "metadata": {"blob": "x" * 10001}}, "metadata"),
    ({"name": "Ok", "handle": "h" * 256}, "handle"),
])
def test_create_rejects_malformed_input(service, data, field):
    with pytest.raises(CategoryValidationError) as exc_info:
        service.create_category(data)

    assert exc_info.value.field == field


def test_non_ascii_metadata_is_measured_in_utf8_bytes(service):
    # {"note":"..."} is 11 bytes around the value; "ж" is 2 bytes in UTF-8
    category = service.create_category({"name": "Cyrillic", "metadata": {"note": "ж" * 4994}})

    assert category.extra_metadata == {"note": "ж" * 4994}


def test_non_ascii_metadata_over_limit(service):
    with pytest.raises(CategoryValidationError) as exc_info:
        service.create_category({"name": "Cyrillic", "metadata": {"note": "ж" * 4995}})

    assert exc_info.value.field == "metadata"


def test_create_respects_max_depth(make_category):
    parent = None
    for i in range(settings.MAX_CATEGORY_DEPTH):
        parent = make_category(f"Level {i}", parent=parent)

    with pytest.raises(DepthExceeded):
        make_category("Too deep", parent=parent)


# ── update ──────────────────────

def test_update_fields_and_advance_token(service, make_category):
    category = make_category("Phones")
    token = category.updated_at

    updated = service.update_category(category.id, {
        "name": "Mobile Phones",
        "rank": 4,
        "is_internal": True,
        "metadata": {"featured": True},
        "expected_updated_at": token,
    })

    assert updated.name == "Mobile Phones"
    assert updated.handle == "phones"
    assert updated.rank == 4
    assert updated.is_internal is True
    assert updated.extra_metadata == {"featured": True}
    assert updated.updated_at > token


def test_stale_token_conflicts_and_fresh_token_succeeds(service, make_category):
    category = make_category("Audio")
    stale = category.updated_at
    fresh = service.update_category(category.id, {"name": "Audio 1", "expected_updated_at": stale}).updated_at

    with pytest.raises(ConflictOrNotFound):
        service.update_category(category.id, {"name": "Audio 2", "expected_updated_at": stale})

    updated = service.update_category(category.id, {"name": "Audio 3", "expected_updated_at": fresh})
    assert updated.name == "Audio 3"


def test_update_missing_category(service):
    with pytest.raises(ConflictOrNotFound):
        service.update_category("missing", {"name": "X", "expected_updated_at": "2026-01-01T00:00:00"})


def test_update_deleted_category(service, make_category):
    category = make_category("Gone")
    token = category.updated_at
    service.delete_category(category.id)

    with pytest.raises(ConflictOrNotFound):
        service.update_category(category.id, {"name": "Back", "expected_updated_at": token})


def test_update_requires_expected_token(service, make_category):
    category = make_category("Tokenless")

    with pytest.raises(CategoryValidationError) as exc_info:
        service.update_category(category.id, {"name": "X"})

    assert exc_info.value.field == "expected_updated_at"


def test_update_rejects_null_name(service, make_category):
    category = make_category("Named")

    with pytest.raises(CategoryValidationError):
        service.update_category(category.id, {"name": None, "expected_updated_at": category.updated_at})


def test_update_accepts_timezone_aware_token(service, make_category):
    from datetime import timezone
    category = make_category("Aware")
    aware = category.updated_at.replace(tzinfo=timezone.utc)

    updated = service.update_category(category.id, {"rank": 2, "expected_updated_at": aware})

    assert updated.rank == 2


def test_root_cannot_move_under_its_descendant(service, db, electronics_tree):
    electronics, computers, laptops, gaming = electronics_tree

    with pytest.raises(CircularReference):
        service.update_category(electronics.id, {
            "parent_id": gaming.id,
            "expected_updated_at": electronics.updated_at,
        })

    db.expire_all()
    assert service.get_category(electronics.id).parent_id is None


def test_category_cannot_be_its_own_parent(service, make_category):
    category = make_category("Selfish")

    with pytest.raises(CircularReference):
        service.update_category(category.id, {
            "parent_id": category.id,
            "expected_updated_at": category.updated_at,
        })


def test_move_subtree_and_back_to_root(service, electronics_tree, make_category):
    electronics, computers, laptops, gaming = electronics_tree
    outlet = make_category("Outlet")

    moved = service.update_category(laptops.id, {
        "parent_id": outlet.id,
        "expected_updated_at": laptops.updated_at,
    })
    assert moved.parent_id == outlet.id
    assert [c.name for c in service.get_category_path(gaming.id)] == ["Outlet", "Laptops", "Gaming Laptops"]

    rooted = service.update_category(laptops.id, {
        "parent_id": None,
        "expected_updated_at": moved.updated_at,
    })
    assert rooted.parent_id is None
    assert [c.name for c in service.get_root_categories()] == ["Electronics", "Laptops", "Outlet"]


def test_move_under_missing_parent(service, make_category):
    category = make_category("Lost")

    with pytest.raises(CategoryNotFound):
        service.update_category(category.id, {
            "parent_id": "missing",
            "expected_updated_at": category.updated_at,
        })


def test_move_that_would_exceed_depth(service, make_category):
    parent = None
    for i in range(settings.MAX_CATEGORY_DEPTH):
        parent = make_category(f"Level {i}", parent=parent)
    loose = make_category("Loose")

    with pytest.raises(DepthExceeded):
        service.update_category(loose.id, {
            "parent_id": parent.id,
            "expected_updated_at": loose.updated_at,
        })


def test_update_handle_must_stay_unique(service, make_category):
    make_category("Taken")
    other = make_category("Other")

    with pytest.raises(CategoryValidationError) as exc_info:
        service.update_category(other.id, {"handle": "taken", "expected_updated_at": other.updated_at})

    assert exc_info.value.field == "handle"


def test_update_empty_thumbnail_clears_it(service, make_category):
    category = make_category("Pictured", thumbnail="https://cdn.example.com/a.png")

    updated = service.update_category(category.id, {
        "thumbnail": "",
        "expected_updated_at": category.updated_at,
    })

    assert updated.thumbnail is None


# ── delete ──────────────────────

def test_delete_leaf(service, make_category):
    leaf = make_category("Leaf")

    result = service.delete_category(leaf.id)

    assert result.id == leaf.id
    assert result.deleted_at is not None
    assert result.cascaded_ids == []
    assert service.get_category(leaf.id) is None


def test_delete_with_children_requires_cascade(service, db, electronics_tree):
    electronics = electronics_tree[0]

    with pytest.raises(HasChildren) as exc_info:
        service.delete_category(electronics.id)

    assert exc_info.value.child_count == 1
    live = db.query(Category).filter(Category.deleted_at.is_(None)).count()
    assert live == 4


def test_cascade_delete_removes_whole_subtree(service, db, electronics_tree, make_category):
    electronics, computers, laptops, gaming = electronics_tree
    books = make_category("Books")

    result = service.delete_category(electronics.id, cascade=True)

    assert set(result.cascaded_ids) == {computers.id, laptops.id, gaming.id}
    assert service.get_category_tree(electronics.id) == []
    assert [c.id for c in service.get_category_tree()] == [books.id]
    rows = db.query(Category).filter(Category.id.in_([c.id for c in electronics_tree])).all()
    assert len(rows) == 4
    assert all(row.deleted_at == result.deleted_at for row in rows)


def test_failed_cascade_rolls_back_every_row(service, db, electronics_tree, monkeypatch):
    electronics = electronics_tree[0]
    soft_delete = service._soft_delete
    calls = []

    def fail_on_third(category_id, deleted_at):
        calls.append(category_id)
        if len(calls) == 3:
            raise ConflictOrNotFound(category_id)
        soft_delete(category_id, deleted_at)

    monkeypatch.setattr(service, "_soft_delete", fail_on_third)

    with pytest.raises(ConflictOrNotFound):
        service.delete_category(electronics.id, cascade=True)

    assert len(calls) == 3
    db.expire_all()
    live = db.query(Category).filter(Category.deleted_at.is_(None)).count()
    assert live == 4
    assert len(service.get_category_tree(electronics.id)) == 4


def test_cascade_on_leaf_deletes_only_itself(service, make_category):
    leaf = make_category("Leaf")

    result = service.delete_category(leaf.id, cascade=True)

    assert result.cascaded_ids == []


def test_delete_missing_category(service):
    with pytest.raises(ConflictOrNotFound):
        service.delete_category("missing")


def test_delete_twice(service, make_category):
    category = make_category("Once")
    service.delete_category(category.id)

    with pytest.raises(ConflictOrNotFound):
        service.delete_category(category.id)


def test_delete_advances_token(service, db, make_category):
    category = make_category("Versioned")
    token = category.updated_at

    service.delete_category(category.id)

    db.expire_all()
    row = db.query(Category).filter(Category.id == category.id).one()
    assert row.updated_at >= token + timedelta(microseconds=1)
