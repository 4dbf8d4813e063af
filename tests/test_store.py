from __future__ import annotations

import allure
import pytest

from lfs_locks.models import LockRecord, LockSortType
from lfs_locks.sorting import PathStyle
from lfs_locks.store import LockStore

pytestmark = [
    allure.epic("Lock Cache"),
    allure.feature("Lock Store"),
]


def test_replace_all_keeps_first_entry_per_path_and_sorts() -> None:
    store = LockStore(path_style=PathStyle.POSIX)

    store.replace_all(
        [
            LockRecord(path="b.png", id="2", user="alice"),
            LockRecord(path="a.png", id="1", user="bob"),
            LockRecord(path="b.png", id="3", user="carol"),
        ],
    )

    assert [(record.path, record.id) for record in store.records] == [("a.png", "1"), ("b.png", "2")]


def test_find_helpers() -> None:
    store = LockStore()
    store.replace_all([LockRecord(path="Assets/a.png", id="7"), LockRecord(path="Assets/b.png")])

    assert store.find_by_id("7").path == "Assets/a.png"
    assert store.find_by_path("Assets/b.png").id == ""
    assert store.find_by_id("8") is None
    assert store.find(lambda record: record.path.endswith("b.png")) is not None


def test_add_rejects_duplicate_path() -> None:
    store = LockStore()
    store.add(LockRecord(path="a.png"))

    with pytest.raises(ValueError, match="already tracked"):
        store.add(LockRecord(path="a.png", id="1"))
    assert len(store) == 1


def test_blob_keeps_sort_state_and_settles_pending_records() -> None:
    store = LockStore(path_style=PathStyle.POSIX)
    store.replace_all(
        [
            LockRecord(path="a.png", id="1", user="alice"),
            LockRecord(path="b.png", id="2", user="bob", is_pending=True),
            LockRecord(path="c.png", user="carol", is_pending=True),
        ],
    )
    store.sort(LockSortType.USER, ascending=False)

    restored = LockStore(path_style=PathStyle.POSIX)
    restored.load_blob(store.to_blob())

    assert restored.sort_type is LockSortType.USER
    assert restored.ascending is False
    assert [(record.path, record.is_pending) for record in restored.records] == [
        ("b.png", False),
        ("a.png", False),
    ]


def test_load_blob_rejects_malformed_lock_list() -> None:
    store = LockStore()

    with pytest.raises(TypeError, match="locks must be an array"):
        store.load_blob({"locks": {"path": "a.png"}})
    with pytest.raises(ValueError, match="non-empty string"):
        store.load_blob({"locks": [{"id": "1"}]})


def test_rejected_blob_leaves_sort_state_untouched() -> None:
    store = LockStore()
    store.replace_all([LockRecord(path="a.png", id="1")])

    with pytest.raises(ValueError, match="non-empty string"):
        store.load_blob(
            {"locks": [{"id": "2"}], "lock_sort_type": "user", "lock_sort_ascending": False},
        )

    assert store.sort_type is LockSortType.PATH
    assert store.ascending is True
    assert [record.id for record in store.records] == ["1"]
