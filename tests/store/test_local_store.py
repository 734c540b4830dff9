from __future__ import annotations

from datetime import datetime

import pytest

from dsmutate.config import StoreConfig
from dsmutate.errors import (
    AlreadyExistsError,
    BatchTooLargeError,
    MultiError,
    NotFoundError,
    StoreError,
)
from dsmutate.keys import Key
from dsmutate.mutation import new_delete, new_insert, new_update, new_upsert
from dsmutate.store import LocalStore
from dsmutate.transforms import (
    append_missing_elements,
    increment,
    maximum,
    minimum,
    remove_all_from_array,
    set_to_server_time,
)


def test_insert_then_get(store: LocalStore, key_k: Key) -> None:
    results = store.mutate(new_insert(key_k, {"title": "a", "n": 1}))

    assert results[0].key == key_k
    assert store.get(key_k) == {"title": "a", "n": 1}


def test_insert_existing_key_raises_already_exists(store: LocalStore, key_k: Key) -> None:
    store.mutate(new_insert(key_k, {"n": 1}))

    with pytest.raises(AlreadyExistsError):
        store.mutate(new_insert(key_k, {"n": 2}))

    assert store.get(key_k) == {"n": 1}


def test_update_missing_key_raises_not_found(store: LocalStore, key_k: Key) -> None:
    with pytest.raises(NotFoundError):
        store.mutate(new_update(key_k, {"n": 1}))

    assert store.get(key_k) is None


def test_failure_rolls_back_whole_batch(store: LocalStore, key_k: Key, key_l: Key) -> None:
    with pytest.raises(NotFoundError):
        store.mutate(new_upsert(key_k, {"n": 1}), new_update(key_l, {"n": 1}))

    assert store.get(key_k) is None


def test_invalid_batch_applies_nothing(store: LocalStore, key_k: Key, invalid_key: Key) -> None:
    with pytest.raises(MultiError):
        store.mutate(new_upsert(key_k, {"n": 1}), new_delete(invalid_key))

    assert store.get(key_k) is None


def test_upsert_replaces_entity_without_mask(store: LocalStore, key_k: Key) -> None:
    store.mutate(new_upsert(key_k, {"a": 1, "b": 2}))
    store.mutate(new_upsert(key_k, {"a": 3}))

    assert store.get(key_k) == {"a": 3}


def test_delete(store: LocalStore, key_k: Key, key_l: Key) -> None:
    store.mutate(new_upsert(key_k, {"a": 1}))

    store.mutate(new_delete(key_k), new_delete(key_k), new_delete(key_l))

    assert store.get(key_k) is None


def test_delete_then_write_same_key_in_one_batch(store: LocalStore, key_k: Key) -> None:
    store.mutate(new_upsert(key_k, {"a": 1}))

    store.mutate(new_delete(key_k), new_upsert(key_k, {"b": 2}))

    assert store.get(key_k) == {"b": 2}


def test_incomplete_key_gets_allocated_id(store: LocalStore) -> None:
    results = store.mutate(new_insert(Key("Task"), {"a": 1}))

    key = results[0].key
    assert not key.incomplete()
    assert key.kind == "Task"
    assert store.get(key) == {"a": 1}


class TestTransforms:
    """Server-side transforms honour the property mask."""

    def test_transform_on_server_value_with_empty_payload(self, store: LocalStore, key_k: Key) -> None:
        store.mutate(new_upsert(key_k, {"count": 5, "title": "x"}))

        results = store.mutate(new_upsert(key_k, {}).with_transforms(increment("count", 2)))

        assert results[0].transform_results == [7]
        assert store.get(key_k) == {"count": 7, "title": "x"}

    def test_masked_write_keeps_unwritten_properties(self, store: LocalStore, key_k: Key) -> None:
        store.mutate(new_upsert(key_k, {"count": 5, "title": "x", "extra": True}))

        store.mutate(new_update(key_k, {"title": "y"}).with_transforms(increment("count", 1)))

        assert store.get(key_k) == {"count": 6, "title": "y", "extra": True}

    def test_written_then_transformed(self, store: LocalStore, key_k: Key) -> None:
        store.mutate(new_upsert(key_k, {"count": 100}))

        store.mutate(new_upsert(key_k, {"count": 1}).with_transforms(increment("count", 1)))

        assert store.get(key_k) == {"count": 2}

    def test_transforms_apply_in_order(self, store: LocalStore, key_k: Key) -> None:
        results = store.mutate(
            new_insert(key_k, {}).with_transforms(
                increment("n", 10),
                maximum("n", 4),
                minimum("n", 3),
                increment("n", 0.5),
            )
        )

        assert results[0].transform_results == [10, 10, 3, 3.5]

    def test_array_transforms(self, store: LocalStore, key_k: Key) -> None:
        store.mutate(new_upsert(key_k, {"tags": ["a", "b", "a"]}))

        store.mutate(
            new_upsert(key_k, {}).with_transforms(
                append_missing_elements("tags", "b", "c"),
                remove_all_from_array("tags", "a"),
            )
        )

        assert store.get(key_k) == {"tags": ["b", "c"]}

    def test_set_to_server_time(self, store: LocalStore, key_k: Key) -> None:
        results = store.mutate(new_insert(key_k, {}).with_transforms(set_to_server_time("at")))

        at = results[0].transform_results[0]
        assert isinstance(at, datetime)
        assert at.tzinfo is not None
        assert store.get(key_k) == {"at": at.isoformat()}


def test_batch_limit(engine, key_k: Key) -> None:
    store = LocalStore(engine, StoreConfig(max_batch_size=1))
    store.create_schema()

    with pytest.raises(BatchTooLargeError):
        store.mutate(new_delete(key_k), new_delete(Key("Task", name="other")))


def test_numeric_name_and_id_are_separate_entities(store: LocalStore) -> None:
    by_name, by_id = Key("Task", name="12"), Key("Task", id=12)

    store.mutate(new_insert(by_name, {"which": "name"}))
    store.mutate(new_insert(by_id, {"which": "id"}))

    assert store.get(by_name) == {"which": "name"}
    assert store.get(by_id) == {"which": "id"}


def test_apply_without_schema_raises_store_error(engine, key_k: Key) -> None:
    store = LocalStore(engine)

    with pytest.raises(StoreError):
        store.mutate(new_upsert(key_k, {"a": 1}))
