from __future__ import annotations

import pytest

from dsmutate.keys import Key, key_is_valid


def test_complete_keys() -> None:
    assert not Key("Task", name="a").incomplete()
    assert not Key("Task", id=5).incomplete()
    assert Key("Task").incomplete()


@pytest.mark.parametrize(
    "key",
    [
        Key(""),
        Key("Task", name="a", id=1),
        Key("Task", id=-1),
        Key("Task", name="a", parent=Key("List")),
        Key("Task", name="a", parent=Key("List", name="p"), namespace="other"),
        Key("Task", name="a", parent=Key("", name="p")),
    ],
)
def test_invalid_keys(key: Key) -> None:
    assert key.valid() is False


def test_valid_key_with_parent() -> None:
    key = Key("Task", id=3, parent=Key("List", name="p", namespace="ns"), namespace="ns")
    assert key.valid() is True


def test_none_is_not_a_valid_key() -> None:
    assert key_is_valid(None) is False


def test_canonical_string_includes_ancestors_and_namespace() -> None:
    parent = Key("List", name="p", namespace="ns")
    key = Key("Task", id=3, parent=parent, namespace="ns")

    assert key.canonical_string() == '"ns":/"List","p"/"Task",3'
    assert Key("Task", name="K").canonical_string() == '/"Task","K"'


def test_equal_keys_share_canonical_string() -> None:
    a = Key("Task", name="K", parent=Key("List", id=1))
    b = Key("Task", name="K", parent=Key("List", id=1))

    assert a is not b
    assert a.canonical_string() == b.canonical_string()
    assert Key("Task", name="K", namespace="x").canonical_string() != a.canonical_string()


def test_to_wire() -> None:
    key = Key("Task", id=3, parent=Key("List", name="p"))

    assert key.to_wire() == {
        "partition_id": {"namespace_id": ""},
        "path": [{"kind": "List", "name": "p"}, {"kind": "Task", "id": "3"}],
    }
    assert Key("Task").to_wire()["path"] == [{"kind": "Task"}]


def test_numeric_name_and_id_are_distinct() -> None:
    assert Key("Task", name="12").canonical_string() != Key("Task", id=12).canonical_string()


def test_separators_in_names_do_not_forge_ancestors() -> None:
    flat = Key("A", name="x/B,y")
    nested = Key("B", name="y", parent=Key("A", name="x"))

    assert flat.canonical_string() != nested.canonical_string()
    assert Key('T"', name="a").canonical_string() != Key("T", name='"a').canonical_string()
