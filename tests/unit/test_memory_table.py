from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Annotated

import pytest

from cloudapp import PartitionKey, SortKey, TableConfigurationError, TableEntity, table_name
from cloudapp.storage import InMemoryTable


class Note(TableEntity):
    id: Annotated[str, PartitionKey()]
    text: str = ""


@table_name("Events")
class Event(TableEntity):
    user_id: Annotated[str, PartitionKey()]
    at: Annotated[str, SortKey()]
    kind: str = ""


class Counter(TableEntity):
    number: Annotated[int, PartitionKey()]
    hits: int = 0


class Keyless(TableEntity):
    id: str


def run(coro):
    return asyncio.run(coro)


def test_put_then_get_returns_equal_copy() -> None:
    table = InMemoryTable(Note)
    note = Note(id="n1", text="hello")
    run(table.put(note))

    fetched = run(table.get("n1"))
    assert fetched == note
    assert fetched is not note


def test_get_missing_key_returns_none() -> None:
    table = InMemoryTable(Note)
    assert run(table.get("missing")) is None


def test_stored_entity_is_isolated_from_caller_mutation() -> None:
    table = InMemoryTable(Note)
    note = Note(id="n1", text="before")
    run(table.put(note))
    note.text = "after"

    assert run(table.get("n1")).text == "before"


def test_put_overwrites_same_key() -> None:
    table = InMemoryTable(Note)
    run(table.put(Note(id="n1", text="a")))
    run(table.put(Note(id="n1", text="b")))

    assert len(table) == 1
    assert run(table.get("n1")).text == "b"


def test_composite_keys_are_distinct_items() -> None:
    table = InMemoryTable(Event)
    run(table.put(Event(user_id="u1", at="2024-01-01", kind="login")))
    run(table.put(Event(user_id="u1", at="2024-01-02", kind="logout")))

    assert run(table.get("u1", "2024-01-02")).kind == "logout"
    assert run(table.get("u1")) is None
    assert sorted(e.at for e in run(table.query("u1"))) == ["2024-01-01", "2024-01-02"]


def test_partition_delete_does_not_touch_prefixed_partitions() -> None:
    table = InMemoryTable(Event)
    run(table.put(Event(user_id="user1", at="a")))
    run(table.put(Event(user_id="user1", at="b")))
    run(table.put(Event(user_id="user10", at="a")))

    run(table.delete("user1"))

    assert run(table.query("user1")) == []
    assert [e.user_id for e in run(table.query("user10"))] == ["user10"]


def test_delete_single_item_with_sort_key() -> None:
    table = InMemoryTable(Event)
    run(table.put(Event(user_id="u1", at="a")))
    run(table.put(Event(user_id="u1", at="b")))

    run(table.delete("u1", "a"))

    assert [e.at for e in run(table.query("u1"))] == ["b"]


def test_delete_missing_key_is_noop() -> None:
    table = InMemoryTable(Note)
    run(table.delete("nope"))
    assert len(table) == 0


def test_scan_returns_every_item() -> None:
    table = InMemoryTable(Note)
    for i in range(3):
        run(table.put(Note(id=f"n{i}")))

    assert sorted(n.id for n in run(table.scan())) == ["n0", "n1", "n2"]


def test_entity_without_partition_key_is_rejected() -> None:
    with pytest.raises(TableConfigurationError, match="PartitionKey"):
        InMemoryTable(Keyless)


def test_non_string_key_arguments_match_stored_items() -> None:
    table = InMemoryTable(Counter)
    run(table.put(Counter(number=7, hits=3)))

    assert run(table.get(7)).hits == 3
    assert run(table.get("7")).hits == 3
    run(table.delete(7))
    assert len(table) == 0


def test_concurrent_writers_deleters_and_scanners() -> None:
    table = InMemoryTable(Event)
    users = [f"user{i}" for i in range(20)]

    def write(user: str) -> None:
        for n in range(50):
            run(table.put(Event(user_id=user, at=f"{n:03d}")))

    def delete(user: str) -> None:
        for n in range(0, 50, 2):
            run(table.delete(user, f"{n:03d}"))

    def scan(_: int) -> int:
        return sum(len(run(table.scan())) for _ in range(20))

    with ThreadPoolExecutor(max_workers=8) as pool:
        scanners = [pool.submit(scan, i) for i in range(4)]
        list(pool.map(write, users))
        list(pool.map(delete, users))
        for future in scanners:
            # Raises here if a scan iterated while the store was resized.
            future.result()

    assert len(table) == len(users) * 25
    assert all(int(e.at) % 2 == 1 for e in run(table.scan()))
    assert len(run(table.query("user3"))) == 25
