"""Unit tests for lazy commit history traversal."""

from __future__ import annotations

from datetime import datetime, timezone

from core.errors import HistoryCycleError, ObjectNotFoundError
from core.types import Commit
from store.commit_history import CommitHistory
from store.commit_store import CommitStore


def _store_commit(store: CommitStore, marker: int, parent: int | None, message: str) -> str:
    commit = Commit(
        hash=bytes([marker]) * 64,
        parent_hash=bytes([parent]) * 64 if parent is not None else None,
        timestamp=datetime.now(timezone.utc),
        message=message,
    )
    store.put(commit)
    return commit.hex_hash


def test_root_commit_yields_single_entry(tmp_path) -> None:
    """A commit without a parent should yield exactly one element."""
    store = CommitStore(tmp_path)
    root_hash = _store_commit(store, 1, None, "root")

    entries = list(CommitHistory(store, root_hash))

    assert len(entries) == 1 and entries[0].message == "root"


def test_history_walks_parents_in_order(tmp_path) -> None:
    """History should follow parent links back to the root."""
    store = CommitStore(tmp_path)
    _store_commit(store, 1, None, "first")
    _store_commit(store, 2, 1, "second")
    head_hash = _store_commit(store, 3, 2, "third")

    messages = [entry.message for entry in CommitHistory(store, head_hash)]

    assert messages == ["third", "second", "first"]


def test_missing_parent_yields_error_then_stops(tmp_path) -> None:
    """A broken chain should surface the lookup failure as the last element."""
    store = CommitStore(tmp_path)
    head_hash = _store_commit(store, 2, 9, "orphan")
    history = CommitHistory(store, head_hash)

    entries = list(history)

    assert isinstance(entries[0], Commit)
    assert isinstance(entries[1], ObjectNotFoundError)
    assert len(entries) == 2
    assert next(history, None) is None


def test_cyclic_chain_yields_cycle_error(tmp_path) -> None:
    """A cyclic parent chain should terminate with HistoryCycleError."""
    store = CommitStore(tmp_path)
    _store_commit(store, 1, 2, "a")
    start_hash = _store_commit(store, 2, 1, "b")

    entries = list(CommitHistory(store, start_hash))

    assert [type(entry) for entry in entries] == [Commit, Commit, HistoryCycleError]


def test_history_is_lazy(tmp_path) -> None:
    """Entries should be loaded one step at a time."""
    store = CommitStore(tmp_path)
    _store_commit(store, 1, None, "first")
    head_hash = _store_commit(store, 2, 1, "second")
    history = CommitHistory(store, head_hash)

    first_entry = next(history)
    (tmp_path / f"{'01' * 64}.json").unlink()

    assert first_entry.message == "second"
    assert isinstance(next(history), ObjectNotFoundError)
