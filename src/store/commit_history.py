"""Lazy commit ancestry traversal."""

from __future__ import annotations

from typing import Iterator, Union

from core.errors import HistoryCycleError, WtsError
from core.types import Commit
from store.commit_store import CommitStore

HistoryEntry = Union[Commit, WtsError]


class CommitHistory(Iterator[HistoryEntry]):
    """Forward-only iterator over a commit and its ancestors.

    Each step loads one commit and moves to its parent. A failed lookup
    is yielded as the final entry instead of being raised, so callers
    still see every commit read before the break. Revisiting a digest
    yields ``HistoryCycleError`` and ends the traversal.
    """

    def __init__(self, commit_store: CommitStore, start_hash: str | None) -> None:
        self._commit_store = commit_store
        self._current_hash = start_hash
        self._visited: set[str] = set()

    def __iter__(self) -> "CommitHistory":
        return self

    def __next__(self) -> HistoryEntry:
        if self._current_hash is None:
            raise StopIteration
        current_hash = self._current_hash.strip().lower()
        self._current_hash = None
        if current_hash in self._visited:
            return HistoryCycleError(current_hash)
        self._visited.add(current_hash)
        try:
            commit = self._commit_store.get(current_hash)
        except WtsError as error:
            return error
        self._current_hash = commit.hex_parent_hash
        return commit
