"""Unit tests for branch, tag, and HEAD persistence."""

from __future__ import annotations

import pytest

from core.errors import InvalidReferenceError
from store.reference_store import ReferenceStore

_HASH_A = "aa" * 64
_HASH_B = "bb" * 64


def test_set_then_get_returns_hash(tmp_path) -> None:
    """References should read back the exact hash written."""
    store = ReferenceStore(tmp_path)
    store.set("heads", "main", _HASH_A)

    assert store.get("heads", "main") == _HASH_A
    assert (tmp_path / "refs" / "heads" / "main").read_text(encoding="utf-8") == _HASH_A


def test_set_overwrites_existing_reference(tmp_path) -> None:
    """The last write to a reference should win."""
    store = ReferenceStore(tmp_path)
    store.set("tags", "v1", _HASH_A)

    store.set("tags", "v1", _HASH_B)

    assert store.get("tags", "v1") == _HASH_B


def test_get_trims_whitespace(tmp_path) -> None:
    """Hand-edited reference files with trailing newlines should resolve."""
    heads_dir = tmp_path / "refs" / "heads"
    heads_dir.mkdir(parents=True)
    (heads_dir / "main").write_text(f"{_HASH_A}\n", encoding="utf-8")

    assert ReferenceStore(tmp_path).get("heads", "main") == _HASH_A


def test_get_raises_for_missing_reference(tmp_path) -> None:
    """Missing references should raise InvalidReferenceError."""
    store = ReferenceStore(tmp_path)

    with pytest.raises(InvalidReferenceError) as error_info:
        store.get("heads", "missing")

    assert error_info.value.reference == "refs/heads/missing"


def test_resolve_namespaced_path(tmp_path) -> None:
    """Namespaced paths should resolve through the matching namespace."""
    store = ReferenceStore(tmp_path)
    store.set("tags", "release", _HASH_B)

    assert store.resolve("refs/tags/release") == _HASH_B


def test_resolve_head_follows_one_indirection(tmp_path) -> None:
    """HEAD should resolve to the commit of the branch it names."""
    store = ReferenceStore(tmp_path)
    store.write_head("dev")
    store.set("heads", "dev", _HASH_A)

    assert store.resolve("HEAD") == _HASH_A
    assert (tmp_path / "HEAD").read_text(encoding="utf-8") == "ref: ref/heads/dev"


def test_read_head_accepts_refs_prefix(tmp_path) -> None:
    """HEAD written with a refs/heads/ target should still be understood."""
    (tmp_path / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")

    assert ReferenceStore(tmp_path).read_head() == "main"


def test_read_head_rejects_detached_value(tmp_path) -> None:
    """HEAD must be a symbolic branch pointer."""
    (tmp_path / "HEAD").write_text(_HASH_A, encoding="utf-8")

    with pytest.raises(InvalidReferenceError):
        ReferenceStore(tmp_path).read_head()


@pytest.mark.parametrize("ref_path", ["heads/main", "refs/heads", "refs/other/main"])
def test_resolve_rejects_malformed_paths(tmp_path, ref_path: str) -> None:
    """Malformed reference paths should raise InvalidReferenceError."""
    with pytest.raises(InvalidReferenceError):
        ReferenceStore(tmp_path).resolve(ref_path)


@pytest.mark.parametrize("name", ["", "../escape", "a//b", "with space", ".hidden"])
def test_set_rejects_invalid_names(tmp_path, name: str) -> None:
    """Names that escape the namespace or are empty should be rejected."""
    with pytest.raises(InvalidReferenceError):
        ReferenceStore(tmp_path).set("heads", name, _HASH_A)


def test_nested_names_and_listing(tmp_path) -> None:
    """Slash-separated names should be stored and listed in order."""
    store = ReferenceStore(tmp_path)
    store.set("heads", "main", _HASH_A)
    store.set("heads", "feature/lora", _HASH_B)

    references = store.list_references("heads")

    assert [reference.path for reference in references] == [
        "refs/heads/feature/lora",
        "refs/heads/main",
    ]
    assert references[0].commit_hash == _HASH_B


def test_list_missing_namespace_dir_is_empty(tmp_path) -> None:
    """Listing before any reference exists should return nothing."""
    assert ReferenceStore(tmp_path).list_references("tags") == []


def test_listing_skips_empty_reference_files(tmp_path) -> None:
    """A damaged reference should not hide the remaining entries."""
    store = ReferenceStore(tmp_path)
    store.set("heads", "main", _HASH_A)
    store.set("heads", "zeta", _HASH_B)
    (tmp_path / "refs" / "heads" / "broken").write_text("  \n", encoding="utf-8")

    references = store.list_references("heads")

    assert [reference.name for reference in references] == ["main", "zeta"]
