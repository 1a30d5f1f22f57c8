"""Unit tests for CLI command handling."""

from __future__ import annotations

import json

import numpy as np
from safetensors.numpy import save_file

from cli.main import main


def _write_weights(path, scale: float = 1.0) -> str:
    save_file({"w": np.array([1, 2, 3], dtype=np.float32) * np.float32(scale)}, str(path))
    return str(path)


def _init(tmp_path, capsys) -> str:
    repo_root = str(tmp_path / "repo")
    main(["init", repo_root])
    capsys.readouterr()
    return repo_root


def test_cli_init_creates_repository(tmp_path, capsys) -> None:
    """CLI init should scaffold the control directory."""
    repo_root = tmp_path / "repo"

    exit_code = main(["init", str(repo_root)])
    output = capsys.readouterr().out

    assert exit_code == 0 and "Initialized empty WTS repository" in output
    assert (repo_root / ".wts" / "HEAD").exists()


def test_cli_commit_prints_digest(tmp_path, capsys) -> None:
    """CLI commit should print the created commit digest."""
    repo_root = _init(tmp_path, capsys)
    weights = _write_weights(tmp_path / "w.safetensors")

    exit_code = main(
        ["--repo-root", repo_root, "commit", "-f", weights, "-m", "first", "-d", '{"lr": 0.1}']
    )
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and len(output) == 128


def test_cli_commit_with_branch_then_show(tmp_path, capsys) -> None:
    """Committing with --branch should make the commit reachable by name."""
    repo_root = _init(tmp_path, capsys)
    weights = _write_weights(tmp_path / "w.safetensors")
    main(["--repo-root", repo_root, "commit", "-f", weights, "-m", "first", "-b", "main"])
    commit_hash = capsys.readouterr().out.strip()

    exit_code = main(["--repo-root", repo_root, "show", "main"])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert f"commit {commit_hash}" in output and "first" in output


def test_cli_branch_tag_and_refs(tmp_path, capsys) -> None:
    """Branch and tag commands should be listed by refs."""
    repo_root = _init(tmp_path, capsys)
    weights = _write_weights(tmp_path / "w.safetensors")
    main(["--repo-root", repo_root, "commit", "-f", weights, "-m", "first"])
    commit_hash = capsys.readouterr().out.strip()

    main(["--repo-root", repo_root, "branch", "dev", "--commit", commit_hash])
    main(["--repo-root", repo_root, "tag", "v1", "--commit", "dev"])
    capsys.readouterr()
    exit_code = main(["--repo-root", repo_root, "refs"])
    lines = capsys.readouterr().out.strip().splitlines()

    assert exit_code == 0
    assert lines == [f"{commit_hash}\trefs/heads/dev", f"{commit_hash}\trefs/tags/v1"]


def test_cli_log_prints_history(tmp_path, capsys) -> None:
    """Log should print one line per commit, newest first."""
    repo_root = _init(tmp_path, capsys)
    first = _write_weights(tmp_path / "a.safetensors")
    second = _write_weights(tmp_path / "b.safetensors", scale=2.0)
    main(["--repo-root", repo_root, "commit", "-f", first, "-m", "first", "-b", "main"])
    main(["--repo-root", repo_root, "commit", "-f", second, "-m", "second", "-p", "main", "-b", "main"])
    capsys.readouterr()

    exit_code = main(["--repo-root", repo_root, "log"])
    lines = capsys.readouterr().out.strip().splitlines()

    assert exit_code == 0
    assert [line.split("\t")[2] for line in lines] == ["second", "first"]


def test_cli_cat_file_lists_tensors(tmp_path, capsys) -> None:
    """cat-file should print tensor names, dtypes, and shapes."""
    repo_root = _init(tmp_path, capsys)
    weights = _write_weights(tmp_path / "w.safetensors")
    main(["--repo-root", repo_root, "commit", "-f", weights, "-m", "first"])
    commit_hash = capsys.readouterr().out.strip()

    exit_code = main(["--repo-root", repo_root, "cat-file", commit_hash])
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and output == "w\tF32\t[3]"


def test_cli_reports_missing_repository(tmp_path, capsys, monkeypatch) -> None:
    """Commands outside a repository should exit with an error message."""
    monkeypatch.setenv("WTS_SEARCH_PARENTS", "0")

    exit_code = main(["--repo-root", str(tmp_path), "refs"])
    captured = capsys.readouterr()

    assert exit_code == 1 and "Run 'wts init' first" in captured.err


def test_cli_rejects_invalid_metadata(tmp_path, capsys) -> None:
    """Malformed metadata JSON should fail without creating a commit."""
    repo_root = _init(tmp_path, capsys)
    weights = _write_weights(tmp_path / "w.safetensors")

    exit_code = main(["--repo-root", repo_root, "commit", "-f", weights, "-m", "x", "-d", "{bad"])
    captured = capsys.readouterr()

    assert exit_code == 1 and "Invalid --metadata JSON" in captured.err
    assert not any((tmp_path / "repo" / ".wts" / "commits").iterdir())


def test_cli_show_metadata_is_json(tmp_path, capsys) -> None:
    """Show should render metadata as JSON."""
    repo_root = _init(tmp_path, capsys)
    weights = _write_weights(tmp_path / "w.safetensors")
    main(["--repo-root", repo_root, "commit", "-f", weights, "-m", "m", "-d", '{"b": 1, "a": 2}'])
    commit_hash = capsys.readouterr().out.strip()

    main(["--repo-root", repo_root, "show", commit_hash])
    metadata_line = next(
        line for line in capsys.readouterr().out.splitlines() if line.startswith("metadata ")
    )

    assert json.loads(metadata_line[len("metadata "):]) == {"a": 2, "b": 1}
