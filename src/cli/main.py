"""WTS CLI entry points.
This module exposes repository commands for weight snapshots.
It maps argparse commands onto Repository calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
from pathlib import Path
import sys
from typing import Any, Sequence

from core.config import WtsConfig
from core.constants import HEADS_NAMESPACE, REFERENCE_NAMESPACES
from core.errors import WtsCodecError, WtsError
from core.types import Commit
from store.commit_store import format_timestamp
from store.content_hash import dtype_tag, shape_descriptor
from store.repository import Repository
from store.weights_file import load_weights_file


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="wts", description="Weight tensor store")
    parser.add_argument("--repo-root", help="Override WTS_REPO_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_init_command(subparsers)
    _add_commit_command(subparsers)
    _add_reference_command(subparsers, "branch", "Create or move a branch")
    _add_reference_command(subparsers, "tag", "Create or move a tag")
    _add_show_command(subparsers)
    _add_cat_file_command(subparsers)
    _add_log_command(subparsers)
    _add_refs_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the WTS CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.repo_root)
        if args.command == "init":
            return _run_init_command(config, args)
        repository = Repository.open(config)
        if args.command == "commit":
            return _run_commit_command(repository, args)
        if args.command == "branch":
            return _run_branch_command(repository, args)
        if args.command == "tag":
            return _run_tag_command(repository, args)
        if args.command == "show":
            return _run_show_command(repository, args)
        if args.command == "cat-file":
            return _run_cat_file_command(repository, args)
        if args.command == "log":
            return _run_log_command(repository, args)
        if args.command == "refs":
            return _run_refs_command(repository, args)
    except WtsError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(repo_root: str | None) -> WtsConfig:
    """Build config with optional repo-root override.

    Args:
        repo_root: Optional override path.

    Returns:
        Runtime configuration.
    """
    config = WtsConfig.from_env()
    if repo_root:
        config = replace(config, repo_root=Path(repo_root).expanduser().resolve())
    return config


def _run_init_command(config: WtsConfig, args: argparse.Namespace) -> int:
    """Handle init command."""
    if args.path:
        config = replace(config, repo_root=Path(args.path).expanduser().resolve())
    repository = Repository.init(config)
    print(f"Initialized empty WTS repository at {repository.root}")
    return 0


def _run_commit_command(repository: Repository, args: argparse.Namespace) -> int:
    """Handle commit command.

    Args:
        repository: Opened repository.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    tensors = load_weights_file(args.file)
    metadata = _parse_metadata(args.metadata)
    parent = repository.resolve_revision(args.parent) if args.parent else None
    commit_hash = repository.create_commit(tensors, args.message, metadata, parent)
    if args.branch:
        repository.create_branch(args.branch, commit_hash)
    print(commit_hash)
    return 0


def _run_branch_command(repository: Repository, args: argparse.Namespace) -> int:
    """Handle branch command."""
    commit_hash = repository.resolve_revision(args.commit)
    repository.create_branch(args.name, commit_hash)
    print(f"Created branch '{args.name}' at {commit_hash}")
    return 0


def _run_tag_command(repository: Repository, args: argparse.Namespace) -> int:
    """Handle tag command."""
    commit_hash = repository.resolve_revision(args.commit)
    repository.create_tag(args.name, commit_hash)
    print(f"Created tag '{args.name}' at {commit_hash}")
    return 0


def _run_show_command(repository: Repository, args: argparse.Namespace) -> int:
    """Handle show command."""
    commit = repository.get_commit(repository.resolve_revision(args.revision))
    print(f"commit {commit.hex_hash}")
    print(f"parent {commit.hex_parent_hash or '-'}")
    print(f"timestamp {format_timestamp(commit.timestamp)} ({commit.timestamp.isoformat()})")
    print(f"metadata {json.dumps(commit.metadata, sort_keys=True)}")
    print("")
    print(f"    {commit.message}")
    return 0


def _run_cat_file_command(repository: Repository, args: argparse.Namespace) -> int:
    """Handle cat-file command."""
    tensors = repository.get_object(repository.resolve_revision(args.revision))
    for name in sorted(tensors):
        array = tensors[name]
        print(f"{name}\t{dtype_tag(array.dtype, name)}\t{shape_descriptor(array.shape)}")
    return 0


def _run_log_command(repository: Repository, args: argparse.Namespace) -> int:
    """Handle log command.

    Prints commits until the root; a broken chain is reported on stderr.
    """
    start_hash = repository.resolve_revision(args.revision)
    for entry in repository.history(start_hash):
        if isinstance(entry, WtsError):
            print(f"error: {entry}", file=sys.stderr)
            return 1
        print(_format_log_line(entry))
    return 0


def _run_refs_command(repository: Repository, args: argparse.Namespace) -> int:
    """Handle refs command."""
    namespaces = (args.namespace,) if args.namespace else REFERENCE_NAMESPACES
    for namespace in namespaces:
        for reference in repository.list_references(namespace):
            print(f"{reference.commit_hash}\t{reference.path}")
    return 0


def _parse_metadata(raw_metadata: str | None) -> Any:
    """Parse the optional metadata JSON argument.

    Raises:
        WtsCodecError: If metadata is not valid JSON.
    """
    if raw_metadata is None:
        return None
    try:
        return json.loads(raw_metadata)
    except json.JSONDecodeError as error:
        raise WtsCodecError(
            f"Invalid --metadata JSON: {error.msg} at position {error.pos}. "
            "Pass a JSON value such as '{\"epoch\": 3}'."
        ) from error


def _format_log_line(commit: Commit) -> str:
    return f"{commit.hex_hash}\t{commit.timestamp.isoformat()}\t{commit.message}"


def _add_init_command(subparsers: Any) -> None:
    """Register init subcommand."""
    parser = subparsers.add_parser("init", help="Initialize a new WTS repository")
    parser.add_argument("path", nargs="?", help="Directory to initialize (default: repo root)")


def _add_commit_command(subparsers: Any) -> None:
    """Register commit subcommand."""
    parser = subparsers.add_parser("commit", help="Commit a weights file")
    parser.add_argument("-f", "--file", required=True, help="Path to a .safetensors or .pt file")
    parser.add_argument("-m", "--message", required=True, help="Commit message")
    parser.add_argument("-d", "--metadata", help="Optional metadata as a JSON string")
    parser.add_argument("-p", "--parent", help="Optional parent commit hash or reference")
    parser.add_argument("-b", "--branch", help="Branch to move to the new commit")


def _add_reference_command(subparsers: Any, command: str, help_text: str) -> None:
    """Register branch or tag subcommand."""
    parser = subparsers.add_parser(command, help=help_text)
    parser.add_argument("name", help=f"Name of the {command}")
    parser.add_argument("-c", "--commit", required=True, help="Commit hash or reference")


def _add_show_command(subparsers: Any) -> None:
    """Register show subcommand."""
    parser = subparsers.add_parser("show", help="Show commit information")
    parser.add_argument("revision", help="Commit hash or reference")


def _add_cat_file_command(subparsers: Any) -> None:
    """Register cat-file subcommand."""
    parser = subparsers.add_parser("cat-file", help="List tensors stored for a commit")
    parser.add_argument("revision", help="Commit hash or reference")


def _add_log_command(subparsers: Any) -> None:
    """Register log subcommand."""
    parser = subparsers.add_parser("log", help="Show commit history")
    parser.add_argument("revision", nargs="?", default="HEAD", help="Start commit (default HEAD)")


def _add_refs_command(subparsers: Any) -> None:
    """Register refs subcommand."""
    parser = subparsers.add_parser("refs", help="List branches and tags")
    parser.add_argument(
        "--namespace",
        choices=REFERENCE_NAMESPACES,
        help=f"Only list one namespace (e.g. {HEADS_NAMESPACE})",
    )
