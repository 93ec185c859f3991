"""Command-line argument parsing for gitcore."""

import argparse
from typing import List, Optional

from gitcore.__version__ import __version__


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="gitcore",
        description="Inspect worktrees, status and config of git repositories",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"gitcore {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--log-file", metavar="FILE", help="Also write log messages to FILE")
    parser.add_argument(
        "--remote", default="origin", help="Remote used for tracking branches (default: origin)"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    status = commands.add_parser("status", help="Show the git status of a file or directory")
    status.add_argument("path", nargs="?", default=".", help="File or directory (default: .)")
    status.add_argument("--ignored", action="store_true", help="Include ignored files")
    status.add_argument(
        "--matrix",
        action="store_true",
        help="Show HEAD/WORKDIR/STAGE codes for every file instead of porcelain status",
    )

    paths = commands.add_parser("paths", help="Show where the repository metadata for a path lives")
    paths.add_argument("path", nargs="?", default=".", help="Any path inside a repository")

    worktree = commands.add_parser("worktree", help="Manage linked worktrees")
    worktree_commands = worktree.add_subparsers(dest="worktree_command", required=True)

    wt_list = worktree_commands.add_parser("list", help="List the main and linked worktrees")
    wt_list.add_argument("path", nargs="?", default=".", help="Any path inside the repository")

    wt_add = worktree_commands.add_parser("add", help="Create a linked worktree")
    wt_add.add_argument("workdir", help="Directory for the new worktree")
    wt_add.add_argument("ref", help="Branch name or full commit id")
    wt_add.add_argument("--root", default=".", help="Main worktree root (default: .)")
    wt_add.add_argument(
        "--no-checkout", action="store_true", help="Only write metadata, do not check out files"
    )

    wt_remove = worktree_commands.add_parser("remove", help="Remove a linked worktree and its branch")
    wt_remove.add_argument("workdir", help="Linked worktree directory")
    wt_remove.add_argument(
        "--force", action="store_true", help="Remove even if there are uncommitted changes"
    )

    wt_prune = worktree_commands.add_parser("prune", help="Remove metadata of deleted worktrees")
    wt_prune.add_argument("path", nargs="?", default=".", help="Any path inside the repository")

    config = commands.add_parser("config", help="Read or write git config values")
    config_commands = config.add_subparsers(dest="config_command", required=True)

    cfg_get = config_commands.add_parser("get", help="Look up a value (local, then global)")
    cfg_get.add_argument("key", help="Dotted key, e.g. user.name or remote.origin.url")
    cfg_get.add_argument("--path", default=".", help="Any path inside the repository")
    cfg_get.add_argument("--show-origin", action="store_true", help="Show the file the value came from")
    scope = cfg_get.add_mutually_exclusive_group()
    scope.add_argument("--local", action="store_true", help="Only search the repository config")
    scope.add_argument("--global", dest="global_", action="store_true", help="Only search the global config")

    cfg_set = config_commands.add_parser("set", help="Set or unset a value")
    cfg_set.add_argument("key", help="Dotted key, e.g. user.name or remote.origin.url")
    cfg_set.add_argument("value", nargs="?", help="New value (omit with --unset)")
    cfg_set.add_argument("--path", default=".", help="Any path inside the repository")
    cfg_set.add_argument("--global", dest="global_", action="store_true", help="Write the global config")
    cfg_set.add_argument("--unset", action="store_true", help="Delete the key")

    branch_root = commands.add_parser("branch-root", help="Show where a branch is checked out")
    branch_root.add_argument("root", help="Main worktree root")
    branch_root.add_argument("branch", help="Branch name")

    args = parser.parse_args(argv)
    if args.command == "config" and args.config_command == "set" and args.value is None and not args.unset:
        parser.error("config set requires a value or --unset")
    return args
