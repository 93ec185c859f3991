"""Command-line interface for gitcore"""

import asyncio
import os
import sys
from typing import List, Optional

from rich.console import Console

from gitcore.cli.args import parse_args
from gitcore.config import Config
from gitcore.core import GitCore
from gitcore.exceptions import GitCoreError
from gitcore.logging_config import setup_logging
from gitcore.models.repository import Repository
from gitcore.services.display_service import DisplayService
from gitcore.utils import fs

console = Console()


async def run_command(args, core: GitCore, display: DisplayService) -> int:
    """Execute a parsed command; returns the process exit code."""
    if args.command == "status":
        if args.matrix:
            rows = await core.status.status_matrix(args.path)
            if rows is None:
                console.print(f"[red]{args.path} is not under version control[/red]")
                return 1
            display.display_matrix(rows)
        elif await fs.is_dir(args.path):
            root = await core.resolver.get_root(args.path)
            status = await core.status.worktree_status(root or args.path, pathspec=args.path, ignored=args.ignored)
            if status is None:
                console.print(f"[red]{args.path} is not under version control[/red]")
                return 1
            display.display_status(status)
        else:
            display.display_file_status(args.path, await core.status.file_status(args.path))
        return 0

    if args.command == "paths":
        paths = await core.resolver.get_worktree_paths(args.path)
        if not paths.is_repository:
            console.print(f"[red]{args.path} is not under version control[/red]")
            return 1
        display.display_paths(paths)
        return 0

    if args.command == "worktree":
        return await _run_worktree(args, core, display)

    if args.command == "config":
        if args.config_command == "get":
            local = not args.global_
            global_ = not args.local
            found = await core.config_store.get_config(
                args.path, args.key, local=local, global_=global_, show_origin=args.show_origin
            )
            display.display_config(args.key, found)
            return 0 if found.found else 1

        scope = "global" if args.global_ else "local"
        value = None if args.unset else args.value
        contents = await core.config_store.set_config(args.path, scope, args.key, value)
        if contents is None:
            console.print(f"[red]No readable {scope} config file[/red]")
            return 1
        action = "Unset" if value is None else "Set"
        console.print(f"[green]{action} {args.key} ({scope})[/green]")
        return 0

    if args.command == "branch-root":
        root = await core.resolver.get_branch_root(args.root, args.branch)
        if root is None:
            console.print(f"[yellow]{args.branch} is not checked out in any worktree[/yellow]")
            return 1
        console.print(root)
        return 0

    return 1


async def _run_worktree(args, core: GitCore, display: DisplayService) -> int:
    if args.worktree_command == "list":
        worktrees = await core.worktrees.list(args.path)
        if worktrees is None:
            console.print(f"[red]{args.path} is not under version control[/red]")
            return 1
        display.display_worktrees(worktrees)
        return 0

    if args.worktree_command == "add":
        root = await core.resolver.get_root(args.root)
        if root is None:
            console.print(f"[red]{args.root} is not under version control[/red]")
            return 1
        name = os.path.basename(os.path.abspath(root))
        worktree = await core.worktrees.add(
            Repository(id=name, name=name, root=root), args.workdir, args.ref, no_checkout=args.no_checkout
        )
        console.print(f"[green]Added worktree {worktree}[/green]")
        return 0

    if args.worktree_command == "remove":
        worktrees = await core.worktrees.list(args.workdir) or []
        match = next((w for w in worktrees if fs.is_equal_paths(w.path, args.workdir)), None)
        if match is None:
            console.print(f"[red]{args.workdir} is not a worktree[/red]")
            return 1
        if match.main:
            console.print("[yellow]The main worktree cannot be removed[/yellow]")
            return 1
        if not await core.worktrees.remove(match, force=args.force):
            console.print(f"[yellow]Not removed: {args.workdir} has uncommitted changes (use --force)[/yellow]")
            return 1
        console.print(f"[green]Removed worktree {args.workdir}[/green]")
        return 0

    pruned = await core.worktrees.prune(args.path)
    for name in pruned:
        console.print(f"Pruned {name}")
    if not pruned:
        console.print("[dim]Nothing to prune[/dim]")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point for the application."""
    parsed_args = None
    try:
        # Parse command line arguments
        parsed_args = parse_args(argv)

        # Setup logging before creating GitCore
        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug, log_file=parsed_args.log_file)

        config = Config(
            remote_name=parsed_args.remote,
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
        )

        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        core = GitCore(config)
        display = DisplayService(verbose=parsed_args.verbose, debug=parsed_args.debug)
        return asyncio.run(run_command(parsed_args, core, display))
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except GitCoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
