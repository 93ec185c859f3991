"""Path resolution service for gitcore."""

import asyncio
import os
from typing import Optional, Union

from gitcore.exceptions import WorktreeLinkError
from gitcore.models.worktree import WorktreePaths
from gitcore.services.git import refs
from gitcore.utils import fs
from gitcore.logging_config import get_logger

logger = get_logger(__name__)

GITDIR_PREFIX = "gitdir: "
WORKTREES_DIR = "worktrees"


class PathResolver:
    """Service for locating repository roots and worktree metadata."""

    async def get_root(self, path: Union[str, os.PathLike]) -> Optional[str]:
        """Find the root directory of the repository containing `path`.

        Starting at `path` (or its parent directory when `path` is not a
        directory), walk upward until a directory containing a `.git` entry
        is found. Linked worktrees contain a `.git` file instead of a
        directory; both count.

        Args:
            path: Relative or absolute path to evaluate

        Returns:
            The root directory (relative inputs give relative results where
            possible), or None if no ancestor contains a `.git` entry
        """
        return await asyncio.to_thread(self._find_root, os.fspath(path))

    @staticmethod
    def _find_root(path: str) -> Optional[str]:
        current = os.path.normpath(path)
        if current.split(os.sep)[0] == os.pardir:
            current = os.path.abspath(current)
        if not os.path.isdir(current):
            current = os.path.dirname(current) or os.curdir

        while True:
            if os.path.lexists(os.path.join(current, ".git")):
                return current
            if current == os.curdir:
                # relative walk exhausted, continue above the working directory
                parent = os.path.dirname(os.getcwd())
            else:
                parent = os.path.dirname(current) or os.curdir
            if parent == current or (current != os.curdir and os.path.abspath(parent) == os.path.abspath(current)):
                return None
            current = parent

    async def is_linked_worktree(self, gitdir: Union[str, os.PathLike]) -> bool:
        """Check whether `gitdir` is a `.git` file (i.e. belongs to a linked worktree)."""
        return await fs.is_file(gitdir)

    async def read_gitdir_pointer(self, git_file: Union[str, os.PathLike]) -> str:
        """Resolve the administrative directory a `.git` file points to.

        A relative target is resolved against the directory holding the
        `.git` file. If nothing exists there, the target is tried as written
        (relative to the process working directory), which is how pointers
        created from relative repository roots are stored.

        Raises:
            WorktreeLinkError: If the file is malformed or its target does not exist
        """
        git_file = os.fspath(git_file)
        content = await fs.read_file_if_exists(git_file)
        if content is None or not content.startswith(GITDIR_PREFIX):
            raise WorktreeLinkError(git_file, f"'{git_file}' does not contain a gitdir pointer")

        target = content[len(GITDIR_PREFIX):].strip()
        if os.path.isabs(target):
            candidates = [target]
        else:
            candidates = [os.path.normpath(os.path.join(os.path.dirname(git_file), target)), os.path.normpath(target)]

        for candidate in candidates:
            if await fs.is_dir(candidate):
                return candidate
        raise WorktreeLinkError(git_file, f"gitdir '{target}' referenced by '{git_file}' does not exist")

    async def _read_commondir(self, admin_dir: str) -> str:
        """Locate the main git directory for a linked worktree's administrative directory."""
        content = await fs.read_file_if_exists(os.path.join(admin_dir, "commondir"))
        if content and content.strip():
            common = content.strip()
            main_gitdir = common if os.path.isabs(common) else os.path.normpath(os.path.join(admin_dir, common))
        elif os.path.basename(os.path.dirname(admin_dir)) == WORKTREES_DIR:
            # <gitdir>/worktrees/<name> without a commondir file
            main_gitdir = os.path.dirname(os.path.dirname(admin_dir))
        else:
            raise WorktreeLinkError(admin_dir, f"no commondir file in '{admin_dir}'")

        if not await fs.is_dir(main_gitdir):
            raise WorktreeLinkError(admin_dir, f"commondir '{main_gitdir}' does not exist")
        return main_gitdir

    def _admin_name(self, path: str, gitdir: str) -> Optional[str]:
        """Name of the `<gitdir>/worktrees/<name>` directory containing `path`, if any."""
        worktrees = os.path.join(gitdir, WORKTREES_DIR)
        if not fs.is_within(path, worktrees) or fs.is_equal_paths(path, worktrees):
            return None
        relative = os.path.relpath(os.path.realpath(path), os.path.realpath(worktrees))
        return relative.split(os.sep)[0]

    async def get_worktree_paths(self, path: Union[str, os.PathLike]) -> WorktreePaths:
        """Resolve the main and linked worktree locations for `path`.

        Args:
            path: Any path inside a main worktree, a linked worktree or a
                `<gitdir>/worktrees/<name>` administrative directory

        Returns:
            A WorktreePaths bundle; every field is None when `path` is not
            under version control

        Raises:
            WorktreeLinkError: If a `.git` file exists but its chain of
                administrative files cannot be resolved
        """
        path = os.fspath(path)
        root = await self.get_root(path)
        if root is None:
            logger.debug(f"No repository found for {path}")
            return WorktreePaths()

        git_entry = os.path.join(root, ".git")
        if await fs.is_dir(git_entry):
            worktrees = os.path.join(git_entry, WORKTREES_DIR)
            paths = WorktreePaths(
                dir=root,
                gitdir=git_entry,
                worktrees=worktrees if await fs.is_dir(worktrees) else None,
            )
            name = self._admin_name(path, git_entry) if paths.worktrees else None
            if name:
                admin_dir = os.path.join(worktrees, name)
                pointer = await fs.read_file_if_exists(os.path.join(admin_dir, "gitdir"))
                if pointer and pointer.strip():
                    paths.worktree_dir = os.path.dirname(pointer.strip())
                    paths.worktree_gitdir = pointer.strip()
                    paths.worktree_link = admin_dir
            return paths

        admin_dir = await self.read_gitdir_pointer(git_entry)
        main_gitdir = await self._read_commondir(admin_dir)
        worktrees = os.path.join(main_gitdir, WORKTREES_DIR)
        return WorktreePaths(
            dir=os.path.dirname(main_gitdir) or os.curdir,
            gitdir=main_gitdir,
            worktrees=worktrees if await fs.is_dir(worktrees) else None,
            worktree_dir=root,
            worktree_gitdir=git_entry,
            worktree_link=os.path.join(worktrees, os.path.basename(admin_dir)),
        )

    async def get_branch_root(self, root: Union[str, os.PathLike], branch: str) -> Optional[str]:
        """Find the working directory that has `branch` checked out.

        For the current branch of the main worktree this is the main root;
        for a branch checked out in a linked worktree it is the directory
        recorded in `.git/worktrees/<branch>/gitdir`.

        Args:
            root: Path to the main worktree root
            branch: Short branch name

        Returns:
            The worktree directory, or None if the branch is not checked out
            anywhere (e.g. a remote-only branch)
        """
        paths = await self.get_worktree_paths(root)
        if not paths.gitdir:
            return None

        symref, _ = await refs.read_head(paths.gitdir)
        if symref and refs.short_name(symref) == branch:
            return paths.dir

        worktrees = os.path.join(paths.gitdir, WORKTREES_DIR)
        pointer = await fs.read_file_if_exists(os.path.join(worktrees, branch, "gitdir"))
        if pointer and pointer.strip():
            return os.path.dirname(pointer.strip())

        # admin directories are not always named after the branch they hold
        for name in await fs.list_dir(worktrees):
            symref, _ = await refs.read_head(os.path.join(worktrees, name))
            if symref == refs.branch_ref(branch):
                pointer = await fs.read_file_if_exists(os.path.join(worktrees, name, "gitdir"))
                if pointer and pointer.strip():
                    return os.path.dirname(pointer.strip())
        return None
