"""Tests for PathResolver"""
import os

import pytest

from gitcore.exceptions import WorktreeLinkError
from gitcore.models.worktree import WorktreePaths
from gitcore.services.git.path_resolver import PathResolver


@pytest.fixture
def resolver():
    return PathResolver()


class TestGetRoot:
    """Test locating the repository root."""

    async def test_file_in_tracked_directory(self, path_layout, resolver):
        """Test root of a tracked file."""
        assert await resolver.get_root("foo/add.ts") == "foo"

    async def test_untracked_file_in_nested_directory(self, path_layout, layout, resolver):
        """Test root of an untracked file below the repository root."""
        layout({"foo": {"haze": {"test.js": "content"}}})
        assert await resolver.get_root("foo/haze/test.js") == "foo"

    async def test_root_directory_itself(self, path_layout, resolver):
        """Test that a root directory resolves to itself."""
        assert await resolver.get_root("foo") == "foo"

    async def test_linked_worktree_root(self, path_layout, resolver):
        """Test that a `.git` file marks a root just like a `.git` directory."""
        assert await resolver.get_root(".syn/bad-branch/delta.txt") == ".syn/bad-branch"

    async def test_absolute_path(self, repo_root, resolver):
        """Test absolute paths give absolute roots."""
        assert await resolver.get_root(os.path.join(repo_root, "README.md")) == repo_root

    async def test_outside_repository(self, temp_dir, resolver):
        """Test paths without a `.git` ancestor."""
        assert await resolver.get_root(str(temp_dir / "nowhere" / "file.txt")) is None


class TestGetWorktreePaths:
    """Test resolution of main and linked worktree metadata."""

    async def test_main_worktree_file(self, path_layout, resolver):
        """Test path to a file in the main worktree."""
        paths = await resolver.get_worktree_paths("foo/add.ts")
        assert paths == WorktreePaths(
            dir="foo",
            gitdir=os.path.join("foo", ".git"),
            worktrees=os.path.join("foo", ".git", "worktrees"),
        )
        assert paths.is_repository
        assert not paths.is_linked

    async def test_repository_without_linked_worktrees(self, path_layout, resolver):
        """Test that `worktrees` is unset when the directory does not exist."""
        paths = await resolver.get_worktree_paths("bar/beta.ts")
        assert paths == WorktreePaths(dir="bar", gitdir=os.path.join("bar", ".git"))

    async def test_linked_worktree_file(self, path_layout, resolver):
        """Test path to a file in a linked worktree."""
        paths = await resolver.get_worktree_paths(".syn/bad-branch/delta.txt")
        admin = os.path.join("foo", ".git", "worktrees", "bad-branch")
        assert paths.dir == "foo"
        assert paths.gitdir == os.path.join("foo", ".git")
        assert paths.worktrees == os.path.join("foo", ".git", "worktrees")
        assert paths.worktree_dir == ".syn/bad-branch"
        assert paths.worktree_gitdir == ".syn/bad-branch/.git"
        assert paths.worktree_link == admin
        assert paths.is_linked

    async def test_path_inside_worktrees_directory(self, path_layout, resolver):
        """Test path inside `<gitdir>/worktrees/<name>`."""
        paths = await resolver.get_worktree_paths("foo/.git/worktrees/bad-branch")
        admin = os.path.join("foo", ".git", "worktrees", "bad-branch")
        assert paths.dir == "foo"
        assert paths.gitdir == os.path.join("foo", ".git")
        assert paths.worktree_dir == ".syn/bad-branch"
        assert paths.worktree_gitdir == ".syn/bad-branch/.git"
        assert paths.worktree_link == admin

    async def test_linked_worktree_with_commondir(self, linked_layout, resolver):
        """Test that `commondir` locates the main git directory."""
        paths = await resolver.get_worktree_paths("foo/bar")
        admin = os.path.join("baseRepo", ".git", "worktrees", "foo")
        assert paths.dir == "baseRepo"
        assert paths.gitdir == os.path.join("baseRepo", ".git")
        assert paths.worktree_dir == "foo"
        assert paths.worktree_gitdir == os.path.join("foo", ".git")
        assert paths.worktree_link == admin

    async def test_not_a_repository(self, layout, resolver):
        """Test that every field is None outside a repository."""
        layout({"loose": {"notes.txt": "content"}})
        paths = await resolver.get_worktree_paths("loose/notes.txt")
        assert paths == WorktreePaths()
        assert not paths.is_repository

    async def test_dangling_pointer(self, layout, resolver):
        """Test a `.git` file pointing at a missing directory."""
        layout({"broken": {".git": "gitdir: missing/admin\n"}})
        with pytest.raises(WorktreeLinkError):
            await resolver.get_worktree_paths("broken")

    async def test_malformed_pointer(self, layout, resolver):
        """Test a `.git` file without a gitdir line."""
        layout({"broken": {".git": "nonsense\n"}})
        with pytest.raises(WorktreeLinkError):
            await resolver.get_worktree_paths("broken")


class TestReadGitdirPointer:
    """Test parsing of `.git` files."""

    async def test_relative_to_git_file(self, layout, resolver):
        """Test that targets next to the `.git` file win."""
        layout({"nested": {".git": "gitdir: admin\n", "admin": {}}})
        assert await resolver.read_gitdir_pointer("nested/.git") == os.path.join("nested", "admin")

    async def test_relative_to_working_directory(self, path_layout, resolver):
        """Test the fallback to the process working directory."""
        target = await resolver.read_gitdir_pointer(".syn/bad-branch/.git")
        assert target == os.path.join("foo", ".git", "worktrees", "bad-branch")

    async def test_is_linked_worktree(self, path_layout, resolver):
        """Test telling `.git` files from `.git` directories."""
        assert await resolver.is_linked_worktree(".syn/bad-branch/.git") is True
        assert await resolver.is_linked_worktree("foo/.git") is False


class TestGetBranchRoot:
    """Test locating the worktree that has a branch checked out."""

    async def test_branch_on_main_worktree(self, path_layout, resolver):
        """Test the current branch of the main worktree."""
        assert await resolver.get_branch_root("foo", "main") == "foo"

    async def test_branch_on_linked_worktree(self, path_layout, resolver):
        """Test a branch whose admin directory is named after it."""
        assert await resolver.get_branch_root("foo", "bad-branch") == ".syn/bad-branch"

    async def test_branch_not_checked_out(self, path_layout, resolver):
        """Test a branch that no worktree has checked out."""
        assert await resolver.get_branch_root("foo", "remote-only") is None

    async def test_admin_name_differs_from_branch(self, linked_layout, layout, resolver):
        """Test scanning admin HEAD files for the branch."""
        layout({
            "baseRepo": {".git": {"worktrees": {"wt1": {
                "HEAD": "ref: refs/heads/topic\n",
                "gitdir": "/elsewhere/topic/.git\n",
            }}}}
        })
        assert await resolver.get_branch_root("baseRepo", "topic") == "/elsewhere/topic"

    async def test_not_a_repository(self, linked_layout, resolver):
        """Test a root outside any repository."""
        assert await resolver.get_branch_root("bar", "master") is None
