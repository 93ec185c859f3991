"""Tests for WorktreeManager"""
import os
import shutil
import typing
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from gitcore.exceptions import BranchAlreadyCheckedOutError, NotARepositoryError, WorktreeLinkError
from gitcore.models.repository import Repository
from gitcore.models.status import GitStatus
from gitcore.models.worktree import Worktree
from gitcore.services.git.worktrees import WorktreeManager

SHA = "f204b02baf1322ee079fe9768e9593509d683412"
OTHER_SHA = "9b1f0c2a4d8e6f3a5b7c9d1e2f4a6b8c0d2e4f6a"


def read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


@pytest.fixture
def base_repo():
    """Repository descriptor as the application would hand it over."""
    return Repository(
        id="23",
        name="sampleUser/baseRepo",
        root="baseRepo/",
        url="https://github.com/sampleUser/baseRepo",
        cors_proxy="http://www.oregonstate.edu",
        local=["master", "hotfix"],
        remote=[],
        oauth="github",
        username="sampleUser",
        password="12345",
        token="584n29dkj1683a67f302x009q164",
    )


class TestList:
    """Test listing worktrees."""

    async def test_from_main_worktree(self, linked_layout, core):
        """Test listing from the main worktree directory."""
        worktrees = await core.worktrees.list("baseRepo/")
        assert [(w.path, w.ref, w.main) for w in worktrees] == [
            (os.path.join(os.getcwd(), "baseRepo"), "master", True),
            (os.path.join(os.getcwd(), "foo"), "foo", False),
        ]
        assert all(w.rev == SHA for w in worktrees)
        assert worktrees[1].id == "foo"

    async def test_from_linked_worktree(self, linked_layout, core):
        """Test listing from a linked worktree directory."""
        worktrees = await core.worktrees.list("foo/")
        assert [(w.path, w.ref) for w in worktrees] == [
            (os.path.join(os.getcwd(), "baseRepo"), "master"),
            (os.path.join(os.getcwd(), "foo"), "foo"),
        ]

    async def test_without_linked_worktrees(self, linked_layout, core):
        """Test a repository with only its main worktree."""
        worktrees = await core.worktrees.list("bazRepo/")
        assert len(worktrees) == 1
        assert worktrees[0].path == os.path.join(os.getcwd(), "bazRepo")
        assert worktrees[0].ref == "master"
        assert not worktrees[0].detached

    async def test_not_a_repository(self, linked_layout, core):
        """Test listing a directory outside version control."""
        assert await core.worktrees.list("bar/") is None


class TestAdd:
    """Test creating linked worktrees."""

    async def test_existing_branch(self, add_layout, core, base_repo):
        """Test the administrative files written for a branch."""
        worktree = await core.worktrees.add(base_repo, "foo/", "hotfix", no_checkout=True)

        admin = os.path.join("baseRepo", ".git", "worktrees", "hotfix")
        assert read("foo/.git") == f"gitdir: {admin}\n"
        assert read(os.path.join(admin, "HEAD")) == "ref: refs/heads/hotfix\n"
        assert read(os.path.join(admin, "ORIG_HEAD")) == f"{SHA}\n"
        assert read(os.path.join(admin, "commondir")) == "../..\n"
        assert read(os.path.join(admin, "gitdir")) == os.path.join(os.getcwd(), "foo", ".git") + "\n"

        assert worktree.id == "hotfix"
        assert worktree.path == os.path.join(os.getcwd(), "foo")
        assert worktree.ref == "hotfix"
        assert worktree.rev == SHA
        assert not worktree.detached
        assert not worktree.main

    async def test_commit_id(self, add_layout, core, base_repo):
        """Test a detached worktree for a raw commit id."""
        worktree = await core.worktrees.add(base_repo, "foo/", SHA, no_checkout=True)

        admin = os.path.join("baseRepo", ".git", "worktrees", SHA[:7])
        assert read("foo/.git") == f"gitdir: {admin}\n"
        assert read(os.path.join(admin, "HEAD")) == f"{SHA}\n"
        assert read(os.path.join(admin, "ORIG_HEAD")) == f"{SHA}\n"
        assert worktree.detached
        assert worktree.ref is None

    async def test_admin_name_suffix(self, add_layout, core, base_repo):
        """Test that a taken admin name gets a numeric suffix."""
        await core.worktrees.add(base_repo, "foo/", SHA, no_checkout=True)
        worktree = await core.worktrees.add(base_repo, "other/", SHA, no_checkout=True)
        assert worktree.id == f"{SHA[:7]}1"
        assert read("other/.git").endswith(f"{SHA[:7]}1\n")

    async def test_new_branch_from_head(self, add_layout, core, base_repo):
        """Test that a missing branch starts at HEAD."""
        await core.worktrees.add(base_repo, "foo/", "feature/login", no_checkout=True)

        admin = os.path.join("baseRepo", ".git", "worktrees", "feature-login")
        assert read(os.path.join(admin, "HEAD")) == "ref: refs/heads/feature/login\n"
        assert read("baseRepo/.git/refs/heads/feature/login") == f"{SHA}\n"

    async def test_new_branch_from_remote(self, add_layout, layout, core, base_repo):
        """Test that a remote-tracking branch is preferred over HEAD."""
        layout({"baseRepo": {".git": {"refs": {"remotes": {"origin": {"remote-only": f"{OTHER_SHA}\n"}}}}}})
        await core.worktrees.add(base_repo, "foo/", "remote-only", no_checkout=True)

        assert read("baseRepo/.git/refs/heads/remote-only") == f"{OTHER_SHA}\n"
        assert read("baseRepo/.git/worktrees/remote-only/ORIG_HEAD") == f"{OTHER_SHA}\n"

    async def test_branch_already_checked_out(self, add_layout, core, base_repo):
        """Test that the branch of the main worktree cannot be added again."""
        with pytest.raises(BranchAlreadyCheckedOutError) as exc_info:
            await core.worktrees.add(base_repo, "foo/", "master", no_checkout=True)
        assert exc_info.value.path == "baseRepo"
        assert not os.path.exists("foo/.git")

    async def test_branch_checked_out_in_linked_worktree(self, git_repo_with_branches, temp_dir, core):
        """Test that a branch held by a linked worktree cannot be added again."""
        root = git_repo_with_branches.working_dir
        repo = Repository(id="test_repo", name="test_repo", root=root)
        first = await core.worktrees.add(repo, str(temp_dir / "first"), "feature")

        with pytest.raises(BranchAlreadyCheckedOutError) as exc_info:
            await core.worktrees.add(repo, str(temp_dir / "second"), "feature")

        assert os.path.realpath(exc_info.value.path) == os.path.realpath(first.path)
        assert not (temp_dir / "second" / ".git").exists()

    async def test_target_already_linked(self, add_layout, layout, core, base_repo):
        """Test that an existing `.git` entry is never overwritten."""
        layout({"taken": {".git": "gitdir: elsewhere\n"}})
        with pytest.raises(WorktreeLinkError):
            await core.worktrees.add(base_repo, "taken/", "hotfix", no_checkout=True)
        assert read("taken/.git") == "gitdir: elsewhere\n"

    async def test_not_a_repository(self, add_layout, core):
        """Test adding to a directory outside version control."""
        with pytest.raises(NotARepositoryError):
            await core.worktrees.add(Repository(id="1", name="foo", root="foo/"), "other/", "hotfix")

    async def test_checks_out_files(self, git_repo_with_branches, temp_dir, core):
        """Test that a real worktree is populated from its branch."""
        root = git_repo_with_branches.working_dir
        workdir = str(temp_dir / "feature-tree")
        repo = Repository(id="test_repo", name="test_repo", root=root)

        worktree = await core.worktrees.add(repo, workdir, "feature")

        assert (Path(workdir) / "feature.txt").read_text() == "Feature content\n"
        assert worktree.rev == git_repo_with_branches.heads["feature"].commit.hexsha
        assert await core.status.get_status(workdir) == GitStatus.UNMODIFIED


class TestRemove:
    """Test removing linked worktrees."""

    async def test_clean_worktree(self, linked_layout, core, monkeypatch):
        """Test that a clean worktree is removed with its branch."""
        monkeypatch.setattr(core.status, "get_status", AsyncMock(return_value=GitStatus.UNMODIFIED))
        worktrees = await core.worktrees.list("baseRepo")

        assert await core.worktrees.remove(worktrees[1]) is True
        assert not os.path.exists("foo")
        assert not os.path.exists("baseRepo/.git/worktrees/foo")
        assert not os.path.exists("baseRepo/.git/refs/heads/foo")
        assert os.path.exists("baseRepo/.git/refs/heads/master")

    async def test_dirty_worktree(self, linked_layout, core, monkeypatch):
        """Test that uncommitted changes block removal."""
        monkeypatch.setattr(core.status, "get_status", AsyncMock(return_value=GitStatus.UNSTAGED_MODIFIED))
        worktrees = await core.worktrees.list("baseRepo")

        assert await core.worktrees.remove(worktrees[1]) is False
        assert os.path.exists("foo/bar")
        assert os.path.exists("baseRepo/.git/worktrees/foo")
        assert os.path.exists("baseRepo/.git/refs/heads/foo")

    async def test_dirty_worktree_forced(self, linked_layout, core, monkeypatch):
        """Test that `force` removes a dirty worktree."""
        monkeypatch.setattr(core.status, "get_status", AsyncMock(return_value=GitStatus.UNSTAGED_MODIFIED))
        worktrees = await core.worktrees.list("baseRepo")

        assert await core.worktrees.remove(worktrees[1], force=True) is True
        assert not os.path.exists("foo")

    async def test_main_worktree(self, linked_layout, core, monkeypatch):
        """Test that the main worktree is never removed."""
        get_status = AsyncMock(return_value=GitStatus.UNMODIFIED)
        monkeypatch.setattr(core.status, "get_status", get_status)
        worktrees = await core.worktrees.list("baseRepo")

        assert await core.worktrees.remove(worktrees[0], force=True) is False
        assert os.path.exists("baseRepo/.git")
        get_status.assert_not_called()

    async def test_real_worktree(self, git_repo, temp_dir, core):
        """Test removing a worktree created by `add`."""
        workdir = str(temp_dir / "topic-tree")
        repo = Repository(id="test_repo", name="test_repo", root=git_repo.working_dir)
        worktree = await core.worktrees.add(repo, workdir, "topic")

        assert await core.worktrees.remove(worktree) is True
        assert not os.path.exists(workdir)
        assert "topic" not in [head.name for head in git_repo.heads]
        assert len(await core.worktrees.list(git_repo.working_dir)) == 1


class TestPrune:
    """Test pruning stale administrative directories."""

    async def test_prunes_missing_worktree(self, linked_layout, core):
        """Test that an admin directory without its working directory is deleted."""
        shutil.rmtree("foo")
        assert await core.worktrees.prune("baseRepo") == ["foo"]
        assert not os.path.exists("baseRepo/.git/worktrees/foo")

    async def test_keeps_existing_worktree(self, linked_layout, core):
        """Test that live worktrees are kept."""
        assert await core.worktrees.prune("baseRepo") == []
        assert os.path.exists("baseRepo/.git/worktrees/foo")

    def test_signatures_resolve(self):
        """Test that annotations are not shadowed by the `list` method."""
        hints = typing.get_type_hints(WorktreeManager.prune)
        assert hints["return"] == typing.List[str]
        assert typing.get_type_hints(WorktreeManager.list)["return"] == typing.Optional[typing.List[Worktree]]
