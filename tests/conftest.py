"""Pytest fixtures for gitcore tests"""
import logging
import os
import tempfile
from pathlib import Path

import git
import pytest

from gitcore.config import Config
from gitcore.core import GitCore

SHA = "f204b02baf1322ee079fe9768e9593509d683412"
OTHER_SHA = "9b1f0c2a4d8e6f3a5b7c9d1e2f4a6b8c0d2e4f6a"

CORE_CONFIG = """[core]
\trepositoryformatversion = 0
\tfilemode = true
\tbare = false
\tlogallrefupdates = true
"""


def build_tree(base: Path, tree: dict) -> None:
    """Create directories (dict values) and UTF-8 files (str values) below `base`."""
    for name, content in tree.items():
        path = base / name
        if isinstance(content, dict):
            path.mkdir(parents=True, exist_ok=True)
            build_tree(path, content)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")


def fake_gitdir(heads: dict, head: str = "master", worktrees: dict = None) -> dict:
    """Layout of a `.git` directory holding refs but no objects."""
    layout = {
        "HEAD": f"ref: refs/heads/{head}\n",
        "branches": {},
        "config": CORE_CONFIG,
        "description": "Unnamed repository; edit this file 'description' to name the repository.",
        "hooks": {},
        "info": {"exclude": "# git ls-files --others --exclude-from=.git/info/exclude\n.DS_Store\n"},
        "objects": {"info": {}, "pack": {}},
        "refs": {
            "heads": {name: f"{sha}\n" for name, sha in heads.items()},
            "tags": {},
        },
    }
    if worktrees is not None:
        layout["worktrees"] = worktrees
    return layout


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def layout(tmp_path, monkeypatch):
    """Return a builder that creates a file tree inside the (current) test directory."""
    monkeypatch.chdir(tmp_path)

    def _build(tree: dict) -> Path:
        build_tree(tmp_path, tree)
        return tmp_path

    return _build


@pytest.fixture
def path_layout(layout):
    """A main repository `foo` with a linked worktree under `.syn`, and a bare-bones repository `bar`."""
    layout({
        ".syn": {
            "bad-branch": {
                ".git": "gitdir: foo/.git/worktrees/bad-branch",
                "delta.txt": "file contents",
            }
        },
        "foo": {
            "add.ts": "content",
            ".git": {
                "HEAD": "ref: refs/heads/main\n",
                "worktrees": {
                    "bad-branch": {
                        "gitdir": ".syn/bad-branch/.git",
                    }
                },
            },
        },
        "bar": {
            "beta.ts": "content",
            ".git": {},
        },
    })


@pytest.fixture
def linked_layout(layout):
    """`baseRepo` with branch `foo` checked out in the linked worktree `foo`, plus `bazRepo` and a plain `bar`."""
    cwd = os.getcwd()
    return layout({
        "baseRepo": {
            ".git": fake_gitdir(
                {"master": SHA, "foo": SHA},
                worktrees={
                    "foo": {
                        "HEAD": "ref: refs/heads/foo\n",
                        "ORIG_HEAD": f"{SHA}\n",
                        "commondir": "../..\n",
                        "gitdir": os.path.join(cwd, "foo", ".git"),
                    }
                },
            )
        },
        "foo": {
            ".git": "gitdir: baseRepo/.git/worktrees/foo\n",
            "bar": "file contents",
        },
        "bazRepo": {
            ".git": fake_gitdir({"master": SHA}),
        },
        "bar": {},
    })


@pytest.fixture
def add_layout(layout):
    """`baseRepo` with branches `master` and `hotfix`, and an empty target directory `foo`."""
    return layout({
        "baseRepo": {
            ".git": fake_gitdir({"master": SHA, "hotfix": SHA}),
        },
        "foo": {
            "bar": "file contents",
        },
    })


@pytest.fixture
def global_config(tmp_path_factory):
    """A global git config file isolated from the user's real one."""
    path = tmp_path_factory.mktemp("home") / ".gitconfig"
    path.write_text("[core]\n\tpager = less\n", encoding="utf-8")
    return path


@pytest.fixture
def config(global_config):
    """Create a gitcore configuration reading the isolated global config."""
    return Config(global_config_path=str(global_config))


@pytest.fixture
def core(config):
    """Create a GitCore context."""
    return GitCore(config)


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def repo_root(git_repo):
    """Working directory of the real repository."""
    return git_repo.working_dir


@pytest.fixture
def git_repo_with_branches(git_repo):
    """Create a Git repository with a `feature` branch one commit ahead of `main`."""
    repo = git_repo
    repo_path = Path(repo.working_dir)

    repo.git.checkout("-b", "feature")
    feature_file = repo_path / "feature.txt"
    feature_file.write_text("Feature content\n")
    repo.index.add(["feature.txt"])
    repo.index.commit("Add feature")

    repo.git.checkout("main")

    yield repo


@pytest.fixture
def anonymous_repo(git_repo):
    """The real repository with its user.name/user.email removed."""
    with git_repo.config_writer() as writer:
        writer.remove_section("user")
    return git_repo


@pytest.fixture
def restore_root_logger():
    """Undo the handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    git_level = logging.getLogger("git").level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("git").setLevel(git_level)
