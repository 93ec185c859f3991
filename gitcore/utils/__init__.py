"""Utility functions for gitcore.

This package provides utility modules:
- fs: asynchronous filesystem helpers used by every git service
"""

from .fs import (
    read_file,
    read_file_if_exists,
    write_file,
    exists,
    is_dir,
    is_file,
    list_dir,
    make_dirs,
    remove_tree,
    copy_tree,
    is_equal_paths,
    is_within,
)

__all__ = [
    "read_file",
    "read_file_if_exists",
    "write_file",
    "exists",
    "is_dir",
    "is_file",
    "list_dir",
    "make_dirs",
    "remove_tree",
    "copy_tree",
    "is_equal_paths",
    "is_within",
]
