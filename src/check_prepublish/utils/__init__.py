"""Utility exports for workspace directories and forced removal."""

from check_prepublish.utils.fs import (
    create_workspace_dir,
    force_remove_file,
    force_remove_tree,
    get_tmp_root,
)

__all__ = [
    "create_workspace_dir",
    "force_remove_file",
    "force_remove_tree",
    "get_tmp_root",
]
