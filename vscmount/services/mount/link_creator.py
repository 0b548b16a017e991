"""Directory link creation and link-safe tree removal."""

import logging
import os
import stat
from pathlib import Path

from ...core.exceptions import LinkCreationFailedError


class LinkCreator:
    """Creates directory symbolic links (CreateSymbolicLink with the directory flag on Windows)."""

    def create_directory_link(self, link_path: Path, target: str) -> None:
        try:
            os.symlink(target, link_path, target_is_directory=True)
        except (OSError, NotImplementedError) as e:
            reason = getattr(e, "strerror", None) or str(e) or type(e).__name__
            raise LinkCreationFailedError(str(link_path), target, reason) from e
        logging.debug(f"Created link {link_path} -> {target}")


def _is_link_entry(entry: os.DirEntry) -> bool:
    if entry.is_symlink():
        return True
    # Junctions og andre reparse points må aldrig følges
    attributes = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    return bool(attributes & stat.FILE_ATTRIBUTE_REPARSE_POINT)


def _is_link_path(path: Path) -> bool:
    if path.is_symlink():
        return True
    attributes = getattr(os.lstat(path), "st_file_attributes", 0)
    return bool(attributes & stat.FILE_ATTRIBUTE_REPARSE_POINT)


def _remove_directory_contents(directory: Path) -> None:
    with os.scandir(directory) as entries:
        for entry in entries:
            if _is_link_entry(entry):
                logging.debug(f"Deleting link '{entry.path}'")
                os.unlink(entry.path)
            elif entry.is_dir(follow_symlinks=False):
                _remove_directory_contents(Path(entry.path))
                os.rmdir(entry.path)
            else:
                os.unlink(entry.path)


def remove_tree(path: Path) -> None:
    """
    Recursively delete path without following links.

    Links found anywhere in the tree (including path itself) are removed as links,
    so the snapshot volumes they point at are never touched.
    """
    if _is_link_path(path):
        os.unlink(path)
        return
    if not path.is_dir():
        os.unlink(path)
        return
    _remove_directory_contents(path)
    os.rmdir(path)
