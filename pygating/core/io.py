"""I/O helper functions for pygating."""
from __future__ import annotations

import os
import os.path as osp
import zipfile
from collections.abc import Iterator
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Callable

from .. import settings

SELF_AND_PARENT = (".", "..")


def is_decision_log(file: str | Path) -> bool:
    """Boolean specifying if the file name marks a gating decision log.

    Only the base name is checked; the marker may appear anywhere in it
    (e.g. ``VrSvcDPWinService.xmlLog.1`` qualifies).

    Parameters
    ----------
    file : str
        The path to the file.
    """
    return settings.get_log_file_marker() in osp.basename(file)


def is_zipfile(file: str | Path) -> bool:
    """Boolean specifying whether the file is a ZIP archive."""
    return osp.isfile(file) and zipfile.is_zipfile(file)


class TemporaryZipDirectory(TemporaryDirectory):
    """A temporary directory holding the unpacked contents of a ZIP archive. Removed on exit."""

    def __init__(self, zfile: str | Path):
        super().__init__()
        with zipfile.ZipFile(zfile) as zfiles:
            zfiles.extractall(path=self.name)


def retrieve_filenames(
    directory: str | Path,
    func: Callable[[str], bool],
    recursive: bool = True,
) -> list[str]:
    """Retrieve file names in a directory, in a deterministic order.

    Within each directory the files are returned in name order, followed by the
    files of each sub-directory (also visited in name order).

    Parameters
    ----------
    directory : str
        The directory to walk over recursively.
    func : function
        Validates whether a file name should be kept.
    recursive : bool
        Whether to search sub-directories or only the root directory.
    """
    if not osp.isdir(directory):
        raise NotADirectoryError(f"'{directory}' is not a directory")
    filenames = []
    for pdir, sdirs, files in os.walk(directory):
        # os.walk honors in-place edits of the sub-directory list
        sdirs[:] = sorted(d for d in sdirs if d not in SELF_AND_PARENT)
        for file in sorted(files):
            filename = osp.join(pdir, file)
            if osp.isfile(filename) and func(filename):
                filenames.append(filename)
        if not recursive:
            break
    return filenames


def read_lines(file: str | Path) -> Iterator[str]:
    """Yield the lines of a text file without their line terminators.

    The file is held open only while iterating and is closed even if the
    consumer stops early or a read fails. Bytes that are not valid UTF-8
    are replaced rather than raising.
    """
    with open(file, encoding="utf-8", errors="replace") as f:
        for line in f:
            yield line.rstrip("\r\n")
