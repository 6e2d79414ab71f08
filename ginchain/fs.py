"""File systems for serving static files."""

from __future__ import annotations

import io
import os
import posixpath
from typing import BinaryIO, Protocol


class FileSystem(Protocol):
    def open(self, name: str) -> BinaryIO: ...

    def readdir(self, name: str) -> list[str]: ...


class DirFS:
    """A file system rooted at a directory; names are slash-separated."""

    def __init__(self, root: str):
        self.root = root or "."

    def _resolve(self, name: str) -> str:
        if os.sep != "/" and os.sep in name:
            raise ValueError("invalid character in file path")
        if "\x00" in name:
            raise ValueError("invalid character in file path")
        cleaned = posixpath.normpath("/" + name).lstrip("/")
        if not cleaned:
            return self.root
        return os.path.join(self.root, *cleaned.split("/"))

    def open(self, name: str) -> BinaryIO:
        """Open the named file for binary reading."""
        return io.open(self._resolve(name), "rb")

    def readdir(self, name: str) -> list[str]:
        """List the entries of the named directory, sorted."""
        with os.scandir(self._resolve(name)) as entries:
            return sorted(entry.name for entry in entries)


class OnlyFilesFS:
    """Wraps a file system so that directories cannot be listed."""

    def __init__(self, fs: FileSystem):
        self.fs = fs

    def open(self, name: str) -> BinaryIO:
        """Open the named file through the wrapped file system."""
        return self.fs.open(name)

    def readdir(self, name: str) -> list[str]:
        """Hide the entries of a directory.

        The wrapped file system is still consulted, so a missing or invalid
        directory raises as it would there; the entries themselves are withheld.
        """
        entries = self.fs.readdir(name)
        return [entry for entry in entries if False]


def make_dir(root: str, list_directory: bool) -> DirFS | OnlyFilesFS:
    """Return a file system for ``root``, with listing only if requested."""
    fs = DirFS(root)
    if list_directory:
        return fs
    return OnlyFilesFS(fs)