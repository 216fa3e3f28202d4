"""
# rplc: sources.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Input sources.

A file source is memory-mapped read-only, so that its content is never copied.
Standard input has no backing file to map, so its bytes are read into an owned buffer.
"""

import abc
import mmap
import os
import sys
import warnings
from typing import Iterable, Union

from rplc.constants import (
    LARGE_FILE_WARNING_THRESHOLD_BYTES,
    STANDARD_INPUT_DISPLAY_NAME,
    STANDARD_INPUT_PATH_ARGUMENT,
)
from rplc.exceptions import InvalidPathException


class Source(abc.ABC):
    @abc.abstractmethod
    def display(self) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def load(self) -> Union[mmap.mmap, bytes]:
        """
        Load the content of the source as a read-only byte buffer.

        The buffer shall be passed to `release_content(...)` once no longer needed.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.display()!r})'


class FileSource(Source):
    _path: str

    def __init__(self, path: str):
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def display(self) -> str:
        return self._path

    def load(self) -> Union[mmap.mmap, bytes]:
        if not os.path.exists(self._path):
            raise InvalidPathException(self._path)

        with open(self._path, 'rb') as file:
            if os.fstat(file.fileno()).st_size == 0:  # empty files cannot be mapped
                return b''

            content = mmap.mmap(file.fileno(), 0, access=mmap.ACCESS_READ)

        if len(content) > LARGE_FILE_WARNING_THRESHOLD_BYTES:
            warnings.warn(
                f'warning: `{self._path}` is large ({len(content)} bytes); '
                f'all of it must be resident in memory, which may cause performance issues'
            )

        return content

    def __eq__(self, other) -> bool:
        return isinstance(other, FileSource) and other._path == self._path

    def __hash__(self) -> int:
        return hash((FileSource, self._path))


class StandardInputSource(Source):
    def display(self) -> str:
        return STANDARD_INPUT_DISPLAY_NAME

    def load(self) -> bytes:
        return sys.stdin.buffer.read()

    def __eq__(self, other) -> bool:
        return isinstance(other, StandardInputSource)

    def __hash__(self) -> int:
        return hash(StandardInputSource)


def sources_from_paths(paths: Iterable[str]) -> list[Source]:
    """
    Build sources from command-line paths.

    An empty list of paths means standard input, as does the path `-`.
    """
    sources: list[Source] = [
        StandardInputSource() if path == STANDARD_INPUT_PATH_ARGUMENT else FileSource(path)
        for path in paths
    ]

    if len(sources) == 0:
        return [StandardInputSource()]

    return sources


def release_content(content):
    if isinstance(content, mmap.mmap):
        content.close()
