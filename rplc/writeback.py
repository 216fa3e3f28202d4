"""
# rplc: writeback.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Atomic replacement of file content.

New content is written to a temporary file in the same directory as the target
(hence on the same file system), which is then renamed over the target.
The target is therefore never observed partially written, even after a crash.
"""

import mmap
import os
import stat
import tempfile

from rplc.exceptions import InvalidPathException


def copy_permission_bits(source_path: str, destination_file_descriptor: int):
    """
    Copy permission bits, as a best effort (not every file system supports them).
    """
    try:
        mode = stat.S_IMODE(os.stat(source_path).st_mode)
        os.fchmod(destination_file_descriptor, mode)
    except (AttributeError, OSError):  # `os.fchmod` is absent on Windows before Python 3.13
        pass


def write_with_temp(path: str, data: bytes):
    path = os.path.realpath(path, strict=True)
    directory = os.path.dirname(path)
    if not os.path.isdir(directory):
        raise InvalidPathException(path)

    temp_file = tempfile.NamedTemporaryFile(
        mode='r+b',
        dir=directory,
        prefix=f'.{os.path.basename(path)}.',
        suffix='.tmp',
        delete=False,
    )
    try:
        with temp_file:
            file_descriptor = temp_file.fileno()
            os.ftruncate(file_descriptor, len(data))
            copy_permission_bits(path, file_descriptor)

            if len(data) > 0:  # zero-length files cannot be mapped
                with mmap.mmap(file_descriptor, len(data), access=mmap.ACCESS_WRITE) as temp_map:
                    temp_map[:] = data
                    temp_map.flush()
            os.fsync(file_descriptor)

        os.replace(temp_file.name, path)
    except BaseException:
        if os.path.exists(temp_file.name):
            os.unlink(temp_file.name)
        raise
