"""Tarball extraction and line counting utilities."""

import io
import os
import shutil
import tarfile
from pathlib import Path
from typing import BinaryIO, Union

_CHUNK_SIZE = 64 * 1024


def extract_archive(dest: Union[str, Path], data: Union[bytes, BinaryIO]) -> None:
    """Unpack a gzip-compressed tar stream into ``dest``.

    Only directories and regular files are materialized; links, devices
    and members that would land outside ``dest`` are skipped. Relative
    paths and permission bits of regular files are preserved.
    """
    dest = Path(dest)
    fileobj = io.BytesIO(data) if isinstance(data, (bytes, bytearray)) else data
    root = dest.resolve()

    with tarfile.open(fileobj=fileobj, mode="r:gz") as tar:
        for member in tar:
            target = (dest / member.name).resolve()
            if target != root and root not in target.parents:
                continue

            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
            elif member.isreg():
                target.parent.mkdir(parents=True, exist_ok=True)
                source = tar.extractfile(member)
                if source is None:
                    continue
                with source, open(target, "wb") as out:
                    shutil.copyfileobj(source, out, _CHUNK_SIZE)
                # owner keeps read/write so the tree can be analyzed and removed
                os.chmod(target, (member.mode & 0o7777) | 0o600)


def count_lines(stream: BinaryIO) -> int:
    """Count newline characters in a binary stream."""
    count = 0
    for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
        count += chunk.count(b"\n")
    return count
