from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from shimmer.fs import PathLike

CHUNK_SIZE = 1024 * 1024  # 1MB chunks for hashing


def calculate_stream_sha1(stream: BinaryIO) -> str:
    """SHA-1 of everything remaining in stream, as uppercase hex without separators."""
    if not stream.readable():
        raise ValueError("stream must be readable")
    hasher = hashlib.sha1()
    while chunk := stream.read(CHUNK_SIZE):
        hasher.update(chunk)
    return hasher.hexdigest().upper()


def hash_file(path: PathLike) -> str:
    """SHA-1 of a file's contents, same format as calculate_stream_sha1."""
    with open(path, "rb") as f:
        return calculate_stream_sha1(f)
