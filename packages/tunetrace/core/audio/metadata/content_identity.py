"""Content identity for audio files.

A path-independent digest of a file's bytes, used as the persistent cache
key so a file is recognized after renames, moves and across sessions.
"""

import hashlib
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

HASH_WINDOW_BYTES = 1024 * 1024  # 1 MiB


def compute_content_identity(path: str | Path, *, window_bytes: int = HASH_WINDOW_BYTES) -> str:
    """Compute the SHA-256 content identity of a file.

    Hashes the first and last ``window_bytes`` of the file, or the whole
    file when it is no larger than two windows. Mtime and path play no part.

    Args:
        path: Path to the file
        window_bytes: Size of the head/tail windows

    Returns:
        SHA-256 hex digest (64 chars)

    Raises:
        OSError: If the file cannot be read

    Example:
        >>> identity = compute_content_identity("song.mp3")
        >>> len(identity)
        64
    """
    hasher = hashlib.sha256()
    file_path = Path(path)
    size = os.path.getsize(file_path)

    with file_path.open("rb") as f:
        if size <= window_bytes * 2:
            hasher.update(f.read())
        else:
            hasher.update(f.read(window_bytes))
            f.seek(size - window_bytes)
            hasher.update(f.read(window_bytes))

    digest = hasher.hexdigest()
    logger.debug(f"Content identity for {file_path.name}: {digest[:12]}")
    return digest
