"""
Encryption notes.

A note is a random 16-byte value, carried around as hex. It is signed to
obtain the key, used as the CTR IV, and stored in the clear as the first
16 bytes of every encrypted file.
"""

import os
import logging
from pathlib import Path
from typing import Union

from .cipher import DEFAULT_SUITE, CipherSuite
from .errors import InvalidInput, StreamIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def generate_note(suite: CipherSuite = DEFAULT_SUITE) -> str:
    """Generate a fresh note. Never reuse one across encryptions."""
    return os.urandom(suite.iv_size).hex()


def note_to_iv(note: str, suite: CipherSuite = DEFAULT_SUITE) -> bytes:
    """Decode a hex note into IV bytes."""
    try:
        iv = bytes.fromhex(note)
    except (TypeError, ValueError) as e:
        raise InvalidInput("Note is not valid hex") from e
    if len(iv) != suite.iv_size:
        raise InvalidInput(f"Note must be {suite.iv_size} bytes, got {len(iv)}")
    return iv


def note_from_buffer(data: bytes, suite: CipherSuite = DEFAULT_SUITE) -> str:
    """Read the note from the head of an encrypted payload."""
    header = bytes(data[:suite.iv_size])
    if len(header) < suite.iv_size:
        raise InvalidInput(
            f"Encrypted data is {len(header)} bytes, shorter than the {suite.iv_size}-byte note"
        )
    return header.hex()


def partial_read(path: PathLike, start: int, end: int) -> bytes:
    """
    Read bytes [start, end) of a file without touching the rest.

    Returns fewer bytes if the file ends early.
    """
    if start < 0 or end < 0 or end < start:
        raise ValueError(f"Bad range: start={start}, end={end}")
    if end == start:
        return b""

    with open(path, "rb") as f:
        f.seek(start)
        return f.read(end - start)


def note_from_path(path: PathLike, suite: CipherSuite = DEFAULT_SUITE) -> str:
    """Read the note from an encrypted file with a single bounded read."""
    path = Path(path)
    if not path.is_file():
        raise InvalidInput(f"File does not exist: {path}")

    try:
        header = partial_read(path, 0, suite.iv_size)
    except OSError as e:
        raise StreamIOError(f"Could not read note from {path}: {e}") from e

    if len(header) < suite.iv_size:
        raise InvalidInput(
            f"{path} is {len(header)} bytes, shorter than the {suite.iv_size}-byte note"
        )
    logger.debug(f"Read note header from {path}")
    return header.hex()
