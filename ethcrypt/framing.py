"""
On-disk framing: note || ciphertext.
"""

from typing import BinaryIO, Iterable, Iterator

from .cipher import DEFAULT_SUITE, CipherSuite
from .errors import InvalidInput


def prepend_note(note: bytes, chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Emit the raw note once, ahead of the first chunk, then forward the rest.

    The header goes out even when the first chunk is empty, and even when
    there are no chunks at all.
    """
    prepended = False
    for chunk in chunks:
        if not prepended:
            yield note
            prepended = True
        yield chunk

    if not prepended:
        yield note


def iter_ciphertext(
    source: BinaryIO,
    chunk_size: int,
    suite: CipherSuite = DEFAULT_SUITE,
) -> Iterator[bytes]:
    """
    Skip the note header of a payload and yield the ciphertext in chunks.

    Args:
        source: Binary file object positioned at the start of the payload
        chunk_size: Maximum size of each yielded chunk
        suite: Cipher parameters providing the note size
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    header = source.read(suite.iv_size)
    if len(header) < suite.iv_size:
        raise InvalidInput(
            f"Encrypted data is {len(header)} bytes, shorter than the {suite.iv_size}-byte note"
        )

    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        yield chunk
