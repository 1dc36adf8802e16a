"""
Encrypt and decrypt buffers and files once the signed note is known.

Files are streamed in chunks so memory use does not depend on file size.
The key and cipher are always built before the output file is opened, so a
bad signature never leaves an output artifact behind.
"""

import os
import io
import logging
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Union

from .cipher import DEFAULT_SUITE, CipherStream, CipherSuite, create_cipher, create_decipher, stream_chunks
from .errors import InvalidInput, StreamIOError
from .framing import iter_ciphertext, prepend_note
from .key_derivation import derive_key
from .note import note_from_buffer, note_from_path, note_to_iv

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

DEFAULT_CHUNK_SIZE = 64 * 1024  # 64 KiB


def _read_chunks(source: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    """Yield chunks from a binary file object until EOF."""
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        yield chunk


def _build_encryptor(note: str, signed_note: str, suite: CipherSuite) -> tuple[bytes, CipherStream]:
    iv = note_to_iv(note, suite)
    key = derive_key(signed_note, suite)
    return iv, create_cipher(key, iv, suite)


def _build_decryptor(note: str, signed_note: str, suite: CipherSuite) -> CipherStream:
    iv = note_to_iv(note, suite)
    key = derive_key(signed_note, suite)
    return create_decipher(key, iv, suite)


# ============================================================================
# Buffers
# ============================================================================

def encrypt_bytes(
    data: bytes,
    note: str,
    signed_note: str,
    suite: CipherSuite = DEFAULT_SUITE,
) -> bytes:
    """
    Encrypt a buffer.

    Returns:
        note (raw) followed by the ciphertext, 16 + len(data) bytes
    """
    iv, cipher = _build_encryptor(note, signed_note, suite)
    return b"".join(prepend_note(iv, stream_chunks(cipher, [bytes(data)])))


def decrypt_bytes(
    data: bytes,
    signed_note: str,
    suite: CipherSuite = DEFAULT_SUITE,
) -> bytes:
    """
    Decrypt a buffer produced by encrypt_bytes().

    A wrong signature is not detected; it simply yields the wrong plaintext.
    """
    note = note_from_buffer(data, suite)
    decipher = _build_decryptor(note, signed_note, suite)
    ciphertext = iter_ciphertext(io.BytesIO(data), max(len(data), 1), suite)
    return b"".join(stream_chunks(decipher, ciphertext))


# ============================================================================
# Files
# ============================================================================

def _write_stream(output_path: Path, chunks: Iterable[bytes]) -> int:
    """
    Write chunks to a new file, removing it if anything fails.

    Returns:
        Number of bytes written
    """
    written = 0
    out = open(output_path, "wb")
    try:
        with out:
            for chunk in chunks:
                out.write(chunk)
                written += len(chunk)
    except BaseException:
        output_path.unlink(missing_ok=True)
        logger.warning(f"Removed partial output {output_path}")
        raise
    return written


def _check_paths(input_path: Path, output_path: Path) -> None:
    if not input_path.is_file():
        raise InvalidInput(f"File does not exist: {input_path}")
    # Opening the output truncates it before the input is read
    if output_path.resolve() == input_path.resolve():
        raise InvalidInput(f"Output would overwrite the input: {output_path}")


def encrypt_file(
    input_path: PathLike,
    output_path: PathLike,
    note: str,
    signed_note: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    suite: CipherSuite = DEFAULT_SUITE,
) -> int:
    """
    Encrypt a file as a stream.

    Args:
        input_path: Plaintext file
        output_path: Destination, created or truncated
        note: Hex note that was signed; becomes the IV and the file header
        signed_note: Signature over the note
        chunk_size: Read size, bounds memory use
        suite: Cipher parameters

    Returns:
        Number of bytes written (16 + plaintext size)
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    _check_paths(input_path, output_path)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    iv, cipher = _build_encryptor(note, signed_note, suite)

    try:
        with open(input_path, "rb") as source:
            framed = prepend_note(iv, stream_chunks(cipher, _read_chunks(source, chunk_size)))
            written = _write_stream(output_path, framed)
    except OSError as e:
        raise StreamIOError(f"Encrypting {input_path} failed: {e}") from e

    logger.info(f"Encrypted {input_path} -> {output_path} ({written} bytes)")
    return written


def decrypt_file(
    input_path: PathLike,
    output_path: PathLike,
    signed_note: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    suite: CipherSuite = DEFAULT_SUITE,
) -> int:
    """
    Decrypt a file as a stream.

    The note is read from the file header; only the signature is needed.

    Returns:
        Number of plaintext bytes written
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    _check_paths(input_path, output_path)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    note = note_from_path(input_path, suite)
    decipher = _build_decryptor(note, signed_note, suite)

    try:
        with open(input_path, "rb") as source:
            plaintext = stream_chunks(decipher, iter_ciphertext(source, chunk_size, suite))
            written = _write_stream(output_path, plaintext)
    except OSError as e:
        raise StreamIOError(f"Decrypting {input_path} failed: {e}") from e

    logger.info(f"Decrypted {input_path} -> {output_path} ({written} bytes)")
    return written
