"""
Streaming cipher engine.

AES-256 in counter mode: output length equals input length, no padding and
no integrity tag. Decrypting with the wrong key silently yields garbage.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

from cryptography.hazmat.primitives.ciphers import Cipher, CipherContext, algorithms, modes

from .errors import InvalidInput, MalformedKeyMaterial


@dataclass(frozen=True)
class CipherSuite:
    """Fixed cipher parameters shared by every operation."""
    algorithm: str = "aes-256-ctr"
    key_size: int = 32  # 256 bits
    iv_size: int = 16  # one AES block, doubles as the note size


DEFAULT_SUITE = CipherSuite()


class CipherStream:
    """
    Single-use encrypt or decrypt stream bound to one (key, IV) pair.

    Feed it with update() any number of times, then call finalize() once.
    After finalize() both methods raise
    cryptography.exceptions.AlreadyFinalized.
    """

    def __init__(self, context: CipherContext):
        self._context = context

    def update(self, chunk: bytes) -> bytes:
        return self._context.update(chunk)

    def finalize(self) -> bytes:
        return self._context.finalize()


def _build_cipher(key: bytes, iv: bytes, suite: CipherSuite) -> Cipher:
    if len(key) != suite.key_size:
        raise MalformedKeyMaterial(f"Key must be {suite.key_size} bytes, got {len(key)}")
    if len(iv) != suite.iv_size:
        raise InvalidInput(f"IV must be {suite.iv_size} bytes, got {len(iv)}")
    return Cipher(algorithms.AES(key), modes.CTR(iv))


def create_cipher(key: bytes, iv: bytes, suite: CipherSuite = DEFAULT_SUITE) -> CipherStream:
    """Create an encrypting stream."""
    return CipherStream(_build_cipher(key, iv, suite).encryptor())


def create_decipher(key: bytes, iv: bytes, suite: CipherSuite = DEFAULT_SUITE) -> CipherStream:
    """Create a decrypting stream."""
    return CipherStream(_build_cipher(key, iv, suite).decryptor())


def stream_chunks(stream: CipherStream, chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Run chunks through a stream.

    Yields one output chunk per input chunk, then the finalize() output
    (empty for CTR) so downstream stages always see at least one chunk.
    """
    for chunk in chunks:
        yield stream.update(chunk)
    yield stream.finalize()
