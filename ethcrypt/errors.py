"""
Exceptions raised by the eth-encrypt core.

Every failure is raised to the caller; nothing here is ever swallowed or
replaced by a default key or IV.
"""


class EthEncryptError(Exception):
    """Base class for all eth-encrypt errors."""


class InvalidInput(EthEncryptError, ValueError):
    """Missing source, or a source/note too short to hold a note."""


class MalformedKeyMaterial(EthEncryptError, ValueError):
    """A signature that cannot provide a full 32-byte key."""


class SignerError(EthEncryptError):
    """The signing round-trip failed."""


class SignerDeclined(SignerError):
    """The identity holder refused to sign."""


class StreamIOError(EthEncryptError, OSError):
    """Read or write failure while streaming a file."""
