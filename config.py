"""
Configuration for eth-encrypt.
"""

import os
from dataclasses import dataclass

# Application version - update this for each release
VERSION = "1.0.0"

# Default output naming
FILE_EXTENSION = "eth.encrypted"
DECRYPTED_FILE_EXTENSION = "eth.decrypted"


@dataclass
class Config:
    """Application configuration."""

    # Signer settings
    RPC_URL: str = os.getenv("ETH_ENCRYPT_RPC_URL", "")
    RPC_TIMEOUT: float = float(os.getenv("ETH_ENCRYPT_RPC_TIMEOUT", "120"))

    # Streaming settings
    CHUNK_SIZE: int = int(os.getenv("ETH_ENCRYPT_CHUNK_SIZE", str(64 * 1024)))

    # Logging
    LOG_LEVEL: str = os.getenv("ETH_ENCRYPT_LOG_LEVEL", "WARNING")

    def __post_init__(self):
        """Validate settings that the streaming code relies on."""
        if self.CHUNK_SIZE <= 0:
            raise ValueError(f"CHUNK_SIZE must be positive, got {self.CHUNK_SIZE}")
        if self.RPC_TIMEOUT <= 0:
            raise ValueError(f"RPC_TIMEOUT must be positive, got {self.RPC_TIMEOUT}")


# Global config instance
config = Config()
