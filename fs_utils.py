"""
Output file naming for eth-encrypt.
"""

import os
from pathlib import Path
from typing import Union

from config import DECRYPTED_FILE_EXTENSION, FILE_EXTENSION

PathLike = Union[str, os.PathLike]


def _append_to_filename(path: Path, suffix: str) -> Path:
    """Insert suffix before the first dot of the file name, or append it."""
    name = path.name
    dot = name.find(".")
    if dot <= 0:
        return path.with_name(name + suffix)
    return path.with_name(name[:dot] + suffix + name[dot:])


def default_output_path(input_path: PathLike, action: str) -> Path:
    """
    Default output path for an action.

    encrypt: file.txt -> file.txt.eth.encrypted
    decrypt: file.txt.eth.encrypted -> file.txt, anything else -> *.eth.decrypted
    """
    path = Path(input_path)
    if action == "encrypt":
        return path.with_name(f"{path.name}.{FILE_EXTENSION}")
    if action == "decrypt":
        marker = f".{FILE_EXTENSION}"
        if path.name.endswith(marker) and len(path.name) > len(marker):
            return path.with_name(path.name[: -len(marker)])
        return path.with_name(f"{path.name}.{DECRYPTED_FILE_EXTENSION}")
    raise ValueError(f"Unknown action: {action}")


def resolve_output_path(output_path: PathLike, max_attempts: int = 1000) -> Path:
    """
    Return a path that does not exist yet.

    file.txt -> file.txt, file-dup-1.txt, file-dup-2.txt, ...
    """
    path = Path(output_path)
    if not path.exists():
        return path

    for i in range(1, max_attempts + 1):
        candidate = _append_to_filename(path, f"-dup-{i}")
        if not candidate.exists():
            return candidate

    raise FileExistsError(f"No free output name for {path} after {max_attempts} attempts")
