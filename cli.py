"""
eth-encrypt - Command line entry point

Encrypts and decrypts files with a key derived from an Ethereum signature.

Usage:
    eth-encrypt encrypt FILE (--private-key KEY | --rpc-url URL) [-o OUT] [-v]
    eth-encrypt decrypt FILE.eth.encrypted (--private-key KEY | --rpc-url URL) [-o OUT] [-v]
    eth-encrypt --version
"""

import sys
import asyncio
import logging
import argparse
from pathlib import Path
from typing import Optional

from config import FILE_EXTENSION, VERSION, config
from ethcrypt import EthEncryptError, FileOperation, decrypt_with_signer, encrypt_with_signer
from fs_utils import default_output_path, resolve_output_path
from signer import LocalKeySigner, RpcSigner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eth-encrypt",
        description="Encrypt or decrypt files with a key derived from an Ethereum signature.",
    )
    parser.add_argument("--version", action="version", version=f"version {VERSION}")

    subparsers = parser.add_subparsers(dest="command")
    for command, file_label in (("encrypt", "file"), ("decrypt", f"file.{FILE_EXTENSION}")):
        sub = subparsers.add_parser(command, help=f"{command} a file")
        sub.add_argument("file", metavar=file_label)
        sub.add_argument(
            "-k", "--private-key",
            help="The Ethereum private key used to encrypt or decrypt files",
        )
        sub.add_argument(
            "-u", "--rpc-url",
            help="Url for Ethereum RPC with a hot wallet to request signatures to",
        )
        sub.add_argument(
            "-o", "--output",
            help=f"(Optional) The output file. Default: file.{FILE_EXTENSION}",
        )
        sub.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="(Optional) Outputs secure information. Not recommended.",
        )
    return parser


def display_error(text: str, show_help_offer: bool = True):
    """Print a user-facing error."""
    if show_help_offer:
        print(f"{text}. For help, please run:")
        print("\n  $ eth-encrypt -h\n")
    else:
        print(f"{text}.\n")


def _make_signer(args: argparse.Namespace):
    rpc_url = args.rpc_url or (config.RPC_URL if not args.private_key else None)

    if not args.private_key and not rpc_url:
        display_error("One of --private-key or --rpc-url required")
        return None
    if args.private_key and rpc_url:
        display_error("Choose one of --private-key or --rpc-url")
        return None

    if args.private_key:
        return LocalKeySigner(args.private_key)
    return RpcSigner(rpc_url, timeout=config.RPC_TIMEOUT)


async def process_action(action: str, args: argparse.Namespace) -> int:
    """Run one encrypt or decrypt command. Returns the exit status."""
    input_path = Path(args.file)
    if not input_path.is_file():
        display_error(f"File does not exist: {input_path}")
        return 2

    try:
        signer = _make_signer(args)
    except EthEncryptError as e:
        display_error(str(e), show_help_offer=False)
        return 2
    if signer is None:
        return 2

    requested_output = Path(args.output) if args.output else default_output_path(input_path, action)
    verb = "Encrypting" if action == "encrypt" else "Decrypting"

    def on_signed(operation: FileOperation):
        print("Done.")
        operation.output_path = resolve_output_path(requested_output)
        logger.info(f"Writing to {operation.output_path}")
        print(f"{verb} {input_path}... ", end="", flush=True)

    try:
        if isinstance(signer, RpcSigner):
            await signer.resolve_address()

        print(f"{verb} file: {input_path}")
        print(f"Your address:    {signer.address}")
        print()
        print("Requesting signature... ", end="", flush=True)

        if action == "encrypt":
            operation = await encrypt_with_signer(
                input_path, requested_output, signer,
                chunk_size=config.CHUNK_SIZE, on_signed=on_signed,
            )
        else:
            operation = await decrypt_with_signer(
                input_path, requested_output, signer,
                chunk_size=config.CHUNK_SIZE, on_signed=on_signed,
            )
    except (EthEncryptError, OSError) as e:
        print("Failed.")
        if args.verbose:
            print("\nFull Error:")
            print(repr(e))
            print()
        return 1
    finally:
        if isinstance(signer, RpcSigner):
            await signer.close()

    print("Done.")
    if action == "encrypt":
        print(f"Your file has been encrypted as {operation.output_path}")
    else:
        print(f"Your file has been decrypted to {operation.output_path}")

    if args.verbose:
        print(f"Encryption Note: {operation.note}")
        print(f"Encryption Key (Password): {operation.key.hex()}")
    print()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if getattr(args, "verbose", False) else config.LOG_LEVEL
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return 0

    return asyncio.run(process_action(args.command, args))


if __name__ == "__main__":
    sys.exit(main())
