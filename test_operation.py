"""
Tests for signer-driven operations and their state machine.
"""

import asyncio
from pathlib import Path

import pytest

from ethcrypt import (
    FileOperation,
    InvalidInput,
    MalformedKeyMaterial,
    OperationState,
    SignerDeclined,
    SignerError,
    build_signature_message,
    decrypt_with_signer,
    encrypt_with_signer,
    sign_note,
)
from ethcrypt.signing import SIGNATURE_MESSAGE_PREFIX, Signer
from signer import LocalKeySigner

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


class RecordingSigner:
    """Returns a fixed signature and remembers what it was asked to sign."""

    def __init__(self, signature: str = "0x" + "7e" * 65):
        self.address = "0x000000000000000000000000000000000000dEaD"
        self.signature = signature
        self.messages: list[str] = []

    async def request_signature(self, message: str) -> str:
        self.messages.append(message)
        return self.signature


class DecliningSigner:
    address = "0x000000000000000000000000000000000000bEEF"

    async def request_signature(self, message: str) -> str:
        raise SignerDeclined("User denied message signature")


@pytest.fixture
def source(tmp_path) -> Path:
    path = tmp_path / "notes.md"
    path.write_bytes(b"# secrets\n" * 5000)
    return path


def test_fakes_satisfy_signer_protocol():
    assert isinstance(RecordingSigner(), Signer)
    assert isinstance(LocalKeySigner(PRIVATE_KEY), Signer)


def test_signature_message_format():
    note = "ab" * 16
    assert build_signature_message(note) == SIGNATURE_MESSAGE_PREFIX + note
    assert build_signature_message(note) == "ETH Encrypt - sign to encrypt or decrypt: " + note


def test_sign_note_rejects_empty_signature():
    with pytest.raises(SignerError):
        asyncio.run(sign_note("00" * 16, RecordingSigner(signature="")))


def test_encrypt_then_decrypt_with_signer(tmp_path, source):
    signer = RecordingSigner()
    encrypted = tmp_path / "notes.md.eth.encrypted"
    restored = tmp_path / "notes.restored.md"

    enc = asyncio.run(encrypt_with_signer(source, encrypted, signer, chunk_size=1000))

    assert enc.state is OperationState.COMPLETE
    assert enc.bytes_written == 16 + source.stat().st_size
    assert signer.messages == [SIGNATURE_MESSAGE_PREFIX + enc.note]
    assert encrypted.read_bytes()[:16].hex() == enc.note
    assert enc.key == b"\x7e" * 32

    dec = asyncio.run(decrypt_with_signer(encrypted, restored, signer, chunk_size=1000))

    assert dec.state is OperationState.COMPLETE
    assert dec.note == enc.note
    assert signer.messages[-1] == signer.messages[0]
    assert restored.read_bytes() == source.read_bytes()


def test_round_trip_with_local_key_signer(tmp_path, source):
    encrypted = tmp_path / "notes.md.eth.encrypted"
    restored = tmp_path / "restored.md"

    asyncio.run(encrypt_with_signer(source, encrypted, LocalKeySigner(PRIVATE_KEY)))
    asyncio.run(decrypt_with_signer(encrypted, restored, LocalKeySigner(PRIVATE_KEY)))

    assert restored.read_bytes() == source.read_bytes()


def test_each_encryption_uses_a_fresh_note(tmp_path, source):
    signer = RecordingSigner()
    first = asyncio.run(encrypt_with_signer(source, tmp_path / "a", signer))
    second = asyncio.run(encrypt_with_signer(source, tmp_path / "b", signer))

    assert first.note != second.note
    assert (tmp_path / "a").read_bytes() != (tmp_path / "b").read_bytes()


def test_declined_signature_leaves_no_output(tmp_path, source):
    output = tmp_path / "never.eth.encrypted"
    operations: list[FileOperation] = []

    with pytest.raises(SignerDeclined):
        asyncio.run(encrypt_with_signer(source, output, DecliningSigner(), on_signed=operations.append))

    assert operations == []
    assert not output.exists()


def test_short_signature_fails_before_streaming(tmp_path, source):
    output = tmp_path / "never.eth.encrypted"
    signed: list[FileOperation] = []

    with pytest.raises(MalformedKeyMaterial):
        asyncio.run(encrypt_with_signer(source, output, RecordingSigner("0xabcd"), on_signed=signed.append))

    assert signed == []
    assert not output.exists()


def test_on_signed_can_redirect_output(tmp_path, source):
    requested = tmp_path / "requested"
    redirected = tmp_path / "redirected"
    seen_states = []

    def on_signed(operation: FileOperation):
        seen_states.append(operation.state)
        operation.output_path = redirected

    operation = asyncio.run(encrypt_with_signer(source, requested, RecordingSigner(), on_signed=on_signed))

    assert seen_states == [OperationState.KEY_DERIVED]
    assert operation.output_path == redirected
    assert redirected.exists()
    assert not requested.exists()


def test_missing_input_fails_without_contacting_signer(tmp_path):
    signer = RecordingSigner()

    with pytest.raises(InvalidInput):
        asyncio.run(encrypt_with_signer(tmp_path / "missing", tmp_path / "out", signer))
    with pytest.raises(InvalidInput):
        asyncio.run(decrypt_with_signer(tmp_path / "missing", tmp_path / "out", signer))

    assert signer.messages == []


def test_state_machine_order():
    operation = FileOperation("encrypt", Path("in"), Path("out"))
    assert operation.state is OperationState.NOTE_PENDING

    with pytest.raises(RuntimeError):
        operation.advance(OperationState.STREAMING)

    for state in (
        OperationState.AWAITING_SIGNATURE,
        OperationState.KEY_DERIVED,
        OperationState.STREAMING,
        OperationState.COMPLETE,
    ):
        operation.advance(state)

    assert operation.is_finished
    with pytest.raises(RuntimeError):
        operation.advance(OperationState.FAILED)


def test_failed_is_terminal():
    operation = FileOperation("decrypt", Path("in"), Path("out"))
    operation.advance(OperationState.AWAITING_SIGNATURE)
    error = SignerError("boom")
    operation.fail(error)

    assert operation.state is OperationState.FAILED
    assert operation.error is error
    with pytest.raises(RuntimeError):
        operation.advance(OperationState.KEY_DERIVED)
    with pytest.raises(RuntimeError):
        operation.key


def test_uppercase_note_round_trips(tmp_path):
    source = tmp_path / "hello.txt"
    source.write_bytes(b"hello world")
    encrypted = tmp_path / "hello.txt.eth.encrypted"
    restored = tmp_path / "hello.restored.txt"

    enc = asyncio.run(encrypt_with_signer(source, encrypted, LocalKeySigner(PRIVATE_KEY), note="AB" * 16))
    dec = asyncio.run(decrypt_with_signer(encrypted, restored, LocalKeySigner(PRIVATE_KEY)))

    assert enc.note == "ab" * 16
    assert dec.note == enc.note
    assert restored.read_bytes() == b"hello world"


def test_bad_caller_note_fails_before_signing(tmp_path, source):
    signer = RecordingSigner()

    with pytest.raises(InvalidInput):
        asyncio.run(encrypt_with_signer(source, tmp_path / "out", signer, note="abcd"))
    assert signer.messages == []
