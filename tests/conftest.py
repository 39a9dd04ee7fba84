"""Shared fixtures: a chain with a deployed invoker and a recording target."""

from __future__ import annotations

import logging

import pytest

from invoker.codec import encode_relay
from invoker.crypto.signer import sign_commit, signer_address
from invoker.engine.dispatcher import Invoker
from invoker.errors import Revert
from invoker.models.request import RelayRequest
from invoker.runtime.host import Frame, InMemoryHost


CHAIN_ID = 1
SIGNER_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32
INVOKER = "0x" + "aa" * 20
OTHER_INVOKER = "0x" + "ab" * 20
TARGET = "0x" + "cc" * 20
SUBMITTER = "0x" + "5b" * 20

SIGNER = signer_address(SIGNER_KEY)
TARGET_OUTPUT = (42).to_bytes(32, "big")
CALL_DATA = bytes.fromhex("12345678")


class RecordingTarget:
    """A target contract that records who called it."""

    def __init__(self, output: bytes = TARGET_OUTPUT, fail: bool = False) -> None:
        self.output = output
        self.fail = fail
        self.calls: list[tuple[str, int, bytes]] = []

    def __call__(self, frame: Frame, data: bytes) -> bytes:
        self.calls.append((frame.caller, frame.value, data))
        if self.fail:
            raise Revert(self.output)
        return self.output


def relay_calldata(
    commit: bytes,
    key: str = SIGNER_KEY,
    data: bytes = CALL_DATA,
    to: str = TARGET,
    chain_id: int = CHAIN_ID,
    invoker: str = INVOKER,
    signature: bytes | None = None,
) -> bytes:
    """Relay call data with a signature over (chain_id, invoker, commit)."""
    if signature is None:
        signature = sign_commit(key, chain_id, invoker, commit)
    return encode_relay(RelayRequest(signature=signature, data=data, commit=commit, to=to))


@pytest.fixture
def target() -> RecordingTarget:
    return RecordingTarget()


@pytest.fixture
def host(target: RecordingTarget) -> InMemoryHost:
    chain = InMemoryHost(chain_id=CHAIN_ID)
    chain.deploy(INVOKER, Invoker())
    chain.deploy(TARGET, target)
    chain.register_authority(SIGNER)
    chain.register_authority(signer_address(OTHER_KEY))
    return chain


@pytest.fixture(autouse=True)
def reset_invoker_logger():
    """Drop handlers the CLI installs so they never outlive a test's streams."""
    yield
    logger = logging.getLogger("invoker")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
